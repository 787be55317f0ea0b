"""
Abstract syntax tree for WireDSL.

The AST mirrors the source structure one-to-one and keeps the node id
assigned at parse time, so the source map can be joined to any AST node.
Property values are plain literals, except for ``Binding`` placeholders
which only the expander may resolve.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum

from .sourcemap.types import SourceRange


@dataclass(frozen=True)
class Binding:
    """
    A dynamic value inside a definition body, resolved from invocation args.

    ``raw`` is the bareword as written (``prop_title``); ``name`` is the
    argument it reads (``title``).
    """

    name: str
    raw: str

    def __str__(self) -> str:
        return self.raw


Value = str | int | float | bool | Binding


class DefinitionKind(str, Enum):
    COMPONENT = "component"
    LAYOUT = "layout"


@dataclass
class ComponentUse:
    """``component Type key: value ...``"""

    id: str
    component_type: str
    props: dict[str, Value]
    range: SourceRange


@dataclass
class CellBlock:
    """``cell span: 4 { ... }`` inside a grid."""

    id: str
    props: dict[str, Value]
    children: list[Child]
    range: SourceRange
    incomplete: bool = False  # a child was dropped during expansion


@dataclass
class LayoutBlock:
    """``layout type(params) { ... }``"""

    id: str
    layout_type: str
    params: dict[str, Value]
    children: list[Child]
    range: SourceRange
    incomplete: bool = False


Child = LayoutBlock | ComponentUse | CellBlock


@dataclass
class Definition:
    """A ``define Component`` or ``define Layout`` declaration."""

    id: str
    kind: DefinitionKind
    name: str
    body: LayoutBlock | ComponentUse
    range: SourceRange
    name_range: SourceRange


@dataclass
class ScreenBlock:
    id: str
    name: str
    params: dict[str, Value]
    root: LayoutBlock | ComponentUse | None
    range: SourceRange
    name_range: SourceRange


@dataclass
class ProjectAST:
    """Root of a compilation unit."""

    name: str
    range: SourceRange
    style: dict[str, Value] = field(default_factory=dict)
    colors: dict[str, Value] = field(default_factory=dict)
    mocks: dict[str, Value] = field(default_factory=dict)
    definitions: list[Definition] = field(default_factory=list)
    screens: list[ScreenBlock] = field(default_factory=list)


def iter_children(node: Child) -> list[Child]:
    """Children of a node, empty for components."""
    if isinstance(node, ComponentUse):
        return []
    return node.children


def walk(node: Child) -> Iterator[Child]:
    """Yield ``node`` and its descendants in pre-order, without recursion."""
    stack: list[Child] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(iter_children(current)))
