"""
Source map record types.

All records are frozen pydantic models so they can be handed to editor
tooling as plain JSON (camelCase keys via ``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

PropertyValue = str | int | float | bool

SCOPE_SEPARATOR = "@"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Position(_Record):
    """A point in source text. Lines are 1-indexed, columns 0-indexed."""

    line: int
    column: int
    offset: int = 0

    def sort_key(self) -> tuple[int, int]:
        return (self.line, self.column)


class SourceRange(_Record):
    """Half-open in offsets, but containment checks are inclusive on both ends."""

    start: Position
    end: Position

    @property
    def span(self) -> int:
        return self.end.offset - self.start.offset

    def contains(self, line: int, column: int) -> bool:
        point = (line, column)
        return self.start.sort_key() <= point <= self.end.sort_key()


class EntryType(str, Enum):
    """Kinds of node recorded in the source map."""

    PROJECT = "project"
    SCREEN = "screen"
    LAYOUT = "layout"
    COMPONENT = "component"
    CELL = "cell"
    DEFINE = "define"
    STYLE = "style"
    COLORS = "colors"
    MOCKS = "mocks"


class PropertyRange(_Record):
    """Location of a single ``key: value`` pair."""

    name: str
    value: PropertyValue
    range: SourceRange
    name_range: SourceRange
    value_range: SourceRange


class SourceMapEntry(_Record):
    """Links one node id to its originating source range."""

    node_id: str
    type: EntryType
    range: SourceRange
    subtype: str | None = None
    name: str | None = None
    file_path: str = "<input>"
    parent_id: str | None = None
    is_user_defined: bool = False
    keyword_range: SourceRange | None = None
    name_range: SourceRange | None = None
    body_range: SourceRange | None = None
    properties: dict[str, PropertyRange] = Field(default_factory=dict)
    origin_id: str | None = None
    call_site_id: str | None = None

    @property
    def is_scoped(self) -> bool:
        return SCOPE_SEPARATOR in self.node_id


def scoped_id(body_id: str, call_site_id: str) -> str:
    """Compose a scoped id for one instantiation of a definition body node."""
    return f"{body_id}{SCOPE_SEPARATOR}{call_site_id}"


def origin_of(node_id: str) -> str:
    """Return the definition-body id a (possibly scoped) id was derived from."""
    return node_id.split(SCOPE_SEPARATOR, 1)[0]


def call_site_of(node_id: str) -> str | None:
    """Return the outermost call site of a scoped id, or None if unscoped."""
    if SCOPE_SEPARATOR not in node_id:
        return None
    return node_id.rsplit(SCOPE_SEPARATOR, 1)[1]
