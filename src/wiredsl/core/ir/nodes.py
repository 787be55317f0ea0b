"""
IR node types.

The IR is a tree: containers own their children through ``ChildSlot``
lists. Parent and sibling relationships are not stored here; navigate them
through the source map resolver instead.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .sizes import Size
from .tokens import NodeStyle

PropValue = str | int | float | bool


class LayoutKind(str, Enum):
    STACK = "stack"
    GRID = "grid"
    SPLIT = "split"
    PANEL = "panel"
    CARD = "card"


class Direction(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class Justify(str, Enum):
    """Main-axis distribution for horizontal stacks."""

    STRETCH = "stretch"
    START = "start"
    CENTER = "center"
    END = "end"
    SPACE_BETWEEN = "spaceBetween"
    SPACE_AROUND = "spaceAround"


class Align(str, Enum):
    """Cross-axis offset; ``stretch`` is only meaningful for grid cells."""

    STRETCH = "stretch"
    START = "start"
    CENTER = "center"
    END = "end"


class StackLayout(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["stack"] = "stack"
    direction: Direction = Direction.VERTICAL
    justify: Justify = Justify.STRETCH
    align: Align = Align.START
    gap: int = 0
    padding: int = 0


class GridLayout(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["grid"] = "grid"
    columns: int = 12
    gap: int = 0
    padding: int = 0


class SplitLayout(BaseModel):
    """Two panes: one side has a fixed pixel width, the other fills."""

    model_config = {"frozen": True}

    kind: Literal["split"] = "split"
    fixed_side: Literal["left", "right"] = "left"
    fixed_width: int = 260
    gap: int = 0
    padding: int = 0
    divider: bool = False


class PanelLayout(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["panel"] = "panel"
    gap: int = 0
    padding: int = 0


class CardLayout(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["card"] = "card"
    gap: int = 0
    padding: int = 0
    border: bool = True


LayoutDescriptor = Annotated[
    StackLayout | GridLayout | SplitLayout | PanelLayout | CardLayout,
    Field(discriminator="kind"),
]


class NodeMeta(BaseModel):
    """Provenance of a node."""

    model_config = {"frozen": True}

    source: Literal["layout", "component", "cell"] = "layout"
    origin_id: str | None = None  # definition-body node for scoped ids
    call_site_id: str | None = None  # outermost invocation for scoped ids
    definition: str | None = None  # user definition this node was expanded from


class ChildSlot(BaseModel):
    """A child reference with its placement inside the parent."""

    model_config = {"frozen": True}

    node: Node
    span: int = 1
    align: Align = Align.STRETCH


class ContainerNode(BaseModel):
    model_config = {"frozen": True}

    type: Literal["container"] = "container"
    id: str
    layout: LayoutDescriptor
    children: list[ChildSlot] = Field(default_factory=list)
    params: dict[str, PropValue] = Field(default_factory=dict)
    width: Size = Field(default_factory=Size.fill)
    height: Size = Field(default_factory=Size.content)
    style: NodeStyle = Field(default_factory=NodeStyle)
    meta: NodeMeta = Field(default_factory=NodeMeta)

    @property
    def kind(self) -> LayoutKind:
        return LayoutKind(self.layout.kind)


class ComponentNode(BaseModel):
    model_config = {"frozen": True}

    type: Literal["component"] = "component"
    id: str
    component_type: str
    props: dict[str, PropValue] = Field(default_factory=dict)
    width: Size = Field(default_factory=Size.fill)
    height: Size = Field(default_factory=Size.content)
    style: NodeStyle = Field(default_factory=NodeStyle)
    meta: NodeMeta = Field(default_factory=lambda: NodeMeta(source="component"))


Node = Annotated[ContainerNode | ComponentNode, Field(discriminator="type")]

ChildSlot.model_rebuild()
ContainerNode.model_rebuild()


def iter_nodes(root: ContainerNode | ComponentNode) -> Iterator[ContainerNode | ComponentNode]:
    """Yield every node in pre-order without recursion."""
    stack: list[ContainerNode | ComponentNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, ContainerNode):
            stack.extend(slot.node for slot in reversed(node.children))
