"""
Render tree types produced by the layout engine.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..ir import Viewport


class RenderNode(BaseModel):
    """
    A node with absolute geometry.

    ``id`` is the IR node id (scoped ``body@callsite`` for expanded
    definitions), so renderers can tag output elements with it and resolve
    selections back through the source map.
    """

    model_config = {"frozen": True}

    id: str
    kind: Literal["layout", "component"]
    type: str
    x: float
    y: float
    width: float
    height: float
    children: list[RenderNode] = Field(default_factory=list)
    origin_id: str | None = None
    call_site_id: str | None = None

    def find(self, node_id: str) -> RenderNode | None:
        stack = [self]
        while stack:
            node = stack.pop()
            if node.id == node_id:
                return node
            stack.extend(reversed(node.children))
        return None


class RenderTree(BaseModel):
    model_config = {"frozen": True}

    screen: str
    viewport: Viewport
    root: RenderNode
