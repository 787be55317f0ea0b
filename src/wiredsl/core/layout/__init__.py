"""
Layout engine: IR screens to render trees with absolute geometry.
"""

from .engine import LayoutEngine, layout_project
from .metrics import intrinsic_height, intrinsic_width, wrap_text
from .types import RenderNode, RenderTree

__all__ = [
    "LayoutEngine",
    "RenderNode",
    "RenderTree",
    "intrinsic_height",
    "intrinsic_width",
    "layout_project",
    "wrap_text",
]
