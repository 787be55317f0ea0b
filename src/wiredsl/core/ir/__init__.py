"""
WireDSL Intermediate Representation (IR) types.

The IR is produced once per compile by the normalizer and never mutated.
All types are re-exported from this package.
"""

from .devices import DEFAULT_DEVICE, DEVICE_PRESETS, Viewport, resolve_device
from .nodes import (
    Align,
    CardLayout,
    ChildSlot,
    ComponentNode,
    ContainerNode,
    Direction,
    GridLayout,
    Justify,
    LayoutDescriptor,
    LayoutKind,
    Node,
    NodeMeta,
    PanelLayout,
    PropValue,
    SplitLayout,
    StackLayout,
    iter_nodes,
)
from .project import Project, Screen
from .sizes import Size, SizeMode, parse_size
from .tokens import (
    DENSITY_FACTORS,
    SPACING_VALUES,
    Density,
    FontSize,
    NodeStyle,
    Radius,
    Spacing,
    Stroke,
    StyleTokens,
    canonical_token,
    spacing_px,
)

__all__ = [
    "Align",
    "CardLayout",
    "ChildSlot",
    "ComponentNode",
    "ContainerNode",
    "DEFAULT_DEVICE",
    "DENSITY_FACTORS",
    "DEVICE_PRESETS",
    "Density",
    "Direction",
    "FontSize",
    "GridLayout",
    "Justify",
    "LayoutDescriptor",
    "LayoutKind",
    "Node",
    "NodeMeta",
    "NodeStyle",
    "PanelLayout",
    "Project",
    "PropValue",
    "Radius",
    "SPACING_VALUES",
    "Screen",
    "Size",
    "SizeMode",
    "Spacing",
    "SplitLayout",
    "StackLayout",
    "Stroke",
    "StyleTokens",
    "Viewport",
    "canonical_token",
    "iter_nodes",
    "parse_size",
    "resolve_device",
    "spacing_px",
]
