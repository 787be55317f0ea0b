"""
Built-in component and layout catalog.

The catalog is the single source of truth for which component types and
layout kinds exist, which properties they accept, which of those are
required, and the allowed values of enumerated properties. The expander
uses it to decide whether a missing binding is fatal; the validator uses
it for property checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class PropType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    COLOR = "color"


@dataclass(frozen=True)
class PropSpec:
    """Schema for one property."""

    type: PropType = PropType.STRING
    required: bool = False
    options: tuple[str, ...] = ()
    default: str | int | float | bool | None = None


@dataclass(frozen=True)
class ComponentSpec:
    name: str
    category: str
    props: dict[str, PropSpec] = field(default_factory=dict)

    @property
    def required_props(self) -> list[str]:
        return [name for name, spec in self.props.items() if spec.required]


@dataclass(frozen=True)
class LayoutSpec:
    name: str
    props: dict[str, PropSpec] = field(default_factory=dict)

    @property
    def required_props(self) -> list[str]:
        return [name for name, spec in self.props.items() if spec.required]


SPACING_OPTIONS = ("none", "xs", "sm", "md", "lg", "xl")
CONTROL_SIZES = ("xs", "sm", "md", "lg", "xl")
ALIGN_OPTIONS = ("left", "center", "right")
HEADING_LEVELS = ("h1", "h2", "h3", "h4", "h5", "h6")
IMAGE_PLACEHOLDERS = ("landscape", "portrait", "square", "icon", "avatar")
JUSTIFY_OPTIONS = ("stretch", "start", "center", "end", "spaceBetween", "spaceAround")
CROSS_ALIGN_OPTIONS = ("start", "center", "end")
CELL_ALIGN_OPTIONS = ("stretch", "start", "center", "end")

VARIANTS = (
    "primary", "secondary", "success", "warning", "danger", "info",
    "red", "pink", "purple", "deep_purple", "indigo", "blue", "light_blue",
    "cyan", "teal", "green", "light_green", "lime", "yellow", "amber",
    "orange", "deep_orange", "brown", "grey", "blue_grey",
)  # fmt: skip
VARIANTS_WITH_DEFAULT = ("default", *VARIANTS)

# Properties every node accepts regardless of type.
UNIVERSAL_PROPS: dict[str, PropSpec] = {
    "width": PropSpec(PropType.STRING),
    "height": PropSpec(PropType.STRING),
    "span": PropSpec(PropType.NUMBER),
}

# Component types that may carry a ``navigate`` property naming a screen.
NAVIGABLE = {"Button", "Link", "IconButton", "Card", "Stat", "StatCard", "SidebarMenu", "Tabs"}


def _s(required: bool = False) -> PropSpec:
    return PropSpec(PropType.STRING, required=required)


def _n() -> PropSpec:
    return PropSpec(PropType.NUMBER)


def _b(default: bool | None = None) -> PropSpec:
    return PropSpec(PropType.BOOLEAN, default=default)


def _e(options: tuple[str, ...], required: bool = False, default: str | None = None) -> PropSpec:
    return PropSpec(PropType.ENUM, required=required, options=options, default=default)


_COMPONENTS = [
    ComponentSpec("Heading", "Text", {
        "text": _s(True), "level": _e(HEADING_LEVELS, default="h2"),
        "spacing": _e(SPACING_OPTIONS), "variant": _e(VARIANTS_WITH_DEFAULT),
    }),
    ComponentSpec("Text", "Text", {"text": _s(True), "size": _e(CONTROL_SIZES)}),
    ComponentSpec("Label", "Text", {"text": _s(True)}),
    ComponentSpec("Paragraph", "Text", {
        "text": _s(True), "align": _e(ALIGN_OPTIONS), "size": _e(CONTROL_SIZES),
    }),
    ComponentSpec("Code", "Text", {"code": _s(True)}),
    ComponentSpec("Button", "Action", {
        "text": _s(True), "variant": _e(VARIANTS_WITH_DEFAULT), "size": _e(CONTROL_SIZES),
        "icon": _s(), "iconAlign": _e(("left", "right")), "align": _e(ALIGN_OPTIONS),
        "labelSpace": _b(), "padding": _e(SPACING_OPTIONS), "block": _b(),
        "disabled": _b(False), "navigate": _s(),
    }),
    ComponentSpec("Link", "Action", {
        "text": _s(True), "variant": _e(VARIANTS), "size": _e(CONTROL_SIZES), "navigate": _s(),
    }),
    ComponentSpec("IconButton", "Action", {
        "icon": _s(True), "size": _e(CONTROL_SIZES), "variant": _e(VARIANTS_WITH_DEFAULT),
        "disabled": _b(), "labelSpace": _b(), "padding": _e(SPACING_OPTIONS), "navigate": _s(),
    }),
    ComponentSpec("Input", "Input", {
        "label": _s(), "placeholder": _s(), "size": _e(CONTROL_SIZES),
        "iconLeft": _s(), "iconRight": _s(), "disabled": _b(False),
    }),
    ComponentSpec("Textarea", "Input", {"label": _s(), "placeholder": _s(), "rows": _n()}),
    ComponentSpec("Select", "Input", {
        "label": _s(), "placeholder": _s(), "items": _s(), "size": _e(CONTROL_SIZES),
        "iconLeft": _s(), "iconRight": _s(), "disabled": _b(False),
    }),
    ComponentSpec("Checkbox", "Input", {"label": _s(True), "checked": _b(), "disabled": _b(False)}),
    ComponentSpec("Radio", "Input", {"label": _s(True), "checked": _b(), "disabled": _b(False)}),
    ComponentSpec("Toggle", "Input", {"label": _s(True), "enabled": _b(), "disabled": _b(False)}),
    ComponentSpec("Topbar", "Navigation", {
        "title": _s(True), "subtitle": _s(), "icon": _s(), "avatar": _b(), "actions": _s(),
        "user": _s(), "variant": _e(VARIANTS_WITH_DEFAULT), "border": _b(),
        "radius": _e(("none", "sm", "md", "lg", "xl")),
    }),
    ComponentSpec("SidebarMenu", "Navigation", {
        "items": _s(True), "icons": _s(), "active": _n(),
        "variant": _e(VARIANTS_WITH_DEFAULT), "navigate": _s(),
    }),
    ComponentSpec("Sidebar", "Navigation", {
        "title": _s(), "items": _s(True), "active": _s(), "itemsMock": _n(),
    }),
    ComponentSpec("Breadcrumbs", "Navigation", {"items": _s(True), "separator": _s()}),
    ComponentSpec("Tabs", "Navigation", {
        "items": _s(True), "active": _n(), "variant": _e(VARIANTS_WITH_DEFAULT),
        "radius": _e(("none", "sm", "md", "lg", "full"), default="md"),
        "size": _e(("sm", "md", "lg"), default="md"), "navigate": _s(),
    }),
    ComponentSpec("Table", "Data", {
        "title": _s(), "columns": _s(True), "rows": _n(), "rowsMock": _n(), "mock": _s(),
        "random": _b(), "pagination": _b(), "pages": _n(), "paginationAlign": _e(ALIGN_OPTIONS),
        "actions": _s(), "caption": _s(), "captionAlign": _e(ALIGN_OPTIONS), "border": _b(),
        "innerBorder": _b(), "background": _b(),
    }),
    ComponentSpec("List", "Data", {
        "title": _s(), "items": _s(), "itemsMock": _n(), "mock": _s(), "random": _b(),
    }),
    ComponentSpec("Stat", "Data", {
        "title": _s(True), "value": _s(True), "caption": _s(), "icon": _s(),
        "variant": _e(VARIANTS_WITH_DEFAULT), "navigate": _s(),
    }),
    ComponentSpec("StatCard", "Data", {
        "title": _s(True), "value": _s(True), "caption": _s(), "navigate": _s(),
    }),
    ComponentSpec("Chart", "Data", {"type": _e(("bar", "line", "pie", "area"), required=True)}),
    ComponentSpec("ChartPlaceholder", "Data", {"type": _e(("bar", "line", "pie", "area"))}),
    ComponentSpec("Card", "Layout", {"title": _s(), "text": _s(), "navigate": _s()}),
    ComponentSpec("Image", "Media", {
        "placeholder": _e(IMAGE_PLACEHOLDERS), "icon": _s(), "variant": _e(VARIANTS_WITH_DEFAULT),
    }),
    ComponentSpec("Icon", "Media", {
        "icon": _s(True), "size": _e(("sm", "md", "lg")), "variant": _e(VARIANTS_WITH_DEFAULT),
    }),
    ComponentSpec("Divider", "Layout", {}),
    ComponentSpec("Separate", "Layout", {"size": _e(SPACING_OPTIONS)}),
    ComponentSpec("Badge", "Feedback", {
        "text": _s(True), "variant": _e(VARIANTS_WITH_DEFAULT),
        "size": _e(CONTROL_SIZES, default="md"),
    }),
    ComponentSpec("Alert", "Feedback", {"variant": _e(VARIANTS), "title": _s(), "text": _s()}),
    ComponentSpec("Modal", "Feedback", {"title": _s(True), "visible": _b(True)}),
]  # fmt: skip

COMPONENTS: dict[str, ComponentSpec] = {spec.name: spec for spec in _COMPONENTS}

_SPACING = _e(SPACING_OPTIONS)

LAYOUTS: dict[str, LayoutSpec] = {
    "stack": LayoutSpec("stack", {
        "direction": _e(("horizontal", "vertical"), required=True),
        "justify": _e(JUSTIFY_OPTIONS), "align": _e(CROSS_ALIGN_OPTIONS),
        "gap": _SPACING, "padding": _SPACING,
    }),
    "grid": LayoutSpec("grid", {
        "columns": PropSpec(PropType.NUMBER, default=12),
        "gap": _SPACING, "justify": _e(JUSTIFY_OPTIONS), "padding": _SPACING,
    }),
    "split": LayoutSpec("split", {
        "left": _n(), "right": _n(), "sidebar": _n(), "background": _s(), "border": _b(),
        "gap": _SPACING, "padding": _SPACING,
    }),
    "panel": LayoutSpec("panel", {"padding": _SPACING, "gap": _SPACING, "background": _s()}),
    "card": LayoutSpec("card", {
        "padding": _SPACING, "gap": _SPACING, "radius": _e(("none", "sm", "md", "lg")),
        "border": _b(), "background": _s(),
    }),
}  # fmt: skip

CELL_PROPS: dict[str, PropSpec] = {
    "span": _n(),
    "align": _e(CELL_ALIGN_OPTIONS),
    "gap": _SPACING,
    "padding": _SPACING,
}

# Reserved component name marking where a layout definition's child goes.
CHILDREN_PLACEHOLDER = "Children"
