"""
Intrinsic component sizes.

Content-sized components are measured from their properties: text is
wrapped at an estimated character width, images follow their placeholder
aspect ratio, tables grow with their row count. All sizes scale with the
project density.
"""

from __future__ import annotations

import math
import re

from ..ir import ComponentNode, Density, Spacing, canonical_token, spacing_px

CONTROL_HEIGHTS = {Density.COMPACT: 32, Density.NORMAL: 40, Density.COMFORTABLE: 48}

# (font size px, line height multiplier)
TEXT_METRICS = {
    Density.COMPACT: (12, 1.4),
    Density.NORMAL: (14, 1.5),
    Density.COMFORTABLE: (16, 1.6),
}
HEADING_METRICS = {
    Density.COMPACT: (16, 1.25),
    Density.NORMAL: (20, 1.25),
    Density.COMFORTABLE: (24, 1.25),
}
HEADING_LEVEL_SCALE = {"h1": 1.4, "h2": 1.0, "h3": 0.85, "h4": 0.75, "h5": 0.65, "h6": 0.55}

ICON_SIZES = {
    Density.COMPACT: {"xs": 10, "sm": 12, "md": 16, "lg": 20, "xl": 28},
    Density.NORMAL: {"xs": 12, "sm": 14, "md": 18, "lg": 24, "xl": 32},
    Density.COMFORTABLE: {"xs": 14, "sm": 16, "md": 20, "lg": 28, "xl": 36},
}
ICON_BUTTON_SIZES = {
    Density.COMPACT: {"sm": 28, "md": 32, "lg": 36},
    Density.NORMAL: {"sm": 36, "md": 40, "lg": 48},
    Density.COMFORTABLE: {"sm": 40, "md": 48, "lg": 56},
}

IMAGE_ASPECT = {"landscape": 16 / 9, "portrait": 2 / 3, "square": 1.0, "icon": 1.0, "avatar": 1.0}
IMAGE_WIDTHS = {"landscape": 300, "portrait": 200, "square": 200, "icon": 64, "avatar": 64}

FIXED_HEIGHTS = {
    "Textarea": 100,
    "Modal": 300,
    "Card": 120,
    "StatCard": 120,
    "Stat": 120,
    "Chart": 250,
    "ChartPlaceholder": 250,
    "List": 180,
    "Topbar": 56,
    "Divider": 1,
}

FIXED_WIDTHS = {
    "Checkbox": 24,
    "Radio": 24,
    "Input": 200,
    "Select": 200,
    "Textarea": 200,
    "Table": 400,
    "StatCard": 280,
    "Stat": 280,
    "Card": 280,
    "SidebarMenu": 260,
}

TABLE_TITLE = 32
TABLE_HEADER = 44
TABLE_ROW = 36
TABLE_PAGINATION = 64
DEFAULT_TABLE_ROWS = 5
SIDEBAR_ITEM = 40
DEFAULT_WIDTH = 120
CHAR_WIDTH_FACTOR = 0.6


def wrap_text(text: str, max_width: float, font_size: float) -> list[str]:
    """
    Greedy word wrap using an estimated character width.

    Words longer than a line are hard-split.

    Examples:
        >>> wrap_text("aaa bbb", 40, 10)
        ['aaa', 'bbb']
        >>> wrap_text("", 100, 10)
        ['']
    """
    char_width = font_size * CHAR_WIDTH_FACTOR
    per_line = max(1, math.floor(max(max_width, char_width) / char_width))
    lines: list[str] = []
    for paragraph in text.replace("\r\n", "\n").split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if len(candidate) <= per_line:
                current = candidate
                continue
            if current:
                lines.append(current)
                current = ""
            if len(word) <= per_line:
                current = word
                continue
            for i in range(0, len(word), per_line):
                lines.append(word[i : i + per_line])
        if current:
            lines.append(current)
    return lines or [""]


def _items(raw: object, fallback: int) -> int:
    items = [s for s in re.split(r"\s*,\s*", str(raw or "").strip()) if s]
    return len(items) or fallback


def separate_size(node: ComponentNode, density: Density) -> int:
    raw = node.props.get("size", "md")
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return int(raw)
    token = canonical_token(str(raw), Spacing) or Spacing.MD
    return spacing_px(token, density)  # type: ignore[arg-type]


def heading_font_size(node: ComponentNode, density: Density) -> int:
    base, _ = HEADING_METRICS[density]
    scale = HEADING_LEVEL_SCALE.get(str(node.props.get("level", "h2")).lower(), 1.0)
    return max(10, round(base * scale))


def intrinsic_height(node: ComponentNode, available_width: float | None, density: Density) -> float:
    """Natural height of a component laid out at ``available_width``."""
    kind = node.component_type
    control = CONTROL_HEIGHTS[density]
    width = available_width if available_width and available_width > 0 else None

    if kind == "Image":
        ratio = IMAGE_ASPECT.get(str(node.props.get("placeholder", "landscape")), 16 / 9)
        return width / ratio if width else 200

    if kind == "Table":
        rows = node.props.get("rows", DEFAULT_TABLE_ROWS)
        if not isinstance(rows, (int, float)) or isinstance(rows, bool):
            rows = DEFAULT_TABLE_ROWS
        height = TABLE_HEADER + rows * TABLE_ROW
        if node.props.get("title"):
            height += TABLE_TITLE
        if node.props.get("pagination") is True:
            height += TABLE_PAGINATION
        return height

    if kind == "Heading":
        font = heading_font_size(node, density)
        lines = wrap_text(str(node.props.get("text", "")), width or 200, font)
        return max(control, len(lines) * math.ceil(font * 1.25))

    if kind in ("Text", "Paragraph"):
        font, line_height = TEXT_METRICS[density]
        lines = wrap_text(str(node.props.get("text", "")), width or 200, font)
        return max(control, len(lines) * math.ceil(font * line_height))

    if kind == "Alert":
        font = 13
        inner = max(40, (width or 280) - 24)
        title = str(node.props.get("title", ""))
        title_lines = wrap_text(title, inner, font) if title.strip() else []
        text_lines = wrap_text(str(node.props.get("text", "Alert message")), inner, font)
        height = 12 + len(title_lines) * math.ceil(font * 1.25) + (6 if title_lines else 0)
        height += len(text_lines) * math.ceil(font * 1.4) + 12
        return max(control, height)

    if kind in ("SidebarMenu", "Sidebar"):
        return max(control, _items(node.props.get("items"), 3) * SIDEBAR_ITEM)

    if kind == "Separate":
        return separate_size(node, density)

    if kind in FIXED_HEIGHTS:
        return FIXED_HEIGHTS[kind]
    return control


def intrinsic_width(node: ComponentNode, density: Density) -> float:
    """Natural width of a component, used by natural-width stack modes."""
    kind = node.component_type
    text = str(node.props.get("text", ""))
    size = str(node.props.get("size", "md"))

    if kind == "Icon":
        sizes = ICON_SIZES[density]
        return sizes.get(size, sizes["md"])
    if kind == "IconButton":
        sizes = ICON_BUTTON_SIZES[density]
        return sizes.get(size, sizes["md"])
    if kind == "Separate":
        return separate_size(node, density)
    if kind in ("Button", "Link"):
        return max(80, len(text) * 8 + 32)
    if kind in ("Label", "Text"):
        return max(60, len(text) * 8 + 16)
    if kind == "Heading":
        return max(80, len(text) * 12 + 16)
    if kind == "Image":
        return IMAGE_WIDTHS.get(str(node.props.get("placeholder", "landscape")), 300)
    if kind == "Badge":
        return max(50, len(text) * 7 + 16)
    return FIXED_WIDTHS.get(kind, DEFAULT_WIDTH)
