"""
IR normalizer.

Converts the expanded AST into the immutable IR: applies project style
defaults, canonicalises token spellings, resolves spacing tokens to pixels,
parses sizes and the colour table, and picks each screen's viewport.

Normalization always completes structurally. Values it cannot interpret
fall back to defaults; problems with project-level tokens, colours,
devices and sizes are reported here, everything else by ``validator``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from .ast import Binding, CellBlock, Child, ComponentUse, LayoutBlock, Value
from .diagnostics import DiagnosticKind, Diagnostics
from .expander import ExpansionResult
from .ir import (
    Align,
    CardLayout,
    ChildSlot,
    ComponentNode,
    ContainerNode,
    Density,
    Direction,
    FontSize,
    GridLayout,
    Justify,
    NodeMeta,
    NodeStyle,
    PanelLayout,
    Project,
    PropValue,
    Radius,
    Screen,
    Size,
    Spacing,
    SplitLayout,
    StackLayout,
    Stroke,
    StyleTokens,
    Viewport,
    canonical_token,
    parse_size,
    resolve_device,
    spacing_px,
)
from .manifest import CompilerConfig
from .sourcemap.builder import SourceMapBuilder
from .sourcemap.types import call_site_of, origin_of

logger = logging.getLogger(__name__)

VALIDATION = DiagnosticKind.VALIDATION

HEX_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

NAMED_COLORS = {
    "white", "black", "transparent", "red", "pink", "purple", "deep_purple", "indigo",
    "blue", "light_blue", "cyan", "teal", "green", "light_green", "lime", "yellow",
    "amber", "orange", "deep_orange", "brown", "grey", "gray", "blue_grey",
}  # fmt: skip

STYLE_TOKEN_ENUMS = {
    "density": Density,
    "spacing": Spacing,
    "radius": Radius,
    "stroke": Stroke,
    "font": FontSize,
}
STYLE_STRING_KEYS = ("background", "theme", "device")
DEFAULT_SPLIT_WIDTH = 260

E = TypeVar("E", bound=Enum)


@dataclass
class _Context:
    style: StyleTokens
    screen: str | None
    grid_columns: int


class Normalizer:
    """Builds a ``Project`` from an expansion result."""

    def __init__(self, sourcemap: SourceMapBuilder, diagnostics: Diagnostics, config: CompilerConfig):
        self.sourcemap = sourcemap
        self.diagnostics = diagnostics
        self.config = config

    # -- helpers ------------------------------------------------------------

    def _plain(self, values: dict[str, Value], node_id: str) -> dict[str, PropValue]:
        """Drop binding placeholders that survived to this stage."""
        plain: dict[str, PropValue] = {}
        for key, value in values.items():
            if isinstance(value, Binding):
                self.diagnostics.error(
                    DiagnosticKind.EXPANSION,
                    "binding.outside-definition",
                    f"Binding {value.raw!r} can only be used inside a definition body",
                    range=self.sourcemap.get_property_range(node_id, key),
                    node_id=node_id,
                )
                continue
            plain[key] = value
        return plain

    def _spacing(self, value: PropValue | None, default: int, density: Density) -> int:
        if value is None or isinstance(value, bool):
            return default
        if isinstance(value, (int, float)):
            return int(value) if value >= 0 else default
        token = canonical_token(value, Spacing)
        if token is None:
            return default
        return spacing_px(token, density)  # type: ignore[arg-type]

    def _size(self, values: dict[str, PropValue], key: str, default: Size, node_id: str, ctx: _Context) -> Size:
        if key not in values:
            return default
        size = parse_size(values[key])
        if size is None:
            self.diagnostics.error(
                VALIDATION,
                "size.invalid",
                f"Invalid {key} {values[key]!r}: expected px, 'fill', 'content' or a percentage",
                range=self.sourcemap.get_property_range(node_id, key),
                node_id=node_id,
                screen=ctx.screen,
            )
            return default
        return size

    def _meta(self, node_id: str, source: str) -> NodeMeta:
        call_site = call_site_of(node_id)
        if call_site is None:
            return NodeMeta(source=source)  # type: ignore[arg-type]
        return NodeMeta(
            source=source,  # type: ignore[arg-type]
            origin_id=origin_of(node_id),
            call_site_id=call_site,
            definition=self.sourcemap.definition_of(node_id),
        )

    def _node_style(self, values: dict[str, PropValue], ctx: _Context) -> NodeStyle:
        radius = ctx.style.radius
        raw_radius = values.get("radius")
        if isinstance(raw_radius, str):
            radius = canonical_token(raw_radius, Radius) or radius  # type: ignore[assignment]
        background = values.get("background")
        return NodeStyle(
            density=ctx.style.density,
            radius=radius,
            stroke=ctx.style.stroke,
            font=ctx.style.font,
            background=background if isinstance(background, str) else None,
        )

    # -- project level --------------------------------------------------------

    def normalize_style(self, raw: dict[str, Value]) -> StyleTokens:
        values = self._plain(raw, "style")
        tokens: dict[str, object] = {}
        for key, value in values.items():
            range_ = self.sourcemap.get_property_range("style", key)
            if key in STYLE_TOKEN_ENUMS:
                enum = STYLE_TOKEN_ENUMS[key]
                token = canonical_token(str(value), enum) if not isinstance(value, bool) else None
                if token is None:
                    options = ", ".join(m.value for m in enum)  # type: ignore[attr-defined]
                    self.diagnostics.error(
                        VALIDATION,
                        "style.invalid-token",
                        f"Invalid {key} {value!r} (expected one of: {options})",
                        range=range_,
                        node_id="style",
                    )
                    continue
                tokens[key] = token
            elif key in STYLE_STRING_KEYS:
                if key == "device" and resolve_device(str(value)) is None:
                    self.diagnostics.error(
                        VALIDATION,
                        "style.invalid-device",
                        f"Unknown device {value!r}",
                        range=range_,
                        node_id="style",
                    )
                    continue
                tokens[key] = str(value)
            else:
                self.diagnostics.warning(
                    VALIDATION,
                    "style.unknown-key",
                    f"Unknown style key {key!r}",
                    range=range_,
                    node_id="style",
                )
        return StyleTokens(**tokens)  # type: ignore[arg-type]

    def normalize_colors(self, raw: dict[str, Value]) -> tuple[dict[str, str], dict[str, str]]:
        """
        Resolve the colour table.

        A value is a hex colour, a named colour, or the key of another
        entry. Returns (declared, resolved); unresolvable entries are
        reported and left out of ``resolved``.
        """
        declared = {key: str(value) for key, value in self._plain(raw, "colors").items()}
        resolved: dict[str, str] = {}
        for key in declared:
            chain = [key]
            value = declared[key]
            while value in declared and not HEX_PATTERN.match(value):
                if value in chain:
                    chain.append(value)
                    self.diagnostics.error(
                        VALIDATION,
                        "colors.invalid",
                        f"Circular color alias: {' -> '.join(chain)}",
                        range=self.sourcemap.get_property_range("colors", key),
                        node_id="colors",
                    )
                    break
                chain.append(value)
                value = declared[value]
            else:
                if HEX_PATTERN.match(value) or value.lower() in NAMED_COLORS:
                    resolved[key] = value
                else:
                    self.diagnostics.error(
                        VALIDATION,
                        "colors.invalid",
                        f"Color {key!r} does not resolve to a hex value, a named color "
                        f"or another color key (got {value!r})",
                        range=self.sourcemap.get_property_range("colors", key),
                        node_id="colors",
                    )
        return declared, resolved

    # -- nodes -----------------------------------------------------------------

    def normalize_node(self, node: Child, ctx: _Context) -> ContainerNode | ComponentNode:
        """Build the IR subtree for ``node`` bottom-up with an explicit stack."""
        results: list[ContainerNode | ComponentNode] = []
        stack: list[tuple[Child, bool]] = [(node, False)]
        while stack:
            current, done = stack.pop()
            if isinstance(current, ComponentUse):
                results.append(self._component(current, ctx))
                continue
            if not done:
                stack.append((current, True))
                stack.extend((child, False) for child in reversed(current.children))
                continue
            count = len(current.children)
            built = results[len(results) - count :]
            del results[len(results) - count :]
            slots = [self._slot(child, ir) for child, ir in zip(current.children, built)]
            results.append(self._container(current, slots, ctx))
        return results[0]

    def _component(self, node: ComponentUse, ctx: _Context) -> ComponentNode:
        props = self._plain(node.props, node.id)
        return ComponentNode(
            id=node.id,
            component_type=node.component_type,
            props=props,
            width=self._size(props, "width", Size.fill(), node.id, ctx),
            height=self._size(props, "height", Size.content(), node.id, ctx),
            style=self._node_style(props, ctx),
            meta=self._meta(node.id, "component"),
        )

    def _container(self, node: LayoutBlock | CellBlock, children: list[ChildSlot], ctx: _Context) -> ContainerNode:
        if isinstance(node, CellBlock):
            params = self._plain(node.props, node.id)
            density = ctx.style.density
            layout = StackLayout(
                direction=Direction.VERTICAL,
                gap=self._spacing(params.get("gap"), spacing_px(ctx.style.spacing, density), density),
                padding=self._spacing(params.get("padding"), 0, density),
            )
            source = "cell"
        else:
            params = self._plain(node.params, node.id)
            layout = self._descriptor(node, params, ctx)
            source = "layout"

        return ContainerNode(
            id=node.id,
            layout=layout,
            children=children,
            params=params,
            width=self._size(params, "width", Size.fill(), node.id, ctx),
            height=self._size(params, "height", Size.content(), node.id, ctx),
            style=self._node_style(params, ctx),
            meta=self._meta(node.id, source),
        )

    def _slot(self, child: Child, node: ContainerNode | ComponentNode) -> ChildSlot:
        values = child.params if isinstance(child, LayoutBlock) else child.props
        raw_span = values.get("span", 1)
        span = int(raw_span) if isinstance(raw_span, (int, float)) and not isinstance(raw_span, bool) else 1
        align = Align.STRETCH
        if isinstance(child, CellBlock) and isinstance(values.get("align"), str):
            align = canonical_token(values["align"], Align) or Align.STRETCH  # type: ignore[arg-type, assignment]
        return ChildSlot(node=node, span=span, align=align)

    def _descriptor(
        self, node: LayoutBlock, params: dict[str, PropValue], ctx: _Context
    ) -> StackLayout | GridLayout | SplitLayout | PanelLayout | CardLayout:
        density = ctx.style.density
        gap = self._spacing(params.get("gap"), spacing_px(ctx.style.spacing, density), density)
        kind = node.layout_type

        if kind == "stack":
            direction = params.get("direction")
            justify = params.get("justify")
            align = params.get("align")
            return StackLayout(
                direction=Direction(direction) if direction in ("horizontal", "vertical") else Direction.VERTICAL,
                justify=_enum_or(Justify, justify, Justify.STRETCH),
                align=_enum_or(Align, align, Align.START) if align != "stretch" else Align.START,
                gap=gap,
                padding=self._spacing(params.get("padding"), 0, density),
            )
        if kind == "grid":
            columns = params.get("columns")
            valid = isinstance(columns, int) and not isinstance(columns, bool) and 1 <= columns <= 12
            return GridLayout(
                columns=columns if valid else ctx.grid_columns,  # type: ignore[arg-type]
                gap=gap,
                padding=self._spacing(params.get("padding"), 0, density),
            )
        if kind == "split":
            side, width = "left", DEFAULT_SPLIT_WIDTH
            for key in ("right", "left", "sidebar"):
                value = params.get(key)
                if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
                    side, width = ("right" if key == "right" else "left"), int(value)
                    break
            return SplitLayout(
                fixed_side=side,  # type: ignore[arg-type]
                fixed_width=width,
                gap=gap,
                padding=self._spacing(params.get("padding"), 0, density),
                divider=params.get("border") is True,
            )
        padding = self._spacing(params.get("padding"), spacing_px(ctx.style.spacing, density), density)
        if kind == "panel":
            return PanelLayout(gap=gap, padding=padding)
        return CardLayout(gap=gap, padding=padding, border=params.get("border") is not False)

    # -- screens -----------------------------------------------------------------

    def normalize(self, expansion: ExpansionResult) -> Project:
        ast = expansion.project
        style = self.normalize_style(ast.style)
        colors, resolved = self.normalize_colors(ast.colors)
        mocks = self._plain(ast.mocks, "mocks")

        screens = []
        for screen in ast.screens:
            params = self._plain(screen.params, screen.id)
            ctx = _Context(style=style, screen=screen.name, grid_columns=self.config.grid_columns)
            screens.append(
                Screen(
                    id=screen.id,
                    name=screen.name,
                    viewport=self._viewport(screen.id, screen.name, params, style),
                    background=_str_or(params.get("background"), style.background),
                    params=params,
                    root=self.normalize_node(screen.root, ctx) if screen.root is not None else None,
                )
            )
            if screen.root is None and screen.name not in expansion.failed_screens:
                self.diagnostics.error(
                    VALIDATION,
                    "screen.no-root",
                    f"Screen {screen.name!r} has no root layout",
                    range=screen.range,
                    node_id=screen.id,
                    screen=screen.name,
                )

        logger.debug("Normalized %d screens", len(screens))
        return Project(
            name=ast.name,
            style=style,
            colors=colors,
            resolved_colors=resolved,
            mocks=mocks,
            screens=screens,
        )

    def _viewport(self, screen_id: str, name: str, params: dict[str, PropValue], style: StyleTokens) -> Viewport:
        device = params.get("device")
        if isinstance(device, str):
            viewport = resolve_device(device)
            if viewport is not None:
                return viewport
            self.diagnostics.error(
                VALIDATION,
                "screen.invalid-device",
                f"Unknown device {device!r} on screen {name!r}",
                range=self.sourcemap.get_property_range(screen_id, "device"),
                node_id=screen_id,
                screen=name,
            )
        return resolve_device(style.device or self.config.default_device) or resolve_device(None)  # type: ignore[return-value]


def _enum_or(enum: type[E], value: object, default: E) -> E:
    try:
        return enum(value)
    except ValueError:
        return default


def _str_or(value: PropValue | None, default: str | None) -> str | None:
    return value if isinstance(value, str) else default


def normalize(
    expansion: ExpansionResult,
    sourcemap: SourceMapBuilder,
    diagnostics: Diagnostics,
    config: CompilerConfig | None = None,
) -> Project:
    """Normalize an expanded project into IR."""
    return Normalizer(sourcemap, diagnostics, config or CompilerConfig()).normalize(expansion)
