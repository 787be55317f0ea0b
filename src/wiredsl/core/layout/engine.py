"""
Layout engine.

Turns a screen's IR tree into a render tree with absolute x/y/width/height
for every node. The engine never reads source text; diagnostics it emits
(``layout.collapse``) are located through an optional ``range_of`` lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..diagnostics import DiagnosticKind, Diagnostics
from ..errors import LayoutError
from ..ir import (
    Align,
    ComponentNode,
    ContainerNode,
    Direction,
    GridLayout,
    Justify,
    Project,
    Screen,
    SizeMode,
    SplitLayout,
    StackLayout,
)
from ..sourcemap.types import SourceRange
from .metrics import intrinsic_height, intrinsic_width
from .types import RenderNode, RenderTree

logger = logging.getLogger(__name__)

AnyNode = ContainerNode | ComponentNode
RangeLookup = Callable[[str], SourceRange | None]

NATURAL_JUSTIFY = {Justify.START, Justify.CENTER, Justify.END, Justify.SPACE_BETWEEN, Justify.SPACE_AROUND}


@dataclass
class Placement:
    """A child box relative to its parent's top-left corner."""

    node: AnyNode
    x: float
    y: float
    width: float
    height: float
    bounded: bool = False


@dataclass
class Arrangement:
    placements: list[Placement] = field(default_factory=list)
    content_height: float = 0.0
    collapsed: bool = False


def _explicit_width(node: AnyNode) -> bool:
    values = node.props if isinstance(node, ComponentNode) else node.params
    return "width" in values


def _aligned(align: Align, slack: float) -> float:
    if align == Align.CENTER:
        return slack / 2
    if align == Align.END:
        return slack
    return 0.0


class LayoutEngine:
    """
    Computes geometry for one project.

    Measurement is memoised per (node, width) so nested content-sized
    containers are measured once per distinct width.
    """

    def __init__(
        self,
        project: Project,
        diagnostics: Diagnostics | None = None,
        range_of: RangeLookup | None = None,
    ):
        self.project = project
        self.density = project.style.density
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.range_of = range_of
        self._heights: dict[tuple[str, float], float] = {}
        self._screen: str | None = None

    # Measurement

    def natural_width(self, node: AnyNode) -> float | None:
        """Intrinsic width of a component; containers have none."""
        if node.width.mode == SizeMode.FIXED:
            return node.width.value
        if isinstance(node, ComponentNode):
            return intrinsic_width(node, self.density)
        return None

    def _known_height(self, node: AnyNode, width: float) -> float | None:
        if node.height.mode == SizeMode.FIXED:
            return node.height.value or 0.0
        return self._heights.get((node.id, round(width, 4)))

    def measure(self, node: AnyNode, width: float) -> float:
        """
        Content height of ``node`` when laid out at ``width``.

        Descendants are measured first, deepest first, with an explicit
        stack, so arranging a container only reads cached child heights.
        """
        stack: list[tuple[AnyNode, float, bool]] = [(node, width, False)]
        while stack:
            current, current_w, ready = stack.pop()
            if self._known_height(current, current_w) is not None:
                continue
            key = (current.id, round(current_w, 4))
            if isinstance(current, ComponentNode):
                self._heights[key] = float(intrinsic_height(current, current_w, self.density))
            elif ready:
                self._heights[key] = self.arrange(current, current_w, None).content_height
            else:
                stack.append((current, current_w, True))
                stack.extend((child, w, False) for child, w in reversed(self.child_widths(current, current_w)))
        height = self._known_height(node, width)
        assert height is not None
        return height

    def child_widths(self, node: ContainerNode, width: float) -> list[tuple[AnyNode, float]]:
        """Each child with the width ``arrange`` gives it at ``width``."""
        layout = node.layout
        inner_w = max(0.0, width - 2 * layout.padding)
        if isinstance(layout, StackLayout) and layout.direction == Direction.HORIZONTAL:
            widths, _, _ = self._row_widths(node, layout, inner_w)
            return [(slot.node, w) for slot, w in zip(node.children, widths)]
        if isinstance(layout, GridLayout):
            _, rows = self._grid_rows(node, layout, inner_w)
            return [(node.children[i].node, w) for row in rows for i, _, w in row]
        if isinstance(layout, SplitLayout):
            widths, _ = self._split_widths(layout, len(node.children), inner_w)
            return [(slot.node, w) for slot, w in zip(node.children, widths)]
        return [(slot.node, self._cross_width(slot.node, inner_w)) for slot in node.children]

    # Arrangement

    def arrange(self, node: ContainerNode, width: float, height: float | None) -> Arrangement:
        """
        Position the children of a container inside a ``width`` x ``height`` box.

        Args:
            node: Container to arrange
            width: Outer width of the container
            height: Outer height, or None when the container is sized to content

        Returns:
            Arrangement with child boxes and the container's content height
        """
        layout = node.layout
        if isinstance(layout, StackLayout) and layout.direction == Direction.HORIZONTAL:
            return self._arrange_row(node, layout, width, height)
        if isinstance(layout, GridLayout):
            return self._arrange_grid(node, layout, width)
        if isinstance(layout, SplitLayout):
            return self._arrange_split(node, layout, width, height)
        return self._arrange_column(node, width, height)

    def _cross_width(self, node: AnyNode, inner: float) -> float:
        size = node.width
        if size.mode == SizeMode.FIXED:
            return size.value or 0.0
        if size.mode == SizeMode.PERCENT:
            return inner * (size.value or 0.0) / 100
        if size.mode == SizeMode.CONTENT:
            natural = self.natural_width(node)
            return min(natural, inner) if natural is not None else inner
        return inner

    def _arrange_column(self, node: ContainerNode, width: float, height: float | None) -> Arrangement:
        """Vertical stacks, panels, cards and cells: children top to bottom."""
        pad, gap = node.layout.padding, node.layout.gap
        inner_w = max(0.0, width - 2 * pad)
        slots = node.children
        gaps = gap * max(0, len(slots) - 1)
        widths = [self._cross_width(slot.node, inner_w) for slot in slots]

        heights: list[float] = []
        fills: list[int] = []
        for i, slot in enumerate(slots):
            child = slot.node
            mode = child.height.mode
            if mode == SizeMode.PERCENT and height is not None:
                heights.append(max(0.0, height - 2 * pad) * (child.height.value or 0.0) / 100)
                continue
            heights.append(self.measure(child, widths[i]))
            if mode == SizeMode.FILL and height is not None:
                fills.append(i)

        result = Arrangement()
        if fills:
            assert height is not None
            fixed = sum(h for i, h in enumerate(heights) if i not in fills)
            remaining = height - 2 * pad - gaps - fixed
            content = sum(heights[i] for i in fills)
            if remaining < 0:
                result.collapsed = True
                for i in fills:
                    heights[i] = 0.0
            elif remaining >= content:
                extra = (remaining - content) / len(fills)
                for i in fills:
                    heights[i] += extra
            else:
                for i in fills:
                    heights[i] = remaining / len(fills)

        cursor = float(pad)
        for i, slot in enumerate(slots):
            bounded = slot.node.height.mode != SizeMode.CONTENT and height is not None
            result.placements.append(Placement(slot.node, pad, cursor, widths[i], heights[i], bounded))
            cursor += heights[i] + gap
        result.content_height = 2 * pad + sum(heights) + gaps
        return result

    def _row_widths(
        self, node: ContainerNode, layout: StackLayout, inner_w: float
    ) -> tuple[list[float], float, bool]:
        """Resolved child widths of a horizontal stack, free space, and whether flex children collapsed."""
        gaps = layout.gap * max(0, len(node.children) - 1)
        natural = layout.justify in NATURAL_JUSTIFY

        widths: list[float | None] = []
        for slot in node.children:
            child = slot.node
            size = child.width
            if size.mode == SizeMode.FIXED:
                widths.append(size.value or 0.0)
            elif size.mode == SizeMode.PERCENT:
                widths.append(inner_w * (size.value or 0.0) / 100)
            elif natural and (size.mode == SizeMode.CONTENT or not _explicit_width(child)):
                widths.append(self.natural_width(child))
            else:
                widths.append(None)

        flex = [i for i, w in enumerate(widths) if w is None]
        remaining = inner_w - gaps - sum(w for w in widths if w is not None)
        collapsed = False
        if flex:
            share = remaining / len(flex)
            if remaining < 0:
                collapsed = True
                share = 0.0
            for i in flex:
                widths[i] = share
        free = max(0.0, remaining) if not flex else 0.0
        return [w or 0.0 for w in widths], free, collapsed

    def _arrange_row(
        self, node: ContainerNode, layout: StackLayout, width: float, height: float | None
    ) -> Arrangement:
        """
        Horizontal stacks.

        Algorithm:
        1. Fixed and percent widths are taken as given
        2. ``stretch`` shares the rest equally among the other children
        3. Natural modes give components their intrinsic width; containers
           and explicit ``fill`` children share what is left
        4. Leftover space is distributed according to ``justify``
        5. Children are offset on the cross axis according to ``align``
        """
        pad, gap = layout.padding, layout.gap
        inner_w = max(0.0, width - 2 * pad)
        slots = node.children
        count = len(slots)
        resolved, free, collapsed = self._row_widths(node, layout, inner_w)
        result = Arrangement(collapsed=collapsed)

        offset, spacing = 0.0, float(gap)
        if layout.justify in NATURAL_JUSTIFY and free > 0 and count:
            if layout.justify == Justify.CENTER:
                offset = free / 2
            elif layout.justify == Justify.END:
                offset = free
            elif layout.justify == Justify.SPACE_BETWEEN and count > 1:
                spacing = gap + free / (count - 1)
            elif layout.justify == Justify.SPACE_AROUND:
                offset = free / (2 * count)
                spacing = gap + free / count

        heights: list[float] = []
        for i, slot in enumerate(slots):
            child = slot.node
            if child.height.mode == SizeMode.PERCENT and height is not None:
                heights.append(max(0.0, height - 2 * pad) * (child.height.value or 0.0) / 100)
            else:
                heights.append(self.measure(child, resolved[i]))
        row = max(0.0, height - 2 * pad) if height is not None else max(heights, default=0.0)

        cursor = pad + offset
        for i, slot in enumerate(slots):
            child = slot.node
            mode = child.height.mode
            if mode == SizeMode.FILL or layout.align == Align.STRETCH:
                child_h, bounded, top = row, True, 0.0
            else:
                child_h = heights[i]
                bounded = mode != SizeMode.CONTENT and height is not None
                top = _aligned(layout.align, row - child_h)
            result.placements.append(Placement(child, cursor, pad + top, resolved[i], child_h, bounded))
            cursor += resolved[i] + spacing
        result.content_height = row + 2 * pad
        return result

    def _grid_rows(
        self, node: ContainerNode, layout: GridLayout, inner_w: float
    ) -> tuple[float, list[list[tuple[int, int, float]]]]:
        """Track width and rows of (child index, start column, cell width)."""
        gap = layout.gap
        columns = max(1, layout.columns)
        track = max(0.0, (inner_w - gap * (columns - 1)) / columns)

        rows: list[list[tuple[int, int, float]]] = []
        column = 0
        for index, slot in enumerate(node.children):
            span = min(max(1, slot.span), columns)
            if not rows or column + span > columns:
                rows.append([])
                column = 0
            rows[-1].append((index, column, span * track + (span - 1) * gap))
            column += span
        return track, rows

    def _arrange_grid(self, node: ContainerNode, layout: GridLayout, width: float) -> Arrangement:
        """
        Grids: children flow left to right over ``columns`` tracks.

        A child that does not fit in the current row starts a new one. Each
        row is as tall as its tallest child; cell ``align`` places shorter
        children inside the row.
        """
        pad, gap = layout.padding, layout.gap
        track, rows = self._grid_rows(node, layout, max(0.0, width - 2 * pad))

        result = Arrangement()
        row_heights: list[float] = []
        cursor = float(pad)
        for row in rows:
            heights = [self.measure(node.children[i].node, w) for i, _, w in row]
            row_h = max(heights, default=0.0)
            row_heights.append(row_h)
            for (index, column, cell_w), child_h in zip(row, heights):
                slot = node.children[index]
                x = pad + column * (track + gap)
                if slot.align == Align.STRETCH:
                    result.placements.append(Placement(slot.node, x, cursor, cell_w, row_h, True))
                else:
                    top = _aligned(slot.align, row_h - child_h)
                    result.placements.append(Placement(slot.node, x, cursor + top, cell_w, child_h))
            cursor += row_h + gap
        result.content_height = 2 * pad + sum(row_heights) + gap * max(0, len(rows) - 1)
        return result

    def _split_widths(self, layout: SplitLayout, count: int, inner_w: float) -> tuple[list[float], bool]:
        """Pane widths of a split with ``count`` children, and whether the fill pane collapsed."""
        if count == 0:
            return [], False
        if count == 1:
            return [inner_w], False
        fixed = min(float(layout.fixed_width), inner_w)
        other = inner_w - fixed - layout.gap
        collapsed = other < 0
        other = max(0.0, other)
        return ([fixed, other] if layout.fixed_side == "left" else [other, fixed]), collapsed

    def _arrange_split(
        self, node: ContainerNode, layout: SplitLayout, width: float, height: float | None
    ) -> Arrangement:
        """Splits: one fixed-width pane, one pane filling the rest."""
        pad, gap = layout.padding, layout.gap
        slots = node.children[:2]
        widths, collapsed = self._split_widths(layout, len(slots), max(0.0, width - 2 * pad))
        result = Arrangement(collapsed=collapsed)
        if not slots:
            result.content_height = 2 * pad
            return result

        if height is not None:
            row = max(0.0, height - 2 * pad)
        else:
            row = max(self.measure(slot.node, w) for slot, w in zip(slots, widths))

        cursor = float(pad)
        for slot, pane_w in zip(slots, widths):
            result.placements.append(Placement(slot.node, cursor, pad, pane_w, row, True))
            cursor += pane_w + gap
        result.content_height = row + 2 * pad
        return result

    # Placement

    def _render(
        self, node: AnyNode, x: float, y: float, width: float, height: float, children: list[RenderNode]
    ) -> RenderNode:
        if isinstance(node, ComponentNode):
            kind, type_ = "component", node.component_type
        else:
            kind, type_ = "layout", "cell" if node.meta.source == "cell" else node.kind.value
        return RenderNode(
            id=node.id,
            kind=kind,
            type=type_,
            x=round(x, 2),
            y=round(y, 2),
            width=round(width, 2),
            height=round(height, 2),
            children=children,
            origin_id=node.meta.origin_id,
            call_site_id=node.meta.call_site_id,
        )

    def place(
        self, node: AnyNode, x: float, y: float, width: float, height: float, bounded: bool = False
    ) -> RenderNode:
        """
        Build the render subtree for ``node`` at an absolute position.

        Containers are arranged top-down; render nodes are built bottom-up
        from an explicit stack. A frame with a child count builds its node
        from that many finished children.
        """
        results: list[RenderNode] = []
        stack: list[tuple[AnyNode, float, float, float, float, bool, int | None]] = [
            (node, x, y, width, height, bounded, None)
        ]
        while stack:
            current, cx, cy, cw, ch, cbounded, count = stack.pop()
            if isinstance(current, ComponentNode):
                results.append(self._render(current, cx, cy, cw, ch, []))
                continue
            if count is not None:
                children = results[len(results) - count :]
                del results[len(results) - count :]
                results.append(self._render(current, cx, cy, cw, ch, children))
                continue
            arrangement = self.arrange(current, cw, ch if cbounded else None)
            if arrangement.collapsed:
                self._collapse_warning(current)
            stack.append((current, cx, cy, cw, ch, cbounded, len(arrangement.placements)))
            stack.extend(
                (p.node, cx + p.x, cy + p.y, p.width, p.height, p.bounded, None)
                for p in reversed(arrangement.placements)
            )
        return results[0]

    def _collapse_warning(self, node: ContainerNode) -> None:
        self.diagnostics.warning(
            DiagnosticKind.LAYOUT,
            "layout.collapse",
            f"Not enough space in {node.kind.value} '{node.id}': fill children collapsed to 0px",
            range=self.range_of(node.id) if self.range_of else None,
            node_id=node.id,
            screen=self._screen,
        )

    def layout_screen(self, screen: Screen) -> RenderTree:
        """
        Lay out one screen.

        The root is as wide as the viewport and at least as tall; taller
        content extends the canvas.

        Raises:
            LayoutError: If the screen has no root
        """
        if screen.root is None:
            raise LayoutError(f"Screen '{screen.name}' has no root layout")
        self._screen = screen.name
        self._heights.clear()
        viewport = screen.viewport
        root = screen.root
        width = float(viewport.width)
        height = max(float(viewport.height), self.measure(root, width))
        logger.debug("Laying out screen %s at %sx%s", screen.name, width, height)
        tree = RenderTree(screen=screen.name, viewport=viewport, root=self.place(root, 0.0, 0.0, width, height, True))
        self._screen = None
        return tree


def layout_project(
    project: Project,
    diagnostics: Diagnostics,
    range_of: RangeLookup | None = None,
) -> dict[str, RenderTree]:
    """
    Lay out every screen that is not blocked by an error.

    Args:
        project: Normalized IR
        diagnostics: Collector; ``layout.collapse`` warnings are appended
        range_of: Optional node id to source range lookup

    Returns:
        Render trees keyed by screen name, in declaration order
    """
    engine = LayoutEngine(project, diagnostics, range_of)
    trees: dict[str, RenderTree] = {}
    for screen in project.screens:
        if screen.root is None or diagnostics.blocks_screen(screen.name):
            logger.info("Skipping layout of screen %s", screen.name)
            continue
        if screen.name in trees:
            continue
        trees[screen.name] = engine.layout_screen(screen)
    return trees
