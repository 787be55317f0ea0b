"""
Semantic validation for WireDSL IR.

Each ``validate_*`` function checks one concern and reports into the shared
diagnostics collector. All checks run regardless of earlier failures so a
single compile reports the maximal set of problems.
"""

from __future__ import annotations

import logging
from collections import Counter

from .catalog import (
    CELL_PROPS,
    COMPONENTS,
    LAYOUTS,
    NAVIGABLE,
    UNIVERSAL_PROPS,
    PropSpec,
    PropType,
)
from .diagnostics import DiagnosticKind, Diagnostics
from .ir import (
    ComponentNode,
    ContainerNode,
    GridLayout,
    LayoutKind,
    Project,
    PropValue,
    Screen,
    iter_nodes,
)
from .sourcemap.builder import SourceMapBuilder

logger = logging.getLogger(__name__)

VALIDATION = DiagnosticKind.VALIDATION

# Exact child counts by container kind; kinds not listed accept any count.
REQUIRED_CHILDREN = {LayoutKind.SPLIT: 2, LayoutKind.PANEL: 1}
EMPTY_WARNING_KINDS = {LayoutKind.STACK, LayoutKind.GRID, LayoutKind.CARD}
SPACING_PROPS = {"gap", "padding"}
MAX_GRID_COLUMNS = 12


def check_value(spec: PropSpec, value: PropValue, name: str) -> tuple[str, str] | None:
    """
    Check one property value against its schema.

    Returns:
        (code suffix, message) on failure, None if the value is acceptable
    """
    if name in SPACING_PROPS and isinstance(value, (int, float)) and not isinstance(value, bool):
        if value < 0:
            return "invalid-type", f"{name} must not be negative"
        return None
    if spec.type == PropType.BOOLEAN:
        if not isinstance(value, bool):
            return "invalid-type", f"{name} must be true or false, got {value!r}"
    elif spec.type == PropType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return "invalid-type", f"{name} must be a number, got {value!r}"
    elif spec.type == PropType.ENUM:
        if value not in spec.options:
            options = ", ".join(spec.options)
            return "invalid-enum", f"Invalid {name} {value!r} (expected one of: {options})"
    elif isinstance(value, bool):
        return "invalid-type", f"{name} must be text, got {value!r}"
    return None


class Validator:
    """Runs every check over a normalized project."""

    def __init__(
        self,
        sourcemap: SourceMapBuilder,
        diagnostics: Diagnostics,
        incomplete: set[str] | frozenset[str] = frozenset(),
    ):
        self.sourcemap = sourcemap
        self.diagnostics = diagnostics
        # Containers that lost a child during expansion; the cause is already reported.
        self.incomplete = incomplete

    def _error(self, code: str, message: str, node_id: str, screen: str | None, prop: str | None = None) -> None:
        range_ = self.sourcemap.get_property_range(node_id, prop) if prop else None
        self.diagnostics.error(
            VALIDATION,
            code,
            message,
            range=range_ or self.sourcemap.get_range(node_id),
            node_id=node_id,
            screen=screen,
        )

    def _warning(self, code: str, message: str, node_id: str, screen: str | None, prop: str | None = None) -> None:
        range_ = self.sourcemap.get_property_range(node_id, prop) if prop else None
        self.diagnostics.warning(
            VALIDATION,
            code,
            message,
            range=range_ or self.sourcemap.get_range(node_id),
            node_id=node_id,
            screen=screen,
        )

    # -- project ---------------------------------------------------------------

    def validate_screens(self, project: Project) -> None:
        """Unique screen names, a layout root, and at least one screen."""
        if not project.screens:
            self.diagnostics.warning(VALIDATION, "project.no-screens", "No screens defined")
            return
        seen: set[str] = set()
        for screen in project.screens:
            if screen.name in seen:
                self.diagnostics.error(
                    VALIDATION,
                    "screen.duplicate-name",
                    f"Duplicate screen name {screen.name!r}",
                    range=self.sourcemap.get_name_range(screen.id),
                    node_id=screen.id,
                    screen=screen.name,
                )
            seen.add(screen.name)
            if isinstance(screen.root, ComponentNode):
                self._error(
                    "screen.root-not-layout",
                    f"Screen {screen.name!r} root must be a layout, got component "
                    f"{screen.root.component_type!r}",
                    screen.root.id,
                    screen.name,
                )

    def validate_node_ids(self, project: Project) -> None:
        counts: Counter[str] = Counter()
        owner: dict[str, str] = {}
        for screen in project.screens:
            if screen.root is None:
                continue
            for node in iter_nodes(screen.root):
                counts[node.id] += 1
                owner.setdefault(node.id, screen.name)
        for node_id, count in counts.items():
            if count > 1:
                self._error(
                    "node.duplicate-id",
                    f"Node id {node_id!r} is used {count} times",
                    node_id,
                    owner[node_id],
                )

    # -- per screen ----------------------------------------------------------------

    def validate_screen_nodes(self, screen: Screen, screen_names: set[str]) -> None:
        if screen.root is None:
            return
        for node in iter_nodes(screen.root):
            if isinstance(node, ContainerNode):
                self.validate_container(node, screen.name)
            else:
                self.validate_component(node, screen.name, screen_names)

    def validate_container(self, node: ContainerNode, screen: str) -> None:
        kind = node.kind
        is_cell = node.meta.source == "cell"
        label = "cell" if is_cell else f"{kind.value} layout"
        count = len(node.children)

        expected = None if is_cell else REQUIRED_CHILDREN.get(kind)
        checks_count = node.id not in self.incomplete
        if checks_count and expected is not None and count != expected:
            noun = "child" if expected == 1 else "children"
            self._error(
                "layout.arity",
                f"{kind.value} layout requires exactly {expected} {noun}, got {count}",
                node.id,
                screen,
            )
        elif checks_count and count == 0 and (is_cell or kind in EMPTY_WARNING_KINDS):
            self._warning("layout.empty", f"Empty {label}", node.id, screen)

        schema = CELL_PROPS if is_cell else LAYOUTS[kind.value].props
        if not is_cell:
            for required in LAYOUTS[kind.value].required_props:
                if required not in node.params:
                    self._error(
                        "layout.missing-param",
                        f"{kind.value} layout requires {required!r}",
                        node.id,
                        screen,
                    )
        for name, value in node.params.items():
            if name in ("width", "height"):
                continue
            spec = schema.get(name) or UNIVERSAL_PROPS.get(name)
            if spec is None:
                self._warning("layout.unknown-param", f"Unknown {label} property {name!r}", node.id, screen, name)
                continue
            problem = check_value(spec, value, name)
            if problem is not None:
                self._error("layout.invalid-param", problem[1], node.id, screen, name)

        if isinstance(node.layout, GridLayout):
            self.validate_grid(node, screen)
        if kind == LayoutKind.SPLIT:
            for name in ("left", "right", "sidebar"):
                value = node.params.get(name)
                if isinstance(value, (int, float)) and not isinstance(value, bool) and value <= 0:
                    self._error("split.width", f"Split {name} width must be positive, got {value}", node.id, screen, name)

    def validate_grid(self, node: ContainerNode, screen: str) -> None:
        assert isinstance(node.layout, GridLayout)
        raw_columns = node.params.get("columns")
        if raw_columns is not None and not (
            isinstance(raw_columns, int)
            and not isinstance(raw_columns, bool)
            and 1 <= raw_columns <= MAX_GRID_COLUMNS
        ):
            self._error(
                "grid.columns",
                f"Grid columns must be an integer between 1 and {MAX_GRID_COLUMNS}, got {raw_columns!r}",
                node.id,
                screen,
                "columns",
            )
        columns = node.layout.columns
        for slot in node.children:
            child = slot.node
            values = child.props if isinstance(child, ComponentNode) else child.params
            raw_span = values.get("span", 1)
            valid = (
                isinstance(raw_span, (int, float))
                and not isinstance(raw_span, bool)
                and float(raw_span).is_integer()
                and 1 <= raw_span <= columns
            )
            if not valid:
                self._error(
                    "grid.span",
                    f"Grid span must be between 1 and {columns}, got {raw_span!r}",
                    child.id,
                    screen,
                    "span",
                )

    def validate_component(self, node: ComponentNode, screen: str, screen_names: set[str]) -> None:
        spec = COMPONENTS.get(node.component_type)
        if spec is None:
            return
        for required in spec.required_props:
            if required not in node.props:
                self._error(
                    "component.missing-prop",
                    f"{node.component_type} requires property {required!r}",
                    node.id,
                    screen,
                )
        for name, value in node.props.items():
            if name in ("width", "height"):
                continue
            prop = spec.props.get(name) or UNIVERSAL_PROPS.get(name)
            if prop is None:
                self._warning(
                    "component.unknown-prop",
                    f"Unknown property {name!r} for {node.component_type}",
                    node.id,
                    screen,
                    name,
                )
                continue
            problem = check_value(prop, value, name)
            if problem is not None:
                self._error(f"component.{problem[0]}", problem[1], node.id, screen, name)

        target = node.props.get("navigate")
        if node.component_type in NAVIGABLE and target is not None and str(target) not in screen_names:
            self._error(
                "reference.unknown-screen",
                f"{node.component_type} navigates to unknown screen {target!r}",
                node.id,
                screen,
                "navigate",
            )

    def validate(self, project: Project) -> None:
        self.validate_screens(project)
        self.validate_node_ids(project)
        names = {screen.name for screen in project.screens}
        for screen in project.screens:
            self.validate_screen_nodes(screen, names)
        logger.debug("Validated %d screens", len(project.screens))


def validate(
    project: Project,
    sourcemap: SourceMapBuilder,
    diagnostics: Diagnostics,
    incomplete: set[str] | frozenset[str] = frozenset(),
) -> None:
    """Run all semantic checks over ``project``."""
    Validator(sourcemap, diagnostics, incomplete).validate(project)
