"""
Definition registry and expander.

Rewrites every invocation of a user-defined component or layout into a
copy of the definition body, substituting bindings from the invocation's
arguments. Runs before any semantic validation.

Definition bodies are checked once, dependencies first: the reference graph
is ordered with an explicit-stack depth-first search (which also finds
cycles). A checked body keeps its own invocations as calls. Instances are
only built for screens, by one iterative copy that expands nested calls as
it reaches them, so long chains of definitions never recurse.

Ids of instantiated nodes are scoped as ``bodyId@callSiteId``; nested
instantiation appends the outer call site, giving
``bodyId@innerCallSite@outerCallSite``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace

from .ast import (
    Binding,
    CellBlock,
    Child,
    ComponentUse,
    Definition,
    DefinitionKind,
    LayoutBlock,
    ProjectAST,
    ScreenBlock,
    Value,
    walk,
)
from .catalog import (
    CELL_PROPS,
    CHILDREN_PLACEHOLDER,
    COMPONENTS,
    LAYOUTS,
    UNIVERSAL_PROPS,
)
from .diagnostics import DiagnosticKind, Diagnostics
from .sourcemap.builder import SourceMapBuilder
from .sourcemap.types import SourceRange, scoped_id

logger = logging.getLogger(__name__)

COMPONENT_NAME_PATTERN = re.compile(r"^[A-Z][A-Za-z0-9]*$")
LAYOUT_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")

EXPANSION = DiagnosticKind.EXPANSION
VALIDATION = DiagnosticKind.VALIDATION

WHITE, GREY, BLACK = 0, 1, 2


class DefinitionRegistry:
    """
    Name → Definition map for one compilation unit.

    Built once per compile and read-only afterwards. Definitions that failed
    a structural check are kept in ``invalid`` so invocations of them can be
    skipped without repeating the diagnostic.
    """

    def __init__(self, definitions: dict[str, Definition], invalid: set[str]):
        self._definitions = definitions
        self.invalid = frozenset(invalid)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def get(self, name: str) -> Definition | None:
        return self._definitions.get(name)

    def invoked(self, node: Child) -> str | None:
        """Name of the definition ``node`` invokes, or None for built-ins."""
        if isinstance(node, ComponentUse):
            name = node.component_type
            if name != CHILDREN_PLACEHOLDER and name in self._definitions:
                return name
        elif isinstance(node, LayoutBlock):
            name = node.layout_type
            if name not in LAYOUTS and name in self._definitions:
                return name
        return None

    def references(self) -> dict[str, list[str]]:
        """Adjacency map: definition name → definitions its body invokes."""
        graph: dict[str, list[str]] = {}
        for name, definition in self._definitions.items():
            refs: list[str] = []
            for node in walk(definition.body):
                target = self.invoked(node)
                if target is not None and target not in refs:
                    refs.append(target)
            graph[name] = refs
        return graph


def build_registry(definitions: list[Definition], diagnostics: Diagnostics) -> DefinitionRegistry:
    """
    Register all definitions in one pass and check naming and structure.

    Declaration order does not matter: a definition may be used before it is
    declared.
    """
    registered: dict[str, Definition] = {}
    invalid: set[str] = set()

    for definition in definitions:
        name = definition.name
        if name in registered:
            diagnostics.error(
                EXPANSION,
                "definition.duplicate",
                f"Definition {name!r} is already defined",
                range=definition.name_range,
                node_id=definition.id,
            )
            continue
        registered[name] = definition

        if name in LAYOUTS or name == CHILDREN_PLACEHOLDER:
            diagnostics.error(
                EXPANSION,
                "definition.shadows-builtin",
                f"Definition {name!r} conflicts with a built-in name",
                range=definition.name_range,
                node_id=definition.id,
            )
            invalid.add(name)
            continue
        if name in COMPONENTS:
            # User definitions take precedence over the built-in component.
            diagnostics.warning(
                VALIDATION,
                "definition.shadows-builtin",
                f"Definition {name!r} replaces the built-in {name} component",
                range=definition.name_range,
                node_id=definition.id,
            )

        if definition.kind == DefinitionKind.COMPONENT:
            if not COMPONENT_NAME_PATTERN.match(name):
                diagnostics.warning(
                    VALIDATION,
                    "definition.naming",
                    f"Component definition {name!r} should be PascalCase",
                    range=definition.name_range,
                    node_id=definition.id,
                    suggestion=_pascal_case(name),
                )
            if any(_is_placeholder(n) for n in walk(definition.body)):
                diagnostics.error(
                    EXPANSION,
                    "placeholder.outside-definition",
                    f'"{CHILDREN_PLACEHOLDER}" can only be used inside a define Layout body '
                    f"(found in component definition {name!r})",
                    range=definition.name_range,
                    node_id=definition.id,
                )
                invalid.add(name)
        else:
            if not LAYOUT_NAME_PATTERN.match(name):
                diagnostics.error(
                    VALIDATION,
                    "definition.naming",
                    f"Layout definition {name!r} must match {LAYOUT_NAME_PATTERN.pattern}",
                    range=definition.name_range,
                    node_id=definition.id,
                    suggestion=name.lower(),
                )
                invalid.add(name)
            slots = sum(1 for n in walk(definition.body) if _is_placeholder(n))
            if slots == 0:
                diagnostics.error(
                    EXPANSION,
                    "definition.missing-children",
                    f'Layout definition {name!r} must contain a "{CHILDREN_PLACEHOLDER}" placeholder',
                    range=definition.name_range,
                    node_id=definition.id,
                )
                invalid.add(name)
            elif slots > 1:
                diagnostics.error(
                    EXPANSION,
                    "definition.duplicate-children",
                    f'Layout definition {name!r} contains {slots} "{CHILDREN_PLACEHOLDER}" '
                    "placeholders, expected exactly one",
                    range=definition.name_range,
                    node_id=definition.id,
                )
                invalid.add(name)

    logger.debug("Registered %d definitions (%d invalid)", len(registered), len(invalid))
    return DefinitionRegistry(registered, invalid)


def find_cycles(graph: dict[str, list[str]]) -> tuple[list[list[str]], list[str]]:
    """
    Depth-first search over a reference graph with three-colour marking.

    Uses an explicit stack, so arbitrarily deep acyclic chains are safe.

    Args:
        graph: Adjacency map; edges to names not in the map are ignored

    Returns:
        (cycles, order) where each cycle is a chain like ``[a, b, a]``,
        reported once however many back edges reach it, and ``order`` lists
        every name after all the names it references (post-order).

    Examples:
        >>> find_cycles({"a": ["b"], "b": []})
        ([], ['b', 'a'])
        >>> find_cycles({"a": ["b"], "b": ["a"]})[0]
        [['a', 'b', 'a']]
    """
    color = dict.fromkeys(graph, WHITE)
    order: list[str] = []
    cycles: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()

    for root in graph:
        if color[root] != WHITE:
            continue
        color[root] = GREY
        path = [root]
        stack = [(root, iter(graph[root]))]
        while stack:
            node, edges = stack[-1]
            descended = False
            for target in edges:
                state = color.get(target)
                if state is None or state == BLACK:
                    continue
                if state == GREY:
                    chain = path[path.index(target) :]
                    key = _normalize_cycle(chain)
                    if key not in seen:
                        seen.add(key)
                        cycles.append([*chain, target])
                    continue
                color[target] = GREY
                path.append(target)
                stack.append((target, iter(graph[target])))
                descended = True
                break
            if not descended:
                stack.pop()
                path.pop()
                color[node] = BLACK
                order.append(node)

    return cycles, order


def _normalize_cycle(chain: list[str]) -> tuple[str, ...]:
    """Rotate a cycle so it starts at its smallest member."""
    start = chain.index(min(chain))
    return tuple(chain[start:] + chain[:start])


def _is_placeholder(node: Child) -> bool:
    return isinstance(node, ComponentUse) and node.component_type == CHILDREN_PLACEHOLDER


def _pascal_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[^A-Za-z0-9]+", name) if part)


def _values(node: Child) -> dict[str, Value]:
    if isinstance(node, LayoutBlock):
        return node.params
    return node.props


def _target_required(node: Child, prop: str) -> bool:
    """Whether ``prop`` is a required property of the built-in node it sits on."""
    if isinstance(node, ComponentUse):
        spec = COMPONENTS.get(node.component_type)
        return spec is not None and prop in spec.props and spec.props[prop].required
    if isinstance(node, LayoutBlock):
        layout = LAYOUTS.get(node.layout_type)
        return layout is not None and prop in layout.props and layout.props[prop].required
    return prop in CELL_PROPS and CELL_PROPS[prop].required


def _substitute(values: dict[str, Value], args: dict[str, Value]) -> dict[str, Value]:
    """Replace bindings from ``args``; unbound bindings are left out."""
    result: dict[str, Value] = {}
    for key, value in values.items():
        if isinstance(value, Binding):
            if value.name in args:
                result[key] = args[value.name]
            continue
        result[key] = value
    return result


@dataclass
class ExpansionContext:
    """Where an expansion is happening: a definition body or a screen."""

    definition: Definition | None = None
    screen: str | None = None

    @property
    def allows_bindings(self) -> bool:
        return self.definition is not None

    @property
    def allows_children(self) -> bool:
        return self.definition is not None and self.definition.kind == DefinitionKind.LAYOUT


@dataclass
class _Scope:
    """One definition body being copied: its call site, arguments and slot."""

    call_site: str
    args: dict[str, Value]
    # The node filling ``Children`` and the scope it is copied in; a None
    # scope means the node is already expanded.
    slot: tuple[Child, _Scope | None] | None = None


@dataclass
class ExpansionResult:
    project: ProjectAST
    failed_screens: set[str] = field(default_factory=set)
    # Containers that lost a child to a failed invocation.
    incomplete: set[str] = field(default_factory=set)


class Expander:
    """Expands definitions for one project, reporting into ``diagnostics``."""

    def __init__(
        self,
        registry: DefinitionRegistry,
        sourcemap: SourceMapBuilder,
        diagnostics: Diagnostics,
    ):
        self.registry = registry
        self.sourcemap = sourcemap
        self.diagnostics = diagnostics
        self.bodies: dict[str, Child] = {}
        # Per definition: binding name → whether any property it feeds is required.
        self.bindings: dict[str, dict[str, bool]] = {}
        self.incomplete: set[str] = set()
        self._unusable: set[str] = set(registry.invalid)

    # -- whole-project checks -------------------------------------------------

    def check_unresolved(self, project: ProjectAST) -> None:
        """Report every unknown component/layout name in a single diagnostic."""
        unresolved: dict[str, SourceRange] = {}
        first_node: dict[str, str] = {}
        roots: list[Child] = [d.body for d in project.definitions]
        roots.extend(s.root for s in project.screens if s.root is not None)
        for root in roots:
            for node in walk(root):
                if isinstance(node, ComponentUse):
                    name = node.component_type
                    known = name in COMPONENTS or name == CHILDREN_PLACEHOLDER
                elif isinstance(node, LayoutBlock):
                    name = node.layout_type
                    known = name in LAYOUTS
                else:
                    continue
                if not known and name not in self.registry and name not in unresolved:
                    unresolved[name] = node.range
                    first_node[name] = node.id
        if not unresolved:
            return
        names = sorted(unresolved)
        first = min(unresolved, key=lambda n: unresolved[n].start.offset)
        self.diagnostics.error(
            EXPANSION,
            "definition.unresolved",
            f"Unresolved component or layout names: {', '.join(names)}",
            range=unresolved[first],
            node_id=first_node[first],
            suggestion='Define them with define Component "Name" { ... } or define Layout "name" { ... }',
        )

    def check_cycles(self) -> list[str]:
        """Report each reference cycle once; return the expansion order."""
        cycles, order = find_cycles(self.registry.references())
        for chain in cycles:
            head = self.registry.get(chain[0])
            assert head is not None
            self.diagnostics.error(
                EXPANSION,
                "definition.cycle",
                f"Circular definition reference: {' -> '.join(chain)}",
                range=head.name_range,
                node_id=head.id,
            )
            self._unusable.update(chain)
        return order

    # -- definition bodies -------------------------------------------------------

    def check_definitions(self, order: list[str]) -> None:
        """Check every usable definition body, dependencies first."""
        for name in order:
            if name in self._unusable:
                continue
            definition = self.registry.get(name)
            assert definition is not None
            body = self.expand_node(definition.body, ExpansionContext(definition=definition))
            if body is None:
                self._unusable.add(name)
                continue
            self.bodies[name] = body
            self.bindings[name] = self._binding_targets(body)
        logger.debug("Checked %d definition bodies", len(self.bodies))

    def _binding_targets(self, body: Child) -> dict[str, bool]:
        """Bindings a checked body reads, in source order, with their required-ness."""
        targets: dict[str, bool] = {}
        for node in walk(body):
            invoked = self.registry.invoked(node)
            for key, value in _values(node).items():
                if not isinstance(value, Binding):
                    continue
                if invoked is not None:
                    required = self.bindings.get(invoked, {}).get(key, False)
                else:
                    required = _target_required(node, key)
                targets[value.name] = targets.get(value.name, False) or required
        return targets

    # -- tree expansion ----------------------------------------------------------

    def _reject_bindings(self, node: Child, ctx: ExpansionContext) -> dict[str, Value]:
        values = _values(node)
        if ctx.allows_bindings:
            return dict(values)
        kept: dict[str, Value] = {}
        for key, value in values.items():
            if isinstance(value, Binding):
                self.diagnostics.error(
                    EXPANSION,
                    "binding.outside-definition",
                    f"Binding {value.raw!r} can only be used inside a definition body",
                    range=self.sourcemap.get_property_range(node.id, key) or node.range,
                    node_id=node.id,
                    screen=ctx.screen,
                )
            else:
                kept[key] = value
        return kept

    def expand_node(self, node: Child, ctx: ExpansionContext) -> Child | None:
        """
        Expand one source node (recursing over source nesting only).

        Returns None if the node cannot be expanded; the reason has already
        been reported. A container that loses a child this way is flagged
        ``incomplete``.
        """
        values = self._reject_bindings(node, ctx)
        name = self.registry.invoked(node)
        if name is not None:
            assert isinstance(node, (ComponentUse, LayoutBlock))
            return self._invoke(node, name, values, ctx)

        if isinstance(node, ComponentUse):
            if node.component_type == CHILDREN_PLACEHOLDER:
                if ctx.allows_children:
                    return node
                self.diagnostics.error(
                    EXPANSION,
                    "placeholder.outside-definition",
                    f'"{CHILDREN_PLACEHOLDER}" can only be used inside a define Layout body',
                    range=node.range,
                    node_id=node.id,
                    screen=ctx.screen,
                )
                return None
            if node.component_type in COMPONENTS:
                return replace(node, props=values)
            return None

        if isinstance(node, LayoutBlock) and node.layout_type not in LAYOUTS:
            return None
        children: list[Child] = []
        for child in node.children:
            expanded = self.expand_node(child, ctx)
            if expanded is not None:
                children.append(expanded)
        lost = len(children) < len(node.children)
        if isinstance(node, LayoutBlock):
            return replace(node, params=values, children=children, incomplete=lost)
        return replace(node, props=values, children=children, incomplete=lost)

    def _invoke(
        self,
        call: ComponentUse | LayoutBlock,
        name: str,
        args: dict[str, Value],
        ctx: ExpansionContext,
    ) -> Child | None:
        """
        Check one invocation and, on a screen, instantiate it.

        Inside a definition body the checked call is kept; it is expanded
        when the enclosing definition is instantiated.
        """
        definition = self.registry.get(name)
        assert definition is not None
        expected = DefinitionKind.COMPONENT if isinstance(call, ComponentUse) else DefinitionKind.LAYOUT
        if definition.kind != expected:
            keyword = "component" if definition.kind == DefinitionKind.COMPONENT else "layout"
            self.diagnostics.error(
                EXPANSION,
                "definition.kind-mismatch",
                f"{name!r} is a {definition.kind.value} definition; use '{keyword} {name}'",
                range=call.range,
                node_id=call.id,
                screen=ctx.screen,
            )
            return None

        slot: Child | None = None
        if isinstance(call, LayoutBlock):
            if len(call.children) != 1:
                self.diagnostics.error(
                    EXPANSION,
                    "definition.children-arity",
                    f"Layout {name!r} expects exactly one child, received {len(call.children)}",
                    range=call.range,
                    node_id=call.id,
                    screen=ctx.screen,
                )
                return None
            slot = self.expand_node(call.children[0], ctx)
            if slot is None:
                return None
        if name not in self.bodies:
            return None

        bound = self.bindings[name]
        for arg in args:
            if arg not in bound and arg not in UNIVERSAL_PROPS:
                self.diagnostics.warning(
                    VALIDATION,
                    "binding.unused",
                    f"Argument {arg!r} is not used by definition {name!r}",
                    range=self.sourcemap.get_property_range(call.id, arg) or call.range,
                    node_id=call.id,
                    screen=ctx.screen,
                )

        fatal = False
        for binding, required in bound.items():
            if binding in args:
                continue
            if required:
                fatal = True
                self.diagnostics.error(
                    EXPANSION,
                    "binding.missing-required",
                    f"Definition {name!r} requires argument {binding!r}",
                    range=call.range,
                    node_id=call.id,
                    screen=ctx.screen,
                )
            else:
                self.diagnostics.warning(
                    VALIDATION,
                    "binding.missing-optional",
                    f"Optional argument {binding!r} of {name!r} not provided; property omitted",
                    range=call.range,
                    node_id=call.id,
                    screen=ctx.screen,
                )
        if fatal:
            return None

        if ctx.definition is not None:
            if isinstance(call, LayoutBlock):
                assert slot is not None
                return replace(call, params=args, children=[slot])
            return replace(call, props=args)
        return self.instantiate(call.id, name, args, slot)

    def _root_props(self, name: str, args: dict[str, Value]) -> dict[str, Value]:
        """Universal props from a call site that the definition does not bind."""
        bound = self.bindings[name]
        return {key: args[key] for key in UNIVERSAL_PROPS if key in args and key not in bound}

    def instantiate(self, call_site_id: str, name: str, args: dict[str, Value], slot: Child | None) -> Child:
        """
        Copy definition ``name`` for one screen-level call site.

        Body nodes get ids scoped with the call site and their bindings
        replaced from ``args``. Nested calls met in the copy are expanded in
        place, and ``Children`` takes the slot, which keeps its own ids.
        Universal sizing props (``width``, ``height``, ``span``) given at a
        call site apply to the instance root unless the definition binds
        them.
        """
        result: list[Child] = []
        scope = _Scope(call_site_id, args, (slot, None) if slot is not None else None)
        stack: list[tuple[Child, _Scope | None, list[Child], dict[str, Value]]] = [
            (self.bodies[name], scope, result, self._root_props(name, args))
        ]
        while stack:
            node, scope, sink, root_props = stack.pop()
            if scope is None:
                sink.append(node)
                continue
            if _is_placeholder(node):
                if scope.slot is not None:
                    slot_node, slot_scope = scope.slot
                    stack.append((slot_node, slot_scope, sink, {}))
                continue

            values = _substitute(_values(node), scope.args)
            target = self.registry.invoked(node)
            if target is not None:
                inner = _Scope(
                    scoped_id(node.id, scope.call_site),
                    values,
                    (node.children[0], scope) if isinstance(node, LayoutBlock) else None,
                )
                props = self._root_props(target, values)
                props.update(root_props)
                stack.append((self.bodies[target], inner, sink, props))
                continue

            values.update(root_props)
            new_id = scoped_id(node.id, scope.call_site)
            if isinstance(node, ComponentUse):
                sink.append(replace(node, id=new_id, props=values))
                continue
            container: LayoutBlock | CellBlock
            if isinstance(node, LayoutBlock):
                container = replace(node, id=new_id, params=values, children=[])
            else:
                container = replace(node, id=new_id, props=values, children=[])
            sink.append(container)
            stack.extend((child, scope, container.children, {}) for child in reversed(node.children))
        return result[0]

    # -- entry point -------------------------------------------------------------

    def expand_screen(self, screen: ScreenBlock) -> tuple[ScreenBlock, bool]:
        """Return the expanded screen and whether its root was lost."""
        if screen.root is None:
            return screen, False
        root = self.expand_node(screen.root, ExpansionContext(screen=screen.name))
        if root is not None:
            self._record(root, screen.id)
        return replace(screen, root=root), root is None

    def _record(self, root: Child, screen_id: str) -> None:
        """Add scoped source map entries and note containers missing a child."""
        stack: list[tuple[Child, str]] = [(root, screen_id)]
        while stack:
            node, parent_id = stack.pop()
            self.sourcemap.add_scoped(node.id, parent_id)
            if isinstance(node, ComponentUse):
                continue
            if node.incomplete:
                self.incomplete.add(node.id)
            stack.extend((child, node.id) for child in reversed(node.children))


def expand(
    project: ProjectAST,
    sourcemap: SourceMapBuilder,
    diagnostics: Diagnostics,
) -> ExpansionResult:
    """
    Expand all definition invocations in a project.

    Args:
        project: Parsed project
        sourcemap: Raw source map; scoped entries are appended to it
        diagnostics: Collector for expansion errors and warnings

    Returns:
        ExpansionResult with a new project whose screens contain no
        invocations of user definitions
    """
    registry = build_registry(project.definitions, diagnostics)
    expander = Expander(registry, sourcemap, diagnostics)
    expander.check_unresolved(project)
    order = expander.check_cycles()
    expander.check_definitions(order)

    screens = []
    failed: set[str] = set()
    for screen in project.screens:
        expanded, lost = expander.expand_screen(screen)
        if lost:
            failed.add(screen.name)
        screens.append(expanded)

    return ExpansionResult(
        project=replace(project, screens=screens),
        failed_screens=failed,
        incomplete=expander.incomplete,
    )
