"""
Compile pipeline.

``compile()`` is the single entry point used by the CLI and by editor
integrations. It is a pure function of the source text and the compiler
config: parse, expand definitions, normalize and validate into IR, then lay
out every screen that has no errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .ast import ProjectAST
from .diagnostics import Diagnostic, Diagnostics
from .expander import expand
from .ir import Project
from .layout import RenderTree, layout_project
from .manifest import CompilerConfig
from .normalizer import normalize
from .parser import parse
from .sourcemap.resolver import SourceMapResolver
from .validator import validate

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """
    Everything one compile produces.

    ``ir`` and ``render_trees_by_screen`` are None/empty after a syntax
    error. With other errors the IR is still built, but screens blocked by
    an error have no render tree. Check ``has_errors`` before consuming
    them.
    """

    ast: ProjectAST | None
    ir: Project | None
    source_map: SourceMapResolver
    diagnostics: list[Diagnostic] = field(default_factory=list)
    render_trees_by_screen: dict[str, RenderTree] = field(default_factory=dict)
    file_path: str = "<input>"

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self.diagnostics)

    def raise_for_errors(self) -> None:
        """
        Raise the first error diagnostic as an exception.

        Raises:
            WireError: Subclass matching the diagnostic's kind
        """
        for diagnostic in self.diagnostics:
            if diagnostic.is_error:
                raise diagnostic.to_error(self.file_path)


def compile(source: str, config: CompilerConfig | None = None) -> CompileResult:
    """
    Compile WireDSL source text.

    Args:
        source: Source text of one ``project`` file
        config: Compiler options; defaults apply when omitted

    Returns:
        CompileResult. This never raises for problems in the source; they
        are reported as diagnostics.

    Examples:
        >>> result = compile('project "p" { screen Home { layout stack(direction: vertical) { component Heading text: "Hi" } } }')
        >>> result.has_errors
        False
        >>> result.render_trees_by_screen["Home"].root.type
        'stack'
    """
    config = config or CompilerConfig()
    parsed = parse(source, config.file_path, config.binding_marker)
    diagnostics = parsed.diagnostics

    if parsed.ast is None:
        logger.info("Compile of %s stopped at syntax error", config.file_path)
        return CompileResult(
            ast=None,
            ir=None,
            source_map=SourceMapResolver(parsed.entries),
            diagnostics=diagnostics.to_list(),
            file_path=config.file_path,
        )

    expansion = expand(parsed.ast, parsed.sourcemap, diagnostics)
    project = normalize(expansion, parsed.sourcemap, diagnostics, config)
    validate(project, parsed.sourcemap, diagnostics, expansion.incomplete)
    if config.warnings_as_errors:
        diagnostics.promote_warnings()

    trees = layout_project(project, diagnostics, parsed.sourcemap.get_range)
    if config.warnings_as_errors and diagnostics.warnings:
        diagnostics.promote_warnings()
        trees = {name: tree for name, tree in trees.items() if not diagnostics.blocks_screen(name)}

    result = CompileResult(
        ast=parsed.ast,
        ir=project,
        source_map=SourceMapResolver(parsed.entries),
        diagnostics=_ordered(diagnostics),
        render_trees_by_screen=trees,
        file_path=config.file_path,
    )
    logger.debug(
        "Compiled %s: %d screens laid out, %d errors, %d warnings",
        config.file_path,
        len(trees),
        len(result.errors),
        len(result.warnings),
    )
    return result


def _ordered(diagnostics: Diagnostics) -> list[Diagnostic]:
    """Stable order: by source position, rangeless diagnostics last."""

    def key(item: tuple[int, Diagnostic]) -> tuple[int, int, int, int]:
        index, diagnostic = item
        if diagnostic.range is None:
            return (1, 0, 0, index)
        start = diagnostic.range.start
        return (0, start.line, start.column, index)

    return [d for _, d in sorted(enumerate(diagnostics), key=key)]
