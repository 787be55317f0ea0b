"""
WireDSL CLI.

Commands:

- check: compile and report diagnostics
- compile: dump the IR
- layout: dump render trees
- sourcemap: dump source map entries
- lookup: resolve a node id or a source position

When FILE is omitted, the entry file named in ``wire.toml`` (searched from
the current directory upwards) is compiled with the manifest's settings.
"""

from __future__ import annotations

import json
import logging
import platform
import sys
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ._version import __version__
from .core.compiler import CompileResult, compile
from .core.errors import ConfigError
from .core.manifest import CompilerConfig, find_manifest, load_manifest

console = Console()
err_console = Console(stderr=True)

FORMATS = ("json", "yaml")


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"wiredsl version {__version__}")
        typer.echo(f"Python {platform.python_implementation()} {platform.python_version()}")
        raise typer.Exit()


app = typer.Typer(
    help="""WireDSL - compile wireframe source into IR, layouts and source maps.

Pass a .wire file, or run inside a project with a wire.toml manifest.
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version information",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log each compiler stage"),
) -> None:
    """WireDSL CLI main callback for global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


# =============================================================================
# Helpers
# =============================================================================


def _load(file: Path | None) -> tuple[str, CompilerConfig]:
    """Read the source text and the compiler config for a command."""
    if file is None:
        manifest_path = find_manifest(Path.cwd())
        if manifest_path is None:
            err_console.print("[red]No FILE given and no wire.toml found[/red]")
            raise typer.Exit(code=2)
        try:
            manifest = load_manifest(manifest_path)
        except ConfigError as e:
            err_console.print(f"[red]Config error:[/red] {e}")
            raise typer.Exit(code=2)
        config = manifest.compiler_config()
        file = manifest.entry_path
    else:
        config = CompilerConfig(file_path=str(file))

    try:
        source = file.read_text(encoding="utf-8")
    except OSError as e:
        err_console.print(f"[red]Cannot read {file}:[/red] {e.strerror or e}")
        raise typer.Exit(code=2)
    return source, config


def _compile(file: Path | None) -> CompileResult:
    source, config = _load(file)
    return compile(source, config)


def _check_format(format: str) -> None:
    if format not in FORMATS:
        err_console.print(f"[red]Unknown format {format!r}[/red] (expected json or yaml)")
        raise typer.Exit(code=2)


def _emit(data: Any, format: str, output: Path | None = None) -> None:
    if format == "yaml":
        text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    if output is not None:
        output.write_text(text, encoding="utf-8")
        err_console.print(f"[green]✓[/green] Wrote {output}")
    else:
        sys.stdout.write(text)


def _print_diagnostics_table(result: CompileResult) -> None:
    table = Table(title=f"Diagnostics: {result.file_path}")
    table.add_column("Severity")
    table.add_column("Location")
    table.add_column("Code")
    table.add_column("Message")
    for diagnostic in result.diagnostics:
        location = "-"
        if diagnostic.range is not None:
            start = diagnostic.range.start
            location = f"{start.line}:{start.column + 1}"
        severity = diagnostic.severity.value
        colour = "red" if diagnostic.is_error else "yellow"
        message = diagnostic.message
        if diagnostic.suggestion:
            message += f"\n[dim]{diagnostic.suggestion}[/dim]"
        table.add_row(f"[{colour}]{severity}[/{colour}]", location, diagnostic.code, message)
    console.print(table)


def _report_to_stderr(result: CompileResult) -> None:
    for diagnostic in result.diagnostics:
        colour = "red" if diagnostic.is_error else "yellow"
        err_console.print(f"[{colour}]{diagnostic.format(result.file_path)}[/{colour}]", highlight=False)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def check(
    file: Path | None = typer.Argument(None, help="Source file (default: wire.toml entry)"),
    format: str = typer.Option("human", "--format", "-f", help="Output format: 'human' or 'plain'"),
) -> None:
    """
    Compile a file and report diagnostics.

    Exits with status 1 if any error was reported.
    """
    result = _compile(file)

    if format == "plain":
        for diagnostic in result.diagnostics:
            typer.echo(diagnostic.format(result.file_path))
    elif result.diagnostics:
        _print_diagnostics_table(result)

    errors, warnings = len(result.errors), len(result.warnings)
    if errors:
        console.print(f"[red]✗[/red] {errors} error(s), {warnings} warning(s)")
        raise typer.Exit(code=1)
    screens = len(result.render_trees_by_screen)
    console.print(f"[green]✓[/green] OK: {screens} screen(s), {warnings} warning(s)")


@app.command(name="compile")
def compile_command(
    file: Path | None = typer.Argument(None, help="Source file (default: wire.toml entry)"),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json or yaml"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout"),
) -> None:
    """Dump the normalized IR."""
    _check_format(format)
    result = _compile(file)
    _report_to_stderr(result)
    if result.ir is None:
        raise typer.Exit(code=1)
    _emit(result.ir.model_dump(mode="json", by_alias=True), format, output)
    if result.has_errors:
        raise typer.Exit(code=1)


@app.command()
def layout(
    file: Path | None = typer.Argument(None, help="Source file (default: wire.toml entry)"),
    screen: str | None = typer.Option(None, "--screen", "-s", help="Only this screen"),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json or yaml"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout"),
) -> None:
    """Dump render trees with absolute geometry."""
    _check_format(format)
    result = _compile(file)
    _report_to_stderr(result)
    trees = result.render_trees_by_screen
    if screen is not None:
        if screen not in trees:
            err_console.print(f"[red]No render tree for screen {screen!r}[/red]")
            raise typer.Exit(code=1)
        trees = {screen: trees[screen]}
    _emit({name: tree.model_dump(mode="json") for name, tree in trees.items()}, format, output)
    if result.has_errors:
        raise typer.Exit(code=1)


@app.command()
def sourcemap(
    file: Path | None = typer.Argument(None, help="Source file (default: wire.toml entry)"),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json or yaml"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to a file instead of stdout"),
    stats: bool = typer.Option(False, "--stats", help="Print summary counts instead of entries"),
) -> None:
    """Dump source map entries."""
    _check_format(format)
    result = _compile(file)
    data: Any = result.source_map.stats() if stats else result.source_map.to_list()
    _emit(data, format, output)


@app.command()
def lookup(
    file: Path | None = typer.Argument(None, help="Source file (default: wire.toml entry)"),
    node_id: str | None = typer.Option(None, "--id", help="Node id, e.g. component-button-3"),
    line: int | None = typer.Option(None, "--line", "-l", help="1-based line"),
    column: int | None = typer.Option(None, "--column", "-c", help="1-based column"),
) -> None:
    """
    Resolve a node id or a source position to its source map entry.

    Prints the entry and its path from the project root.
    """
    if node_id is None and (line is None or column is None):
        err_console.print("[red]Give --id, or both --line and --column[/red]")
        raise typer.Exit(code=2)

    resolver = _compile(file).source_map
    if node_id is not None:
        entry = resolver.by_id(node_id)
    else:
        assert line is not None and column is not None
        entry = resolver.by_position(line, column - 1)
    if entry is None:
        err_console.print("[yellow]No matching node[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=entry.node_id, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("type", entry.type.value + (f" ({entry.subtype})" if entry.subtype else ""))
    start, end = entry.range.start, entry.range.end
    table.add_row("range", f"{start.line}:{start.column + 1} - {end.line}:{end.column + 1}")
    if entry.origin_id:
        table.add_row("origin", entry.origin_id)
    if entry.call_site_id:
        table.add_row("call site", entry.call_site_id)
    table.add_row("path", " > ".join(e.node_id for e in resolver.path(entry.node_id)))
    for name, prop in entry.properties.items():
        table.add_row(f"  {name}", repr(prop.value))
    console.print(table)


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> None:
    app(args=argv, standalone_mode=True)


if __name__ == "__main__":
    main(sys.argv[1:])
