"""
Error types for WireDSL lexing, parsing, expansion, validation and layout.

The compiler itself reports user-facing problems as diagnostics (see
``diagnostics.py``). These exceptions are raised internally by the lexer and
parser, by configuration loading, and by ``CompileResult.raise_for_errors``
for callers that prefer exceptions over inspecting diagnostics.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class WireError(Exception):
    """Base exception for all WireDSL errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(WireError):
    """
    Raised when source text cannot be parsed.

    Examples:
    - Unexpected tokens
    - Unclosed blocks
    - Missing property values
    """

    pass


class LexError(ParseError):
    """
    Raised when source text cannot be tokenized.

    Examples:
    - Unterminated string literal
    - Unterminated block comment
    - Unexpected character
    """

    pass


class ExpansionError(WireError):
    """
    Raised when definitions cannot be expanded.

    Examples:
    - Unresolved component or layout name
    - Circular definition reference
    - Missing required binding
    - Children placeholder outside a layout definition
    """

    pass


class ValidationError(WireError):
    """
    Raised when the IR fails semantic validation.

    Examples:
    - Split layout without exactly two children
    - Grid span outside 1..columns
    - Navigation target naming an unknown screen
    """

    pass


class LayoutError(WireError):
    """Raised when the layout engine is asked to lay out an unusable IR."""

    pass


class ConfigError(WireError):
    """Raised when a wire.toml manifest is missing or malformed."""

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the source file where error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source lines surrounding the error
    """

    file: Path
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "main.wire:10:5" followed by the snippet
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format code snippet with line numbers and error marker."""
        if not self.snippet:
            return ""

        formatted = []
        # Snippets show up to 2 lines before the error line
        start_line = max(1, self.line - 2)

        for i, line in enumerate(self.snippet.split("\n")):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)
            if line_num == self.line:
                marker_pos = len(prefix) + self.column - 1
                formatted.append(" " * marker_pos + "^^^")

        return "\n".join(formatted)


def extract_snippet(source: str, line: int, context_lines: int = 2) -> str:
    """Return the lines around ``line`` (1-indexed) for an error snippet."""
    lines = source.split("\n")
    start = max(0, line - 1 - context_lines)
    end = min(len(lines), line + context_lines)
    return "\n".join(lines[start:end])


def make_parse_error(
    message: str,
    file: Path,
    line: int,
    column: int,
    source: str | None = None,
    error_class: type[ParseError] = ParseError,
) -> ParseError:
    """
    Helper to create a ParseError (or LexError) with context.

    Args:
        message: Error description
        file: Source file path
        line: Line number (1-indexed)
        column: Column number (0-indexed, as tracked by the lexer)
        source: Optional full source text, used to build a snippet
        error_class: ParseError subclass to instantiate

    Returns:
        Error with context attached
    """
    snippet = extract_snippet(source, line) if source is not None else None
    context = ErrorContext(file=file, line=line, column=column + 1, snippet=snippet)
    return error_class(message, context)
