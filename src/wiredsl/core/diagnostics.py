"""
Compiler diagnostics.

Every stage after parsing reports problems fail-slow into a shared
``Diagnostics`` collector instead of raising, so a single compile surfaces
the full set of actionable problems.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from .errors import (
    ErrorContext,
    ExpansionError,
    LayoutError,
    LexError,
    ParseError,
    ValidationError,
    WireError,
)
from .sourcemap.types import SourceRange

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(str, Enum):
    """Pipeline stage that produced a diagnostic."""

    LEX = "lex"
    PARSE = "parse"
    EXPANSION = "expansion"
    VALIDATION = "validation"
    LAYOUT = "layout"


_ERROR_CLASSES: dict[DiagnosticKind, type[WireError]] = {
    DiagnosticKind.LEX: LexError,
    DiagnosticKind.PARSE: ParseError,
    DiagnosticKind.EXPANSION: ExpansionError,
    DiagnosticKind.VALIDATION: ValidationError,
    DiagnosticKind.LAYOUT: LayoutError,
}


class Diagnostic(BaseModel):
    """
    A single compiler message.

    ``range`` is omitted only for whole-file diagnostics. ``screen`` names the
    screen the problem belongs to; errors without a screen block every screen.
    """

    model_config = ConfigDict(frozen=True)

    severity: Severity
    kind: DiagnosticKind
    code: str
    message: str
    range: SourceRange | None = None
    node_id: str | None = None
    screen: str | None = None
    suggestion: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def format(self, file_path: str = "<input>") -> str:
        location = file_path
        if self.range is not None:
            location += f":{self.range.start.line}:{self.range.start.column + 1}"
        text = f"{location}: {self.severity.value}[{self.code}]: {self.message}"
        if self.suggestion:
            text += f" ({self.suggestion})"
        return text

    def to_error(self, file_path: str = "<input>") -> WireError:
        """Convert to the exception class matching this diagnostic's kind."""
        context = None
        if self.range is not None:
            context = ErrorContext(
                file=Path(file_path),
                line=self.range.start.line,
                column=self.range.start.column + 1,
            )
        return _ERROR_CLASSES[self.kind](self.message, context)


class Diagnostics:
    """Ordered, append-only collector of diagnostics."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, diagnostic: Diagnostic) -> None:
        logger.debug("%s %s: %s", diagnostic.severity.value, diagnostic.code, diagnostic.message)
        self._items.append(diagnostic)

    def error(
        self,
        kind: DiagnosticKind,
        code: str,
        message: str,
        range: SourceRange | None = None,
        node_id: str | None = None,
        screen: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.add(
            Diagnostic(
                severity=Severity.ERROR,
                kind=kind,
                code=code,
                message=message,
                range=range,
                node_id=node_id,
                screen=screen,
                suggestion=suggestion,
            )
        )

    def warning(
        self,
        kind: DiagnosticKind,
        code: str,
        message: str,
        range: SourceRange | None = None,
        node_id: str | None = None,
        screen: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.add(
            Diagnostic(
                severity=Severity.WARNING,
                kind=kind,
                code=code,
                message=message,
                range=range,
                node_id=node_id,
                screen=screen,
                suggestion=suggestion,
            )
        )

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.is_error]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if not d.is_error]

    @property
    def has_errors(self) -> bool:
        return any(d.is_error for d in self._items)

    def blocks_screen(self, screen_name: str) -> bool:
        """True if an error applies to the named screen or to the whole file."""
        return any(d.is_error and d.screen in (None, screen_name) for d in self._items)

    def to_list(self) -> list[Diagnostic]:
        return list(self._items)

    def promote_warnings(self) -> int:
        """Turn every warning into an error in place; returns how many changed."""
        promoted = 0
        for i, item in enumerate(self._items):
            if not item.is_error:
                self._items[i] = item.model_copy(update={"severity": Severity.ERROR})
                promoted += 1
        return promoted
