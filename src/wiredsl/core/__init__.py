"""Core WireDSL functionality: parser, expander, IR, validator, layout and source map."""

from . import ir
from .compiler import CompileResult, compile
from .diagnostics import Diagnostic, DiagnosticKind, Diagnostics, Severity
from .errors import (
    ConfigError,
    ErrorContext,
    ExpansionError,
    LayoutError,
    LexError,
    ParseError,
    ValidationError,
    WireError,
)
from .manifest import CompilerConfig, WireManifest, find_manifest, load_manifest
from .parser import parse
from .sourcemap import SourceMapResolver

__all__ = [
    "CompileResult",
    "CompilerConfig",
    "ConfigError",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "ErrorContext",
    "ExpansionError",
    "LayoutError",
    "LexError",
    "ParseError",
    "Severity",
    "SourceMapResolver",
    "ValidationError",
    "WireError",
    "WireManifest",
    "compile",
    "find_manifest",
    "ir",
    "load_manifest",
    "parse",
]
