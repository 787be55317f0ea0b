"""
WireDSL - a declarative wireframing language.

Compiles ``.wire`` source into a validated IR, positioned render trees and a
source map that links every rendered node back to its source range.
"""

from __future__ import annotations

from ._version import __version__
from .core import ir
from .core.compiler import CompileResult, compile
from .core.diagnostics import Diagnostic, Severity
from .core.errors import ConfigError, ParseError, ValidationError, WireError
from .core.manifest import CompilerConfig
from .core.sourcemap import SourceMapResolver

__all__ = [
    "CompileResult",
    "CompilerConfig",
    "ConfigError",
    "Diagnostic",
    "ParseError",
    "Severity",
    "SourceMapResolver",
    "ValidationError",
    "WireError",
    "__version__",
    "compile",
    "ir",
]
