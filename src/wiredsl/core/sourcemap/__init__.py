"""Source map: entry types, incremental builder and resolver."""

from .builder import SourceMapBuilder
from .resolver import SourceMapResolver
from .types import (
    SCOPE_SEPARATOR,
    EntryType,
    Position,
    PropertyRange,
    SourceMapEntry,
    SourceRange,
    call_site_of,
    origin_of,
    scoped_id,
)

__all__ = [
    "SCOPE_SEPARATOR",
    "EntryType",
    "Position",
    "PropertyRange",
    "SourceMapBuilder",
    "SourceMapEntry",
    "SourceMapResolver",
    "SourceRange",
    "call_site_of",
    "origin_of",
    "scoped_id",
]
