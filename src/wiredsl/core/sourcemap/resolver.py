"""
Source map lookup.

``SourceMapResolver`` is built once per compile over an ordered list of
entries. Construction indexes entries by id and builds the parent/children
adjacency, so id lookup and upward navigation are O(1) per step. Entries
are never mutated after construction.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable
from typing import Any

from .types import EntryType, PropertyRange, SourceMapEntry


class SourceMapResolver:
    """Query interface over a compiled source map."""

    def __init__(self, entries: Iterable[SourceMapEntry]):
        self._entries: tuple[SourceMapEntry, ...] = tuple(entries)
        self._by_id: dict[str, SourceMapEntry] = {}
        self._children: dict[str, list[str]] = {}

        for entry in self._entries:
            self._by_id[entry.node_id] = entry
        for entry in self._entries:
            if entry.parent_id is not None and entry.parent_id in self._by_id:
                self._children.setdefault(entry.parent_id, []).append(entry.node_id)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    @property
    def entries(self) -> tuple[SourceMapEntry, ...]:
        return self._entries

    def by_id(self, node_id: str) -> SourceMapEntry | None:
        return self._by_id.get(node_id)

    def by_position(self, line: int, column: int) -> SourceMapEntry | None:
        """
        Return the deepest entry whose range contains the position.

        Only source-level entries take part; scoped entries for expanded
        definition instances share their body's range and are reached by id.
        Among containing entries the smallest range wins, and on equal size
        the later-constructed entry wins.

        Args:
            line: 1-indexed line
            column: 0-indexed column

        Returns:
            The matching entry or None if the position is outside every entry
        """
        best: SourceMapEntry | None = None
        for entry in self._entries:
            if entry.is_scoped or not entry.range.contains(line, column):
                continue
            if best is None or entry.range.span <= best.range.span:
                best = entry
        return best

    def by_property(self, node_id: str, name: str) -> PropertyRange | None:
        entry = self._by_id.get(node_id)
        if entry is None:
            return None
        return entry.properties.get(name)

    def parent(self, node_id: str) -> SourceMapEntry | None:
        entry = self._by_id.get(node_id)
        if entry is None or entry.parent_id is None:
            return None
        return self._by_id.get(entry.parent_id)

    def children(self, node_id: str) -> list[SourceMapEntry]:
        return [self._by_id[child] for child in self._children.get(node_id, [])]

    def siblings(self, node_id: str) -> list[SourceMapEntry]:
        """Entries sharing this entry's parent, excluding the entry itself."""
        entry = self._by_id.get(node_id)
        if entry is None or entry.parent_id is None:
            return []
        return [e for e in self.children(entry.parent_id) if e.node_id != node_id]

    def path(self, node_id: str) -> list[SourceMapEntry]:
        """Root-to-node chain of entries; empty if the id is unknown."""
        chain: list[SourceMapEntry] = []
        seen: set[str] = set()
        current = self._by_id.get(node_id)
        while current is not None and current.node_id not in seen:
            seen.add(current.node_id)
            chain.append(current)
            current = self._by_id.get(current.parent_id) if current.parent_id else None
        chain.reverse()
        return chain

    def by_type(self, entry_type: EntryType | str, subtype: str | None = None) -> list[SourceMapEntry]:
        wanted = EntryType(entry_type)
        return [
            e
            for e in self._entries
            if e.type == wanted and (subtype is None or e.subtype == subtype)
        ]

    def stats(self) -> dict[str, Any]:
        by_type = Counter(e.type.value for e in self._entries)
        return {
            "total_nodes": len(self._entries),
            "by_type": dict(sorted(by_type.items())),
            "max_depth": self._max_depth(),
            "scoped_nodes": sum(1 for e in self._entries if e.is_scoped),
        }

    def _max_depth(self) -> int:
        depth: dict[str, int] = {}
        deepest = 0
        # Parents precede children in construction order; scoped entries are
        # appended in pre-order after the source entries. Fall back to a walk.
        for entry in self._entries:
            parent = entry.parent_id
            if parent is None or parent not in self._by_id:
                level = 0
            elif parent in depth:
                level = depth[parent] + 1
            else:
                level = len(self.path(entry.node_id)) - 1
            depth[entry.node_id] = level
            deepest = max(deepest, level)
        return deepest

    def to_list(self) -> list[dict[str, Any]]:
        return [e.model_dump(mode="json", by_alias=True, exclude_none=True) for e in self._entries]

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_list(), indent=indent)
