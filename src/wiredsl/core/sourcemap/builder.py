"""
Incremental source map construction.

The parser opens an entry when it starts a node and closes it when the node
ends; the open-entry stack supplies ``parent_id``. Entries stay as mutable
drafts until ``build()`` freezes them, in the order they were opened.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

from .types import (
    SCOPE_SEPARATOR,
    EntryType,
    Position,
    PropertyRange,
    PropertyValue,
    SourceMapEntry,
    SourceRange,
    call_site_of,
    origin_of,
)

logger = logging.getLogger(__name__)


class SourceMapBuilder:
    """Collects source map entries while the parser walks the source."""

    def __init__(self, file_path: str = "<input>"):
        self.file_path = file_path
        self._drafts: dict[str, dict[str, Any]] = {}
        self._stack: list[str] = []
        self._counters: dict[str, int] = defaultdict(int)
        self._extra: list[SourceMapEntry] = []
        self._scoped_ids: set[str] = set()

    # -- id allocation ------------------------------------------------------

    def next_id(self, family: str, subtype: str | None = None) -> str:
        """
        Allocate the next sequential id for a node family.

        Layout and component ids share one counter per family and embed the
        lower-cased subtype: ``layout-stack-0``, ``component-button-3``.
        """
        index = self._counters[family]
        self._counters[family] += 1
        if subtype is not None:
            return f"{family}-{subtype.lower()}-{index}"
        return f"{family}-{index}"

    def unique_id(self, base: str) -> str:
        """Return ``base`` or ``base-N`` so that it does not collide."""
        if base not in self._drafts:
            return base
        n = 2
        while f"{base}-{n}" in self._drafts:
            n += 1
        return f"{base}-{n}"

    # -- entry capture ------------------------------------------------------

    @property
    def current_parent(self) -> str | None:
        return self._stack[-1] if self._stack else None

    def open(
        self,
        node_id: str,
        entry_type: EntryType,
        start: Position,
        subtype: str | None = None,
        name: str | None = None,
        keyword_range: SourceRange | None = None,
        name_range: SourceRange | None = None,
    ) -> None:
        self._drafts[node_id] = {
            "node_id": node_id,
            "type": entry_type,
            "start": start,
            "subtype": subtype,
            "name": name,
            "file_path": self.file_path,
            "parent_id": self.current_parent,
            "keyword_range": keyword_range,
            "name_range": name_range,
            "properties": {},
        }
        self._stack.append(node_id)

    def add_property(
        self,
        node_id: str,
        name: str,
        value: PropertyValue,
        name_range: SourceRange,
        value_range: SourceRange,
    ) -> None:
        self._drafts[node_id]["properties"][name] = PropertyRange(
            name=name,
            value=value,
            range=SourceRange(start=name_range.start, end=value_range.end),
            name_range=name_range,
            value_range=value_range,
        )

    def set_body_range(self, node_id: str, body_range: SourceRange) -> None:
        self._drafts[node_id]["body_range"] = body_range

    def close(self, node_id: str, end: Position) -> None:
        popped = self._stack.pop()
        assert popped == node_id, f"unbalanced source map entry {popped} != {node_id}"
        self._drafts[node_id]["end"] = end

    def mark_user_defined(self, names: set[str]) -> None:
        """Flag layout/component entries whose type names a definition."""
        for draft in self._drafts.values():
            if draft["type"] in (EntryType.LAYOUT, EntryType.COMPONENT) and draft["subtype"] in names:
                draft["is_user_defined"] = True

    def add_scoped(self, node_id: str, parent_id: str | None) -> bool:
        """
        Record an entry for one instantiated definition-body node.

        The entry copies the definition-body entry (the first id segment) so
        it points at the body source, and records the outermost call site
        (the last id segment). Returns False if the body entry is unknown.
        """
        if SCOPE_SEPARATOR not in node_id or node_id in self._scoped_ids:
            return False
        origin = origin_of(node_id)
        draft = self._drafts.get(origin)
        if draft is None:
            return False
        fields = dict(draft)
        start = fields.pop("start")
        end = fields.pop("end", start)
        fields.update(
            node_id=node_id,
            parent_id=parent_id,
            origin_id=origin,
            call_site_id=call_site_of(node_id),
        )
        self._extra.append(SourceMapEntry(range=SourceRange(start=start, end=end), **fields))
        self._scoped_ids.add(node_id)
        return True

    def get_range(self, node_id: str) -> SourceRange | None:
        """Range of a source-level node, or of the body node a scoped id came from."""
        draft = self._drafts.get(origin_of(node_id))
        if draft is None:
            return None
        return SourceRange(start=draft["start"], end=draft.get("end", draft["start"]))

    def get_property_range(self, node_id: str, name: str) -> SourceRange | None:
        draft = self._drafts.get(origin_of(node_id))
        if draft is None or name not in draft["properties"]:
            return None
        return draft["properties"][name].range

    def get_name_range(self, node_id: str) -> SourceRange | None:
        draft = self._drafts.get(origin_of(node_id))
        return None if draft is None else draft["name_range"]

    def definition_of(self, node_id: str) -> str | None:
        """Name of the definition whose body contains ``node_id``, if any."""
        draft = self._drafts.get(origin_of(node_id))
        while draft is not None:
            if draft["type"] == EntryType.DEFINE:
                return draft["name"]
            parent = draft["parent_id"]
            draft = self._drafts.get(parent) if parent else None
        return None

    # -- output -------------------------------------------------------------

    def build(self) -> list[SourceMapEntry]:
        entries = []
        for draft in self._drafts.values():
            fields = dict(draft)
            start = fields.pop("start")
            end = fields.pop("end", start)
            entries.append(SourceMapEntry(range=SourceRange(start=start, end=end), **fields))
        entries.extend(self._extra)
        logger.debug("Built source map with %d entries", len(entries))
        return entries
