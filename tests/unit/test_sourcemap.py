"""
Tests for source map capture and the SourceMapResolver.

Tests cover:
- Id allocation and entry capture in SourceMapBuilder
- Property-level name/value ranges
- Resolver lookups: by id, by position, navigation, by type
- Scoped entries for expanded definitions
- JSON serialisation with camelCase keys
"""

import json

import pytest

from wiredsl import compile
from wiredsl.core.parser import parse
from wiredsl.core.sourcemap import (
    EntryType,
    Position,
    SourceMapBuilder,
    SourceMapEntry,
    SourceMapResolver,
    SourceRange,
    call_site_of,
    origin_of,
    scoped_id,
)

SOURCE = """\
project "P" {
  screen Home {
    layout stack(direction: vertical) {
      component Button text: "Go"
    }
  }
}
"""


@pytest.fixture
def resolver() -> SourceMapResolver:
    return SourceMapResolver(parse(SOURCE).entries)


def _range(line: int, start: int, end: int, offset: int = 0) -> SourceRange:
    return SourceRange(
        start=Position(line=line, column=start, offset=offset + start),
        end=Position(line=line, column=end, offset=offset + end),
    )


class TestBuilder:
    """Test SourceMapBuilder id allocation and capture."""

    def test_next_id_families(self):
        builder = SourceMapBuilder()
        assert builder.next_id("layout", "Stack") == "layout-stack-0"
        assert builder.next_id("layout", "grid") == "layout-grid-1"
        assert builder.next_id("component", "Button") == "component-button-0"
        assert builder.next_id("cell") == "cell-0"
        assert builder.next_id("screen") == "screen-0"

    def test_unique_id(self):
        builder = SourceMapBuilder()
        assert builder.unique_id("style") == "style"
        builder.open("style", EntryType.STYLE, Position(line=1, column=0))
        builder.close("style", Position(line=1, column=5))
        assert builder.unique_id("style") == "style-2"

    def test_parent_comes_from_open_stack(self):
        builder = SourceMapBuilder()
        builder.open("project", EntryType.PROJECT, Position(line=1, column=0))
        builder.open("screen-0", EntryType.SCREEN, Position(line=2, column=0))
        builder.close("screen-0", Position(line=3, column=1))
        builder.close("project", Position(line=4, column=1))

        entries = {e.node_id: e for e in builder.build()}
        assert entries["project"].parent_id is None
        assert entries["screen-0"].parent_id == "project"

    def test_add_scoped_copies_body_entry(self):
        builder = SourceMapBuilder()
        builder.open("component-text-0", EntryType.COMPONENT, Position(line=2, column=4), subtype="Text")
        builder.close("component-text-0", Position(line=2, column=20))

        assert builder.add_scoped("component-text-0@component-card-1", "layout-stack-0")
        assert not builder.add_scoped("component-text-0@component-card-1", "layout-stack-0")
        assert not builder.add_scoped("component-text-0", "layout-stack-0")
        assert not builder.add_scoped("unknown-0@component-card-1", "layout-stack-0")

        scoped = builder.build()[-1]
        assert scoped.node_id == "component-text-0@component-card-1"
        assert scoped.origin_id == "component-text-0"
        assert scoped.call_site_id == "component-card-1"
        assert scoped.parent_id == "layout-stack-0"
        assert scoped.subtype == "Text"
        assert scoped.range.start.line == 2


class TestScopedIds:
    """Test scoped id helpers."""

    def test_compose_and_split(self):
        nested = scoped_id(scoped_id("component-text-0", "component-inner-2"), "component-outer-5")
        assert nested == "component-text-0@component-inner-2@component-outer-5"
        assert origin_of(nested) == "component-text-0"
        assert call_site_of(nested) == "component-outer-5"
        assert call_site_of("component-text-0") is None
        assert origin_of("component-text-0") == "component-text-0"


class TestPropertyRanges:
    """Test property-level ranges."""

    def test_name_and_value_ranges(self, resolver: SourceMapResolver):
        prop = resolver.by_property("component-button-0", "text")
        assert prop is not None
        assert prop.value == "Go"
        assert (prop.name_range.start.line, prop.name_range.start.column) == (4, 23)
        assert prop.name_range.end.column == 27
        assert (prop.value_range.start.column, prop.value_range.end.column) == (29, 33)
        assert prop.range.start == prop.name_range.start
        assert prop.range.end == prop.value_range.end

    def test_layout_params_are_recorded(self, resolver: SourceMapResolver):
        prop = resolver.by_property("layout-stack-0", "direction")
        assert prop is not None
        assert prop.value == "vertical"

    def test_unknown_property(self, resolver: SourceMapResolver):
        assert resolver.by_property("component-button-0", "missing") is None
        assert resolver.by_property("nope", "text") is None


class TestResolver:
    """Test resolver lookups and navigation."""

    def test_by_id(self, resolver: SourceMapResolver):
        entry = resolver.by_id("component-button-0")
        assert entry is not None
        assert entry.type == EntryType.COMPONENT
        assert entry.subtype == "Button"
        assert resolver.by_id("missing") is None
        assert "layout-stack-0" in resolver
        assert len(resolver) == 4

    def test_by_position_returns_deepest(self, resolver: SourceMapResolver):
        assert resolver.by_position(4, 30).node_id == "component-button-0"
        assert resolver.by_position(3, 4).node_id == "layout-stack-0"
        assert resolver.by_position(2, 2).node_id == "screen-0"
        assert resolver.by_position(1, 0).node_id == "project"
        assert resolver.by_position(99, 0) is None

    def test_by_position_tie_prefers_later_entry(self):
        same = _range(1, 0, 10)
        first = SourceMapEntry(node_id="a", type=EntryType.LAYOUT, range=same)
        second = SourceMapEntry(node_id="b", type=EntryType.LAYOUT, range=same)
        assert SourceMapResolver([first, second]).by_position(1, 5).node_id == "b"

    def test_navigation(self, resolver: SourceMapResolver):
        assert resolver.parent("component-button-0").node_id == "layout-stack-0"
        assert resolver.parent("project") is None
        assert [e.node_id for e in resolver.children("screen-0")] == ["layout-stack-0"]
        assert resolver.siblings("component-button-0") == []
        assert [e.node_id for e in resolver.path("component-button-0")] == [
            "project",
            "screen-0",
            "layout-stack-0",
            "component-button-0",
        ]
        assert resolver.path("missing") == []

    def test_siblings_exclude_self(self):
        source = """
        project "P" {
          screen S {
            layout stack(direction: horizontal) {
              component Button text: "A"
              component Button text: "B"
              component Button text: "C"
            }
          }
        }
        """
        resolver = SourceMapResolver(parse(source).entries)
        siblings = resolver.siblings("component-button-1")
        assert [e.node_id for e in siblings] == ["component-button-0", "component-button-2"]

    def test_by_type(self, resolver: SourceMapResolver):
        assert [e.node_id for e in resolver.by_type(EntryType.COMPONENT)] == ["component-button-0"]
        assert [e.node_id for e in resolver.by_type("layout", "stack")] == ["layout-stack-0"]
        assert resolver.by_type("layout", "grid") == []

    def test_stats(self, resolver: SourceMapResolver):
        stats = resolver.stats()
        assert stats["total_nodes"] == 4
        assert stats["by_type"] == {"component": 1, "layout": 1, "project": 1, "screen": 1}
        assert stats["max_depth"] == 3
        assert stats["scoped_nodes"] == 0


class TestLookupCorrectness:
    """Lookup properties over a realistic compiled project."""

    def test_by_id_returns_same_entry(self, compiled_dashboard):
        resolver = compiled_dashboard.source_map
        for entry in resolver.entries:
            assert resolver.by_id(entry.node_id) is entry

    def test_by_position_returns_leaf(self, compiled_dashboard):
        resolver = compiled_dashboard.source_map
        leaves = [
            e for e in resolver.entries if e.type == EntryType.COMPONENT and not e.is_scoped
        ]
        assert leaves
        for leaf in leaves:
            start = leaf.range.start
            assert resolver.by_position(start.line, start.column) is leaf

    def test_scoped_entries(self, compiled_dashboard):
        resolver = compiled_dashboard.source_map
        heading = resolver.by_id("component-heading-0@component-metriccard-5")
        assert heading is not None
        assert heading.origin_id == "component-heading-0"
        assert heading.call_site_id == "component-metriccard-5"
        assert heading.range == resolver.by_id("component-heading-0").range

        card = resolver.by_id("layout-card-0@component-metriccard-5")
        assert card.parent_id == "cell-0"
        assert heading.parent_id == card.node_id
        assert resolver.stats()["scoped_nodes"] == 8


class TestSerialisation:
    """Test JSON output."""

    def test_camel_case_keys(self, resolver: SourceMapResolver):
        data = json.loads(resolver.to_json())
        button = next(e for e in data if e["nodeId"] == "component-button-0")
        assert button["parentId"] == "layout-stack-0"
        assert button["range"]["start"] == {"line": 4, "column": 6, "offset": button["range"]["start"]["offset"]}
        assert "nameRange" in button["properties"]["text"]
        assert "valueRange" in button["properties"]["text"]
        assert "originId" not in button

    def test_compile_result_carries_resolver(self):
        result = compile(SOURCE)
        assert isinstance(result.source_map, SourceMapResolver)
        assert result.source_map.by_id("component-button-0") is not None
