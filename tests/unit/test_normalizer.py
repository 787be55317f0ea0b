"""
Tests for IR normalization.

Tests cover:
- Style tokens, aliases and invalid values
- Colour table resolution
- Spacing tokens resolved to pixels
- Sizes, viewports and layout descriptors
- Provenance metadata for expanded nodes
"""

import pytest

from wiredsl import CompilerConfig, compile
from wiredsl.core.ir import (
    Align,
    ComponentNode,
    ContainerNode,
    Density,
    Direction,
    FontSize,
    Radius,
    SizeMode,
    Spacing,
    canonical_token,
    iter_nodes,
    parse_size,
)


def codes(result) -> list[str]:
    return [d.code for d in result.diagnostics]


def root_of(result, screen: str = "Main") -> ContainerNode:
    root = result.ir.screen(screen).root
    assert isinstance(root, ContainerNode)
    return root


class TestTokens:
    """Test token canonicalisation helpers."""

    def test_aliases(self):
        assert canonical_token("comfy", Density) == Density.COMFORTABLE
        assert canonical_token("large", Spacing) == Spacing.LG
        assert canonical_token("rounded", Radius) == Radius.FULL
        assert canonical_token("medium", FontSize) == FontSize.BASE
        assert canonical_token("XL", Spacing) == Spacing.XL
        assert canonical_token("huge", Spacing) is None

    def test_parse_size(self):
        assert parse_size(120).value == 120.0
        assert parse_size("80px").value == 80.0
        assert parse_size("auto").mode == SizeMode.CONTENT
        assert parse_size("50%").mode == SizeMode.PERCENT
        assert parse_size("150%") is None
        assert parse_size(True) is None
        assert parse_size("wide") is None

    def test_parse_size_rejects_non_finite(self):
        assert parse_size("inf") is None
        assert parse_size("1e999") is None
        assert parse_size("1e999px") is None
        assert parse_size("nan") is None
        assert parse_size(float("inf")) is None
        assert parse_size(10**400) is None


class TestStyle:
    """Test the project style block."""

    def test_aliases_applied(self, wrap_screen):
        extra = "style { density: comfy spacing: large radius: round font: medium }"
        result = compile(wrap_screen('layout panel { component Text text: "x" }', extra))
        assert not result.has_errors
        style = result.ir.style
        assert style.density == Density.COMFORTABLE
        assert style.spacing == Spacing.LG
        assert style.radius == Radius.FULL
        assert style.font == FontSize.BASE

    def test_invalid_and_unknown_keys(self, wrap_screen):
        extra = "style { density: huge sparkle: yes }"
        result = compile(wrap_screen('layout panel { component Text text: "x" }', extra))
        assert "style.invalid-token" in codes(result)
        [unknown] = [d for d in result.diagnostics if d.code == "style.unknown-key"]
        assert not unknown.is_error
        assert result.ir.style.density == Density.NORMAL

    def test_style_device(self, wrap_screen):
        result = compile(wrap_screen('layout panel { component Text text: "x" }', "style { device: mobile }"))
        viewport = result.ir.screen("Main").viewport
        assert (viewport.width, viewport.height) == (375, 812)

    def test_invalid_style_device(self, wrap_screen):
        result = compile(wrap_screen('layout panel { component Text text: "x" }', "style { device: watch }"))
        assert "style.invalid-device" in codes(result)
        assert result.ir.screen("Main").viewport.device == "desktop"


class TestColors:
    """Test the colour table."""

    def test_resolution(self, wrap_screen):
        extra = "colors { brand: #3366ff accent: brand paper: white }"
        result = compile(wrap_screen('layout panel { component Text text: "x" }', extra))
        assert not result.has_errors
        assert result.ir.colors == {"brand": "#3366ff", "accent": "brand", "paper": "white"}
        assert result.ir.resolved_colors == {"brand": "#3366ff", "accent": "#3366ff", "paper": "white"}

    def test_invalid_values(self, wrap_screen):
        extra = "colors { bad: notacolor a: b b: a }"
        result = compile(wrap_screen('layout panel { component Text text: "x" }', extra))
        messages = [d.message for d in result.diagnostics if d.code == "colors.invalid"]
        assert len(messages) == 3
        assert "Circular color alias: a -> b -> a" in messages
        assert result.ir.resolved_colors == {}


class TestSpacing:
    """Test spacing resolution."""

    def test_tokens_and_numbers(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: lg, padding: 10) {
          layout panel { component Text text: "x" }
        }
        """
        root = root_of(compile(wrap_screen(body)))
        assert root.layout.gap == 24
        assert root.layout.padding == 10
        panel = root.children[0].node
        assert panel.layout.padding == 16
        assert panel.layout.gap == 16

    def test_density_scales_tokens(self, wrap_screen):
        body = 'layout stack(direction: vertical, gap: lg) { component Text text: "x" }'
        root = root_of(compile(wrap_screen(body, "style { density: compact }")))
        assert root.layout.gap == 19

    def test_project_spacing_default(self, wrap_screen):
        body = 'layout stack(direction: vertical) { component Text text: "x" }'
        root = root_of(compile(wrap_screen(body, "style { spacing: sm }")))
        assert root.layout.gap == 8
        assert root.layout.padding == 0


class TestNodes:
    """Test sizes, descriptors and slots."""

    def test_sizes(self, wrap_screen):
        body = 'layout stack(direction: vertical) { component Button text: "x" width: 120 height: "50%" }'
        button = root_of(compile(wrap_screen(body))).children[0].node
        assert isinstance(button, ComponentNode)
        assert button.width.mode == SizeMode.FIXED
        assert button.width.value == 120
        assert button.height.mode == SizeMode.PERCENT
        assert button.height.value == 50

    def test_default_sizes(self, wrap_screen):
        body = 'layout stack(direction: vertical) { component Text text: "x" }'
        text = root_of(compile(wrap_screen(body))).children[0].node
        assert text.width.mode == SizeMode.FILL
        assert text.height.mode == SizeMode.CONTENT

    def test_invalid_size(self, wrap_screen):
        body = 'layout stack(direction: vertical) { component Text text: "x" width: "huge" }'
        result = compile(wrap_screen(body))
        [error] = [d for d in result.diagnostics if d.code == "size.invalid"]
        assert error.node_id == "component-text-0"
        assert result.ir.screen("Main").root.children[0].node.width.mode == SizeMode.FILL

    @pytest.mark.parametrize("value", ["inf", "1e999", "-inf"])
    def test_non_finite_size(self, wrap_screen, value):
        body = f'layout stack(direction: vertical) {{ component Text text: "x" width: "{value}" }}'
        result = compile(wrap_screen(body))
        assert [d.code for d in result.errors] == ["size.invalid"]
        assert result.ir.screen("Main").root.children[0].node.width.mode == SizeMode.FILL

    def test_stack_descriptor(self, wrap_screen):
        body = """
        layout stack(direction: horizontal, justify: spaceBetween, align: center) {
          component Text text: "x"
        }
        """
        layout = root_of(compile(wrap_screen(body))).layout
        assert layout.direction == Direction.HORIZONTAL
        assert layout.justify.value == "spaceBetween"
        assert layout.align == Align.CENTER

    def test_split_descriptor(self, wrap_screen):
        body = """
        layout split(right: 300, border: true) {
          component Text text: "main"
          component Text text: "side"
        }
        """
        layout = root_of(compile(wrap_screen(body))).layout
        assert layout.fixed_side == "right"
        assert layout.fixed_width == 300
        assert layout.divider is True

    def test_split_default_width(self, wrap_screen):
        body = 'layout split { component Text text: "a" component Text text: "b" }'
        layout = root_of(compile(wrap_screen(body))).layout
        assert (layout.fixed_side, layout.fixed_width) == ("left", 260)

    def test_grid_columns_default_from_config(self, wrap_screen):
        body = 'layout grid { cell { component Text text: "x" } }'
        result = compile(wrap_screen(body), CompilerConfig(grid_columns=6))
        assert root_of(result).layout.columns == 6

    def test_cell_slot(self, wrap_screen):
        body = 'layout grid(columns: 12) { cell span: 4 align: center { component Text text: "x" } }'
        root = root_of(compile(wrap_screen(body)))
        [slot] = root.children
        assert slot.span == 4
        assert slot.align == Align.CENTER
        assert slot.node.meta.source == "cell"


class TestScreens:
    """Test screen viewports and roots."""

    def test_device_param(self):
        source = """
        project "P" {
          screen Phone(device: mobile) { layout panel { component Text text: "x" } }
          screen Desk { layout panel { component Text text: "x" } }
        }
        """
        result = compile(source, CompilerConfig(default_device="tablet"))
        assert result.ir.screen("Phone").viewport.width == 375
        assert result.ir.screen("Desk").viewport.width == 768

    def test_unknown_device(self):
        source = 'project "P" { screen S(device: watch) { layout panel { component Text text: "x" } } }'
        result = compile(source)
        assert "screen.invalid-device" in codes(result)
        assert result.ir.screen("S").viewport.width == 1280

    def test_screen_without_root(self):
        result = compile('project "P" { screen Empty { } }')
        assert codes(result) == ["screen.no-root"]
        assert result.ir.screen("Empty").root is None
        assert result.render_trees_by_screen == {}


class TestProvenance:
    """Test metadata on nodes produced from definitions."""

    def test_scoped_node_meta(self, compiled_dashboard):
        nodes = {n.id: n for n in iter_nodes(compiled_dashboard.ir.screen("Dashboard").root)}
        heading = nodes["component-heading-0@component-metriccard-5"]
        assert heading.meta.origin_id == "component-heading-0"
        assert heading.meta.call_site_id == "component-metriccard-5"
        assert heading.meta.definition == "MetricCard"
        assert heading.props == {"text": "Users"}

        stack = nodes["layout-stack-3"]
        assert stack.meta.origin_id is None
        assert stack.meta.definition is None
