"""
Tests for the layout engine and component metrics.

Geometry below assumes the default desktop viewport (1280x720) and normal
density unless a test says otherwise.
"""

import pytest

from wiredsl import compile
from wiredsl.core.errors import LayoutError
from wiredsl.core.ir import ComponentNode, Density, Project, Screen, Viewport
from wiredsl.core.layout import LayoutEngine, intrinsic_height, intrinsic_width, wrap_text
from wiredsl.core.layout.metrics import heading_font_size


def component(kind: str, **props) -> ComponentNode:
    return ComponentNode(id=f"component-{kind.lower()}-0", component_type=kind, props=props)


def box(node) -> tuple[float, float, float, float]:
    return (node.x, node.y, node.width, node.height)


def layout_root(source: str, screen: str = "Main"):
    result = compile(source)
    assert not result.has_errors, result.errors
    return result.render_trees_by_screen[screen].root


class TestWrapText:
    """Test greedy word wrapping."""

    def test_wraps_on_words(self):
        assert wrap_text("aaa bbb", 40, 10) == ["aaa", "bbb"]
        assert wrap_text("aa bb", 40, 10) == ["aa bb"]

    def test_hard_splits_long_words(self):
        assert wrap_text("abcdefghij", 30, 10) == ["abcde", "fghij"]

    def test_blank_lines_kept(self):
        assert wrap_text("a\n\nb", 100, 10) == ["a", "", "b"]

    def test_empty(self):
        assert wrap_text("", 100, 10) == [""]


class TestMetrics:
    """Test intrinsic component sizes."""

    def test_control_height_scales_with_density(self):
        button = component("Button", text="Go")
        assert intrinsic_height(button, 200, Density.COMPACT) == 32
        assert intrinsic_height(button, 200, Density.NORMAL) == 40
        assert intrinsic_height(button, 200, Density.COMFORTABLE) == 48

    def test_table_height(self):
        table = component("Table", columns="A, B", rows=3, title="T", pagination=True)
        assert intrinsic_height(table, 400, Density.NORMAL) == 44 + 3 * 36 + 32 + 64

    def test_text_wraps(self):
        text = component("Text", text=" ".join(["word"] * 20))
        assert intrinsic_height(text, 100, Density.NORMAL) == 10 * 21

    def test_image_aspect(self):
        image = component("Image", placeholder="landscape")
        assert intrinsic_height(image, 320, Density.NORMAL) == pytest.approx(180)
        assert intrinsic_height(image, None, Density.NORMAL) == 200

    def test_heading_levels(self):
        assert heading_font_size(component("Heading", text="x", level="h1"), Density.NORMAL) == 28
        assert heading_font_size(component("Heading", text="x"), Density.NORMAL) == 20

    def test_sidebar_grows_with_items(self):
        menu = component("SidebarMenu", items="A, B, C, D, E")
        assert intrinsic_height(menu, 240, Density.NORMAL) == 200

    def test_intrinsic_width(self):
        assert intrinsic_width(component("Button", text="Save"), Density.NORMAL) == 80
        assert intrinsic_width(component("Button", text="Save changes now"), Density.NORMAL) == 160
        assert intrinsic_width(component("Icon", icon="x", size="sm"), Density.NORMAL) == 14
        assert intrinsic_width(component("Table", columns="A"), Density.NORMAL) == 400


class TestVerticalStack:
    """Test column arrangement."""

    def test_children_top_to_bottom(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: md, padding: md) {
          component Button text: "A"
          component Heading text: "Hi"
        }
        """
        root = layout_root(wrap_screen(body))
        assert box(root) == (0, 0, 1280, 720)
        button, heading = root.children
        assert box(button) == (16, 16, 1248, 40)
        assert box(heading) == (16, 72, 1248, 40)

    def test_fill_children_share_surplus(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          component Topbar title: "T"
          component Text text: "x" height: fill
          component Text text: "y" height: fill
        }
        """
        topbar, first, second = layout_root(wrap_screen(body)).children
        assert box(topbar) == (0, 0, 1280, 56)
        assert box(first) == (0, 56, 1280, 332)
        assert box(second) == (0, 388, 1280, 332)

    def test_collapse_warning(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          layout stack(direction: vertical, height: 50, gap: none, padding: none) {
            component Topbar title: "T"
            component Text text: "x" height: fill
          }
        }
        """
        result = compile(wrap_screen(body))
        assert not result.has_errors
        [warning] = [d for d in result.diagnostics if d.code == "layout.collapse"]
        assert warning.node_id == "layout-stack-1"
        assert warning.screen == "Main"
        assert warning.range is not None

        inner = result.render_trees_by_screen["Main"].root.children[0]
        assert inner.height == 50
        assert inner.children[1].height == 0

    def test_content_taller_than_viewport(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          component Table columns: "A" rows: 20
        }
        """
        root = layout_root(wrap_screen(body))
        assert root.height == 44 + 20 * 36

    def test_fixed_and_percent_width(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          component Button text: "A" width: 200
          component Button text: "B" width: "25%"
        }
        """
        fixed, percent = layout_root(wrap_screen(body)).children
        assert fixed.width == 200
        assert percent.width == 320

    def test_justify_and_align_ignored(self, wrap_screen):
        body = """
        layout stack(direction: vertical, justify: center, align: end, gap: none, padding: none) {
          component Button text: "A"
          component Button text: "B"
        }
        """
        first, second = layout_root(wrap_screen(body)).children
        assert box(first) == (0, 0, 1280, 40)
        assert box(second) == (0, 40, 1280, 40)


class TestHorizontalStack:
    """Test row arrangement and justify modes."""

    @staticmethod
    def row(wrap_screen, justify: str, align: str = "start") -> list:
        body = f"""
        layout stack(direction: horizontal, justify: {justify}, align: {align}, gap: md, padding: none) {{
          component Button text: "A"
          component Button text: "B"
        }}
        """
        return layout_root(wrap_screen(body)).children

    def test_stretch_shares_width(self, wrap_screen):
        first, second = self.row(wrap_screen, "stretch")
        assert box(first) == (0, 0, 632, 40)
        assert box(second) == (648, 0, 632, 40)

    @pytest.mark.parametrize(
        "justify, expected",
        [
            ("start", [0, 96]),
            ("center", [552, 648]),
            ("end", [1104, 1200]),
            ("spaceBetween", [0, 1200]),
            ("spaceAround", [276, 924]),
        ],
    )
    def test_natural_modes(self, wrap_screen, justify, expected):
        children = self.row(wrap_screen, justify)
        assert [c.x for c in children] == expected
        assert [c.width for c in children] == [80, 80]

    def test_cross_axis_align(self, wrap_screen):
        first, _ = self.row(wrap_screen, "start", "center")
        assert first.y == 340
        first, _ = self.row(wrap_screen, "start", "end")
        assert first.y == 680

    def test_space_around_with_padding(self, wrap_screen):
        body = """
        layout stack(direction: horizontal, justify: spaceAround, gap: none, padding: md) {
          component Button text: "A"
          component Button text: "B"
          component Button text: "C"
        }
        """
        children = layout_root(wrap_screen(body)).children
        assert [c.x for c in children] == [184, 600, 1016]
        last = children[-1]
        assert 1280 - (last.x + last.width) == 16 + 168

    def test_fill_child_disables_justify(self, wrap_screen):
        body = """
        layout stack(direction: horizontal, justify: spaceAround, gap: none, padding: none) {
          component Button text: "A"
          component Text text: "x" width: fill
        }
        """
        button, text = layout_root(wrap_screen(body)).children
        assert (button.x, button.width) == (0, 80)
        assert (text.x, text.width) == (80, 1200)


class TestGrid:
    """Test grid tracks and wrapping."""

    def test_spans_and_rows(self, wrap_screen):
        body = """
        layout grid(columns: 12, gap: md, padding: none) {
          cell span: 6 { component Text text: "a" }
          cell span: 6 { component Text text: "b" }
          cell span: 4 { component Text text: "c" }
        }
        """
        first, second, third = layout_root(wrap_screen(body)).children
        assert first.type == "cell"
        assert box(first) == (0, 0, 632, 40)
        assert box(second) == (648, 0, 632, 40)
        assert box(third) == (0, 56, 416, 40)
        assert box(first.children[0]) == (0, 0, 632, 40)

    def test_cell_align(self, wrap_screen):
        body = """
        layout grid(columns: 2, gap: none, padding: none) {
          cell { component Table columns: "A" rows: 1 }
          cell align: end { component Text text: "b" }
        }
        """
        tall, short = layout_root(wrap_screen(body)).children
        assert tall.height == 80
        assert (short.y, short.height) == (40, 40)


class TestSplit:
    """Test split panes."""

    def test_left_pane(self, wrap_screen):
        body = """
        layout split(left: 240, gap: none, padding: none) {
          component SidebarMenu items: "A, B"
          component Text text: "x"
        }
        """
        side, main = layout_root(wrap_screen(body)).children
        assert box(side) == (0, 0, 240, 720)
        assert box(main) == (240, 0, 1040, 720)

    def test_right_pane(self, wrap_screen):
        body = """
        layout split(right: 300, gap: none, padding: none) {
          component Text text: "x"
          component Text text: "y"
        }
        """
        main, side = layout_root(wrap_screen(body)).children
        assert (main.x, main.width) == (0, 980)
        assert (side.x, side.width) == (980, 300)

    def test_collapse_on_narrow_viewport(self):
        source = """
        project "P" {
          screen Main(device: mobile) {
            layout split(left: 400) {
              component SidebarMenu items: "A"
              component Text text: "x"
            }
          }
        }
        """
        result = compile(source)
        [warning] = result.warnings
        assert warning.code == "layout.collapse"
        side, main = result.render_trees_by_screen["Main"].root.children
        assert side.width == 375
        assert main.width == 0


class TestPanelAndCard:
    """Test panel and card boxes: padded columns sized to content."""

    def test_panel_default_padding(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          layout panel { component Button text: "A" }
        }
        """
        [panel] = layout_root(wrap_screen(body)).children
        assert panel.type == "panel"
        assert box(panel) == (0, 0, 1280, 72)
        assert box(panel.children[0]) == (16, 16, 1248, 40)

    def test_panel_padding_token(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          layout panel(padding: lg) { component Button text: "A" }
        }
        """
        [panel] = layout_root(wrap_screen(body)).children
        assert box(panel) == (0, 0, 1280, 88)
        assert box(panel.children[0]) == (24, 24, 1232, 40)

    def test_card_children_top_to_bottom(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          layout card {
            component Button text: "A"
            component Heading text: "Hi"
          }
        }
        """
        [card] = layout_root(wrap_screen(body)).children
        assert card.type == "card"
        assert box(card) == (0, 0, 1280, 128)
        button, heading = card.children
        assert box(button) == (16, 16, 1248, 40)
        assert box(heading) == (16, 72, 1248, 40)

    def test_card_padding_and_gap(self, wrap_screen):
        body = """
        layout stack(direction: vertical, gap: none, padding: none) {
          layout card(padding: lg, gap: sm) {
            component Button text: "A"
            component Button text: "B"
          }
        }
        """
        [card] = layout_root(wrap_screen(body)).children
        assert box(card) == (0, 0, 1280, 136)
        first, second = card.children
        assert box(first) == (24, 24, 1232, 40)
        assert box(second) == (24, 72, 1232, 40)

    def test_nested_in_grid_cell(self, wrap_screen):
        body = """
        layout grid(columns: 2, gap: none, padding: none) {
          cell { layout card(padding: sm, gap: none) { component Button text: "A" } }
          cell { component Text text: "b" }
        }
        """
        first, second = layout_root(wrap_screen(body)).children
        [card] = first.children
        assert box(card) == (0, 0, 640, 56)
        assert box(card.children[0]) == (8, 8, 624, 40)
        assert first.height == second.height == 56


class TestRenderTree:
    """Test render tree shape for a full project."""

    def test_dashboard_geometry(self, compiled_dashboard):
        assert not compiled_dashboard.has_errors
        root = compiled_dashboard.render_trees_by_screen["Dashboard"].root
        assert root.id == "layout-split-1@layout-app_shell-2"
        assert root.type == "split"
        assert root.origin_id == "layout-split-1"
        assert root.call_site_id == "layout-app_shell-2"
        menu, stack = root.children
        assert (menu.x, menu.width) == (0, 240)
        assert (stack.id, stack.x, stack.width) == ("layout-stack-3", 256, 1024)

    def test_find_scoped_node(self, compiled_dashboard):
        root = compiled_dashboard.render_trees_by_screen["Dashboard"].root
        heading = root.find("component-heading-0@component-metriccard-5")
        assert heading is not None
        assert heading.kind == "component"
        assert heading.call_site_id == "component-metriccard-5"
        assert root.find("missing") is None

    def test_every_screen_laid_out(self, compiled_dashboard):
        trees = compiled_dashboard.render_trees_by_screen
        assert list(trees) == ["Dashboard", "Users"]
        assert trees["Users"].viewport.width == 1280

    def test_json_dump(self, compiled_dashboard):
        data = compiled_dashboard.render_trees_by_screen["Users"].model_dump(mode="json")
        assert data["screen"] == "Users"
        assert data["root"]["kind"] == "layout"
        assert data["root"]["children"][0]["type"] == "Heading"

    def test_screen_without_root_raises(self):
        screen = Screen(id="screen-0", name="Blank", viewport=Viewport(width=100, height=100))
        engine = LayoutEngine(Project(name="p", screens=[screen]))
        with pytest.raises(LayoutError):
            engine.layout_screen(screen)
