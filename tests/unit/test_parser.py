"""
Tests for the WireDSL parser.

Tests cover:
- Project structure: screens, definitions, style/colors/mocks tables
- Property values: strings, numbers, booleans, barewords, bindings
- Deterministic, type-scoped node ids
- Syntax errors reported as a single diagnostic
"""

from pathlib import Path

import pytest

from wiredsl.core.ast import Binding, CellBlock, ComponentUse, DefinitionKind, LayoutBlock
from wiredsl.core.diagnostics import DiagnosticKind
from wiredsl.core.errors import ParseError
from wiredsl.core.lexer import tokenize
from wiredsl.core.parser import MAX_NESTING, Parser, parse

SIMPLE = """\
project "Shop" {
  style { density: compact, spacing: sm }
  mocks { users: 12 }

  screen Home(device: mobile) {
    layout stack(direction: vertical, gap: md) {
      component Heading text: "Welcome" level: h1
      component Button text: "Buy" disabled: false
      layout grid(columns: 2) {
        cell span: 1 align: center {
          component Image placeholder: square width: 50%
        }
      }
    }
  }
}
"""


def _parse_ok(source: str):
    result = parse(source)
    assert result.ast is not None, [d.message for d in result.diagnostics]
    return result


class TestProjectStructure:
    """Test parsing of top-level project items."""

    def test_simple_project(self):
        """Screens, tables and nested layouts are parsed into the AST."""
        ast = _parse_ok(SIMPLE).ast

        assert ast.name == "Shop"
        assert ast.style == {"density": "compact", "spacing": "sm"}
        assert ast.mocks == {"users": 12}
        assert len(ast.screens) == 1

        screen = ast.screens[0]
        assert screen.name == "Home"
        assert screen.params == {"device": "mobile"}
        assert isinstance(screen.root, LayoutBlock)
        assert screen.root.layout_type == "stack"
        assert screen.root.params == {"direction": "vertical", "gap": "md"}
        assert len(screen.root.children) == 3

    def test_component_props(self):
        """Inline props keep their literal types."""
        root = _parse_ok(SIMPLE).ast.screens[0].root
        heading, button, grid = root.children

        assert isinstance(heading, ComponentUse)
        assert heading.component_type == "Heading"
        assert heading.props == {"text": "Welcome", "level": "h1"}
        assert button.props == {"text": "Buy", "disabled": False}

        cell = grid.children[0]
        assert isinstance(cell, CellBlock)
        assert cell.props == {"span": 1, "align": "center"}
        assert cell.children[0].props == {"placeholder": "square", "width": "50%"}

    def test_screen_name_may_be_string(self):
        ast = _parse_ok('project "P" { screen "Sign in" { } }').ast
        assert ast.screens[0].name == "Sign in"
        assert ast.screens[0].root is None

    def test_comments_are_ignored(self):
        source = """
        // header comment
        project "P" {
          /* a block
             comment */
          screen S { layout stack(direction: vertical) { } } // trailing
        }
        """
        ast = _parse_ok(source).ast
        assert ast.screens[0].root.layout_type == "stack"

    def test_definitions(self):
        """Both definition kinds are parsed with their bodies."""
        source = """
        project "P" {
          define Component "Hero" {
            component Heading text: prop_title
          }
          define Layout "shell" {
            layout stack(direction: vertical) {
              component Children
            }
          }
        }
        """
        ast = _parse_ok(source).ast
        hero, shell = ast.definitions

        assert hero.kind == DefinitionKind.COMPONENT
        assert hero.name == "Hero"
        assert hero.id == "define-Hero"
        assert hero.body.props["text"] == Binding(name="title", raw="prop_title")

        assert shell.kind == DefinitionKind.LAYOUT
        assert shell.id == "define-layout-shell"
        assert shell.body.children[0].component_type == "Children"

    def test_numbers_and_colors(self):
        source = 'project "P" { colors { primary: #ff0000, link: primary } mocks { ratio: 0.5 } }'
        ast = _parse_ok(source).ast
        assert ast.colors == {"primary": "#ff0000", "link": "primary"}
        assert ast.mocks == {"ratio": 0.5}
        assert isinstance(ast.mocks["ratio"], float)

    def test_custom_binding_marker(self):
        """The binding prefix is configurable."""
        source = 'project "P" { define Component "X" { component Text text: arg_body } }'
        body = parse(source, binding_marker="arg_").ast.definitions[0].body
        assert body.props["text"] == Binding(name="body", raw="arg_body")

        default = parse(source).ast.definitions[0].body
        assert default.props["text"] == "arg_body"


class TestNodeIds:
    """Test deterministic id assignment."""

    def test_ids_are_type_scoped_and_sequential(self):
        ast = _parse_ok(SIMPLE).ast
        screen = ast.screens[0]
        root = screen.root
        heading, button, grid = root.children

        assert screen.id == "screen-0"
        assert root.id == "layout-stack-0"
        assert heading.id == "component-heading-0"
        assert button.id == "component-button-1"
        assert grid.id == "layout-grid-1"
        assert grid.children[0].id == "cell-0"
        assert grid.children[0].children[0].id == "component-image-2"

    def test_ids_are_deterministic(self):
        first = [e.node_id for e in parse(SIMPLE).entries]
        second = [e.node_id for e in parse(SIMPLE).entries]
        assert first == second


class TestSyntaxErrors:
    """Test syntax error reporting."""

    @pytest.mark.parametrize(
        "source",
        [
            'project "P" { screen S { layout stack(direction: vertical) { }',
            'project "P" { screen S { layout stack(direction vertical) { } } }',
            'project "P" { widget X { } }',
            'project "P" { } extra',
            'project "P" { define Thing "X" { component Text text: "a" } }',
        ],
    )
    def test_syntax_error_is_single_diagnostic(self, source: str):
        result = parse(source)
        assert result.ast is None
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics.errors[0]
        assert diagnostic.kind == DiagnosticKind.PARSE
        assert diagnostic.code == "parse.syntax"
        assert diagnostic.range is not None

    def test_lex_error_is_lex_diagnostic(self):
        result = parse('project "P" { screen S { component Text text: "open } }')
        assert result.ast is None
        diagnostic = result.diagnostics.errors[0]
        assert diagnostic.kind == DiagnosticKind.LEX
        assert diagnostic.code == "lex.syntax"

    def test_error_position(self):
        """The diagnostic points at the offending token."""
        source = 'project "P" {\n  screen S {\n    bogus\n  }\n}'
        diagnostic = parse(source).diagnostics.errors[0]
        assert diagnostic.range.start.line == 3
        assert diagnostic.range.start.column == 4

    def test_two_roots_is_parse_error(self):
        source = """
        project "P" {
          screen S {
            layout stack(direction: vertical) { }
            layout stack(direction: vertical) { }
          }
        }
        """
        result = parse(source)
        assert result.ast is None
        assert "exactly one root" in result.diagnostics.errors[0].message

    def test_layout_definition_body_must_be_layout(self):
        source = 'project "P" { define Layout "x" { component Children } }'
        result = parse(source)
        assert result.ast is None
        assert "layout definition" in result.diagnostics.errors[0].message

    def test_parser_raises_parse_error(self):
        """The Parser class itself raises; parse() converts to diagnostics."""
        source = 'project "P" {'
        parser = Parser(tokenize(source), file=Path("x.wire"), source=source)
        with pytest.raises(ParseError) as exc_info:
            parser.parse()
        assert exc_info.value.context is not None
        assert "x.wire:1:" in str(exc_info.value)

    def test_non_ascii_digit_is_lex_diagnostic(self):
        result = parse('project "P" { screen S { layout stack(direction: vertical, gap: ²) { } } }')
        assert result.ast is None
        [diagnostic] = result.diagnostics.errors
        assert diagnostic.code == "lex.syntax"

    def test_definition_name_with_scope_separator(self):
        source = 'project "P" {\n  define Component "A@B" { component Text text: "a" }\n}'
        result = parse(source)
        assert result.ast is None
        [diagnostic] = result.diagnostics.errors
        assert diagnostic.code == "parse.syntax"
        assert "must not contain '@'" in diagnostic.message
        assert (diagnostic.range.start.line, diagnostic.range.start.column) == (2, 19)


class TestNesting:
    """Test the block nesting limit."""

    @staticmethod
    def nested(depth: int) -> str:
        body = "layout stack(direction: vertical) { " * depth + "}" * depth
        return f'project "P" {{ screen S {{ {body} }} }}'

    def test_at_limit(self):
        result = parse(self.nested(MAX_NESTING))
        assert result.ast is not None
        assert not result.diagnostics.errors

    def test_over_limit_is_parse_error(self):
        result = parse(self.nested(MAX_NESTING + 1))
        assert result.ast is None
        [diagnostic] = result.diagnostics.errors
        assert diagnostic.code == "parse.syntax"
        assert f"nested more than {MAX_NESTING} levels" in diagnostic.message
