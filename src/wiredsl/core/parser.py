"""
Recursive-descent parser for WireDSL.

Builds the AST and, in the same pass, the raw source map: every node gets a
deterministic id at construction time and every ``key: value`` pair gets
its name and value ranges recorded.

Parsing is fail-fast. ``Parser.parse`` raises ``ParseError``; the module
level ``parse`` function converts that into a diagnostic for the compiler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .ast import (
    Binding,
    CellBlock,
    Child,
    ComponentUse,
    Definition,
    DefinitionKind,
    LayoutBlock,
    ProjectAST,
    ScreenBlock,
    Value,
)
from .diagnostics import DiagnosticKind, Diagnostics
from .errors import LexError, ParseError, make_parse_error
from .lexer import KEYWORDS, Lexer, Token, TokenType
from .sourcemap.builder import SourceMapBuilder
from .sourcemap.types import SCOPE_SEPARATOR, EntryType, Position, SourceMapEntry, SourceRange

logger = logging.getLogger(__name__)

DEFAULT_BINDING_MARKER = "prop_"
MAX_NESTING = 200

# Keywords may appear as property names and bareword values.
NAME_TOKENS = {TokenType.IDENTIFIER} | {TokenType(k) for k in KEYWORDS}


def start_of(token: Token) -> Position:
    return Position(line=token.line, column=token.column, offset=token.offset)


def end_of(token: Token) -> Position:
    return Position(line=token.end_line, column=token.end_column, offset=token.end_offset)


def token_range(token: Token) -> SourceRange:
    return SourceRange(start=start_of(token), end=end_of(token))


class BaseParser:
    """
    Token cursor with the matching and error helpers used by ``Parser``.
    """

    def __init__(self, tokens: list[Token], file: Path, source: str | None = None):
        """
        Initialize parser.

        Args:
            tokens: List of tokens from lexer
            file: Source file path (for error reporting)
            source: Source text, used for error snippets
        """
        self.tokens = tokens
        self.file = file
        self.source = source
        self.pos = 0

    def current_token(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.pos]

    def peek_token(self, offset: int = 1) -> Token:
        """Peek ahead at token."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def previous_token(self) -> Token:
        return self.tokens[max(0, self.pos - 1)]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def error(self, message: str, token: Token | None = None) -> ParseError:
        token = token or self.current_token()
        return make_parse_error(message, self.file, token.line, token.column, source=self.source)

    def describe(self, token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of input"
        return repr(token.value)

    def expect(self, token_type: TokenType, what: str | None = None) -> Token:
        """
        Expect a specific token type and consume it.

        Raises:
            ParseError: If token doesn't match
        """
        token = self.current_token()
        if token.type != token_type:
            expected = what or repr(token_type.value)
            raise self.error(f"Expected {expected}, got {self.describe(token)}")
        return self.advance()

    def expect_name(self, what: str = "identifier") -> Token:
        """Expect an identifier, accepting keywords used as names."""
        token = self.current_token()
        if token.type not in NAME_TOKENS:
            raise self.error(f"Expected {what}, got {self.describe(token)}")
        return self.advance()

    def match(self, *token_types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self.current_token().type in token_types

    def at_property(self) -> bool:
        """True when the cursor sits on ``name :``."""
        return self.current_token().type in NAME_TOKENS and self.peek_token().type == TokenType.COLON


class Parser(BaseParser):
    """Parser producing a ``ProjectAST`` and a raw source map."""

    def __init__(
        self,
        tokens: list[Token],
        file: Path,
        source: str | None = None,
        binding_marker: str = DEFAULT_BINDING_MARKER,
    ):
        super().__init__(tokens, file, source)
        self.binding_marker = binding_marker
        self.sourcemap = SourceMapBuilder(str(file))
        self.depth = 0

    # -- values and property lists -------------------------------------------

    def parse_value(self) -> tuple[Value, Token]:
        token = self.current_token()
        if token.type == TokenType.STRING:
            self.advance()
            return token.value, token
        if token.type == TokenType.NUMBER:
            self.advance()
            number: int | float = float(token.value) if "." in token.value else int(token.value)
            return number, token
        if token.type in (TokenType.PERCENT, TokenType.HEX_COLOR):
            self.advance()
            return token.value, token
        if token.type in NAME_TOKENS:
            self.advance()
            word = token.value
            if word == "true":
                return True, token
            if word == "false":
                return False, token
            if self.binding_marker and word.startswith(self.binding_marker) and len(word) > len(
                self.binding_marker
            ):
                return Binding(name=word[len(self.binding_marker) :], raw=word), token
            return word, token
        raise self.error(f"Expected a value, got {self.describe(token)}")

    def parse_property(self, node_id: str, target: dict[str, Value]) -> None:
        name_token = self.expect_name("property name")
        self.expect(TokenType.COLON)
        value, value_token = self.parse_value()
        target[name_token.value] = value
        recorded = value.raw if isinstance(value, Binding) else value
        self.sourcemap.add_property(
            node_id, name_token.value, recorded, token_range(name_token), token_range(value_token)
        )

    def parse_params(self, node_id: str) -> dict[str, Value]:
        """``( key: value, ... )`` (optional)."""
        params: dict[str, Value] = {}
        if not self.match(TokenType.LPAREN):
            return params
        self.advance()
        while not self.match(TokenType.RPAREN):
            self.parse_property(node_id, params)
            if self.match(TokenType.COMMA):
                self.advance()
            elif not self.match(TokenType.RPAREN):
                raise self.error(f"Expected ',' or ')', got {self.describe(self.current_token())}")
        self.advance()
        return params

    def parse_inline_props(self, node_id: str) -> dict[str, Value]:
        """Space- or comma-separated ``key: value`` pairs with no delimiters."""
        props: dict[str, Value] = {}
        while self.at_property():
            self.parse_property(node_id, props)
            if self.match(TokenType.COMMA):
                self.advance()
        return props

    def parse_table_block(self, keyword: TokenType, entry_type: EntryType) -> dict[str, Value]:
        """``style { ... }``, ``colors { ... }`` and ``mocks { ... }``."""
        kw = self.expect(keyword)
        node_id = self.sourcemap.unique_id(entry_type.value)
        self.sourcemap.open(node_id, entry_type, start_of(kw), keyword_range=token_range(kw))
        self.expect(TokenType.LBRACE)
        table: dict[str, Value] = {}
        while not self.match(TokenType.RBRACE):
            if not self.at_property():
                raise self.error(
                    f"Expected 'key: value' in {kw.value} block, got "
                    f"{self.describe(self.current_token())}"
                )
            self.parse_property(node_id, table)
            if self.match(TokenType.COMMA):
                self.advance()
        close = self.advance()
        self.sourcemap.close(node_id, end_of(close))
        return table

    # -- nodes --------------------------------------------------------------

    def parse_block_children(self, node_id: str, allow_cells: bool = True) -> tuple[list[Child], Token]:
        """``{ child* }``; returns the children and the closing brace."""
        open_brace = self.expect(TokenType.LBRACE)
        if self.depth >= MAX_NESTING:
            raise self.error(f"Blocks are nested more than {MAX_NESTING} levels deep", open_brace)
        self.depth += 1
        children: list[Child] = []
        while not self.match(TokenType.RBRACE):
            if self.match(TokenType.EOF):
                raise self.error("Unclosed block: expected '}'", open_brace)
            children.append(self.parse_child(allow_cells))
        self.depth -= 1
        close = self.advance()
        self.sourcemap.set_body_range(
            node_id, SourceRange(start=start_of(open_brace), end=end_of(close))
        )
        return children, close

    def parse_child(self, allow_cells: bool = True) -> Child:
        if self.match(TokenType.LAYOUT):
            return self.parse_layout()
        if self.match(TokenType.COMPONENT):
            return self.parse_component()
        if self.match(TokenType.CELL) and allow_cells:
            return self.parse_cell()
        expected = "'layout', 'component' or 'cell'" if allow_cells else "'layout' or 'component'"
        raise self.error(f"Expected {expected}, got {self.describe(self.current_token())}")

    def parse_layout(self) -> LayoutBlock:
        kw = self.expect(TokenType.LAYOUT)
        type_token = self.expect_name("layout type")
        node_id = self.sourcemap.next_id("layout", type_token.value)
        self.sourcemap.open(
            node_id,
            EntryType.LAYOUT,
            start_of(kw),
            subtype=type_token.value,
            keyword_range=token_range(kw),
            name_range=token_range(type_token),
        )
        params = self.parse_params(node_id)
        children, close = self.parse_block_children(node_id)
        self.sourcemap.close(node_id, end_of(close))
        return LayoutBlock(
            id=node_id,
            layout_type=type_token.value,
            params=params,
            children=children,
            range=SourceRange(start=start_of(kw), end=end_of(close)),
        )

    def parse_component(self) -> ComponentUse:
        kw = self.expect(TokenType.COMPONENT)
        type_token = self.expect_name("component type")
        node_id = self.sourcemap.next_id("component", type_token.value)
        self.sourcemap.open(
            node_id,
            EntryType.COMPONENT,
            start_of(kw),
            subtype=type_token.value,
            keyword_range=token_range(kw),
            name_range=token_range(type_token),
        )
        props = self.parse_inline_props(node_id)
        last = self.previous_token()
        self.sourcemap.close(node_id, end_of(last))
        return ComponentUse(
            id=node_id,
            component_type=type_token.value,
            props=props,
            range=SourceRange(start=start_of(kw), end=end_of(last)),
        )

    def parse_cell(self) -> CellBlock:
        kw = self.expect(TokenType.CELL)
        node_id = self.sourcemap.next_id("cell")
        self.sourcemap.open(node_id, EntryType.CELL, start_of(kw), keyword_range=token_range(kw))
        props = self.parse_inline_props(node_id)
        children, close = self.parse_block_children(node_id, allow_cells=False)
        self.sourcemap.close(node_id, end_of(close))
        return CellBlock(
            id=node_id,
            props=props,
            children=children,
            range=SourceRange(start=start_of(kw), end=end_of(close)),
        )

    def parse_root(self) -> LayoutBlock | ComponentUse:
        if self.match(TokenType.LAYOUT):
            return self.parse_layout()
        if self.match(TokenType.COMPONENT):
            return self.parse_component()
        raise self.error(f"Expected 'layout' or 'component', got {self.describe(self.current_token())}")

    def parse_define(self) -> Definition:
        kw = self.expect(TokenType.DEFINE)
        kind_token = self.expect_name("'Component' or 'Layout'")
        if kind_token.value == "Component":
            kind = DefinitionKind.COMPONENT
        elif kind_token.value == "Layout":
            kind = DefinitionKind.LAYOUT
        else:
            raise self.error(f"Expected 'Component' or 'Layout', got {kind_token.value!r}", kind_token)

        name_token = self.expect(TokenType.STRING, "definition name string")
        if SCOPE_SEPARATOR in name_token.value:
            raise self.error(
                f"Definition name {name_token.value!r} must not contain {SCOPE_SEPARATOR!r}", name_token
            )
        base = f"define-{name_token.value}" if kind == DefinitionKind.COMPONENT else (
            f"define-layout-{name_token.value}"
        )
        node_id = self.sourcemap.unique_id(base)
        self.sourcemap.open(
            node_id,
            EntryType.DEFINE,
            start_of(kw),
            subtype=kind.value,
            name=name_token.value,
            keyword_range=token_range(kw),
            name_range=token_range(name_token),
        )
        open_brace = self.expect(TokenType.LBRACE)
        if kind == DefinitionKind.LAYOUT:
            if not self.match(TokenType.LAYOUT):
                raise self.error(
                    f"Expected 'layout' as the body of layout definition {name_token.value!r}"
                )
            body: LayoutBlock | ComponentUse = self.parse_layout()
        else:
            body = self.parse_root()
        close = self.expect(TokenType.RBRACE, "'}' closing the definition (a definition has one body)")
        self.sourcemap.set_body_range(
            node_id, SourceRange(start=start_of(open_brace), end=end_of(close))
        )
        self.sourcemap.close(node_id, end_of(close))
        return Definition(
            id=node_id,
            kind=kind,
            name=name_token.value,
            body=body,
            range=SourceRange(start=start_of(kw), end=end_of(close)),
            name_range=token_range(name_token),
        )

    def parse_screen(self) -> ScreenBlock:
        kw = self.expect(TokenType.SCREEN)
        name_token = self.current_token()
        if name_token.type == TokenType.STRING:
            self.advance()
        else:
            name_token = self.expect_name("screen name")
        node_id = self.sourcemap.next_id("screen")
        self.sourcemap.open(
            node_id,
            EntryType.SCREEN,
            start_of(kw),
            name=name_token.value,
            keyword_range=token_range(kw),
            name_range=token_range(name_token),
        )
        params = self.parse_params(node_id)
        open_brace = self.expect(TokenType.LBRACE)
        root = None
        if not self.match(TokenType.RBRACE):
            root = self.parse_root()
        if not self.match(TokenType.RBRACE):
            raise self.error(
                f"Screen {name_token.value!r} must have exactly one root layout, got another "
                f"{self.describe(self.current_token())}"
            )
        close = self.advance()
        self.sourcemap.set_body_range(
            node_id, SourceRange(start=start_of(open_brace), end=end_of(close))
        )
        self.sourcemap.close(node_id, end_of(close))
        return ScreenBlock(
            id=node_id,
            name=name_token.value,
            params=params,
            root=root,
            range=SourceRange(start=start_of(kw), end=end_of(close)),
            name_range=token_range(name_token),
        )

    def parse(self) -> ProjectAST:
        """
        Parse a complete compilation unit.

        Raises:
            ParseError: On the first syntax error
        """
        kw = self.expect(TokenType.PROJECT, "'project'")
        name_token = self.expect(TokenType.STRING, "project name string")
        self.sourcemap.open(
            "project",
            EntryType.PROJECT,
            start_of(kw),
            name=name_token.value,
            keyword_range=token_range(kw),
            name_range=token_range(name_token),
        )
        open_brace = self.expect(TokenType.LBRACE)
        project = ProjectAST(name=name_token.value, range=token_range(kw))

        while not self.match(TokenType.RBRACE):
            token = self.current_token()
            if token.type == TokenType.DEFINE:
                project.definitions.append(self.parse_define())
            elif token.type == TokenType.SCREEN:
                project.screens.append(self.parse_screen())
            elif token.type == TokenType.STYLE:
                project.style.update(self.parse_table_block(TokenType.STYLE, EntryType.STYLE))
            elif token.type == TokenType.COLORS:
                project.colors.update(self.parse_table_block(TokenType.COLORS, EntryType.COLORS))
            elif token.type == TokenType.MOCKS:
                project.mocks.update(self.parse_table_block(TokenType.MOCKS, EntryType.MOCKS))
            elif token.type == TokenType.EOF:
                raise self.error("Unclosed project block: expected '}'", open_brace)
            else:
                raise self.error(
                    "Expected 'screen', 'define', 'style', 'colors' or 'mocks', got "
                    f"{self.describe(token)}"
                )

        close = self.advance()
        self.expect(TokenType.EOF, "end of input after project block")
        self.sourcemap.set_body_range(
            "project", SourceRange(start=start_of(open_brace), end=end_of(close))
        )
        self.sourcemap.close("project", end_of(close))
        project.range = SourceRange(start=start_of(kw), end=end_of(close))
        self.sourcemap.mark_user_defined({d.name for d in project.definitions})
        logger.debug(
            "Parsed project %r: %d screens, %d definitions",
            project.name,
            len(project.screens),
            len(project.definitions),
        )
        return project


@dataclass
class ParseResult:
    """Outcome of parsing one source text."""

    ast: ProjectAST | None
    sourcemap: SourceMapBuilder
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def entries(self) -> list[SourceMapEntry]:
        return self.sourcemap.build()


def _offset_of(source: str, line: int, column: int) -> int:
    lines = source.split("\n")
    return sum(len(text) + 1 for text in lines[: line - 1]) + column


def parse(
    source: str,
    file_path: str = "<input>",
    binding_marker: str = DEFAULT_BINDING_MARKER,
) -> ParseResult:
    """
    Parse source text, reporting a syntax error as a diagnostic.

    On failure ``ast`` is None and ``diagnostics`` holds exactly one error of
    kind ``lex`` or ``parse``.
    """
    file = Path(file_path)
    diagnostics = Diagnostics()
    try:
        tokens = Lexer(source, file).tokenize()
        parser = Parser(tokens, file, source, binding_marker)
    except LexError as e:
        return ParseResult(None, SourceMapBuilder(file_path), _syntax_diagnostic(e, source, diagnostics))

    try:
        return ParseResult(parser.parse(), parser.sourcemap, diagnostics)
    except ParseError as e:
        return ParseResult(None, parser.sourcemap, _syntax_diagnostic(e, source, diagnostics))


def _syntax_diagnostic(error: ParseError, source: str, diagnostics: Diagnostics) -> Diagnostics:
    kind = DiagnosticKind.LEX if isinstance(error, LexError) else DiagnosticKind.PARSE
    range_ = None
    if error.context is not None:
        line, column = error.context.line, error.context.column - 1
        position = Position(line=line, column=column, offset=_offset_of(source, line, column))
        range_ = SourceRange(start=position, end=position)
    diagnostics.error(kind, f"{kind.value}.syntax", error.message, range=range_)
    return diagnostics
