"""
Lexer/Tokenizer for WireDSL.

Converts raw source text into a stream of tokens with source location
tracking. Whitespace and comments (``// line`` and ``/* block */``) are
discarded; braces delimit blocks, so no layout-sensitive tokens are emitted.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import LexError, make_parse_error

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Token types in WireDSL."""

    # Literals
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    PERCENT = "PERCENT"
    HEX_COLOR = "HEX_COLOR"

    # Keywords
    PROJECT = "project"
    SCREEN = "screen"
    LAYOUT = "layout"
    COMPONENT = "component"
    CELL = "cell"
    DEFINE = "define"
    STYLE = "style"
    COLORS = "colors"
    MOCKS = "mocks"

    # Punctuation
    COLON = ":"
    COMMA = ","
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"

    EOF = "EOF"


KEYWORDS = {
    "project",
    "screen",
    "layout",
    "component",
    "cell",
    "define",
    "style",
    "colors",
    "mocks",
}

PUNCTUATION = {
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
}

HEX_DIGITS = set("0123456789abcdefABCDEF")
DIGITS = set("0123456789")


@dataclass
class Token:
    """
    A single token with its source span.

    Attributes:
        type: Type of token
        value: String value of the token (unescaped for strings)
        line: Line number (1-indexed)
        column: Column number (0-indexed)
        offset: Absolute character offset of the first character
        end_line, end_column, end_offset: Position just past the last character
    """

    type: TokenType
    value: str
    line: int
    column: int
    offset: int
    end_line: int
    end_column: int
    end_offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.value}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    """Lexer for WireDSL source text."""

    def __init__(self, text: str, file: Path):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
            file: Source file path (for error reporting)
        """
        self.text = text
        self.file = file
        self.pos = 0
        self.line = 1
        self.column = 0
        self.tokens: list[Token] = []

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 0
            else:
                self.column += 1
            self.pos += 1

    def error(self, message: str, line: int, column: int) -> LexError:
        return make_parse_error(  # type: ignore[return-value]
            message, self.file, line, column, source=self.text, error_class=LexError
        )

    def skip_trivia(self) -> None:
        """Skip whitespace, line comments and block comments."""
        while True:
            ch = self.current_char()
            if ch is not None and ch in " \t\r\n":
                self.advance()
            elif ch == "/" and self.peek_char() == "/":
                while self.current_char() not in (None, "\n"):
                    self.advance()
            elif ch == "/" and self.peek_char() == "*":
                start_line, start_col = self.line, self.column
                self.advance()
                self.advance()
                while not (self.current_char() == "*" and self.peek_char() == "/"):
                    if self.current_char() is None:
                        raise self.error("Unterminated block comment", start_line, start_col)
                    self.advance()
                self.advance()
                self.advance()
            else:
                return

    def read_string(self) -> str:
        """Read a double-quoted string."""
        start_line = self.line
        start_col = self.column
        self.advance()  # opening quote

        chars = []
        while True:
            current = self.current_char()
            if current is None or current == '"':
                break

            if current == "\\":
                self.advance()
                escape_char = self.current_char()
                if escape_char == "n":
                    chars.append("\n")
                elif escape_char == "t":
                    chars.append("\t")
                elif escape_char is not None:
                    chars.append(escape_char)
                self.advance()
            else:
                chars.append(current)
                self.advance()

        if self.current_char() != '"':
            raise self.error("Unterminated string literal", start_line, start_col)

        self.advance()  # closing quote
        return "".join(chars)

    def read_number(self) -> tuple[str, bool]:
        """
        Read an integer or decimal, optionally negative.

        Returns:
            Tuple of (value, is_percent). ``50%`` yields ("50%", True).
        """
        chars = []
        if self.current_char() == "-":
            chars.append("-")
            self.advance()

        seen_dot = False
        current = self.current_char()
        while current is not None and (current in DIGITS or (current == "." and not seen_dot)):
            if current == ".":
                next_char = self.peek_char()
                if next_char not in DIGITS:
                    break
                seen_dot = True
            chars.append(current)
            self.advance()
            current = self.current_char()

        if current == "%":
            self.advance()
            return "".join(chars) + "%", True
        return "".join(chars), False

    def read_identifier(self) -> str:
        """Read an identifier or keyword."""
        chars = []
        current = self.current_char()
        while current is not None and (current.isalnum() or current == "_"):
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def read_hex_color(self, line: int, column: int) -> str:
        """Read ``#rgb`` or ``#rrggbb``."""
        chars = ["#"]
        self.advance()
        while self.current_char() is not None and self.current_char().isalnum():  # type: ignore[union-attr]
            chars.append(self.current_char())  # type: ignore[arg-type]
            self.advance()
        digits = chars[1:]
        if len(digits) not in (3, 6) or not all(c in HEX_DIGITS for c in digits):
            raise self.error(f"Invalid hex color: {''.join(chars)!r}", line, column)
        return "".join(chars)

    def emit(self, token_type: TokenType, value: str, line: int, column: int, offset: int) -> None:
        self.tokens.append(
            Token(token_type, value, line, column, offset, self.line, self.column, self.pos)
        )

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source text.

        Returns:
            List of tokens terminated by EOF

        Raises:
            LexError: If an invalid character or unterminated literal is found
        """
        while True:
            self.skip_trivia()
            ch = self.current_char()
            if ch is None:
                break

            line, column, offset = self.line, self.column, self.pos

            if ch == '"':
                value = self.read_string()
                self.emit(TokenType.STRING, value, line, column, offset)

            elif ch in DIGITS or (ch == "-" and self.peek_char() in DIGITS):
                value, is_percent = self.read_number()
                token_type = TokenType.PERCENT if is_percent else TokenType.NUMBER
                self.emit(token_type, value, line, column, offset)

            elif ch.isalpha() or ch == "_":
                value = self.read_identifier()
                token_type = TokenType(value) if value in KEYWORDS else TokenType.IDENTIFIER
                self.emit(token_type, value, line, column, offset)

            elif ch == "#":
                value = self.read_hex_color(line, column)
                self.emit(TokenType.HEX_COLOR, value, line, column, offset)

            elif ch in PUNCTUATION:
                self.advance()
                self.emit(PUNCTUATION[ch], ch, line, column, offset)

            else:
                raise self.error(f"Unexpected character: {ch!r}", line, column)

        self.emit(TokenType.EOF, "", self.line, self.column, self.pos)
        logger.debug("Tokenized %s: %d tokens", self.file, len(self.tokens))
        return self.tokens


def tokenize(text: str, file: Path | str = "<input>") -> list[Token]:
    """
    Convenience function to tokenize WireDSL text.

    Args:
        text: Source text
        file: Source file path (for error reporting)

    Returns:
        List of tokens
    """
    return Lexer(text, Path(file)).tokenize()
