"""
Lexical analyzer for the Carrion language.

Turns raw source text into a forward-only stream of tokens. Carrion blocks are
delimited by indentation, so besides ordinary literals and operators the lexer
synthesizes INDENT / DEDENT tokens from the leading spaces of each line.

Classes:
    CharacterStream: Character reader with line/column tracking.
    Token: A single token with type, literal text and source position.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Indentation:
    - An indent stack starts as [0].
    - A line wider than the top of the stack pushes its width and yields one INDENT.
    - A narrower line pops the stack, one DEDENT per call, until the top is <= its width.
    - Blank (whitespace-only) lines never touch the stack.
    - At end of input every open level is closed with a DEDENT before EOF.
    - A dedent that lands between two open levels is recorded in `Lexer.errors`
      and the new width is pushed without an INDENT.

Quirks kept on purpose:
    - A second '.' ends a number: "1.2.3" lexes as FLOAT(1.2) DOT INT(3).
    - An unterminated string runs to end of input without an error.

Example:
    >>> lexer = Lexer(CharacterStream("x = 5"))
    >>> lexer.next_token()
    Token(IDENT, x)

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
"""

import logging
from collections.abc import Iterator
from typing import Any

from carrion.carrion_constants import (
    DEDENT,
    EOF,
    FLOAT,
    IDENT,
    ILLEGAL,
    INDENT,
    INT,
    NEWLINE,
    STRING,
    keywords,
    token_hashmap,
)

logger = logging.getLogger(__name__)

INLINE_WHITESPACE = " \t\r"


class CharacterStream:
    """
    Reads characters from a source string, tracking line and column.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """Consumes and returns the next character.

        Raises:
            EOFError: If the stream is already exhausted.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"read past end of source at position={self.position}, line={self.line}"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or "" past either end."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        """Returns True once every character of the source has been consumed."""
        return self.position >= len(self.source)


class Token:
    """A lexical token.

    Attributes:
        type (str): Token type from `carrion_constants` (e.g. 'IDENT', 'INT', 'INDENT').
        value (str): The literal text of the token.
        line (int): 1-based line of the token's first character.
        col (int): 1-based column of the token's first character.
    """

    def __init__(self, type_: str, value: str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class Lexer:
    """Lexical analyzer for Carrion.

    Call `next_token()` until it returns an EOF token; further calls keep
    returning EOF. Iterating a Lexer yields the same tokens, EOF included.

    Attributes:
        stream (CharacterStream): The source being tokenized.
        indent_stack (list[int]): Open indentation widths, innermost last.
        errors (list[str]): Indentation errors, in the order they were found.
    """

    def __init__(self, stream: CharacterStream) -> None:
        """Initializes the Lexer with a given character stream.

        Args:
            stream (CharacterStream): The input character stream to lex.
        """
        self.stream = stream
        self.indent_stack: list[int] = [0]
        self.errors: list[str] = []
        self.at_line_start = True
        # Width of the line currently being dedented to, kept across calls
        # because its leading spaces are already consumed.
        self.pending_width: int | None = None

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == EOF:
                return

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead without consuming it.

        Args:
            offset (int): Distance from the current position.

        Returns:
            str: The character, or an empty string past the end of input.
        """
        return self.stream.peek(offset)

    def advance(self) -> str:
        """Consumes and returns the next character from the stream."""
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips spaces, tabs and carriage returns, but never a newline."""
        while not self.stream.end_of_file() and self.peek() in INLINE_WHITESPACE:
            self.advance()

    def rest_of_line_blank(self) -> bool:
        """Returns True if only inline whitespace remains before the next newline."""
        offset = 0
        while self.peek(offset) in INLINE_WHITESPACE and self.peek(offset) != "":
            offset += 1
        return self.peek(offset) in ("", "\n")

    def count_indent(self) -> int:
        """Consumes leading spaces.

        Returns:
            int: The number of spaces consumed, i.e. the line's indentation width.
        """
        width = 0
        while self.peek() == " ":
            self.advance()
            width += 1
        return width

    def handle_line_start(self) -> Token | None:
        """Emits the structural token owed at the start of a line, if any."""
        if self.pending_width is None:
            if self.rest_of_line_blank():
                self.at_line_start = False
                return None
            self.pending_width = self.count_indent()

        width = self.pending_width
        line, col = self.stream.line, self.stream.column

        if width > self.indent_stack[-1]:
            self.indent_stack.append(width)
            self.at_line_start = False
            self.pending_width = None
            return Token(INDENT, "", line, col)

        if width < self.indent_stack[-1]:
            self.indent_stack.pop()
            if self.indent_stack[-1] < width:
                msg = f"line {line}, col {col}: unindent does not match any outer indentation level"
                logger.warning(msg)
                self.errors.append(msg)
                self.indent_stack.append(width)
            return Token(DEDENT, "", line, col)

        self.at_line_start = False
        self.pending_width = None
        return None

    def read_identifier(self) -> str:
        """Reads a run of letters, digits and underscores."""
        ident = ""
        while not self.stream.end_of_file() and (
            self.peek().isalpha() or self.peek().isdecimal() or self.peek() == "_"
        ):
            ident += self.advance()
        return ident

    def read_number(self) -> tuple[str, str]:
        """Reads an integer or decimal literal.

        A second `.` ends the number, so `1.2.3` reads as `1.2`.

        Returns:
            tuple[str, str]: The token type (INT or FLOAT) and the literal text.
        """
        num = ""
        has_dot = False
        while not self.stream.end_of_file() and (
            self.peek().isdecimal() or self.peek() == "."
        ):
            if self.peek() == ".":
                if has_dot:
                    break
                has_dot = True
            num += self.advance()
        return (FLOAT if has_dot else INT), num

    def read_string(self) -> str:
        """Reads a double-quoted string without escape processing.

        An unterminated string runs to the end of input.

        Returns:
            str: The characters between the quotes.
        """
        self.advance()  # opening quote
        val = ""
        while not self.stream.end_of_file() and self.peek() != '"':
            val += self.advance()
        if not self.stream.end_of_file():
            self.advance()  # closing quote
        return val

    def match_operator(self) -> Token | None:
        """Matches a two-character operator, then a single-character one.

        Returns:
            Token | None: The operator token, or None if nothing matched.
        """
        line, col = self.stream.line, self.stream.column
        pair = self.peek() + self.peek(1)
        if len(pair) == 2 and pair in token_hashmap:
            self.advance()
            self.advance()
            return Token(token_hashmap[pair], pair, line, col)
        if self.peek() in token_hashmap:
            ch = self.advance()
            return Token(token_hashmap[ch], ch, line, col)
        return None

    def end_of_input(self) -> Token:
        """Returns one DEDENT per open block, then EOF on every later call."""
        line, col = self.stream.line, self.stream.column
        if len(self.indent_stack) > 1:
            self.indent_stack.pop()
            return Token(DEDENT, "", line, col)
        return Token(EOF, "", line, col)

    def next_token(self) -> Token:
        """Consumes and returns the next token."""
        if self.at_line_start:
            structural = self.handle_line_start()
            if structural is not None:
                return structural

        self.skip_whitespace()

        if self.stream.end_of_file():
            return self.end_of_input()

        ch = self.peek()
        line, col = self.stream.line, self.stream.column

        if ch == "\n":
            self.advance()
            self.at_line_start = True
            return Token(NEWLINE, "\n", line, col)

        if ch.isalpha() or ch == "_":
            ident = self.read_identifier()
            return Token(keywords.get(ident, IDENT), ident, line, col)

        if ch.isdecimal():
            type_, num = self.read_number()
            return Token(type_, num, line, col)

        if ch == '"':
            return Token(STRING, self.read_string(), line, col)

        token = self.match_operator()
        if token:
            return token

        return Token(ILLEGAL, self.advance(), line, col)


def tokenize(source: str) -> list[Token]:
    """Lexes `source` completely, returning every token up to and including EOF."""
    return list(Lexer(CharacterStream(source)))


__all__ = ["CharacterStream", "Lexer", "Token", "tokenize"]
