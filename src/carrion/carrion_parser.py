"""
Carrion Language Parser

Parses a Carrion token stream into an abstract syntax tree.

Statements are parsed by recursive descent, dispatched on the current token.
Expressions are parsed by precedence climbing: a prefix rule produces the left
operand, then infix rules fold in operators for as long as the next token binds
tighter than the precedence the current call was entered with.

Binding strength, weakest first:

    LOWEST < EQUALS (== !=) < LESSGREATER (< >) < SUM (+ -)
           < PRODUCT (* /) < PREFIX (-x !x) < CALL (f(x)) < MEMBER (a.b)

Blocks
------
`spellbook` and `spell` bodies open with COLON NEWLINE INDENT and run until the
matching DEDENT (or EOF). There is no grouping-parenthesis rule, so
`(1 + 2) * 3` is a parse error.

Parser Behavior
---------------
The parser never raises. Every problem is recorded as a human-readable string
in `Parser.errors` (prefixed with the offending line and column) and parsing
carries on with the next token. A statement nested deeper than Python's
recursion limit allows is recorded as "expression nested too deeply" and the
rest of its line is skipped. A statement whose required pieces failed to
parse is dropped from the tree, so a non-empty `errors` list means the returned
Program may be incomplete and should not be evaluated.

Entry Points
------------
- `Parser(tokens).parse_program()`: Parse a full program.
- `parse(source)`: Lex and parse a source string, returning (program, errors).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from carrion.carrion_ast import (
    ASTNode,
    BlockStatement,
    CallExpression,
    ExpressionStatement,
    Identifier,
    InfixExpression,
    IntegerLiteral,
    MemberExpression,
    PrefixExpression,
    Program,
    ReturnStatement,
    SpellbookDeclaration,
    SpellDeclaration,
    StringLiteral,
    VariableDeclaration,
)
from carrion.carrion_constants import (
    ARROW,
    ASSIGN,
    ASTERISK,
    BANG,
    COLON,
    COMMA,
    DEDENT,
    DOT,
    EOF,
    EQ,
    GT,
    IDENT,
    INDENT,
    INT,
    LPAREN,
    LT,
    MINUS,
    NEWLINE,
    NOT_EQ,
    PLUS,
    RETURN,
    RPAREN,
    SLASH,
    SPELL,
    SPELLBOOK,
    STRING,
    token_hashmap,
)
from carrion.carrion_lexer import CharacterStream, Lexer, Token

logger = logging.getLogger(__name__)

LOWEST = 1
EQUALS = 2
LESSGREATER = 3
SUM = 4
PRODUCT = 5
PREFIX = 6
CALL = 7
MEMBER = 8

precedences: dict[str, int] = {
    EQ: EQUALS,
    NOT_EQ: EQUALS,
    LT: LESSGREATER,
    GT: LESSGREATER,
    PLUS: SUM,
    MINUS: SUM,
    SLASH: PRODUCT,
    ASTERISK: PRODUCT,
    LPAREN: CALL,
    DOT: MEMBER,
}

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_spellings = {type_: text for text, type_ in token_hashmap.items()}

PrefixParseFn = Callable[[], ASTNode | None]
InfixParseFn = Callable[[ASTNode], ASTNode | None]


def describe(token_type: str) -> str:
    """Human-facing name of a token type: the operator spelling where there is one."""
    return _spellings.get(token_type, token_type)


class Parser:
    """
    Carrion Parser Class

    Consumes tokens one at a time with a single token of lookahead and builds
    a `Program`.

    Attributes
    ----------
    cur_token : Token
        The token under examination.
    peek_token : Token
        The token after `cur_token`.
    errors : list[str]
        Recorded parse (and lexer indentation) errors, in source order.
    prefix_parse_fns : dict[str, PrefixParseFn]
        Rules for tokens that can start an expression.
    infix_parse_fns : dict[str, InfixParseFn]
        Rules for tokens that can continue an expression.
    """

    def __init__(self, tokens: Lexer | Iterable[Token]) -> None:
        self.lexer = tokens if isinstance(tokens, Lexer) else None
        self._tokens = iter(tokens)
        self._lexer_errors_seen = 0
        self.errors: list[str] = []

        self.prefix_parse_fns: dict[str, PrefixParseFn] = {
            IDENT: self.parse_identifier,
            INT: self.parse_integer_literal,
            STRING: self.parse_string_literal,
            MINUS: self.parse_prefix_expression,
            BANG: self.parse_prefix_expression,
        }
        self.infix_parse_fns: dict[str, InfixParseFn] = {
            PLUS: self.parse_infix_expression,
            MINUS: self.parse_infix_expression,
            SLASH: self.parse_infix_expression,
            ASTERISK: self.parse_infix_expression,
            EQ: self.parse_infix_expression,
            NOT_EQ: self.parse_infix_expression,
            LT: self.parse_infix_expression,
            GT: self.parse_infix_expression,
            LPAREN: self.parse_call_expression,
            DOT: self.parse_member_expression,
        }

        self.cur_token = Token(EOF, "")
        self.peek_token = Token(EOF, "")
        self.next_token()
        self.next_token()

    # Token cursor

    def _pull(self) -> Token:
        # A Lexer is driven directly so it keeps producing tokens after an
        # exception escapes from inside it.
        if self.lexer is not None:
            return self.lexer.next_token()
        try:
            return next(self._tokens)
        except StopIteration:
            return Token(EOF, "", self.peek_token.line, self.peek_token.col)

    def next_token(self) -> None:
        """Shifts the lookahead window forward by one token.

        Any indentation errors the lexer recorded while producing the new
        lookahead token are copied into `errors`.
        """
        self.cur_token = self.peek_token
        self.peek_token = self._pull()
        if self.lexer is not None and len(self.lexer.errors) > self._lexer_errors_seen:
            self.errors.extend(self.lexer.errors[self._lexer_errors_seen :])
            self._lexer_errors_seen = len(self.lexer.errors)

    def expect_peek(self, token_type: str) -> bool:
        """Advances if the lookahead token has the expected type.

        Args:
            token_type (str): The token type required next.

        Returns:
            bool: True if the parser advanced, False if an error was recorded.
        """
        if self.peek_token.type == token_type:
            self.next_token()
            return True
        self.peek_error(token_type)
        return False

    def peek_precedence(self) -> int:
        """Returns the binding strength of the lookahead token (LOWEST if none)."""
        return precedences.get(self.peek_token.type, LOWEST)

    def cur_precedence(self) -> int:
        """Returns the binding strength of the current token (LOWEST if none)."""
        return precedences.get(self.cur_token.type, LOWEST)

    # Error reporting

    def error(self, message: str, tok: Token | None = None) -> None:
        """Records a parse error positioned at a token.

        Args:
            message (str): Description of the problem.
            tok (Token | None): Token to report the position of. Defaults to
                `cur_token`.
        """
        tok = tok or self.cur_token
        full = f"line {tok.line}, col {tok.col}: {message}"
        logger.debug("parse error: %s", full)
        self.errors.append(full)

    def peek_error(self, token_type: str) -> None:
        """Records that the lookahead token was not of type `token_type`."""
        self.error(
            f"expected next token to be {describe(token_type)}, "
            f"got {describe(self.peek_token.type)} instead",
            self.peek_token,
        )

    # Statements

    def parse_program(self) -> Program:
        """Parse tokens until EOF and return the Program."""
        program = Program(line=self.cur_token.line, col=self.cur_token.col)
        while self.cur_token.type != EOF:
            start = self.cur_token
            try:
                stmt = self.parse_statement()
            except RecursionError:
                self.error("expression nested too deeply", start)
                self.skip_to_line_end()
                stmt = None
            if stmt is not None:
                program.statements.append(stmt)
            self.next_token()
        return program

    def skip_to_line_end(self) -> None:
        """Advance to the NEWLINE (or EOF) that ends the current line."""
        while self.cur_token.type not in (NEWLINE, EOF):
            self.next_token()

    def parse_statement(self) -> ASTNode | None:
        tok = self.cur_token
        if tok.type == IDENT and self.peek_token.type in (ASSIGN, COLON):
            return self.parse_variable_declaration()
        if tok.type == SPELLBOOK:
            return self.parse_spellbook_declaration()
        if tok.type == SPELL:
            return self.parse_spell_declaration()
        if tok.type == RETURN:
            return self.parse_return_statement()
        if tok.type == NEWLINE:
            return None
        return self.parse_expression_statement()

    def parse_variable_declaration(self) -> VariableDeclaration | None:
        """Parse `name [: Type] = value`."""
        tok = self.cur_token
        name = Identifier(tok.value, tok.line, tok.col)
        self.next_token()

        type_hint = None
        if self.cur_token.type == COLON:
            self.next_token()
            if self.cur_token.type != IDENT:
                self.error("expected type identifier after ':'")
                return None
            type_hint = Identifier(self.cur_token.value, self.cur_token.line, self.cur_token.col)
            self.next_token()

        if self.cur_token.type != ASSIGN:
            self.error("expected '=' after variable declaration")
            return None
        self.next_token()

        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        return VariableDeclaration(name, value, type_hint, line=tok.line, col=tok.col)

    def open_block(self) -> bool:
        """Consume the COLON NEWLINE INDENT that opens a block body."""
        if not (
            self.expect_peek(COLON)
            and self.expect_peek(NEWLINE)
            and self.expect_peek(INDENT)
        ):
            return False
        self.next_token()
        return True

    def parse_block_statements(self) -> list[ASTNode]:
        """Parses statements up to the DEDENT (or EOF) that closes the block."""
        statements: list[ASTNode] = []
        while self.cur_token.type not in (DEDENT, EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                statements.append(stmt)
            self.next_token()
        return statements

    def parse_spellbook_declaration(self) -> SpellbookDeclaration | None:
        """Parse `spellbook Name:` followed by an indented body."""
        tok = self.cur_token
        self.next_token()
        if self.cur_token.type != IDENT:
            self.error("expected identifier after 'spellbook'")
            return None
        name = Identifier(self.cur_token.value, self.cur_token.line, self.cur_token.col)

        if not self.open_block():
            return None
        body = self.parse_block_statements()
        return SpellbookDeclaration(name, body, line=tok.line, col=tok.col)

    def parse_spell_declaration(self) -> SpellDeclaration | None:
        """Parse `spell name(params) [-> Type]:` followed by an indented body."""
        tok = self.cur_token
        self.next_token()
        if self.cur_token.type != IDENT:
            self.error("expected spell name after 'spell'")
            return None
        name = Identifier(self.cur_token.value, self.cur_token.line, self.cur_token.col)

        self.next_token()
        if self.cur_token.type != LPAREN:
            self.error("expected '(' after spell name")
            return None

        parameters = self.parse_function_parameters()
        if parameters is None:
            return None

        return_type = None
        if self.peek_token.type == ARROW:
            self.next_token()
            self.next_token()
            if self.cur_token.type != IDENT:
                self.error("expected return type identifier after '->'")
                return None
            return_type = Identifier(self.cur_token.value, self.cur_token.line, self.cur_token.col)

        if not self.open_block():
            return None
        body_tok = self.cur_token
        body = BlockStatement(self.parse_block_statements(), line=body_tok.line, col=body_tok.col)
        return SpellDeclaration(name, parameters, body, return_type, line=tok.line, col=tok.col)

    def parse_function_parameters(self) -> list[Identifier] | None:
        """Parses `name, name, ...)` after the `(` of a spell signature."""
        identifiers: list[Identifier] = []

        if self.peek_token.type == RPAREN:
            self.next_token()
            return identifiers

        self.next_token()
        while True:
            if self.cur_token.type != IDENT:
                self.error(f"expected parameter name, got {describe(self.cur_token.type)}")
                return None
            identifiers.append(
                Identifier(self.cur_token.value, self.cur_token.line, self.cur_token.col)
            )
            if self.peek_token.type != COMMA:
                break
            self.next_token()
            self.next_token()

        if not self.expect_peek(RPAREN):
            return None
        return identifiers

    def parse_return_statement(self) -> ReturnStatement | None:
        """Parse `return [value]`."""
        tok = self.cur_token
        if self.peek_token.type in (NEWLINE, DEDENT, EOF):
            return ReturnStatement(None, line=tok.line, col=tok.col)

        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        return ReturnStatement(value, line=tok.line, col=tok.col)

    def parse_expression_statement(self) -> ExpressionStatement | None:
        tok = self.cur_token
        expression = self.parse_expression(LOWEST)
        if expression is None:
            return None
        return ExpressionStatement(expression, line=tok.line, col=tok.col)

    # Expressions

    def parse_expression(self, precedence: int) -> ASTNode | None:
        """Parses an expression starting at `cur_token`.

        Args:
            precedence (int): Binding strength of the operator to the left.
                Only operators that bind tighter are folded in.

        Returns:
            ASTNode | None: The expression, or None if an error was recorded.
        """
        prefix = self.prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self.error(f"no prefix parse function for {describe(self.cur_token.type)} found")
            return None
        left = prefix()

        while (
            left is not None
            and self.peek_token.type != NEWLINE
            and precedence < self.peek_precedence()
        ):
            infix = self.infix_parse_fns.get(self.peek_token.type)
            if infix is None:  # pragma: no cover
                return left
            self.next_token()
            left = infix(left)

        return left

    def parse_identifier(self) -> ASTNode:
        tok = self.cur_token
        return Identifier(tok.value, tok.line, tok.col)

    def parse_integer_literal(self) -> ASTNode | None:
        tok = self.cur_token
        try:
            value = int(tok.value)
        except ValueError:
            value = None
        if value is None or not INT64_MIN <= value <= INT64_MAX:
            self.error(f"could not parse {tok.value} as integer")
            return None
        return IntegerLiteral(value, tok.line, tok.col)

    def parse_string_literal(self) -> ASTNode:
        tok = self.cur_token
        return StringLiteral(tok.value, tok.line, tok.col)

    def parse_prefix_expression(self) -> ASTNode | None:
        tok = self.cur_token
        self.next_token()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return PrefixExpression(tok.value, right, line=tok.line, col=tok.col)

    def parse_infix_expression(self, left: ASTNode) -> ASTNode | None:
        tok = self.cur_token
        precedence = self.cur_precedence()
        self.next_token()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(left, tok.value, right, line=tok.line, col=tok.col)

    def parse_call_expression(self, function: ASTNode) -> ASTNode | None:
        tok = self.cur_token
        arguments = self.parse_call_arguments()
        if arguments is None:
            return None
        return CallExpression(function, arguments, line=tok.line, col=tok.col)

    def parse_call_arguments(self) -> list[ASTNode] | None:
        """Parses `arg, arg, ...)` after an opening parenthesis.

        Returns:
            list[ASTNode] | None: The arguments, or None if an error was recorded.
        """
        args: list[ASTNode] = []

        if self.peek_token.type == RPAREN:
            self.next_token()
            return args

        self.next_token()
        arg = self.parse_expression(LOWEST)
        if arg is None:
            return None
        args.append(arg)

        while self.peek_token.type == COMMA:
            self.next_token()
            self.next_token()
            arg = self.parse_expression(LOWEST)
            if arg is None:
                return None
            args.append(arg)

        if not self.expect_peek(RPAREN):
            return None
        return args

    def parse_member_expression(self, obj: ASTNode) -> ASTNode | None:
        tok = self.cur_token
        if self.peek_token.type != IDENT:
            self.error(
                f"expected property name after '.', got {describe(self.peek_token.type)}",
                self.peek_token,
            )
            return None
        self.next_token()
        prop = Identifier(self.cur_token.value, self.cur_token.line, self.cur_token.col)
        return MemberExpression(obj, prop, line=tok.line, col=tok.col)


def parse(source: str) -> tuple[Program, list[str]]:
    """Lex and parse `source`, returning the program and the recorded errors."""
    parser = Parser(Lexer(CharacterStream(source)))
    program = parser.parse_program()
    return program, parser.errors


__all__ = ["Parser", "describe", "parse", "precedences"]
