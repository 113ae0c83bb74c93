"""
Token vocabulary for the Carrion language.

Token types are plain strings. The lexer classifies identifiers against
`keywords` and single/double character operators against `token_hashmap`;
the parser keys its precedence table and prefix/infix rules on the same
constants.

Exports:
    - Token type constants (IDENT, INT, ASSIGN, ...)
    - keywords: reserved word -> token type
    - token_hashmap: operator spelling -> token type
    - TOKEN_TYPES: the closed set of every token type
"""

ILLEGAL = "ILLEGAL"
EOF = "EOF"

IDENT = "IDENT"
INT = "INT"
FLOAT = "FLOAT"
STRING = "STRING"

ASSIGN = "ASSIGN"
COLON = "COLON"
COMMA = "COMMA"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
ARROW = "ARROW"

PLUS = "PLUS"
MINUS = "MINUS"
ASTERISK = "ASTERISK"
SLASH = "SLASH"

LT = "LT"
GT = "GT"
EQ = "EQ"
NOT_EQ = "NOT_EQ"

DOT = "DOT"
BANG = "BANG"

NEWLINE = "NEWLINE"
INDENT = "INDENT"
DEDENT = "DEDENT"

# Keywords
SPELLBOOK = "SPELLBOOK"
SPELL = "SPELL"
BEGIN = "BEGIN"
SHARED = "SHARED"
FOR = "FOR"
IN = "IN"
RETURN = "RETURN"

# Reserved by the extended grammar; no parse rules exist for them.
IF = "IF"
ELIF = "ELIF"
ELSE = "ELSE"
RANGE = "RANGE"
WHILE = "WHILE"

keywords: dict[str, str] = {
    "spellbook": SPELLBOOK,
    "spell": SPELL,
    "begin": BEGIN,
    "shared": SHARED,
    "for": FOR,
    "in": IN,
    "return": RETURN,
    "if": IF,
    "elif": ELIF,
    "else": ELSE,
    "range": RANGE,
    "while": WHILE,
}

token_hashmap: dict[str, str] = {
    "=": ASSIGN,
    ":": COLON,
    ",": COMMA,
    "(": LPAREN,
    ")": RPAREN,
    "->": ARROW,
    "+": PLUS,
    "-": MINUS,
    "*": ASTERISK,
    "/": SLASH,
    "<": LT,
    ">": GT,
    "==": EQ,
    "!=": NOT_EQ,
    ".": DOT,
    "!": BANG,
}

TOKEN_TYPES: frozenset[str] = frozenset(
    {ILLEGAL, EOF, IDENT, INT, FLOAT, STRING, NEWLINE, INDENT, DEDENT}
    | set(token_hashmap.values())
    | set(keywords.values())
)

__all__ = [
    "ARROW",
    "ASSIGN",
    "ASTERISK",
    "BANG",
    "BEGIN",
    "COLON",
    "COMMA",
    "DEDENT",
    "DOT",
    "ELIF",
    "ELSE",
    "EOF",
    "EQ",
    "FLOAT",
    "FOR",
    "GT",
    "IDENT",
    "IF",
    "ILLEGAL",
    "IN",
    "INDENT",
    "INT",
    "LPAREN",
    "LT",
    "MINUS",
    "NEWLINE",
    "NOT_EQ",
    "PLUS",
    "RANGE",
    "RETURN",
    "RPAREN",
    "SHARED",
    "SLASH",
    "SPELL",
    "SPELLBOOK",
    "STRING",
    "TOKEN_TYPES",
    "WHILE",
    "keywords",
    "token_hashmap",
]
