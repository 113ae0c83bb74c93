"""
Defines the abstract syntax tree (AST) node structure for the Carrion language.

The node set is closed: one class per statement or expression kind. Every node
records the source position of the token that started it and exposes its child
slots through `_fields`, which drives the shared `__repr__`, `__eq__` and
`to_dict()` implementations on `ASTNode`.

Statements:
    Program, ExpressionStatement, VariableDeclaration, SpellbookDeclaration,
    SpellDeclaration, ReturnStatement, BlockStatement

Expressions:
    Identifier, IntegerLiteral, StringLiteral, PrefixExpression,
    InfixExpression, CallExpression, MemberExpression

Renderings:
    str(node)         Diagnostic form. Operator expressions are fully
                      parenthesized so binding order is visible: "(1 + (2 * 3))".
    node.to_source()  Carrion source text without grouping parentheses. Any
                      tree produced by the parser re-parses from it unchanged.
    node.to_dict()    Nested plain dictionaries, suitable for JSON output.
"""

from collections.abc import Callable
from typing import Any, TypedDict

INDENT_UNIT = "    "

Render = Callable[["ASTNode"], str]

class ASTDict(TypedDict, total=False):
    """Serialized shape of an ASTNode; node-specific fields are added alongside."""

    kind: str
    line: int
    col: int


def _source(node: "ASTNode") -> str:
    return node.to_source()


def _serialize(value: Any) -> Any:
    if isinstance(value, ASTNode):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    return value


class ASTNode:
    """
    Base class of every Carrion syntax tree node.

    Attributes:
        kind (str): Snake-case node kind, also used for evaluator dispatch.
        line (int): Source line of the node's first token.
        col (int): Source column of the node's first token.
    """

    kind = "node"
    _fields: tuple[str, ...] = ()

    def __init__(self, line: int = 0, col: int = 0) -> None:
        self.line = line
        self.col = col

    def __repr__(self) -> str:
        parts = [self.kind]
        for name in self._fields:
            value = getattr(self, name)
            if value is None or value == []:
                continue
            parts.append(f"{name}={value!r}")
        return f"ASTNode({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if type(self) is not type(other):
            return False
        return (
            self.line == other.line
            and self.col == other.col
            and all(getattr(self, f) == getattr(other, f) for f in self._fields)
        )

    def to_dict(self) -> ASTDict:
        data: dict[str, Any] = {"kind": self.kind, "line": self.line, "col": self.col}
        for name in self._fields:
            data[name] = _serialize(getattr(self, name))
        return data  # type: ignore[return-value]

    def to_source(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} has no source rendering")

    def lines(self, render: Render) -> list[str]:
        """Renders the node as logical lines, one per statement.

        Block nodes indent their children line by line, so text inside a
        string literal that spans several physical lines is never re-indented.

        Args:
            render (Render): `str` for the diagnostic form, or a to_source renderer.

        Returns:
            list[str]: The rendered lines, without trailing newlines.
        """
        return [render(self)]


# Expressions


class Identifier(ASTNode):
    kind = "identifier"
    _fields = ("value",)

    def __init__(self, value: str, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.value = value

    def __str__(self) -> str:
        return self.value

    def to_source(self) -> str:
        return self.value


class IntegerLiteral(ASTNode):
    kind = "integer_literal"
    _fields = ("value",)

    def __init__(self, value: int, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.value = value

    def __str__(self) -> str:
        return str(self.value)

    def to_source(self) -> str:
        return str(self.value)


class StringLiteral(ASTNode):
    kind = "string_literal"
    _fields = ("value",)

    def __init__(self, value: str, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.value = value

    def __str__(self) -> str:
        return f'"{self.value}"'

    def to_source(self) -> str:
        return f'"{self.value}"'


class PrefixExpression(ASTNode):
    kind = "prefix_expression"
    _fields = ("operator", "right")

    def __init__(self, operator: str, right: ASTNode, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.operator = operator
        self.right = right

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"

    def to_source(self) -> str:
        return f"{self.operator}{self.right.to_source()}"


class InfixExpression(ASTNode):
    kind = "infix_expression"
    _fields = ("left", "operator", "right")

    def __init__(
        self, left: ASTNode, operator: str, right: ASTNode, line: int = 0, col: int = 0
    ) -> None:
        super().__init__(line, col)
        self.left = left
        self.operator = operator
        self.right = right

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"

    def to_source(self) -> str:
        return f"{self.left.to_source()} {self.operator} {self.right.to_source()}"


class CallExpression(ASTNode):
    kind = "call_expression"
    _fields = ("function", "arguments")

    def __init__(
        self, function: ASTNode, arguments: list[ASTNode], line: int = 0, col: int = 0
    ) -> None:
        super().__init__(line, col)
        self.function = function
        self.arguments = arguments

    def __str__(self) -> str:
        return f"{self.function}({', '.join(str(a) for a in self.arguments)})"

    def to_source(self) -> str:
        args = ", ".join(a.to_source() for a in self.arguments)
        return f"{self.function.to_source()}({args})"


class MemberExpression(ASTNode):
    kind = "member_expression"
    _fields = ("object", "property")

    def __init__(
        self, object_: ASTNode, property_: Identifier, line: int = 0, col: int = 0
    ) -> None:
        super().__init__(line, col)
        self.object = object_
        self.property = property_

    def __str__(self) -> str:
        return f"{self.object}.{self.property}"

    def to_source(self) -> str:
        return f"{self.object.to_source()}.{self.property.to_source()}"


# Statements


class ExpressionStatement(ASTNode):
    kind = "expression_statement"
    _fields = ("expression",)

    def __init__(self, expression: ASTNode, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.expression = expression

    def __str__(self) -> str:
        return str(self.expression)

    def to_source(self) -> str:
        return self.expression.to_source()


class VariableDeclaration(ASTNode):
    kind = "variable_declaration"
    _fields = ("name", "type_hint", "value")

    def __init__(
        self,
        name: Identifier,
        value: ASTNode,
        type_hint: Identifier | None = None,
        line: int = 0,
        col: int = 0,
    ) -> None:
        super().__init__(line, col)
        self.name = name
        self.type_hint = type_hint
        self.value = value

    def _target(self) -> str:
        if self.type_hint is not None:
            return f"{self.name}: {self.type_hint}"
        return str(self.name)

    def __str__(self) -> str:
        return f"{self._target()} = {self.value}"

    def to_source(self) -> str:
        return f"{self._target()} = {self.value.to_source()}"


class ReturnStatement(ASTNode):
    kind = "return_statement"
    _fields = ("value",)

    def __init__(self, value: ASTNode | None = None, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.value = value

    def __str__(self) -> str:
        return "return" if self.value is None else f"return {self.value}"

    def to_source(self) -> str:
        return "return" if self.value is None else f"return {self.value.to_source()}"


class BlockStatement(ASTNode):
    kind = "block_statement"
    _fields = ("statements",)

    def __init__(self, statements: list[ASTNode] | None = None, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.statements: list[ASTNode] = statements or []

    def lines(self, render: Render) -> list[str]:
        return [line for s in self.statements for line in s.lines(render)]

    def __str__(self) -> str:
        return "\n".join(self.lines(str))

    def to_source(self) -> str:
        return "\n".join(self.lines(_source))


class SpellDeclaration(ASTNode):
    kind = "spell_declaration"
    _fields = ("name", "parameters", "return_type", "body")

    def __init__(
        self,
        name: Identifier,
        parameters: list[Identifier],
        body: BlockStatement,
        return_type: Identifier | None = None,
        line: int = 0,
        col: int = 0,
    ) -> None:
        super().__init__(line, col)
        self.name = name
        self.parameters = parameters
        self.return_type = return_type
        self.body = body

    def signature(self) -> str:
        params = ", ".join(p.value for p in self.parameters)
        arrow = f" -> {self.return_type}" if self.return_type is not None else ""
        return f"spell {self.name}({params}){arrow}"

    def lines(self, render: Render) -> list[str]:
        return [f"{self.signature()}:"] + [INDENT_UNIT + line for line in self.body.lines(render)]

    def __str__(self) -> str:
        return "\n".join(self.lines(str))

    def to_source(self) -> str:
        return "\n".join(self.lines(_source))


class SpellbookDeclaration(ASTNode):
    kind = "spellbook_declaration"
    _fields = ("name", "body")

    def __init__(
        self, name: Identifier, body: list[ASTNode], line: int = 0, col: int = 0
    ) -> None:
        super().__init__(line, col)
        self.name = name
        self.body = body

    def lines(self, render: Render) -> list[str]:
        inner = [line for s in self.body for line in s.lines(render)]
        return [f"spellbook {self.name}:"] + [INDENT_UNIT + line for line in inner]

    def __str__(self) -> str:
        return "\n".join(self.lines(str))

    def to_source(self) -> str:
        return "\n".join(self.lines(_source))


class Program(ASTNode):
    kind = "program"
    _fields = ("statements",)

    def __init__(self, statements: list[ASTNode] | None = None, line: int = 0, col: int = 0) -> None:
        super().__init__(line, col)
        self.statements: list[ASTNode] = statements or []

    def lines(self, render: Render) -> list[str]:
        return [line for s in self.statements for line in s.lines(render)]

    def __str__(self) -> str:
        return "\n".join(self.lines(str))

    def to_source(self) -> str:
        return "\n".join(self.lines(_source))


NODE_TYPES: tuple[type[ASTNode], ...] = (
    Program,
    ExpressionStatement,
    VariableDeclaration,
    SpellbookDeclaration,
    SpellDeclaration,
    ReturnStatement,
    BlockStatement,
    Identifier,
    IntegerLiteral,
    StringLiteral,
    PrefixExpression,
    InfixExpression,
    CallExpression,
    MemberExpression,
)
"""The closed set of node classes."""

__all__ = [
    "ASTDict",
    "ASTNode",
    "BlockStatement",
    "CallExpression",
    "ExpressionStatement",
    "Identifier",
    "InfixExpression",
    "IntegerLiteral",
    "MemberExpression",
    "NODE_TYPES",
    "PrefixExpression",
    "Program",
    "ReturnStatement",
    "SpellDeclaration",
    "SpellbookDeclaration",
    "StringLiteral",
    "VariableDeclaration",
]
