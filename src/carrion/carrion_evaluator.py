"""
Tree-walking evaluator for the Carrion language.

`Evaluator.evaluate(node, scope)` walks an AST against a Scope chain and
returns a runtime value. Failures never raise: they are `Error` values, and
every step that evaluates a sub-node checks for an Error and hands the first
one it sees straight back to its caller, left to right. A `return` travels the
same way wrapped in a `ReturnSignal` until the enclosing call unwraps it.

Dispatch:
    Each AST kind has an `eval_<kind>` method, looked up from `node.kind`.

Name resolution:
    An identifier is looked up in the scope chain first, then in the built-in
    registry, and is otherwise an "identifier not found" Error.

Guards:
    max_steps   Optional budget of `evaluate` calls per top-level evaluation;
                exceeding it yields a STEP_LIMIT_EXCEEDED Error.
    recursion   Python's recursion limit tripping anywhere below the outermost
                `evaluate` call becomes a RECURSION_LIMIT_EXCEEDED Error.

Usage:
    >>> result, errors = evaluate_source("x = 2\\nx * 21")
    >>> result
    Integer(value=42)
"""

import logging

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
from carrion.carrion_builtins import BuiltinRegistry, default_registry
from carrion.carrion_object import (
    NULL,
    Builtin,
    Class,
    Error,
    ErrorCode,
    Function,
    Instance,
    Integer,
    Namespace,
    ReturnSignal,
    Scope,
    String,
    Value,
    is_error,
    wrap_int64,
)
from carrion.carrion_parser import parse

logger = logging.getLogger(__name__)


def new_error(code: ErrorCode, message: str) -> Error:
    return Error(message, code)


class Evaluator:
    """Evaluates Carrion syntax trees.

    Attributes:
        registry (BuiltinRegistry): Built-ins consulted after the scope chain.
        max_steps (int | None): Per-evaluation budget of node visits, or None.
        steps (int): Node visits made by the current top-level evaluation.
    """

    def __init__(
        self, registry: BuiltinRegistry | None = None, max_steps: int | None = None
    ) -> None:
        self.registry = registry if registry is not None else default_registry()
        self.max_steps = max_steps
        self.steps = 0
        self._depth = 0

    def evaluate(self, node: ASTNode, scope: Scope) -> Value:
        """Evaluates `node` in `scope`, returning a value or an Error value."""
        if self._depth > 0:
            return self._dispatch(node, scope)

        self._depth += 1
        self.steps = 0
        try:
            return self._dispatch(node, scope)
        except RecursionError:
            logger.debug("recursion limit hit while evaluating %s", node.kind)
            return new_error(
                ErrorCode.RECURSION_LIMIT_EXCEEDED, "maximum recursion depth exceeded"
            )
        finally:
            self._depth -= 1

    def _dispatch(self, node: ASTNode, scope: Scope) -> Value:
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            logger.debug("step limit of %d exceeded", self.max_steps)
            return new_error(
                ErrorCode.STEP_LIMIT_EXCEEDED, f"step limit of {self.max_steps} exceeded"
            )

        method = getattr(self, f"eval_{node.kind}", None)
        if method is None:
            raise NotImplementedError(
                f"No evaluator method for node kind '{node.kind}' "
                f"(line {node.line}, col {node.col})"
            )
        result: Value = method(node, scope)
        return result

    # Statements

    def eval_program(self, node: Program, scope: Scope) -> Value:
        result: Value = NULL
        for statement in node.statements:
            result = self.evaluate(statement, scope)
            # A top-level `return` ends the program with its value.
            if isinstance(result, ReturnSignal):
                return result.value
            if isinstance(result, Error):
                return result
        return result

    def eval_block_statement(self, node: BlockStatement, scope: Scope) -> Value:
        result: Value = NULL
        for statement in node.statements:
            result = self.evaluate(statement, scope)
            if isinstance(result, (ReturnSignal, Error)):
                return result
        return result

    def eval_expression_statement(self, node: ExpressionStatement, scope: Scope) -> Value:
        return self.evaluate(node.expression, scope)

    def eval_variable_declaration(self, node: VariableDeclaration, scope: Scope) -> Value:
        value = self.evaluate(node.value, scope)
        if is_error(value):
            return value
        return scope.set(node.name.value, value)

    def eval_return_statement(self, node: ReturnStatement, scope: Scope) -> Value:
        if node.value is None:
            return ReturnSignal(NULL)
        value = self.evaluate(node.value, scope)
        if is_error(value):
            return value
        return ReturnSignal(value)

    def eval_spellbook_declaration(self, node: SpellbookDeclaration, scope: Scope) -> Value:
        class_scope = scope.enclosed()
        for statement in node.body:
            result = self.evaluate(statement, class_scope)
            if is_error(result):
                return result
        cls = Class(node.name.value, class_scope)
        return scope.set(node.name.value, cls)

    def eval_spell_declaration(self, node: SpellDeclaration, scope: Scope) -> Value:
        fn = Function(node.name.value, tuple(node.parameters), node.body, scope)
        return scope.set(node.name.value, fn)

    # Expressions

    def eval_identifier(self, node: Identifier, scope: Scope) -> Value:
        value = scope.get(node.value)
        if value is not None:
            return value
        builtin = self.registry.lookup(node.value)
        if builtin is not None:
            return builtin
        return new_error(ErrorCode.IDENTIFIER_NOT_FOUND, f"identifier not found: {node.value}")

    def eval_integer_literal(self, node: IntegerLiteral, scope: Scope) -> Value:
        return Integer(node.value)

    def eval_string_literal(self, node: StringLiteral, scope: Scope) -> Value:
        return String(node.value)

    def eval_prefix_expression(self, node: PrefixExpression, scope: Scope) -> Value:
        right = self.evaluate(node.right, scope)
        if is_error(right):
            return right
        if node.operator == "-" and isinstance(right, Integer):
            return Integer(wrap_int64(-right.value))
        return new_error(
            ErrorCode.UNKNOWN_OPERATOR, f"unknown operator: {node.operator}{right.type_name}"
        )

    def eval_infix_expression(self, node: InfixExpression, scope: Scope) -> Value:
        left = self.evaluate(node.left, scope)
        if is_error(left):
            return left
        right = self.evaluate(node.right, scope)
        if is_error(right):
            return right
        return self.infix(node.operator, left, right)

    def infix(self, operator: str, left: Value, right: Value) -> Value:
        if isinstance(left, Integer) and isinstance(right, Integer):
            return self.integer_infix(operator, left, right)
        if isinstance(left, String) and isinstance(right, String):
            return self.string_infix(operator, left, right)
        return new_error(
            ErrorCode.TYPE_MISMATCH,
            f"type mismatch: {left.type_name} {operator} {right.type_name}",
        )

    def integer_infix(self, operator: str, left: Integer, right: Integer) -> Value:
        a, b = left.value, right.value
        if operator == "+":
            return Integer(wrap_int64(a + b))
        if operator == "-":
            return Integer(wrap_int64(a - b))
        if operator == "*":
            return Integer(wrap_int64(a * b))
        if operator == "/":
            if b == 0:
                return new_error(ErrorCode.DIVISION_BY_ZERO, "division by zero")
            quotient = abs(a) // abs(b)
            if (a < 0) != (b < 0):
                quotient = -quotient
            return Integer(wrap_int64(quotient))
        return new_error(ErrorCode.UNKNOWN_OPERATOR, f"unknown operator: INTEGER {operator} INTEGER")

    def string_infix(self, operator: str, left: String, right: String) -> Value:
        if operator == "+":
            return String(left.value + right.value)
        return new_error(ErrorCode.UNKNOWN_OPERATOR, f"unknown operator: STRING {operator} STRING")

    def eval_call_expression(self, node: CallExpression, scope: Scope) -> Value:
        function = self.evaluate(node.function, scope)
        if is_error(function):
            return function

        args: list[Value] = []
        for argument in node.arguments:
            value = self.evaluate(argument, scope)
            if is_error(value):
                return value
            args.append(value)

        return self.apply_function(function, args)

    def apply_function(self, function: Value, args: list[Value]) -> Value:
        if isinstance(function, Function):
            logger.debug("calling spell %s with %d argument(s)", function.name, len(args))
            call_scope = function.scope.enclosed()
            for index, param in enumerate(function.parameters):
                call_scope.set(param.value, args[index] if index < len(args) else NULL)
            result = self.evaluate(function.body, call_scope)
            if isinstance(result, ReturnSignal):
                return result.value
            return result
        if isinstance(function, Builtin):
            logger.debug("calling builtin %s with %d argument(s)", function.name, len(args))
            return function(*args)
        return new_error(ErrorCode.NOT_A_FUNCTION, f"not a function: {function.type_name}")

    def eval_member_expression(self, node: MemberExpression, scope: Scope) -> Value:
        obj = self.evaluate(node.object, scope)
        if is_error(obj):
            return obj
        return self.property_access(obj, node.property.value)

    def property_access(self, obj: Value, name: str) -> Value:
        if isinstance(obj, Namespace):
            if name in obj.members:
                return obj.members[name]
            return new_error(
                ErrorCode.PROPERTY_NOT_FOUND,
                f"property '{name}' not found on builtin object {obj.name}",
            )
        if isinstance(obj, Instance):
            return new_error(
                ErrorCode.NOT_IMPLEMENTED, "property access not implemented for instances"
            )
        if isinstance(obj, Class):
            return new_error(
                ErrorCode.NOT_IMPLEMENTED, "property access not implemented for classes"
            )
        return new_error(
            ErrorCode.PROPERTY_NOT_FOUND,
            f"cannot access property '{name}' of type {obj.type_name}",
        )


def evaluate_source(
    source: str, evaluator: Evaluator | None = None, scope: Scope | None = None
) -> tuple[Value | None, list[str]]:
    """Parses and evaluates `source`.

    Returns:
        (value, errors). When parsing records any error the program is not
        evaluated and value is None.
    """
    program, errors = parse(source)
    if errors:
        return None, errors
    evaluator = evaluator if evaluator is not None else Evaluator()
    return evaluator.evaluate(program, scope if scope is not None else Scope()), []


__all__ = ["Evaluator", "evaluate_source", "new_error"]
