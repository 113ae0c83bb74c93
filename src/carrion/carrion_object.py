"""
Runtime values and scopes for the Carrion evaluator.

Values:
    Integer, String, Function, Builtin, Namespace, Class, Instance, Null,
    ReturnSignal, Error

Every value is immutable once built and exposes:
    type_name (str): Upper-case kind name used in error messages (e.g. "INTEGER").
    inspect() -> str: The display form written by `munin.print`.

Integers are signed 64-bit; `wrap_int64` folds an arbitrary Python int back
into that range with two's-complement wrap-around.

Scope:
    A name -> value mapping with an optional outer scope. Reads walk outward to
    the root; writes only ever touch the scope they are made on. Functions hold
    a reference to the scope they were declared in, which keeps it alive for as
    long as the function value is reachable.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from carrion.carrion_ast import BlockStatement, Identifier


def wrap_int64(value: int) -> int:
    """Wrap `value` into the signed 64-bit range."""
    value &= 0xFFFFFFFFFFFFFFFF
    return value - (1 << 64) if value >= (1 << 63) else value


class ErrorCode(Enum):
    """Category of a runtime Error value."""

    IDENTIFIER_NOT_FOUND = "identifier_not_found"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_OPERATOR = "unknown_operator"
    DIVISION_BY_ZERO = "division_by_zero"
    NOT_A_FUNCTION = "not_a_function"
    PROPERTY_NOT_FOUND = "property_not_found"
    NOT_IMPLEMENTED = "not_implemented"
    STEP_LIMIT_EXCEEDED = "step_limit_exceeded"
    RECURSION_LIMIT_EXCEEDED = "recursion_limit_exceeded"
    RUNTIME_ERROR = "runtime_error"


class Value:
    """Base class of every Carrion runtime value."""

    type_name = "VALUE"

    def inspect(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Integer(Value):
    value: int
    type_name = "INTEGER"

    def inspect(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class String(Value):
    value: str
    type_name = "STRING"

    def inspect(self) -> str:
        return self.value


class Null(Value):
    """The null value. Use the `NULL` singleton rather than instantiating."""

    type_name = "NULL"
    _instance: "Null | None" = None

    def __new__(cls) -> "Null":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"

    def inspect(self) -> str:
        return "null"


NULL = Null()


@dataclass(frozen=True)
class ReturnSignal(Value):
    """Carries a returned value up to the nearest call boundary."""

    value: Value
    type_name = "RETURN_VALUE"

    def inspect(self) -> str:
        return self.value.inspect()


@dataclass(frozen=True)
class Error(Value):
    message: str
    code: ErrorCode = ErrorCode.RUNTIME_ERROR
    type_name = "ERROR"

    def inspect(self) -> str:
        return f"ERROR: {self.message}"


class Scope:
    """
    A chained name -> value binding environment.

    Attributes:
        store (dict[str, Value]): Bindings made directly on this scope.
        outer (Scope | None): The enclosing scope, or None at the root.
    """

    def __init__(self, outer: "Scope | None" = None) -> None:
        self.store: dict[str, Value] = {}
        self.outer = outer

    def __repr__(self) -> str:
        return f"Scope({sorted(self.store)}, outer={'yes' if self.outer else 'no'})"

    def get(self, name: str) -> Value | None:
        """Look `name` up here, then in each enclosing scope in turn."""
        scope: Scope | None = self
        while scope is not None:
            if name in scope.store:
                return scope.store[name]
            scope = scope.outer
        return None

    def set(self, name: str, value: Value) -> Value:
        """Bind `name` in this scope only, shadowing any outer binding."""
        self.store[name] = value
        return value

    def enclosed(self) -> "Scope":
        """Return a fresh scope whose outer scope is this one."""
        return Scope(outer=self)


@dataclass(frozen=True, eq=False)
class Function(Value):
    """A spell closed over the scope it was declared in."""

    name: str
    parameters: tuple[Identifier, ...]
    body: BlockStatement
    scope: Scope = field(repr=False)
    type_name = "FUNCTION"

    def inspect(self) -> str:
        params = ", ".join(p.value for p in self.parameters)
        return f"spell {self.name}({params})"


BuiltinFunction = Callable[..., Value]


@dataclass(frozen=True, eq=False)
class Builtin(Value):
    """A host-provided callable."""

    name: str
    fn: BuiltinFunction = field(repr=False)
    type_name = "BUILTIN"

    def __call__(self, *args: Value) -> Value:
        return self.fn(*args)

    def inspect(self) -> str:
        return f"builtin function {self.name}"


@dataclass(frozen=True, eq=False)
class Namespace(Value):
    """A host-provided object exposing named members through `.` access."""

    name: str
    members: Mapping[str, Value]
    type_name = "NAMESPACE"

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", MappingProxyType(dict(self.members)))

    def inspect(self) -> str:
        return f"builtin object {self.name}"


@dataclass(frozen=True, eq=False)
class Class(Value):
    """A spellbook: its name and the scope its body was evaluated into."""

    name: str
    scope: Scope = field(repr=False)
    type_name = "CLASS"

    def inspect(self) -> str:
        return f"<class {self.name}>"


@dataclass(frozen=True, eq=False)
class Instance(Value):
    cls: Class
    scope: Scope = field(repr=False)
    type_name = "INSTANCE"

    def inspect(self) -> str:
        return f"<instance of {self.cls.name}>"


def is_error(value: Value | None) -> bool:
    return isinstance(value, Error)


__all__ = [
    "NULL",
    "Builtin",
    "BuiltinFunction",
    "Class",
    "Error",
    "ErrorCode",
    "Function",
    "Instance",
    "Integer",
    "Namespace",
    "Null",
    "ReturnSignal",
    "Scope",
    "String",
    "Value",
    "is_error",
    "wrap_int64",
]
