"""
Built-in registry for the Carrion evaluator.

The registry maps top-level names to host-provided values (`Builtin` callables
or `Namespace` objects). The evaluator consults it by exact name whenever an
identifier is not bound in any scope, so new built-ins are added here without
touching evaluator code.

A registry is populated once and then frozen; a frozen registry is read-only
and can be shared by any number of evaluators.

Usage:
    >>> registry = default_registry()
    >>> registry.lookup("munin")
    Namespace(name='munin', ...)
"""

import logging
import sys
from collections.abc import Iterable, Mapping
from typing import TextIO

from carrion.carrion_object import NULL, Builtin, Namespace, Value

logger = logging.getLogger(__name__)


class RegistryFrozenError(RuntimeError):
    """Raised when registering a name on a registry that has been frozen."""


class BuiltinRegistry:
    """Name -> built-in value table consulted by the evaluator.

    Attributes:
        frozen (bool): Whether further registration is refused.
    """

    def __init__(self, entries: Mapping[str, Value] | None = None) -> None:
        self._entries: dict[str, Value] = {}
        self.frozen = False
        for name, value in (entries or {}).items():
            self.register(name, value)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def register(self, name: str, value: Value) -> Value:
        """Adds (or replaces) a top-level built-in.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
        """
        if self.frozen:
            raise RegistryFrozenError(f"cannot register '{name}': registry is frozen")
        if name in self._entries:
            logger.debug("Overwriting builtin %s", name)
        else:
            logger.debug("Registering builtin %s", name)
        self._entries[name] = value
        return value

    def freeze(self) -> "BuiltinRegistry":
        self.frozen = True
        return self

    def lookup(self, name: str) -> Value | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return sorted(self._entries)


def make_print(stdout: TextIO | None = None) -> Builtin:
    """Builds `print`: writes each argument's display form, then a newline."""

    def _print(*args: Value) -> Value:
        out = stdout if stdout is not None else sys.stdout
        out.write("".join(arg.inspect() for arg in args) + "\n")
        return NULL

    return Builtin("print", _print)


def munin_namespace(stdout: TextIO | None = None, extra: Iterable[Builtin] = ()) -> Namespace:
    members: dict[str, Value] = {"print": make_print(stdout)}
    for builtin in extra:
        members[builtin.name] = builtin
    return Namespace("munin", members)


def default_registry(stdout: TextIO | None = None) -> BuiltinRegistry:
    """Returns a frozen registry holding the `munin` namespace.

    Args:
        stdout: Stream `munin.print` writes to. Defaults to `sys.stdout`,
            resolved at call time so redirected output is honored.
    """
    return BuiltinRegistry({"munin": munin_namespace(stdout)}).freeze()


__all__ = [
    "BuiltinRegistry",
    "RegistryFrozenError",
    "default_registry",
    "make_print",
    "munin_namespace",
]
