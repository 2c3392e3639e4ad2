"""Scoped variable environment used while expanding a template."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List

from .errors import VariableLookupError


class ValueKind(str, Enum):
    """Tag describing the runtime shape of a context value."""

    NULL = "null"
    NUMBER = "number"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATE = "date"
    LIST = "list"
    OBJECT = "object"


def kind_of(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.TEXT
    if isinstance(value, (date, datetime, time)):
        return ValueKind.DATE
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    return ValueKind.OBJECT


class Context:
    """Mapping of variable names to values with per-name shadowing.

    ``put_var`` on a name that is already bound saves the previous value;
    the matching ``remove_var`` restores it. Nested iterations may therefore
    reuse a loop variable name and get the outer binding back on exit.
    """

    def __init__(self, variables: Mapping[str, Any] | None = None) -> None:
        self._vars: Dict[str, Any] = dict(variables or {})
        self._shadowed: Dict[str, List[Any]] = {}

    def put_var(self, name: str, value: Any) -> None:
        if name in self._vars:
            self._shadowed.setdefault(name, []).append(self._vars[name])
        self._vars[name] = value

    def remove_var(self, name: str) -> None:
        stack = self._shadowed.get(name)
        if stack:
            self._vars[name] = stack.pop()
            if not stack:
                del self._shadowed[name]
            return
        self._vars.pop(name, None)

    def get_var(self, name: str, default: Any = None) -> Any:
        return self._vars.get(name, default)

    def require_var(self, name: str) -> Any:
        try:
            return self._vars[name]
        except KeyError as exc:
            raise VariableLookupError(f"Context variable '{name}' is not defined") from exc

    def require_list(self, name: str) -> list[Any]:
        value = self.require_var(name)
        if kind_of(value) is not ValueKind.LIST:
            raise VariableLookupError(
                f"Context variable '{name}' must be a list, got {kind_of(value).value}"
            )
        return list(value)

    def kind(self, name: str) -> ValueKind:
        return kind_of(self.require_var(name))

    def contains_var(self, name: str) -> bool:
        return name in self._vars

    @contextmanager
    def bound(self, name: str, value: Any) -> Iterator[None]:
        """Bind *name* for the duration of the block, restoring any outer binding."""

        self.put_var(name, value)
        try:
            yield
        finally:
            self.remove_var(name)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._vars)

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __repr__(self) -> str:
        return f"Context({sorted(self._vars)})"
