"""Per-store registry of equality checks for non-container values.

The diff engine cannot look inside sets, dates, compiled patterns and other
leaf objects. When an old leaf is replaced by a new one, the registry decides
whether the two are equal; no registered check means "changed".
"""

from __future__ import annotations

import datetime
import inspect
import re
from typing import Any, Callable

from deepstore.errors import UsageError

EqualityCheck = Callable[[Any, Any], bool]


def _sets_equal(old, new) -> bool:
    return isinstance(new, (set, frozenset)) and len(old) == len(new) and old == new


def _same_type_equal(old, new) -> bool:
    return type(new) is type(old) and old == new


def _patterns_equal(old, new) -> bool:
    return isinstance(new, re.Pattern) and old.pattern == new.pattern and old.flags == new.flags


DEFAULT_CHECKS: dict[type, EqualityCheck] = {
    set: _sets_equal,
    frozenset: _sets_equal,
    datetime.date: _same_type_equal,
    datetime.time: _same_type_equal,
    re.Pattern: _patterns_equal,
    tuple: _same_type_equal,
}


def _takes_two_arguments(check: Callable) -> bool:
    try:
        signature = inspect.signature(check)
    except (TypeError, ValueError):
        return False
    positional = 0
    for param in signature.parameters.values():
        if param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
            positional += 1
        elif param.kind is param.VAR_POSITIONAL:
            return False
    return positional == 2


class EqualityRegistry:
    """Maps classes to (old, new) -> bool checks, looked up along the MRO."""

    def __init__(self, checks: dict[type, EqualityCheck] | None = None, *, defaults: bool = True) -> None:
        self._checks: dict[type, EqualityCheck] = dict(DEFAULT_CHECKS) if defaults else {}
        if checks:
            for cls, check in checks.items():
                self.register(cls, check)

    def register(self, cls: type, check: EqualityCheck) -> None:
        """Use check(old, new) for values whose class is (or derives from) cls."""
        if not isinstance(cls, type) or not callable(check) or not _takes_two_arguments(check):
            raise UsageError(
                "register() needs a class and an equality check taking exactly two "
                "parameters (old_value, new_value)"
            )
        self._checks[cls] = check

    def unregister(self, cls: type) -> None:
        if not isinstance(cls, type):
            raise UsageError("unregister() needs a class")
        self._checks.pop(cls, None)

    def lookup(self, value) -> EqualityCheck | None:
        """The check registered for the most specific class of value, if any."""
        for cls in type(value).__mro__:
            check = self._checks.get(cls)
            if check is not None:
                return check
        return None

    def equal(self, old, new) -> bool:
        check = self.lookup(old)
        return check is not None and bool(check(old, new))

    def copy(self) -> EqualityRegistry:
        clone = EqualityRegistry(defaults=False)
        clone._checks = dict(self._checks)
        return clone

    def __contains__(self, cls: type) -> bool:
        return cls in self._checks

    def __repr__(self) -> str:
        names = ", ".join(cls.__name__ for cls in self._checks)
        return f"EqualityRegistry({names})"
