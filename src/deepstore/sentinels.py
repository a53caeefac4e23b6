"""Distinguished marker values and the shallow tag.

DELETE, CANCEL and ROOT are part of the public API. ABSENT is internal: the
diff engine uses it for "no key here", so it never appears in the value tree
and can never be confused with a value the caller stored.
"""

from __future__ import annotations


class Sentinel:
    """A named marker compared by identity."""

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __reduce__(self):
        return self._name

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


DELETE = Sentinel("DELETE")
"""Assign this to a path to remove it."""

CANCEL = Sentinel("CANCEL")
"""Returned by a mutator (or assigned directly) to abort that path's write."""

ROOT = Sentinel("ROOT")
"""Addresses the whole stored value."""

ABSENT = Sentinel("ABSENT")


class ShallowDict(dict):
    """A dict the store treats as a leaf value."""

    __slots__ = ()


class ShallowList(list):
    """A list the store treats as a leaf value."""

    __slots__ = ()


def shallow(value):
    """Tag a dict or list so the store never looks inside it.

    Returns a ShallowDict/ShallowList copy; any other value is returned as-is.
    """
    if isinstance(value, dict):
        return ShallowDict(value)
    if isinstance(value, list):
        return ShallowList(value)
    return value
