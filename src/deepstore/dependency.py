"""Dependency — an interest handle a derivation can subscribe to.

The store hands these out per path and per kind of interest (value,
existence, equality). When a derivation reads through the store while it is
being tracked, the matching Dependency records it; when the store decides
the path changed, Dependency.changed() schedules every recorded derivation.

Instances only hold an _id; subscriber sets live in _anchor.
"""

from __future__ import annotations

from deepstore._tracking import current_derivation, schedule
from deepstore import _anchor


class Dependency:
    """A handle with depend()/changed() semantics."""

    __slots__ = ("_id",)

    def __init__(self) -> None:
        self._id = _anchor.new_id()

    def depend(self) -> bool:
        """Register the current derivation, if any. Returns True if one was registered."""
        derivation = current_derivation.get()
        if derivation is None:
            return False
        _anchor.dependents.setdefault(self._id, set()).add(derivation)
        derivation._dependencies.add(self)
        return True

    def changed(self) -> None:
        """Schedule all dependents for re-evaluation."""
        for derivation in list(_anchor.dependents.get(self._id, ())):
            schedule(derivation)

    def has_dependents(self) -> bool:
        return self._id in _anchor.dependents

    def _remove_observer(self, observer) -> None:
        """Remove a dependent. Called during dependency cleanup."""
        observers = _anchor.dependents.get(self._id)
        if observers is None:
            return
        observers.discard(observer)
        if not observers:
            del _anchor.dependents[self._id]

    def __repr__(self) -> str:
        return f"Dependency(dependents={len(_anchor.dependents.get(self._id, ()))})"
