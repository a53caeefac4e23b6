"""Reactions — side effects triggered by store changes.

A Reaction eagerly re-runs its function whenever a Dependency it touched
during its last run reports changed(). This is the computation runtime the
store's interest handles wake; the store itself never schedules re-runs.

Two flavors:
- autorun(fn): runs fn immediately, re-runs when any dependency it read changes.
- reaction(data_fn, effect_fn): re-runs data_fn on change and hands its result
  to effect_fn when that result differs from the previous one.

Instances only hold an _id; their state sits in _anchor.
"""

from __future__ import annotations

from typing import TypeVar, Callable
from deepstore._tracking import current_derivation
from deepstore import _anchor

T = TypeVar("T")


class _Derivation:
    """Shared bookkeeping: dependency set and disposal."""

    __slots__ = ("_id",)

    def __init__(self, fn: Callable) -> None:
        self._id = _anchor.new_id()
        _anchor.derivation_fns[self._id] = fn
        _anchor.dependencies[self._id] = set()
        _anchor.disposed[self._id] = False
        _anchor.dispose_callbacks[self._id] = []

    @property
    def _dependencies(self) -> set:
        return _anchor.dependencies[self._id]

    @_dependencies.setter
    def _dependencies(self, value: set) -> None:
        _anchor.dependencies[self._id] = value

    @property
    def disposed(self) -> bool:
        return _anchor.disposed[self._id]

    def _untrack(self) -> None:
        for dep in _anchor.dependencies[self._id]:
            dep._remove_observer(self)
        _anchor.dependencies[self._id].clear()

    def _evaluate(self):
        """Run the derivation function with this derivation as the tracking context."""
        self._untrack()
        token = current_derivation.set(self)
        try:
            return _anchor.derivation_fns[self._id]()
        finally:
            current_derivation.reset(token)

    def on_dispose(self, callback: Callable[[], None]) -> None:
        """Register a callback to run when this derivation is disposed."""
        if _anchor.disposed[self._id]:
            callback()
        else:
            _anchor.dispose_callbacks[self._id].append(callback)

    def dispose(self) -> None:
        """Stop this derivation. Disconnects from all dependencies."""
        if _anchor.disposed[self._id]:
            return
        _anchor.disposed[self._id] = True
        self._untrack()
        callbacks = _anchor.dispose_callbacks.pop(self._id)
        for callback in callbacks:
            callback()


class Reaction(_Derivation):
    """A reactive side effect that re-runs when its dependencies change."""

    __slots__ = ()

    @property
    def _fn(self) -> Callable[[], None]:
        return _anchor.derivation_fns[self._id]

    def _run(self) -> None:
        """Run fn again and replace the recorded dependencies."""
        if _anchor.disposed[self._id]:
            return
        self._evaluate()

    def __repr__(self) -> str:
        state = "disposed" if _anchor.disposed[self._id] else "active"
        return f"Reaction({getattr(self._fn, '__name__', self._fn)!r}, {state})"


class _DataReaction(_Derivation):
    """Backs reaction(): data_fn is tracked, effect_fn is fed its result.

    effect_fn is skipped when data_fn returns a value equal to the previous one.
    """

    __slots__ = ("_effect_fn", "_last_value", "_initialized")

    def __init__(self, data_fn: Callable, effect_fn: Callable) -> None:
        super().__init__(data_fn)
        self._effect_fn = effect_fn
        self._last_value = None
        self._initialized = False

    @property
    def _data_fn(self) -> Callable:
        return _anchor.derivation_fns[self._id]

    def _run(self) -> None:
        if _anchor.disposed[self._id]:
            return

        new_value = self._evaluate()

        if not self._initialized or new_value != self._last_value:
            self._last_value = new_value
            self._initialized = True
            self._effect_fn(new_value)

    def __repr__(self) -> str:
        state = "disposed" if _anchor.disposed[self._id] else "active"
        return f"_DataReaction({getattr(self._data_fn, '__name__', self._data_fn)!r}, {state})"


def autorun(fn: Callable[[], None]) -> Reaction:
    """Run fn immediately, then re-run whenever any dependency it reads changes.

    Dispose the returned Reaction to stop it.

    Usage:
        store = ReactiveStore({"count": 0})
        log = []

        r = autorun(lambda: log.append(store.get("count")))
        # log == [0], ran immediately

        store.assign("count", 1)
        # log == [0, 1], re-ran because "count" changed

        r.dispose()
        store.assign("count", 2)
        # log == [0, 1], stopped
    """
    r = Reaction(fn)
    r._run()
    return r


def reaction(
    data_fn: Callable[[], T],
    effect_fn: Callable[[T], None],
    *,
    fire_immediately: bool = False,
) -> _DataReaction:
    """Track data_fn's reads; call effect_fn when the result changes.

    A dependency change that leaves the result equal does not reach effect_fn.
    Dispose the returned handle to stop it.

    Usage:
        store = ReactiveStore({"user": {"first": "Alice", "last": "Smith"}})

        effects = []
        r = reaction(
            lambda: f"{store.get('user.first')} {store.get('user.last')}",
            lambda name: effects.append(name),
        )
        # effects == [], data_fn ran to collect deps only

        store.assign("user.first", "Bob")
        # effects == ["Bob Smith"]

        r.dispose()
    """
    r = _DataReaction(data_fn, effect_fn)
    if fire_immediately:
        r._run()
    else:
        # collect dependencies without firing the effect
        r._last_value = r._evaluate()
        r._initialized = True
    return r
