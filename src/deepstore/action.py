"""Actions and transactions — batched re-runs across writes.

Wrapping writes in an @action or `with transaction()` defers every
reaction re-run until the outermost scope exits, even when the writes go
to different stores or through separate store operations. A reaction that
depends on several changed paths runs once, seeing all of them.
"""

from __future__ import annotations

import functools
from typing import TypeVar, Callable, ParamSpec
from contextlib import contextmanager
from deepstore._tracking import begin_batch, end_batch

P = ParamSpec("P")
R = TypeVar("R")


def action(fn: Callable[P, R]) -> Callable[P, R]:
    """Decorator: batch all reaction re-runs caused inside fn.

    Usage:
        store = ReactiveStore({"a": 0, "b": 0})

        @action
        def swap():
            a, b = store.get("a"), store.get("b")
            store.assign("a", b)
            store.assign("b", a)
            # reactions see both changes at once, not one at a time
    """

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        begin_batch()
        try:
            return fn(*args, **kwargs)
        finally:
            end_batch()

    return wrapper


@contextmanager
def transaction():
    """Context manager for batching reaction re-runs.

    Usage:
        with transaction():
            store.assign("a", 1)
            other_store.assign("b", 2)
            # reactions fire here, after both are written
    """
    begin_batch()
    try:
        yield
    finally:
        end_batch()
