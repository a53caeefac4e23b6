"""Store-level batching of interest notifications.

Every store write runs inside a nesting-counted scope. Interests found to be
affected are queued rather than fired; when the outermost scope closes, each
distinct interest is fired once, inside a runtime batch so a reaction that
depends on several of them re-runs once.
"""

from __future__ import annotations

import functools
from contextlib import contextmanager
from typing import TypeVar, Callable

from deepstore._tracking import begin_batch, end_batch
from deepstore.dependency import Dependency

R = TypeVar("R")


class ChangeBatch:
    """Operation counter plus the set of interests pending for this operation."""

    __slots__ = ("_depth", "_pending")

    def __init__(self) -> None:
        self._depth = 0
        # Insertion-ordered so interests fire in the order they were found.
        self._pending: dict[Dependency, None] = {}

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def pending(self) -> int:
        return len(self._pending)

    def begin(self) -> None:
        self._depth += 1

    def end(self) -> None:
        self._depth -= 1
        if self._depth == 0:
            self.flush()

    def queue(self, dep: Dependency | None) -> None:
        if dep is None:
            return
        self._pending[dep] = None
        if self._depth == 0:
            self.flush()

    def flush(self) -> None:
        """Fire every queued interest once and clear the queue."""
        if not self._pending:
            return
        deps = list(self._pending)
        self._pending.clear()
        begin_batch()
        try:
            for dep in deps:
                dep.changed()
        finally:
            end_batch()

    @contextmanager
    def scope(self):
        self.begin()
        try:
            yield
        finally:
            self.end()


def batched(method: Callable[..., R]) -> Callable[..., R]:
    """Decorator for store methods: run the body inside the store's ChangeBatch."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs) -> R:
        self._batch.begin()
        try:
            return method(self, *args, **kwargs)
        finally:
            self._batch.end()

    return wrapper
