"""Dependency tracking engine for the reactive runtime.

Uses contextvars to track which derivation is currently evaluating, so that
any Dependency.depend() call made during a store read registers against it.

Batching: mutations inside an @action, `with transaction()` or a store
write accumulate invalidations and flush them once at the end, so a
derivation that depends on several changed paths re-runs once.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deepstore.reaction import Reaction

    Derivation = Reaction

# The currently-evaluating derivation.
# When set, store reads materialize and depend on interest handles.
current_derivation: contextvars.ContextVar[Derivation | None] = contextvars.ContextVar(
    "current_derivation", default=None
)

# Open batch count; re-runs wait while it is non-zero.
_batch_depth: int = 0

# Reactions invalidated while a batch was open.
_pending: set[Derivation] = set()


def is_tracking() -> bool:
    """True while a derivation is evaluating and reads should be recorded."""
    return current_derivation.get() is not None


@contextmanager
def untracked():
    """Suspend tracking: reads inside the block register no dependencies."""
    token = current_derivation.set(None)
    try:
        yield
    finally:
        current_derivation.reset(token)


def begin_batch() -> None:
    """Open a batch. Calls nest; only the outermost end_batch() flushes."""
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    """Close a batch, running queued re-runs once the depth drops to zero."""
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def schedule(derivation: Derivation) -> None:
    """Re-run derivation now, or queue it when a batch is open."""
    if _batch_depth > 0:
        _pending.add(derivation)
    else:
        derivation._run()


def _flush_pending() -> None:
    """Drain the queue until re-runs stop queueing more work."""
    global _batch_depth
    # Re-runs may write to a store; keep their invalidations in this flush.
    _batch_depth += 1
    try:
        while _pending:
            batch = list(_pending)
            _pending.clear()
            for derivation in batch:
                derivation._run()
    finally:
        _batch_depth -= 1


def get_pending_count() -> int:
    """How many reactions are queued for the next flush."""
    return len(_pending)
