"""Textual integration for deepstore. Opt-in — requires textual.

Two concerns live here:
- view lifecycle: a store built inside a widget stops its computed paths
  when the widget unmounts (lifecycle_hook / teardown / ReactiveView)
- guarded effects: reactions that touch widgets skip while the app is not
  running or is paused, and ignore NoMatches from widget queries

// [LAW:locality-or-seam] Textual coupling isolated in this module — core deepstore stays agnostic.
// [LAW:no-shared-mutable-globals] _paused_apps and _teardowns have a single owner (this module),
//   keyed by id() so the view/app objects are never mutated.
"""

import logging
from contextlib import contextmanager

from textual.css.query import NoMatches
from deepstore import autorun as _autorun, reaction as _reaction

logger = logging.getLogger("deepstore.textual")

# Pause flags, keyed by id(app).
_paused_apps: set[int] = set()

# Teardown callbacks, keyed by id(view).
_teardowns: dict[int, list] = {}


def lifecycle_hook(view):
    """Return an on_teardown hook that ties a store's computations to view.

    Usage:
        store = ReactiveStore(data, computations=..., on_teardown=lifecycle_hook(self))
    """

    def _register(teardown) -> None:
        _teardowns.setdefault(id(view), []).append(teardown)

    return _register


def teardown(view) -> int:
    """Run and forget every teardown registered for view. Returns how many ran."""
    callbacks = _teardowns.pop(id(view), [])
    for callback in callbacks:
        callback()
    if callbacks:
        logger.debug("Tore down %d store(s) for %r", len(callbacks), view)
    return len(callbacks)


class ReactiveView:
    """Widget mixin: tear down stores registered via lifecycle_hook(self) on unmount."""

    def on_unmount(self) -> None:
        teardown(self)


@contextmanager
def pause(app):
    """Suspend guarded reactions during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def reaction(app, data_fn, effect_fn, *, fire_immediately=False):
    """reaction() that safely bridges to Textual widgets.

    Skips effects while the app is paused or not running and swallows
    NoMatches raised by widget queries.
    """

    def _guarded(value):
        if not is_safe(app):
            return
        try:
            effect_fn(value)
        except NoMatches:
            pass

    return _reaction(data_fn, _guarded, fire_immediately=fire_immediately)


def autorun(app, fn):
    """autorun() that safely bridges to Textual widgets.

    Skips fn while the app is paused or not running and swallows NoMatches
    raised by widget queries.
    """

    def _guarded():
        if not is_safe(app):
            return
        try:
            fn()
        except NoMatches:
            pass

    return _autorun(_guarded)
