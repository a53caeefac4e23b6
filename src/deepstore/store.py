"""ReactiveStore — one mutable nested value with per-path change tracking.

Readers ask for a path (`get`, `has`, `equals`). When they do so inside a
tracked derivation, the store records an interest at that path in a mirror
tree of DepNodes. Writers mutate paths in place (`assign`, `delete`, `set`);
the store diffs what was at the written path against what is there now and
wakes only the interests the write affected. Every write is batched, so each
interest fires at most once per outermost operation.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Any, Callable

from deepstore._tracking import is_tracking, untracked
from deepstore.batch import ChangeBatch, batched
from deepstore.depnode import DepNode
from deepstore.diff import ChangeDetector, eq_key, exists, is_primitive
from deepstore.equality import EqualityRegistry
from deepstore.errors import UsageError
from deepstore.paths import (
    PathCache,
    PathData,
    child_value,
    is_traversable,
    put_value,
    remove_value,
)
from deepstore.reaction import Reaction, autorun
from deepstore.sentinels import ABSENT, CANCEL, DELETE, ROOT
from deepstore.wrapper import StorePath

logger = logging.getLogger("deepstore.store")

_UNSET = object()

Mutator = Callable[[Any, "ReactiveStore"], Any]


class ReactiveStore:
    """A deeply nested value whose readers are woken per path."""

    def __init__(
        self,
        data=None,
        *,
        mutators: dict[str, Mutator] | None = None,
        methods: dict[str, Callable] | None = None,
        computations: dict[str, Callable[[ReactiveStore], Any]] | None = None,
        equality: EqualityRegistry | None = None,
        on_teardown: Callable[[Callable[[], Future]], None] | None = None,
    ) -> None:
        self._data = data
        self._paths = PathCache()
        self._methods: dict[str, Callable] = {}
        self._reaction_disposers: list = []
        self._root_node = DepNode()
        self._root_path: StorePath | None = None
        self._batch = ChangeBatch()
        self._equality = equality if equality is not None else EqualityRegistry()
        self._detector = ChangeDetector(self._equality, self._batch.queue)

        if mutators:
            self.update_mutators(mutators)
        if methods:
            self.update_methods(methods)
        if computations:
            for path, fn in computations.items():
                self.compute(path, fn)
        if on_teardown is not None:
            on_teardown(self.stop_computations)

    @property
    def data(self):
        """The root value, untracked. Do not mutate it directly."""
        return self._data

    @property
    def equality(self) -> EqualityRegistry:
        return self._equality

    # --- Reads ---

    def _walk(self, path, tracking: bool):
        """Return (node, present, value) at path. node is None unless tracking.

        While tracking, the walk continues past a missing segment so that the
        interest is in place for when the path comes into existence.
        """
        if path is ROOT or path is None:
            return (self._root_node if tracking else None), True, self._data

        node = self._root_node if tracking else None
        present, value = True, self._data
        for token in self._paths[path].tokens:
            if tracking:
                node = node.child(token)
            if present:
                present, value = child_value(value, token)
            elif not tracking:
                break
        return node, present, value

    def get(self, path=ROOT, *, reactive: bool = True):
        """The value at path, or None if it does not exist."""
        tracking = reactive and is_tracking()
        node, present, value = self._walk(path, tracking)
        if tracking:
            node.ensure_value_dep().depend()
        return value if present else None

    def has(self, path=ROOT, *, reactive: bool = True) -> bool:
        """Whether path resolves to a value other than None."""
        tracking = reactive and is_tracking()
        node, present, value = self._walk(path, tracking)
        now_exists = present and exists(value)
        if tracking:
            node.ensure_exists_dep(now_exists).depend()
        return now_exists

    def equals(self, path, value, *, reactive: bool = True) -> bool:
        """Whether the value at path equals value.

        Only primitives and functions can be compared: a tracked equality
        interest is keyed by the comparison value, and a container could
        change under that key.
        """
        if value is ABSENT or not is_primitive(value):
            raise UsageError(
                f"equals() compares against primitives and functions only, not {type(value).__name__}"
            )
        tracking = reactive and is_tracking()
        node, present, current = self._walk(path, tracking)
        key = eq_key(value)
        matches = eq_key(current if present else None) == key
        if tracking:
            node.ensure_eq_dep(key, matches).depend()
        return matches

    # --- Writes ---

    def batch(self):
        """Context manager: one batched operation around any number of writes."""
        return self._batch.scope()

    @batched
    def set(self, value) -> None:
        """Replace the whole stored value."""
        self._replace_root(value)

    @batched
    def assign(self, path_or_mapping, value=_UNSET, *, mutate: bool = True) -> None:
        """Write one path, or every path in a {path: value} mapping.

        Each value first passes through the path's mutator (unless mutate is
        False). CANCEL skips the entry; DELETE removes the path.
        """
        if isinstance(path_or_mapping, dict):
            items = list(path_or_mapping.items())
        elif value is _UNSET:
            raise UsageError("assign() needs a value when given a single path")
        elif not path_or_mapping:
            return
        else:
            items = [(path_or_mapping, value)]

        if items and not is_traversable(self._data):
            self._replace_root({})

        for path, val in items:
            if path is ROOT:
                self._replace_root(None if val is DELETE else val)
                continue
            path_data = self._paths[path]
            if mutate and path_data.mutator is not None:
                val = path_data.mutator(val, self)
            if val is CANCEL:
                logger.debug("Assign to %r cancelled", path)
                continue
            self._set_at_path(path_data, val)

    @batched
    def delete(self, *paths) -> None:
        """Remove each path. Paths that do not exist are ignored."""
        if not is_traversable(self._data):
            return
        for path in paths:
            if path is ROOT:
                self._replace_root(None)
            else:
                self._set_at_path(self._paths[path], DELETE)

    def clear(self) -> None:
        """Reset the root to an empty container of the same kind, or None."""
        self.set(type(self._data)() if is_traversable(self._data) else None)

    def _replace_root(self, value) -> None:
        old = self._data
        self._data = value
        self._detector.trigger_changed(self._root_node, old, value)

    def _set_at_path(self, path_data: PathData, value) -> None:
        tokens = path_data.tokens
        deleting = value is DELETE
        node: DepNode | None = self._root_node
        ancestors = [node]
        container = self._data

        for token in tokens[:-1]:
            present, child = child_value(container, token)
            sub_node = node.sub_deps.get(token) if node is not None else None
            if not is_traversable(child):
                if deleting:
                    return
                new_child: dict = {}
                if not put_value(container, token, new_child):
                    logger.debug("Skipping write to %r: %r does not address a list item", path_data.path, token)
                    return
                if sub_node is not None:
                    self._detector.trigger_changed(sub_node, child, new_child)
                child = new_child
            container = child
            node = sub_node
            if node is not None:
                ancestors.append(node)

        last = tokens[-1]
        present, old = child_value(container, last)
        leaf = node.sub_deps.get(last) if node is not None else None

        if deleting:
            if not present:
                return
            if type(container) is list:
                # Later items shift down, so diff the whole list.
                snapshot = list(container)
                remove_value(container, last)
                if node is not None:
                    self._detector.trigger_changed(node, snapshot, container)
            else:
                remove_value(container, last)
                if leaf is not None:
                    self._detector.trigger_changed(leaf, old, ABSENT)
            changed = True
        else:
            if not put_value(container, last, value):
                logger.debug("Skipping write to %r: %r does not address a list item", path_data.path, last)
                return
            if leaf is None and all(ancestor.value_dep is None for ancestor in ancestors):
                return
            changed = self._detector.trigger_changed(leaf, old, value)

        if changed or not present:
            for ancestor in reversed(ancestors):
                self._batch.queue(ancestor.value_dep)

    # --- Mutators ---

    def update_mutators(self, mutators: dict[str, Mutator]) -> None:
        for path, mutator in mutators.items():
            if not callable(mutator):
                raise UsageError(f"mutator for {path!r} is not callable")
            self._paths[path].mutator = mutator

    def remove_mutators(self, *paths) -> None:
        for path in paths:
            path_data = self._paths.get(path)
            if path_data is not None:
                path_data.mutator = None

    # --- Methods ---

    def update_methods(self, methods: dict[str, Callable]) -> None:
        for name, method in methods.items():
            if not callable(method):
                raise UsageError(f"method {name!r} is not callable")
            self._methods[name] = method

    def remove_methods(self, *names) -> None:
        for name in names:
            self._methods.pop(name, None)

    @batched
    def call(self, name: str, *args, **kwargs):
        """Call the named method with this store as its first argument."""
        method = self._methods.get(name)
        if method is None:
            raise UsageError(f"no method named {name!r}")
        return method(self, *args, **kwargs)

    # --- Computed paths ---

    def compute(self, path: str, fn: Callable[[ReactiveStore], Any]) -> Reaction:
        """Keep path equal to fn(store), re-evaluated whenever what fn reads changes.

        The first evaluation writes too, so path holds the derived value as
        soon as it is bound. Binding a path again replaces its computation;
        disposing the returned Reaction unbinds it.
        """
        path_data = self._paths[path]
        self._stop_computation(path_data)

        def derive() -> None:
            value = fn(self)
            with untracked():
                self.assign(path, value)

        computation = autorun(derive)
        path_data.computation = computation

        def unbind() -> None:
            if path_data.computation is computation:
                path_data.computation = None

        computation.on_dispose(unbind)
        return computation

    def _stop_computation(self, path_data: PathData) -> bool:
        if path_data.computation is None:
            return False
        path_data.computation.dispose()
        path_data.computation = None
        return True

    def stop_computations(self) -> Future:
        """Stop every computed path. The returned future holds the number stopped."""
        stopped = sum(self._stop_computation(path_data) for path_data in self._paths)
        logger.debug("Stopped %d computations", stopped)
        done: Future = Future()
        done.set_result(stopped)
        return done

    # --- Wrappers ---

    def path(self, base) -> StorePath:
        """The cached StorePath for base."""
        if base is ROOT or base is None:
            if self._root_path is None:
                self._root_path = StorePath(self, ROOT)
            return self._root_path
        path_data = self._paths[base]
        if path_data.wrapper is None:
            path_data.wrapper = StorePath(self, base)
        return path_data.wrapper

    # --- Reaction lifecycle ---

    def reconcile(
        self,
        setup_fn: Callable[[ReactiveStore], list | None],
        *,
        mutators: dict[str, Mutator] | None = None,
        methods: dict[str, Callable] | None = None,
        computations: dict[str, Callable[[ReactiveStore], Any]] | None = None,
    ) -> None:
        """Merge registries and re-register reactions.

        The stored value is untouched. Reactions returned by the previous
        setup_fn are disposed; setup_fn(store) -> list[disposable] registers new ones.
        """
        if mutators:
            self.update_mutators(mutators)
        if methods:
            self.update_methods(methods)
        if computations:
            for path, fn in computations.items():
                self.compute(path, fn)
        self._dispose_reactions()
        self._reaction_disposers = setup_fn(self) or []

    def _dispose_reactions(self) -> None:
        for d in self._reaction_disposers:
            d.dispose()
        self._reaction_disposers.clear()

    def dispose(self) -> None:
        self._dispose_reactions()
        self.stop_computations()

    def __repr__(self) -> str:
        return f"ReactiveStore({self._data!r})"
