"""Structural diff and interest invalidation.

Given a DepNode and the old and new values at its path, decide whether the
value changed and queue exactly the interests under that node that are
affected. The engine never touches the value tree; the write path mutates
first and then asks the engine what that mutation meant.

Policy for one (old, new) pair:

1. old is a primitive (or absent): changed unless new is the same value.
2. old is new, a container or object: the caller may have mutated it in
   place, so there is no way to tell. Assume changed.
3. old is a plain container: compare children. A different container kind
   or child count is already a change, but children that carry interests are
   still diffed so each of them hears about its own change.
4. old is any other object: ask the equality registry; no check means changed.
5. new is a plain container that step 3 did not walk: wake interests for
   every observed child that now exists. After step 2 or a cycle cut the old
   children are unknown, so children now holding None are woken as well.

Reference cycles are cut with a visited set scoped to one top-level call; a
container seen twice is assumed changed.
"""

from __future__ import annotations

import inspect
from enum import Enum
from typing import Callable

from deepstore.dependency import Dependency
from deepstore.depnode import DepNode
from deepstore.equality import EqualityRegistry
from deepstore.paths import entries, is_traversable
from deepstore.sentinels import ABSENT

_PRIMITIVE_TYPES = (bool, int, float, complex, str, bytes, Enum)


def is_primitive(value) -> bool:
    """Values compared by identity/value rather than by structure."""
    return (
        value is None
        or value is ABSENT
        or isinstance(value, _PRIMITIVE_TYPES)
        or inspect.isroutine(value)
    )


def exists(value) -> bool:
    return value is not ABSENT and value is not None


def eq_key(value):
    """The equality-interest key that holds for value, or None if none can."""
    if value is ABSENT:
        value = None
    if is_primitive(value):
        return (type(value), value)
    return None


def _primitive_changed(old, new) -> bool:
    if old is ABSENT:
        old = None
    if new is ABSENT:
        new = None
    if old is new:
        return False
    if type(old) is not type(new):
        return True
    return old != new


class ChangeDetector:
    """Diffs old/new values against a DepNode subtree and queues affected interests."""

    __slots__ = ("_equality", "_queue")

    def __init__(self, equality: EqualityRegistry, queue: Callable[[Dependency | None], None]) -> None:
        self._equality = equality
        self._queue = queue

    def trigger_changed(self, node: DepNode | None, old, new, visited: set[int] | None = None) -> bool:
        """Diff old against new under node. Returns whether the value changed."""
        if visited is None:
            visited = set()
        sub_deps = node.sub_deps if node is not None else None
        new_traversable = is_traversable(new)
        walked = False
        assumed = False

        if is_primitive(old):
            changed = _primitive_changed(old, new)
        elif old is new:
            changed = assumed = True
        elif is_traversable(old):
            if id(old) in visited or id(new) in visited:
                changed = assumed = True
            else:
                visited.add(id(old))
                if new_traversable:
                    visited.add(id(new))
                changed = self._diff_children(sub_deps, old, new, new_traversable, visited)
                walked = True
        else:
            changed = not self._equality.equal(old, new)

        if new_traversable and not walked and sub_deps:
            self.trigger_all(node, new, assume_changed=assumed)

        if changed and node is not None:
            self.register_change(node, new)

        return changed

    def _diff_children(self, sub_deps, old, new, new_traversable: bool, visited: set[int]) -> bool:
        old_entries = entries(old)
        keys = dict.fromkeys(old_entries)

        if new_traversable:
            new_entries = entries(new)
            changed = type(old) is not type(new) or len(old_entries) != len(new_entries)
            keys.update(dict.fromkeys(new_entries))
        else:
            new_entries = {}
            changed = True

        for key in keys:
            sub_node = sub_deps.get(key) if sub_deps else None
            # Once changed, only children with their own interests matter.
            if changed:
                if not sub_deps:
                    break
                if sub_node is None:
                    continue
            if self.trigger_changed(
                sub_node,
                old_entries.get(key, ABSENT),
                new_entries.get(key, ABSENT),
                visited,
            ):
                changed = True

        return changed

    def trigger_all(self, node: DepNode, value, assume_changed: bool = False) -> None:
        """Wake the interests of every observed child of node present in value.

        Children holding None are skipped unless assume_changed is set, since
        they were absent before a container replaced a non-container.
        """
        if not node.sub_deps or not is_traversable(value):
            return
        children = entries(value)
        for key, sub_node in node.sub_deps.items():
            if key not in children:
                continue
            sub_value = children[key]
            if assume_changed or sub_value is not None:
                self.register_change(sub_node, sub_value)
            self.trigger_all(sub_node, sub_value, assume_changed)

    def register_change(self, node: DepNode, new) -> None:
        """Queue node's interests that are affected by it now holding new."""
        self._queue(node.value_dep)

        if node.exists_dep is not None:
            now_exists = exists(new)
            if now_exists != node.exists:
                node.exists = now_exists
                self._queue(node.exists_dep)

        if node.eq_deps:
            dep = node.eq_deps.get(eq_key(new))
            if dep is not node.active_eq_dep:
                self._queue(dep)
                self._queue(node.active_eq_dep)
                node.active_eq_dep = dep
