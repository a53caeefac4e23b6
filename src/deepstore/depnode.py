"""DepNode — one node of the mirror graph over the stored value.

The mirror only grows where something has read: a node exists for a path
once a tracked read walked through it, and carries interest handles only for
the kinds of read that were made at exactly that path.
"""

from __future__ import annotations

from deepstore.dependency import Dependency


class DepNode:
    """Interest handles for one path plus child nodes keyed by path token.

    - value_dep: woken when the value at this path changes
    - exists_dep + exists: woken when the path starts or stops existing
    - eq_deps: comparison key -> handle, woken when "equals X" flips;
      active_eq_dep is the handle whose comparison currently holds
    """

    __slots__ = ("value_dep", "exists_dep", "exists", "eq_deps", "active_eq_dep", "sub_deps")

    def __init__(self) -> None:
        self.value_dep: Dependency | None = None
        self.exists_dep: Dependency | None = None
        self.exists = False
        self.eq_deps: dict | None = None
        self.active_eq_dep: Dependency | None = None
        self.sub_deps: dict[str, DepNode] = {}

    def child(self, key: str) -> DepNode:
        node = self.sub_deps.get(key)
        if node is None:
            node = self.sub_deps[key] = DepNode()
        return node

    def ensure_value_dep(self) -> Dependency:
        if self.value_dep is None:
            self.value_dep = Dependency()
        return self.value_dep

    def ensure_exists_dep(self, exists: bool) -> Dependency:
        if self.exists_dep is None:
            self.exists_dep = Dependency()
            self.exists = exists
        return self.exists_dep

    def ensure_eq_dep(self, key, matches: bool) -> Dependency:
        if self.eq_deps is None:
            self.eq_deps = {}
        dep = self.eq_deps.get(key)
        if dep is None:
            dep = self.eq_deps[key] = Dependency()
            if matches:
                self.active_eq_dep = dep
        return dep

    def __repr__(self) -> str:
        kinds = [
            name
            for name, present in (
                ("value", self.value_dep is not None),
                ("exists", self.exists_dep is not None),
                ("equals", bool(self.eq_deps)),
            )
            if present
        ]
        return f"DepNode({'/'.join(kinds) or '-'}, children={sorted(self.sub_deps)})"
