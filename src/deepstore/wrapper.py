"""StorePath — a store handle fixed to one base path."""

from __future__ import annotations

from typing import TYPE_CHECKING

from deepstore.paths import SEPARATOR
from deepstore.sentinels import ROOT

if TYPE_CHECKING:
    from deepstore.store import ReactiveStore

_UNSET = object()


class StorePath:
    """Reads and writes relative to a base path; all work is delegated to the store."""

    __slots__ = ("_store", "_base", "_sub_paths")

    def __init__(self, store: ReactiveStore, base) -> None:
        self._store = store
        self._base = base
        self._sub_paths: dict[str, str] = {}

    @property
    def base(self):
        return self._base

    def _full(self, sub):
        if sub is None or sub is ROOT:
            return self._base
        full = self._sub_paths.get(sub)
        if full is None:
            full = sub if self._base is ROOT else f"{self._base}{SEPARATOR}{sub}"
            self._sub_paths[sub] = full
        return full

    def get(self, sub=None, *, reactive: bool = True):
        return self._store.get(self._full(sub), reactive=reactive)

    def has(self, sub=None, *, reactive: bool = True) -> bool:
        return self._store.has(self._full(sub), reactive=reactive)

    def equals(self, sub, value, *, reactive: bool = True) -> bool:
        return self._store.equals(self._full(sub), value, reactive=reactive)

    def set(self, value) -> None:
        """Replace the value at the base path."""
        if self._base is ROOT:
            self._store.set(value)
        else:
            self._store.assign(self._base, value)

    def assign(self, sub_or_mapping, value=_UNSET, *, mutate: bool = True) -> None:
        if isinstance(sub_or_mapping, dict):
            mapping = {self._full(sub): val for sub, val in sub_or_mapping.items()}
            self._store.assign(mapping, mutate=mutate)
        elif value is _UNSET:
            self._store.assign(self._full(sub_or_mapping), mutate=mutate)
        else:
            self._store.assign(self._full(sub_or_mapping), value, mutate=mutate)

    def delete(self, *subs) -> None:
        """Delete sub-paths, or the base path itself when called without arguments."""
        if not subs:
            self._store.delete(self._base)
        else:
            self._store.delete(*(self._full(sub) for sub in subs))

    def __repr__(self) -> str:
        return f"StorePath({self._base!r})"
