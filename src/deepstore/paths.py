"""Path tokenization, per-path metadata and container access.

Paths are dot-separated strings. Each distinct path is split once and its
PathData kept for the store's lifetime, together with whatever the store has
attached to it (mutator, bound computation, wrapper).
"""

from __future__ import annotations

from typing import Callable, Iterator

from deepstore.errors import UsageError
from deepstore.sentinels import ABSENT

SEPARATOR = "."


def is_traversable(value) -> bool:
    """Plain dicts and lists are walked into; everything else is a leaf."""
    return type(value) is dict or type(value) is list


def _index(token: str) -> int | None:
    if token.isascii() and token.isdigit() and (len(token) == 1 or token[0] != "0"):
        return int(token)
    return None


def child_value(container, token: str):
    """Return (present, value) for token in container."""
    if type(container) is dict:
        if token in container:
            return True, container[token]
    elif type(container) is list:
        index = _index(token)
        if index is not None and index < len(container):
            return True, container[index]
    return False, ABSENT


def put_value(container, token: str, value) -> bool:
    """Store value under token. False when token cannot address container."""
    if type(container) is dict:
        container[token] = value
        return True
    index = _index(token)
    if index is None:
        return False
    if index < len(container):
        container[index] = value
    else:
        container.extend([None] * (index - len(container)))
        container.append(value)
    return True


def remove_value(container, token: str) -> None:
    if type(container) is dict:
        del container[token]
    else:
        del container[_index(token)]


def entries(container) -> dict:
    """Children of a traversable container keyed the way paths address them."""
    if type(container) is dict:
        return container
    return {str(index): item for index, item in enumerate(container)}


class PathData:
    __slots__ = ("path", "tokens", "mutator", "computation", "wrapper")

    def __init__(self, path: str) -> None:
        self.path = path
        self.tokens: tuple[str, ...] = tuple(path.split(SEPARATOR))
        self.mutator: Callable | None = None
        self.computation = None
        self.wrapper = None

    def __repr__(self) -> str:
        return f"PathData({self.path!r})"


class PathCache:
    """Lazily created PathData per path string. Entries are never evicted."""

    def __init__(self) -> None:
        self._entries: dict[str, PathData] = {}

    def __getitem__(self, path: str) -> PathData:
        if not isinstance(path, str):
            raise UsageError(f"paths must be strings, not {type(path).__name__}")
        data = self._entries.get(path)
        if data is None:
            data = self._entries[path] = PathData(path)
        return data

    def get(self, path: str) -> PathData | None:
        return self._entries.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[PathData]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)
