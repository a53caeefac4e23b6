"""deepstore: a reactive store with per-path change tracking over nested values."""

from importlib.metadata import version as _version

__version__ = _version("deepstore")

from deepstore._tracking import get_pending_count, is_tracking, untracked
from deepstore.dependency import Dependency
from deepstore.reaction import Reaction, autorun, reaction
from deepstore.action import action, transaction
from deepstore.sentinels import CANCEL, DELETE, ROOT, shallow
from deepstore.errors import StoreError, UsageError
from deepstore.equality import EqualityRegistry
from deepstore.store import ReactiveStore
from deepstore.wrapper import StorePath
# hot_reload and textual are opt-in imports

__all__ = [
    "Dependency",
    "Reaction",
    "autorun",
    "reaction",
    "action",
    "transaction",
    "get_pending_count",
    "is_tracking",
    "untracked",
    "DELETE",
    "CANCEL",
    "ROOT",
    "shallow",
    "StoreError",
    "UsageError",
    "EqualityRegistry",
    "ReactiveStore",
    "StorePath",
]
