"""Filesystem change notifications and filtering."""

from .filter import QUALIFYING_OPS, ChangeEvent, EventFilter, Op
from .watcher import DirectoryWatcher, translate

__all__ = [
    "Op",
    "ChangeEvent",
    "EventFilter",
    "QUALIFYING_OPS",
    "DirectoryWatcher",
    "translate",
]
