"""Change events and the filter deciding which of them trigger a rebuild."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Final

from ..config import DEFAULT_EXTENSIONS


class Op(str, Enum):
    """Filesystem operation kinds."""

    WRITE = "write"
    CREATE = "create"
    REMOVE = "remove"
    RENAME = "rename"
    CHMOD = "chmod"
    OTHER = "other"


QUALIFYING_OPS: Final[frozenset[Op]] = frozenset({Op.WRITE, Op.CREATE, Op.REMOVE})


@dataclass(frozen=True)
class ChangeEvent:
    """A single change notification."""

    path: str
    op: Op

    def __str__(self) -> str:
        return f'"{self.path}": {self.op.value.upper()}'


def file_extension(path: str) -> str:
    """Suffix from the last dot of the base name, dot included.

    Unlike os.path.splitext, a name that is only a suffix (".go") counts.
    """
    name = os.path.basename(path)
    dot = name.rfind(".")
    if dot < 0:
        return ""
    return name[dot:]


class EventFilter:
    """Pure predicate over change events."""

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self._extensions = frozenset(extensions)

    @property
    def extensions(self) -> frozenset[str]:
        return self._extensions

    def classify(self, event: ChangeEvent) -> bool:
        """Whether the event should trigger a rebuild.

        True iff the operation is write, create or remove and the file
        suffix is one of the watched extensions.
        """
        if event.op not in QUALIFYING_OPS:
            return False
        return file_extension(event.path) in self._extensions
