"""Standard input relay.

A piped input stream can be read only once, but the supervised program is
started many times. The input is captured at startup and every restarted
child gets its own copy, read from the beginning. An interactive terminal is
passed through untouched.
"""

from __future__ import annotations

import io
import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

logger = logging.getLogger(__name__)


class StdinMode(str, Enum):
    """Where a child's standard input comes from."""

    TERMINAL = "terminal"
    REPLAY = "replay"


@dataclass(frozen=True)
class StdinSource:
    """Input description handed to one child process."""

    mode: StdinMode
    data: bytes = b""

    @property
    def is_replay(self) -> bool:
        return self.mode == StdinMode.REPLAY

    def open(self) -> BinaryIO:
        """Return a fresh read cursor over the captured bytes."""
        if not self.is_replay:
            raise ValueError("terminal input cannot be replayed")
        return io.BytesIO(self.data)


class StdinRelay:
    """Holds the captured input, if any, for the lifetime of goup."""

    def __init__(self, data: bytes | None = None):
        """Initialize relay.

        Args:
            data: Captured input bytes, None for a terminal passthrough
        """
        self._data = data

    @classmethod
    def capture(cls, stream: BinaryIO | None = None) -> StdinRelay:
        """Capture the input stream once.

        Args:
            stream: Binary input stream (defaults to sys.stdin's buffer)

        Returns:
            Relay replaying the captured bytes, or passing a terminal through

        Raises:
            OSError: If standard input is closed or reading it fails
        """
        if stream is None:
            if sys.stdin is None:
                raise OSError("standard input is closed")
            stream = sys.stdin.buffer
        if _is_terminal(stream):
            logger.debug("Standard input is a terminal, passing through")
            return cls(None)
        data = stream.read()
        logger.debug(f"Captured {len(data)} bytes of standard input for replay")
        return cls(data)

    @property
    def is_replay(self) -> bool:
        return self._data is not None

    def source(self) -> StdinSource:
        """Input source for the next child."""
        if self._data is None:
            return StdinSource(StdinMode.TERMINAL)
        return StdinSource(StdinMode.REPLAY, self._data)


def _is_terminal(stream: BinaryIO) -> bool:
    try:
        return os.isatty(stream.fileno())
    except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
        return stream.isatty()
