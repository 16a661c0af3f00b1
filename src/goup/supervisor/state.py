"""Restart state machine states and child process handle.

State machine:
IDLE → RESTARTING → IDLE
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from .stdin import StdinSource


class RestartState(str, Enum):
    """Restart coordinator states."""

    IDLE = "idle"
    RESTARTING = "restarting"


@dataclass
class ChildHandle:
    """The currently supervised process.

    Owned by ProcessSupervisor. exit_code is filled in by the reaper.
    """

    process: asyncio.subprocess.Process
    stdin_source: StdinSource
    exit_code: int | None = field(default=None)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def has_exited(self) -> bool:
        return self.exit_code is not None or self.process.returncode is not None
