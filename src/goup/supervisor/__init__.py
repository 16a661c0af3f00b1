"""Restart coordination and child process supervision."""

from .coordinator import RestartCoordinator
from .process import ProcessSupervisor
from .signals import SignalRouter
from .state import ChildHandle, RestartState
from .stdin import StdinMode, StdinRelay, StdinSource

__all__ = [
    "RestartState",
    "ChildHandle",
    "StdinMode",
    "StdinSource",
    "StdinRelay",
    "ProcessSupervisor",
    "RestartCoordinator",
    "SignalRouter",
]
