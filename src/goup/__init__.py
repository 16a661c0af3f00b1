"""goup - rebuild and restart a Go program whenever its sources change."""

from .app import Goup
from .config import BusyPolicy, GoupConfig, TerminationSignal
from .errors import (
    BuildError,
    ConfigError,
    GoupError,
    ProjectError,
    SpawnError,
    WatchRegistrationError,
)

__version__ = "0.1.0"

__all__ = [
    "Goup",
    "GoupConfig",
    "TerminationSignal",
    "BusyPolicy",
    "GoupError",
    "ConfigError",
    "ProjectError",
    "WatchRegistrationError",
    "BuildError",
    "SpawnError",
]
