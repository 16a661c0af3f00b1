"""goup specific exceptions."""

from __future__ import annotations


class GoupError(Exception):
    """Base exception for goup errors."""

    pass


class ConfigError(GoupError):
    """Raised when environment configuration is invalid."""

    pass


class ProjectError(GoupError):
    """Raised when the project description cannot be loaded."""

    pass


class WatchRegistrationError(GoupError):
    """Raised when a directory cannot be registered with the watcher."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"failed to register: {path} - {reason}")
        self.path = path
        self.reason = reason


class BuildError(GoupError):
    """Build step failed."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


class SpawnError(GoupError):
    """Raised when the target executable cannot be started."""

    pass
