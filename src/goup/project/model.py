"""Project description types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Project:
    """The build target and the directories to watch for it.

    Built once at startup, never mutated afterwards.
    """

    name: str
    dir: str
    target: str = ""
    watched: tuple[str, ...] = ()

    @property
    def is_executable(self) -> bool:
        """Whether `go install` produces a program that should be restarted."""
        return self.name == "main"

    @property
    def watch_set(self) -> tuple[str, ...]:
        """Dependency directories plus the project directory, without duplicates."""
        seen: dict[str, None] = {}
        for path in (*self.watched, self.dir):
            if path:
                seen.setdefault(path, None)
        return tuple(seen)


@dataclass
class PackageInfo:
    """One package record from `go list -json`."""

    import_path: str
    name: str = ""
    dir: str = ""
    target: str = ""
    deps: list[str] = field(default_factory=list)
    goroot: bool = False
    standard: bool = False
    error: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> PackageInfo:
        """Create from a decoded `go list -json` object."""
        error = data.get("Error")
        if isinstance(error, dict):
            error = error.get("Err") or str(error)
        return cls(
            import_path=data.get("ImportPath", ""),
            name=data.get("Name", ""),
            dir=data.get("Dir", ""),
            target=data.get("Target", ""),
            deps=list(data.get("Deps") or []),
            goroot=bool(data.get("Goroot", False)),
            standard=bool(data.get("Standard", False)),
            error=error or None,
        )

    @property
    def is_vendored(self) -> bool:
        return is_vendored(self.import_path)


def is_vendored(import_path: str) -> bool:
    """Whether an import path points into a vendor directory."""
    return import_path.startswith("vendor/") or "/vendor/" in import_path
