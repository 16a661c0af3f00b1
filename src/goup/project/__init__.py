"""Project loading through the Go toolchain."""

from .model import PackageInfo, Project
from .toolchain import GoToolchain, Toolchain

__all__ = [
    "Project",
    "PackageInfo",
    "GoToolchain",
    "Toolchain",
]
