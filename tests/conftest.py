"""Pytest fixtures for goup tests."""

import asyncio
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from goup.project import Project  # noqa: E402


class FakeToolchain:
    """Toolchain that records builds and can block or fail on demand."""

    def __init__(self, error=None):
        self.builds = 0
        self.active = 0
        self.max_active = 0
        self.error = error
        self.gate: asyncio.Event | None = None

    async def build(self):
        self.builds += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.error is not None:
                raise self.error
        finally:
            self.active -= 1


def make_process(pid=4242, returncode=None):
    """Mock of asyncio.subprocess.Process whose wait() blocks until released."""
    process = MagicMock()
    process.pid = pid
    process.returncode = returncode
    process.stdin = None
    exited = asyncio.Event()

    async def wait():
        await exited.wait()
        return process.returncode

    def exit_with(code):
        process.returncode = code
        exited.set()

    process.wait = AsyncMock(side_effect=wait)
    process.exit_with = exit_with
    return process


class FakeSpawner:
    """Stands in for asyncio.create_subprocess_exec."""

    def __init__(self, error=None):
        self.calls = []
        self.processes = []
        self.error = error

    async def __call__(self, program, *args, **kwargs):
        self.calls.append((program, list(args), kwargs))
        if self.error is not None:
            raise self.error
        process = make_process(pid=1000 + len(self.processes))
        self.processes.append(process)
        return process


@pytest.fixture
def fake_toolchain():
    return FakeToolchain()


@pytest.fixture
def fake_spawner():
    return FakeSpawner()


@pytest.fixture
def main_project(tmp_path):
    """Executable project with one watched directory."""
    return Project(
        name="main",
        dir=str(tmp_path),
        target=str(tmp_path / "bin" / "app"),
    )


@pytest.fixture
def library_project(tmp_path):
    return Project(name="util", dir=str(tmp_path))
