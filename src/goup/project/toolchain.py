"""Go toolchain integration.

Loads the project description with `go list`, resolves the directories of its
non-standard, non-vendored dependencies, and runs `go install` as the build
step.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import Iterator
from typing import Any, Protocol

from ..errors import BuildError, ProjectError
from .model import PackageInfo, Project, is_vendored

logger = logging.getLogger(__name__)


class Toolchain(Protocol):
    """Build capability used by the restart coordinator."""

    async def build(self) -> None:
        """Rebuild the project, raising BuildError on failure."""
        ...


def iter_json_objects(text: str) -> Iterator[dict[str, Any]]:
    """Decode a stream of concatenated JSON objects.

    `go list -json` with several packages prints one object after another
    without a separator.

    Raises:
        ValueError: If the stream contains invalid JSON
    """
    decoder = json.JSONDecoder()
    pos = 0
    length = len(text)
    while True:
        while pos < length and text[pos].isspace():
            pos += 1
        if pos >= length:
            return
        obj, pos = decoder.raw_decode(text, pos)
        yield obj


class GoToolchain:
    """Runs go commands in the project directory."""

    def __init__(self, workdir: str, go: str = "go"):
        """Initialize toolchain.

        Args:
            workdir: Directory containing the Go package
            go: Go executable name or path
        """
        self._workdir = os.path.abspath(workdir)
        self._go = go

    async def _run_command(
        self,
        args: list[str],
        capture: bool = True,
    ) -> tuple[int, str, str]:
        """Run a go subcommand.

        Args:
            args: Arguments after the go executable
            capture: Capture output; when False output goes to our own streams

        Returns:
            Tuple of (exit_code, stdout, stderr)

        Raises:
            OSError: If the go executable cannot be run
        """
        pipe = asyncio.subprocess.PIPE if capture else None
        process = await asyncio.create_subprocess_exec(
            self._go,
            *args,
            stdout=pipe,
            stderr=pipe,
            cwd=self._workdir,
        )
        stdout, stderr = await process.communicate()
        exit_code = process.returncode or 0
        return (
            exit_code,
            (stdout or b"").decode("utf-8", errors="replace"),
            (stderr or b"").decode("utf-8", errors="replace"),
        )

    async def describe(self) -> PackageInfo:
        """Describe the package in the working directory.

        Raises:
            ProjectError: If go list fails or prints something unexpected
        """
        try:
            exit_code, stdout, stderr = await self._run_command(["list", "-json", "-e"])
        except OSError as e:
            raise ProjectError(f"cannot run {self._go}: {e}") from e

        if exit_code != 0:
            raise ProjectError(f"go list exited with {exit_code}: {stderr.strip()}")

        try:
            records = list(iter_json_objects(stdout))
        except ValueError as e:
            raise ProjectError(f"cannot parse go list output: {e}") from e
        if not records:
            raise ProjectError("go list returned no package")
        info = PackageInfo.from_json(records[0])
        if info.error:
            logger.warning(f"go list reported: {info.error}")
        return info

    async def resolve_dependencies(self, deps: list[str]) -> list[str]:
        """Resolve dependency import paths to directories worth watching.

        Vendored packages, packages from the Go root and packages that fail to
        resolve are skipped. A failure here never aborts startup.

        Args:
            deps: Dependency import paths

        Returns:
            Directories of the remaining dependencies, in input order
        """
        candidates = [dep for dep in deps if not is_vendored(dep)]
        if not candidates:
            return []

        try:
            exit_code, stdout, stderr = await self._run_command(
                ["list", "-json", "-e", *candidates]
            )
            records = [PackageInfo.from_json(obj) for obj in iter_json_objects(stdout)]
        except (OSError, ValueError) as e:
            logger.warning(f"Dependency resolution failed, watching project only: {e}")
            return []

        if exit_code != 0 and not records:
            logger.warning(f"go list exited with {exit_code}, watching project only: {stderr.strip()}")
            return []

        dirs: list[str] = []
        for pkg in records:
            if pkg.error:
                logger.debug(f"Skipping {pkg.import_path}: {pkg.error}")
                continue
            if pkg.goroot or pkg.standard or pkg.is_vendored or not pkg.dir:
                continue
            if pkg.dir not in dirs:
                dirs.append(pkg.dir)
        return dirs

    async def load_project(self) -> Project:
        """Describe the package and resolve its watch directories."""
        info = await self.describe()
        watched = await self.resolve_dependencies(info.deps)
        project = Project(
            name=info.name,
            dir=info.dir or self._workdir,
            target=info.target,
            watched=tuple(watched),
        )
        if project.is_executable and not project.target:
            logger.warning("go list reported no install target, restarts will fail")
        logger.debug(f"Watching {len(project.watch_set)} directories")
        return project

    async def build(self) -> None:
        """Run `go install`, which rebuilds only changed packages.

        Raises:
            BuildError: If go install fails or cannot be run
        """
        try:
            exit_code, _, _ = await self._run_command(["install"], capture=False)
        except OSError as e:
            raise BuildError(f"cannot run {self._go}: {e}") from e
        if exit_code != 0:
            raise BuildError(f"exit status {exit_code}", exit_code=exit_code)
