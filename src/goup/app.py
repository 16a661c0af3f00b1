"""Application wiring and the dispatch loop."""

from __future__ import annotations

import asyncio
import logging

from .config import GoupConfig
from .project import Project, Toolchain
from .supervisor import ProcessSupervisor, RestartCoordinator, SignalRouter, StdinRelay
from .watch import ChangeEvent, DirectoryWatcher, EventFilter

logger = logging.getLogger(__name__)


class Goup:
    """Watches a project and keeps its program rebuilt and running."""

    def __init__(
        self,
        config: GoupConfig,
        project: Project,
        toolchain: Toolchain,
        stdin_relay: StdinRelay,
        args: list[str],
        watcher: DirectoryWatcher | None = None,
        supervisor: ProcessSupervisor | None = None,
    ):
        self.config = config
        self.project = project
        self.event_filter = EventFilter(config.extensions)
        self.watcher = watcher or DirectoryWatcher()
        self.supervisor = supervisor or ProcessSupervisor(config.term_signal)
        self.coordinator = RestartCoordinator(
            project=project,
            toolchain=toolchain,
            supervisor=self.supervisor,
            stdin_relay=stdin_relay,
            args=args,
            busy_policy=config.busy_policy,
        )
        self.router = SignalRouter(self.supervisor, self.coordinator)

    def register(self) -> None:
        """Register the project and dependency directories.

        Raises:
            WatchRegistrationError: On the first directory that cannot be watched
        """
        for path in self.project.watch_set:
            self.watcher.add(path)
        extensions = ", ".join(sorted(self.event_filter.extensions))
        logger.info(
            f"Watching {len(self.watcher.watched)} directories for {extensions} changes "
            f"(on busy: {self.coordinator.busy_policy.value})"
        )

    def dispatch(self, item: ChangeEvent | Exception) -> asyncio.Task[None] | None:
        """Handle one item from the watcher."""
        if isinstance(item, Exception):
            logger.error(f"watch error: {item}")
            return None
        if not self.event_filter.classify(item):
            return None
        return self.coordinator.submit(item)

    async def run(self) -> int:
        """Watch until a shutdown signal arrives.

        Returns:
            Exit status (0 after a shutdown signal)

        Raises:
            WatchRegistrationError: If a directory cannot be registered
        """
        loop = asyncio.get_running_loop()
        self.router.install(loop)
        self.watcher.start(loop)
        try:
            self.register()
            self.coordinator.submit()
            await self._dispatch_loop()
        finally:
            self.watcher.stop()
        return 0

    async def _dispatch_loop(self) -> None:
        shutdown = asyncio.ensure_future(self.router.wait())
        try:
            while True:
                next_item = asyncio.ensure_future(self.watcher.get())
                done, _ = await asyncio.wait(
                    {next_item, shutdown}, return_when=asyncio.FIRST_COMPLETED
                )
                if next_item in done:
                    self.dispatch(next_item.result())
                else:
                    next_item.cancel()
                if shutdown in done:
                    return
        finally:
            shutdown.cancel()
