"""Directory watching on top of watchdog.

The watchdog observer delivers events on its own thread. They are translated
to ChangeEvent there and handed to the asyncio loop through a queue, so the
dispatch loop only ever sees events on the loop thread.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..errors import WatchRegistrationError
from .filter import ChangeEvent, Op

logger = logging.getLogger(__name__)

_OPS = {
    EVENT_TYPE_MODIFIED: Op.WRITE,
    EVENT_TYPE_CREATED: Op.CREATE,
    EVENT_TYPE_DELETED: Op.REMOVE,
    EVENT_TYPE_MOVED: Op.RENAME,
}

# Queue items are either events or errors raised while translating them
WatchItem = ChangeEvent | Exception


def translate(event: FileSystemEvent) -> list[ChangeEvent]:
    """Translate a watchdog event to change events.

    A move is reported as a rename of the old path and a creation of the
    new one, the way inotify based tools report it.
    """
    src_path = os.fsdecode(event.src_path)
    op = _OPS.get(event.event_type, Op.OTHER)
    events = [ChangeEvent(src_path, op)]
    if event.event_type == EVENT_TYPE_MOVED:
        dest_path = os.fsdecode(getattr(event, "dest_path", "") or "")
        if dest_path:
            events.append(ChangeEvent(dest_path, Op.CREATE))
    return events


class _QueueHandler(FileSystemEventHandler):
    """Forwards translated events into an asyncio queue."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[WatchItem],
    ):
        super().__init__()
        self._loop = loop
        self._queue = queue

    def _post(self, item: WatchItem) -> None:
        try:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Loop already closed during shutdown
            logger.debug(f"Dropping watch item after loop close: {item}")

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            changes = translate(event)
        except Exception as e:
            self._post(e)
            return
        for change in changes:
            self._post(change)


class DirectoryWatcher:
    """Watches a set of directories, non-recursively.

    Usage:
        watcher = DirectoryWatcher()
        watcher.start(loop)
        watcher.add("/path/to/pkg")
        item = await watcher.get()
    """

    def __init__(self, observer_factory: Callable[[], Any] = Observer):
        """Initialize watcher.

        Args:
            observer_factory: Creates the watchdog observer (injectable for tests)
        """
        self._observer_factory = observer_factory
        self._observer: Any = None
        self._handler: _QueueHandler | None = None
        self._queue: asyncio.Queue[WatchItem] = asyncio.Queue()
        self._watched: list[str] = []

    @property
    def watched(self) -> list[str]:
        """Registered directories."""
        return list(self._watched)

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """Start the observer thread, delivering into the given loop."""
        if self._observer is not None:
            return
        self._handler = _QueueHandler(loop, self._queue)
        self._observer = self._observer_factory()
        self._observer.start()

    def add(self, path: str) -> None:
        """Register a directory.

        Raises:
            WatchRegistrationError: If the path is not a watchable directory
        """
        if self._observer is None or self._handler is None:
            raise WatchRegistrationError(path, "watcher not started")
        if path in self._watched:
            return
        if not os.path.isdir(path):
            raise WatchRegistrationError(path, "not a directory")
        try:
            self._observer.schedule(self._handler, path, recursive=False)
        except OSError as e:
            raise WatchRegistrationError(path, str(e)) from e
        self._watched.append(path)
        logger.debug(f"Watching {path}")

    async def get(self) -> WatchItem:
        """Wait for the next change event or watch error."""
        return await self._queue.get()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop the observer thread."""
        if self._observer is None:
            return
        try:
            self._observer.stop()
            self._observer.join(timeout=timeout)
        except RuntimeError as e:
            logger.warning(f"Failed to stop observer: {e}")
        finally:
            self._observer = None
