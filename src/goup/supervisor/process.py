"""Process supervisor - lifecycle of the supervised program.

Starting, signalling and reaping never block the caller: reaping and feeding
replayed input run as background tasks whose results are only logged.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from ..config import TerminationSignal
from ..errors import SpawnError
from .state import ChildHandle
from .stdin import StdinSource

logger = logging.getLogger(__name__)

SpawnFunc = Callable[..., Awaitable[asyncio.subprocess.Process]]


class ProcessSupervisor:
    """Owns the single current child process.

    The current handle is guarded by a lock because it is read by the signal
    router and replaced by restart cycles.
    """

    def __init__(
        self,
        term_signal: TerminationSignal,
        spawn: SpawnFunc | None = None,
    ):
        """Initialize supervisor.

        Args:
            term_signal: Signal sent by terminate()
            spawn: Process factory with the asyncio.create_subprocess_exec
                signature (injectable for tests)
        """
        self._term_signal = term_signal
        self._spawn = spawn or asyncio.create_subprocess_exec
        self._lock = threading.Lock()
        self._current: ChildHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def term_signal(self) -> TerminationSignal:
        return self._term_signal

    @property
    def current(self) -> ChildHandle | None:
        """Current child handle, if any."""
        with self._lock:
            return self._current

    @property
    def pending_tasks(self) -> int:
        """Number of reaper and input feeder tasks still running."""
        return len(self._tasks)

    def terminate(self) -> bool:
        """Send the termination signal to the current child.

        Delivery failures are logged, never raised.

        Returns:
            True if the signal was delivered
        """
        handle = self.current
        if handle is None:
            return False

        pid = handle.pid
        if handle.has_exited:
            logger.debug(f"Process {pid} already exited, not signalling")
            return False

        logger.info(f"terminating process: {pid}")
        try:
            handle.process.send_signal(self._term_signal.signum)
        except (ProcessLookupError, OSError) as e:
            logger.warning(f"failed to terminate: {pid} reason: {e}")
            return False
        return True

    async def start(
        self,
        executable: str,
        args: list[str],
        stdin_source: StdinSource,
    ) -> ChildHandle:
        """Start a new child and make it current.

        Standard output and error are inherited. Standard input is either
        inherited (terminal) or fed from a fresh copy of the captured bytes.

        Args:
            executable: Program path
            args: Arguments forwarded to the program
            stdin_source: Input for this child

        Returns:
            Handle of the started child

        Raises:
            SpawnError: If the program cannot be started. No handle is current
                afterwards.
        """
        stdin = asyncio.subprocess.PIPE if stdin_source.is_replay else None
        try:
            process = await self._spawn(
                executable,
                *args,
                stdin=stdin,
                stdout=None,
                stderr=None,
            )
        except (OSError, ValueError) as e:
            with self._lock:
                self._current = None
            raise SpawnError(f"failed to run command: {e}") from e

        handle = ChildHandle(process=process, stdin_source=stdin_source)
        with self._lock:
            self._current = handle
        logger.info(f"started on PID: {process.pid}")

        if stdin_source.is_replay:
            self._track(self._feed_stdin(handle))
        self._track(self._reap(handle))
        return handle

    def _track(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _feed_stdin(self, handle: ChildHandle) -> None:
        """Write a fresh copy of the captured input, then close the pipe."""
        pipe = handle.process.stdin
        if pipe is None:
            return
        reader = handle.stdin_source.open()
        try:
            pipe.write(reader.read())
            await pipe.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            logger.debug(f"Process {handle.pid} closed its input early: {e}")
        finally:
            pipe.close()

    async def _reap(self, handle: ChildHandle) -> None:
        """Wait for the child to exit and record its status."""
        try:
            exit_code = await handle.process.wait()
        except Exception:
            logger.exception(f"Failed to reap process {handle.pid}")
            return
        handle.exit_code = exit_code
        logger.info(f"process {handle.pid} exited with code {exit_code}")

    async def join(self) -> None:
        """Wait for all background tasks (used in tests and shutdown paths)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
