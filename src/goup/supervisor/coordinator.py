"""Restart coordinator - single-flight rebuild and restart cycles.

State machine:
IDLE → RESTARTING → IDLE

A qualifying change while IDLE starts one cycle as a tracked task. Changes
arriving while RESTARTING are dropped, or with BusyPolicy.RERUN collapse into
one more cycle run right after the current one.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable

from ..config import BusyPolicy
from ..errors import BuildError, SpawnError
from ..project import Project, Toolchain
from ..watch import ChangeEvent
from .process import ProcessSupervisor
from .state import RestartState
from .stdin import StdinRelay

logger = logging.getLogger(__name__)


class RestartCoordinator:
    """Glues the build step to the process supervisor.

    The state value is guarded by a lock; check-and-transition is a single
    critical section so two callers can never both start a cycle.
    """

    def __init__(
        self,
        project: Project,
        toolchain: Toolchain,
        supervisor: ProcessSupervisor,
        stdin_relay: StdinRelay,
        args: list[str],
        busy_policy: BusyPolicy = BusyPolicy.DROP,
    ):
        """Initialize coordinator.

        Args:
            project: Build target description
            toolchain: Build capability
            supervisor: Owner of the running child
            stdin_relay: Input source for restarted children
            args: Arguments forwarded to every child
            busy_policy: Handling of changes that arrive mid-cycle
        """
        self._project = project
        self._toolchain = toolchain
        self._supervisor = supervisor
        self._stdin_relay = stdin_relay
        self._args = list(args)
        self._busy_policy = busy_policy
        self._state = RestartState.IDLE
        self._state_lock = threading.Lock()
        self._pending = False
        self._tasks: set[asyncio.Task[None]] = set()
        self._state_listeners: list[Callable[[RestartState], None]] = []

    @property
    def state(self) -> RestartState:
        """Current restart state."""
        with self._state_lock:
            return self._state

    @property
    def is_restarting(self) -> bool:
        return self.state == RestartState.RESTARTING

    @property
    def busy_policy(self) -> BusyPolicy:
        return self._busy_policy

    @property
    def outstanding(self) -> int:
        """Number of cycle tasks not yet finished."""
        return sum(1 for task in self._tasks if not task.done())

    def on_state_change(self, listener: Callable[[RestartState], None]) -> None:
        """Register state change listener."""
        self._state_listeners.append(listener)

    def _notify(self, old_state: RestartState, new_state: RestartState) -> None:
        logger.info(f"Restart state: {old_state.value} -> {new_state.value}")
        for listener in self._state_listeners:
            try:
                listener(new_state)
            except Exception:
                logger.exception("State listener error")

    def _try_begin(self) -> bool:
        """Transition IDLE → RESTARTING, or record the change as missed."""
        with self._state_lock:
            if self._state == RestartState.RESTARTING:
                if self._busy_policy == BusyPolicy.RERUN:
                    self._pending = True
                return False
            self._state = RestartState.RESTARTING
        self._notify(RestartState.IDLE, RestartState.RESTARTING)
        return True

    def _finish(self) -> bool:
        """End a cycle.

        Returns:
            True if a pending change requires another cycle; the state stays
            RESTARTING in that case.
        """
        with self._state_lock:
            if self._pending:
                self._pending = False
                return True
            self._state = RestartState.IDLE
        self._notify(RestartState.RESTARTING, RestartState.IDLE)
        return False

    def submit(self, event: ChangeEvent | None = None) -> asyncio.Task[None] | None:
        """Request a rebuild/restart cycle.

        Must be called from the event loop thread.

        Args:
            event: The qualifying change, None for the startup cycle

        Returns:
            The cycle task, or None if a cycle was already running
        """
        if not self._try_begin():
            if event is not None:
                logger.debug(f"Restart in progress, {self._busy_action()}: {event}")
            return None

        if event is not None:
            logger.info(str(event))
        task = asyncio.get_running_loop().create_task(self._run(), name="goup-restart")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _busy_action(self) -> str:
        if self._busy_policy == BusyPolicy.RERUN:
            return "will run again"
        return "ignoring"

    async def _run(self) -> None:
        while True:
            try:
                await self._cycle()
            except Exception:
                logger.exception("Restart cycle failed")
            if not self._finish():
                return
            logger.info("Changes arrived during restart, running again")

    async def _cycle(self) -> None:
        """One rebuild and, for executables, one restart."""
        if self._project.is_executable:
            logger.info("restarting application")
        else:
            logger.info("recompiling package")

        try:
            await self._toolchain.build()
        except BuildError as e:
            # Wait for another change
            logger.error(f"failed to run go install - {e}")
            return

        if not self._project.is_executable:
            return

        self._supervisor.terminate()
        try:
            await self._supervisor.start(
                self._project.target,
                self._args,
                self._stdin_relay.source(),
            )
        except SpawnError as e:
            logger.error(str(e))

    async def join(self) -> None:
        """Wait until every tracked cycle has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
