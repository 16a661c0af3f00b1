"""Signal router - graceful shutdown on SIGINT / SIGTERM."""

from __future__ import annotations

import asyncio
import logging
import signal

from .coordinator import RestartCoordinator
from .process import ProcessSupervisor

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalRouter:
    """Forwards the termination signal to the child, then releases shutdown.

    Shutdown does not wait for the child to exit and does not wait for an
    in-flight restart cycle.
    """

    def __init__(
        self,
        supervisor: ProcessSupervisor,
        coordinator: RestartCoordinator | None = None,
    ):
        self._supervisor = supervisor
        self._coordinator = coordinator
        self._shutdown = asyncio.Event()
        self._received: int | None = None

    @property
    def received(self) -> int | None:
        """Number of the signal that requested shutdown, if any."""
        return self._received

    @property
    def is_shutting_down(self) -> bool:
        return self._shutdown.is_set()

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route SIGINT and SIGTERM to handle()."""
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.handle, sig)
            except NotImplementedError:
                # Windows event loops have no add_signal_handler
                signal.signal(
                    sig,
                    lambda signum, _frame: loop.call_soon_threadsafe(self.handle, signum),
                )

    def handle(self, signum: int) -> None:
        """Terminate the child once and request shutdown."""
        if self._received is not None:
            return
        self._received = signum
        logger.info(f"Received {signal.Signals(signum).name}, shutting down")
        self._supervisor.terminate()
        if self._coordinator is not None and self._coordinator.outstanding:
            logger.info(f"Abandoning {self._coordinator.outstanding} restart cycle(s) in progress")
        self._shutdown.set()

    async def wait(self) -> int:
        """Wait for a shutdown request, returning the signal number."""
        await self._shutdown.wait()
        assert self._received is not None
        return self._received
