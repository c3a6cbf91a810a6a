"""Coalescing wake channel for heartbeat runs.

Wake requests from the interval timer and from external triggers all land
here. Requests arriving while one is pending merge into it, and a request
that comes due while a run is in flight waits for that run to finish, so at
most one heartbeat run executes at a time.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from pulsegate.model.heartbeat import HeartbeatRunResult

logger = logging.getLogger(__name__)

WakeHandler = Callable[[str | None], Awaitable[HeartbeatRunResult]]

DEFAULT_COALESCE_MS = 250
DEFAULT_RETRY_MS = 1000

# Skip reason that means "try again shortly" rather than "nothing to do".
BUSY_REASON = "requests-in-flight"


class HeartbeatWake:
    """Single-slot wake channel with exactly one active listener.

    ``set_handler`` swaps the listener atomically; there is never more than
    one. A pending wake is a reason plus one armed timer. Must be used from
    within a running event loop.
    """

    def __init__(self, retry_ms: int = DEFAULT_RETRY_MS, coalesce_ms: int = DEFAULT_COALESCE_MS):
        """Initialize the wake channel.

        Args:
            retry_ms: Delay before retrying a wake whose run was busy or raised.
            coalesce_ms: Window used when re-arming a wake that was deferred
                (by a run in flight or a missing listener).
        """
        self.retry_ms = retry_ms
        self.coalesce_ms = coalesce_ms
        self._handler: WakeHandler | None = None
        self._pending_reason: str | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._deadline: float | None = None
        self._running = False
        self._run_task: asyncio.Task[None] | None = None

    def set_handler(self, handler: WakeHandler | None) -> None:
        """Replace the active listener (None deregisters).

        A wake that was requested while no listener was registered fires
        once a listener is set.
        """
        self._handler = handler
        if handler is not None and self._pending_reason is not None:
            self._schedule(self.coalesce_ms)

    def has_handler(self) -> bool:
        return self._handler is not None

    def has_pending(self) -> bool:
        """True when a wake is waiting to fire."""
        return self._pending_reason is not None or self._timer is not None

    @property
    def running(self) -> bool:
        return self._running

    def request_now(self, reason: str | None = None, coalesce_ms: int = DEFAULT_COALESCE_MS) -> None:
        """Ask for a heartbeat run within ``coalesce_ms``.

        Merges with any pending request; the earliest deadline wins and the
        latest explicit reason is kept.
        """
        self._pending_reason = reason or self._pending_reason or "requested"
        self._schedule(coalesce_ms)

    def _schedule(self, delay_ms: int) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(delay_ms, 0) / 1000
        if self._timer is not None:
            if self._deadline is not None and deadline >= self._deadline:
                return
            self._timer.cancel()
        self._deadline = deadline
        self._timer = loop.call_at(deadline, self._fire)

    def _fire(self) -> None:
        self._timer = None
        self._deadline = None

        handler = self._handler
        if handler is None:
            return
        if self._running:
            # Re-armed from _run_handler once the in-flight run finishes.
            return

        reason = self._pending_reason
        self._pending_reason = None
        self._running = True
        self._run_task = asyncio.get_running_loop().create_task(self._run_handler(handler, reason))

    async def _run_handler(self, handler: WakeHandler, reason: str | None) -> None:
        retry = False
        try:
            result = await handler(reason)
            if result.status == "skipped" and result.reason == BUSY_REASON:
                retry = True
        except Exception as e:
            logger.error(f"Heartbeat wake handler failed: {e}", exc_info=True)
            retry = True
        finally:
            self._running = False

        if self._handler is None:
            # Closed or deregistered mid-run: nothing may be re-armed.
            return
        if retry:
            self._pending_reason = self._pending_reason or reason or "retry"
            self._schedule(self.retry_ms)
        elif self._pending_reason is not None:
            self._schedule(self.coalesce_ms)

    async def wait_idle(self) -> None:
        """Wait for the in-flight run, if any, to finish."""
        task = self._run_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def close(self) -> None:
        """Cancel any pending wake and deregister the listener.

        A run already in flight is left to finish.
        """
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._deadline = None
        self._pending_reason = None
        self._handler = None
