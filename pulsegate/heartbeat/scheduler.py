"""Interval scheduling for heartbeat runs."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from pulsegate.core.abort import AbortSignal
from pulsegate.core.config import Config, load_config
from pulsegate.heartbeat.runner import HeartbeatDeps, HeartbeatRunner
from pulsegate.heartbeat.wake import HeartbeatWake

logger = logging.getLogger(__name__)

INTERVAL_JOB_ID = "heartbeat_interval"


class HeartbeatScheduler:
    """Drives a :class:`HeartbeatRunner` from an interval timer and wake requests.

    Each interval tick is just a wake request with reason "interval", so timer
    ticks and external triggers coalesce in the same :class:`HeartbeatWake`.
    Without a configured interval the timer is never armed, but
    :meth:`request_now` still works.
    """

    def __init__(self, runner: HeartbeatRunner, wake: HeartbeatWake | None = None):
        """Initialize the scheduler.

        Args:
            runner: Runner registered as the wake handler on start.
            wake: Wake channel (a private one is created when omitted).
        """
        self.runner = runner
        self.wake = wake or HeartbeatWake()
        self._scheduler: AsyncIOScheduler | None = None
        self._job: Any = None
        self._started = False
        self._unbind_abort: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._started

    @property
    def interval_ms(self) -> int | None:
        return self.runner.interval_ms

    async def _on_interval(self) -> None:
        self.wake.request_now(reason="interval", coalesce_ms=0)

    def start(self) -> None:
        """Register the runner as wake handler and arm the interval timer.

        Must be called from within a running event loop.
        """
        if self._started:
            return
        self.wake.set_handler(self.runner)
        self._started = True

        interval_ms = self.interval_ms
        if not interval_ms:
            logger.info("Heartbeat interval not configured; timer disabled")
            return

        self._scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
        self._job = self._scheduler.add_job(
            func=self._on_interval,
            trigger=IntervalTrigger(seconds=interval_ms / 1000),
            id=INTERVAL_JOB_ID,
            name="Heartbeat interval",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.start()
        logger.info(f"Heartbeat scheduler started (interval: {interval_ms}ms)")

    def request_now(self, reason: str | None = None, coalesce_ms: int | None = None) -> None:
        """Request a heartbeat outside the interval (coalesced)."""
        if coalesce_ms is None:
            self.wake.request_now(reason=reason)
        else:
            self.wake.request_now(reason=reason, coalesce_ms=coalesce_ms)

    def stop(self) -> None:
        """Stop the timer and deregister the wake handler. Idempotent.

        A run already in flight is allowed to finish.
        """
        if self._unbind_abort is not None:
            self._unbind_abort()
            self._unbind_abort = None
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
            self._job = None
        if self._started:
            self.wake.close()
            self._started = False
            logger.info("Heartbeat scheduler stopped")

    def bind_abort(self, abort_signal: AbortSignal) -> None:
        """Stop the scheduler inside ``abort_signal.set()``.

        The wake handler is deregistered and the timer removed before
        ``set()`` returns. A signal that is already set stops the scheduler now.
        """
        self._unbind_abort = abort_signal.add_listener(self.stop)

    async def wait_idle(self) -> None:
        """Wait for an in-flight heartbeat run to finish."""
        await self.wake.wait_idle()


def start_heartbeat_runner(
    config: Config | None = None,
    deps: HeartbeatDeps | None = None,
    abort_signal: AbortSignal | None = None,
    runner: HeartbeatRunner | None = None,
) -> HeartbeatScheduler:
    """Build and start a heartbeat scheduler.

    Args:
        config: Gateway configuration (loaded from ``config.yaml`` when omitted
            and no ``runner`` is given).
        deps: Runner collaborators (ignored when ``runner`` is given).
        abort_signal: Stops the scheduler synchronously when set.
        runner: Pre-built runner to schedule.

    Returns:
        The started scheduler; call ``stop()`` to shut it down.
    """
    if runner is None:
        runner = HeartbeatRunner(config or load_config(), deps)
    scheduler = HeartbeatScheduler(runner)
    scheduler.start()

    if abort_signal is not None:
        scheduler.bind_abort(abort_signal)

    return scheduler
