"""Heartbeat observability events.

Every heartbeat that reaches the reply engine emits exactly one
:class:`HeartbeatEvent`. Emission is fire-and-forget: a failing listener is
logged and never affects the run.
"""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from pathlib import Path

from pulsegate.model.heartbeat import HeartbeatEvent

logger = logging.getLogger(__name__)

HeartbeatListener = Callable[[HeartbeatEvent], None]


class HeartbeatEventBus:
    """In-process fan-out for heartbeat events."""

    def __init__(self) -> None:
        self._listeners: list[HeartbeatListener] = []
        self._last_event: HeartbeatEvent | None = None

    @property
    def last_event(self) -> HeartbeatEvent | None:
        """Most recently emitted event, if any."""
        return self._last_event

    def subscribe(self, listener: HeartbeatListener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that unsubscribes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: HeartbeatEvent) -> None:
        """Stamp and deliver an event to every listener."""
        if not event.ts:
            event.ts = int(time.time() * 1000)
        self._last_event = event
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Heartbeat event listener failed: {e}")


class HeartbeatEventLog:
    """Append heartbeat events to a JSONL file.

    Subscribe an instance to a :class:`HeartbeatEventBus`. Inside an event
    loop, lines are buffered and written by one background task through
    ``asyncio.to_thread`` so emitting never blocks the loop; lines keep
    emission order. Outside a loop they are written inline.
    """

    def __init__(self, log_path: str | Path):
        self.log_path = Path(log_path)
        self._buffer: list[str] = []
        self._drain_task: asyncio.Task[None] | None = None

    def __call__(self, event: HeartbeatEvent) -> None:
        self._buffer.append(json.dumps(event.to_dict()))
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write_lines(self._take())
            return
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = loop.create_task(self._drain())

    def _take(self) -> list[str]:
        lines, self._buffer = self._buffer, []
        return lines

    async def _drain(self) -> None:
        while self._buffer:
            await asyncio.to_thread(self._write_lines, self._take())

    def _write_lines(self, lines: list[str]) -> None:
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as f:
                f.writelines(f"{line}\n" for line in lines)
        except OSError as e:
            logger.warning(f"Failed to write heartbeat log: {e}")

    async def flush(self) -> None:
        """Wait until every emitted event is on disk."""
        task = self._drain_task
        if task is not None and not task.done():
            await task
