"""Lane-based command queue.

Live conversation work runs on the ``main`` lane. The heartbeat runner reads
:meth:`LaneQueue.queue_size` for that lane as its backpressure signal and
stands down while anything is queued or running there.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

MAIN_LANE = "main"


@dataclass
class QueueItem:
    """An item waiting on a lane."""

    session_key: str
    payload: Any
    priority: int = 0


@dataclass
class Lane:
    """A processing lane with a FIFO queue and a concurrency cap."""

    name: str
    max_concurrency: int = 1
    queue: deque[QueueItem] = field(default_factory=deque)
    active_count: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    _changed: asyncio.Event = field(default_factory=asyncio.Event)

    def __hash__(self) -> int:
        return hash(self.name)

    @property
    def size(self) -> int:
        """Queued plus in-flight items."""
        return len(self.queue) + self.active_count


class LaneQueue:
    """Lane-aware FIFO queue with per-lane concurrency and per-session serialization."""

    def __init__(self, main_concurrency: int = 1, cron_concurrency: int = 2):
        """Initialize the lane queue.

        Args:
            main_concurrency: Max concurrent items in the main lane.
            cron_concurrency: Max concurrent items in the cron lane.
        """
        self._lanes: dict[str, Lane] = {
            MAIN_LANE: Lane(MAIN_LANE, main_concurrency),
            "cron": Lane("cron", cron_concurrency),
        }
        self._session_locks: dict[str, asyncio.Lock] = {}

    def get_lane(self, name: str) -> Lane:
        """Get or create a lane by name."""
        if name not in self._lanes:
            self._lanes[name] = Lane(name, max_concurrency=1)
        return self._lanes[name]

    def _session_lock(self, session_key: str) -> asyncio.Lock:
        lock = self._session_locks.get(session_key)
        if lock is None:
            lock = self._session_locks[session_key] = asyncio.Lock()
        return lock

    def queue_size(self, lane_name: str = MAIN_LANE) -> int:
        """Number of items queued or running on a lane.

        Read synchronously so callers always see the current value.
        """
        lane = self._lanes.get(lane_name)
        return lane.size if lane else 0

    async def enqueue(self, item: QueueItem, lane_name: str = MAIN_LANE) -> None:
        """Add an item to a lane's queue."""
        lane = self.get_lane(lane_name)
        async with lane._lock:
            lane.queue.append(item)
            lane._changed.set()

    async def process(
        self,
        lane_name: str,
        handler: Callable[[QueueItem], Coroutine[Any, Any, Any]],
    ) -> None:
        """Drain a lane forever, respecting its concurrency cap.

        Items for the same session never run concurrently. Handler errors are
        logged and do not stop the lane.
        """
        lane = self.get_lane(lane_name)
        tasks: set[asyncio.Task[None]] = set()

        while True:
            item: QueueItem | None = None
            async with lane._lock:
                if lane.queue and lane.active_count < lane.max_concurrency:
                    item = lane.queue.popleft()
                    lane.active_count += 1
                else:
                    lane._changed.clear()

            if item is None:
                await lane._changed.wait()
                continue

            task = asyncio.create_task(self._run_item(lane, item, handler))
            tasks.add(task)
            task.add_done_callback(tasks.discard)

    async def _run_item(
        self,
        lane: Lane,
        item: QueueItem,
        handler: Callable[[QueueItem], Coroutine[Any, Any, Any]],
    ) -> None:
        try:
            async with self._session_lock(item.session_key):
                await handler(item)
        except Exception as e:
            logger.error(f"Lane '{lane.name}' handler failed for {item.session_key}: {e}", exc_info=True)
        finally:
            async with lane._lock:
                lane.active_count -= 1
                lane._changed.set()

    def get_stats(self) -> dict[str, dict[str, int]]:
        """Get current queue statistics."""
        return {
            name: {
                "queued": len(lane.queue),
                "active": lane.active_count,
                "max_concurrency": lane.max_concurrency,
            }
            for name, lane in self._lanes.items()
        }
