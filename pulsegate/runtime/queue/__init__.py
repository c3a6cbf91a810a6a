"""Lane-based work queue for PulseGate."""

from pulsegate.runtime.queue.lane import MAIN_LANE, Lane, LaneQueue, QueueItem

__all__ = ["MAIN_LANE", "Lane", "LaneQueue", "QueueItem"]
