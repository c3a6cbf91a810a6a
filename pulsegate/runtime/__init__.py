"""Runtime services for PulseGate."""

from pulsegate.runtime.queue import MAIN_LANE, Lane, LaneQueue, QueueItem

__all__ = ["MAIN_LANE", "Lane", "LaneQueue", "QueueItem"]
