"""Domain models for PulseGate."""

from pulsegate.model.heartbeat import (
    DeliveryChannel,
    DeliveryTarget,
    HeartbeatEvent,
    HeartbeatRunResult,
    ReplyContext,
    ReplyOptions,
    ReplyPayload,
)
from pulsegate.model.session import WEBCHAT_CHANNEL, SessionEntry

__all__ = [
    "DeliveryChannel",
    "DeliveryTarget",
    "HeartbeatEvent",
    "HeartbeatRunResult",
    "ReplyContext",
    "ReplyOptions",
    "ReplyPayload",
    "SessionEntry",
    "WEBCHAT_CHANNEL",
]
