"""Heartbeat scheduling, target resolution, and delivery."""

from pulsegate.heartbeat.delivery import DeliveryStep, build_delivery_plan, chunk_text, deliver_heartbeat_reply
from pulsegate.heartbeat.events import HeartbeatEventBus, HeartbeatEventLog
from pulsegate.heartbeat.freshness import FreshnessSnapshot, restore_heartbeat_updated_at
from pulsegate.heartbeat.normalize import NormalizedReply, normalize_heartbeat_reply, strip_heartbeat_token
from pulsegate.heartbeat.runner import (
    HeartbeatDeps,
    HeartbeatRunner,
    resolve_heartbeat_interval_ms,
    resolve_heartbeat_prompt,
    run_heartbeat_once,
)
from pulsegate.heartbeat.scheduler import HeartbeatScheduler, start_heartbeat_runner
from pulsegate.heartbeat.target import resolve_delivery_target, resolve_heartbeat_sender
from pulsegate.heartbeat.wake import HeartbeatWake

__all__ = [
    "DeliveryStep",
    "FreshnessSnapshot",
    "HeartbeatDeps",
    "HeartbeatEventBus",
    "HeartbeatEventLog",
    "HeartbeatRunner",
    "HeartbeatScheduler",
    "HeartbeatWake",
    "NormalizedReply",
    "build_delivery_plan",
    "chunk_text",
    "deliver_heartbeat_reply",
    "normalize_heartbeat_reply",
    "resolve_delivery_target",
    "resolve_heartbeat_interval_ms",
    "resolve_heartbeat_prompt",
    "resolve_heartbeat_sender",
    "restore_heartbeat_updated_at",
    "run_heartbeat_once",
    "start_heartbeat_runner",
    "strip_heartbeat_token",
]
