"""Heartbeat gateway: wires channels, the work queue, and the heartbeat scheduler."""

import logging
from pathlib import Path

from pulsegate.channels.base import ChannelAdapter
from pulsegate.channels.factory import build_senders, create_channels
from pulsegate.core.abort import AbortSignal
from pulsegate.core.config import Config
from pulsegate.heartbeat.events import HeartbeatEventBus, HeartbeatEventLog
from pulsegate.heartbeat.runner import (
    HeartbeatDeps,
    HeartbeatRunner,
    ReplyGenerator,
    resolve_heartbeat_session_key,
)
from pulsegate.heartbeat.scheduler import HeartbeatScheduler
from pulsegate.model.heartbeat import HeartbeatRunResult
from pulsegate.model.session import SessionEntry
from pulsegate.runtime.queue.lane import LaneQueue
from pulsegate.stores.session import record_session_activity, resolve_store_path

logger = logging.getLogger(__name__)


class HeartbeatGateway:
    """Owns the long-lived pieces of a heartbeat deployment.

    Embedding applications run live conversation work on :attr:`lane_queue`
    (so heartbeats back off while it is busy) and call
    :meth:`record_inbound` for every real user message.
    """

    def __init__(
        self,
        config: Config,
        channels: dict[str, ChannelAdapter] | None = None,
        reply_generator: ReplyGenerator | None = None,
        lane_queue: LaneQueue | None = None,
    ):
        """Initialize the gateway.

        Args:
            config: Gateway configuration.
            channels: Outbound adapters by name (built from config when omitted).
            reply_generator: Reply engine (chat model from config when omitted).
            lane_queue: Work queue for live traffic.
        """
        self.config = config
        self.channels = channels if channels is not None else create_channels(config.channels)
        self.lane_queue = lane_queue or LaneQueue(
            main_concurrency=config.lanes.main_concurrency,
            cron_concurrency=config.lanes.cron_concurrency,
        )
        self.events = HeartbeatEventBus()
        self.event_log: HeartbeatEventLog | None = None
        if config.logging.heartbeat_events:
            self.event_log = HeartbeatEventLog(Path(config.logging.directory) / "heartbeat.jsonl")
            self.events.subscribe(self.event_log)

        self.runner = HeartbeatRunner(
            config,
            HeartbeatDeps(
                reply_generator=reply_generator,
                senders=build_senders(self.channels),
                queue_size=self.lane_queue.queue_size,
                events=self.events,
            ),
        )
        self.scheduler = HeartbeatScheduler(self.runner)

    async def start_channels(self) -> None:
        for name, channel in self.channels.items():
            await channel.start()
            logger.info(f"Channel started: {name}")

    async def stop_channels(self) -> None:
        for name, channel in self.channels.items():
            try:
                await channel.stop()
            except Exception as e:
                logger.warning(f"Failed to stop channel {name}: {e}")

    async def start(self, abort_signal: AbortSignal | None = None) -> None:
        """Start channels and the heartbeat scheduler.

        Setting ``abort_signal`` stops the scheduler synchronously; channels
        stay up until :meth:`stop`.
        """
        await self.start_channels()
        self.scheduler.start()
        if abort_signal is not None:
            self.scheduler.bind_abort(abort_signal)

    async def stop(self) -> None:
        """Stop the scheduler, let an in-flight run finish, then stop channels."""
        self.scheduler.stop()
        await self.scheduler.wait_idle()
        await self.stop_channels()
        if self.event_log is not None:
            await self.event_log.flush()

    async def run_once(self, reason: str | None = None) -> HeartbeatRunResult:
        """Run one heartbeat immediately (channels must be started)."""
        return await self.runner.run_once(reason=reason)

    def request_now(self, reason: str | None = None) -> None:
        """Ask for a coalesced heartbeat soon."""
        self.scheduler.request_now(reason=reason)

    def record_inbound(self, channel: str, to: str, session_key: str | None = None) -> SessionEntry:
        """Record a real user interaction so heartbeats follow the user's last channel."""
        return record_session_activity(
            resolve_store_path(self.config.session.store),
            session_key or resolve_heartbeat_session_key(self.config),
            channel=channel,
            to=to,
        )
