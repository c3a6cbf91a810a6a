"""Heartbeat runner: one end-to-end heartbeat attempt.

Flow: preconditions (enabled, interval, backpressure) -> freshness snapshot
-> reply engine -> normalization -> target resolution -> ordered delivery ->
event emission. Runs that produce nothing visible put the session's
``updated_at`` back; runs that resolve no target do not.
"""

import asyncio
import logging
import time
import weakref
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from pulsegate.channels.base import ChannelSender
from pulsegate.core.config import Config, load_config
from pulsegate.core.duration import parse_duration_ms
from pulsegate.core.utils import truncate_preview
from pulsegate.heartbeat.delivery import deliver_heartbeat_reply
from pulsegate.heartbeat.events import HeartbeatEventBus
from pulsegate.heartbeat.freshness import FreshnessSnapshot
from pulsegate.heartbeat.normalize import normalize_heartbeat_reply
from pulsegate.heartbeat.target import resolve_delivery_target, resolve_heartbeat_sender
from pulsegate.model.heartbeat import (
    HeartbeatEvent,
    HeartbeatRunResult,
    ReplyContext,
    ReplyOptions,
    ReplyPayload,
)
from pulsegate.model.session import SessionEntry
from pulsegate.prompts.heartbeat import HEARTBEAT_PROMPT
from pulsegate.runtime.queue.lane import MAIN_LANE
from pulsegate.stores.session import load_session_store, resolve_store_path

logger = logging.getLogger(__name__)

ReplyResult = ReplyPayload | list[ReplyPayload] | None
ReplyGenerator = Callable[[ReplyContext, ReplyOptions, Config], Awaitable[ReplyResult]]
QueueSizeProvider = Callable[[str], int]

PREVIEW_LIMIT = 200

# One run lock per event loop, shared by every runner on it.
_run_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = weakref.WeakKeyDictionary()


def _run_lock() -> asyncio.Lock:
    loop = asyncio.get_running_loop()
    lock = _run_locks.get(loop)
    if lock is None:
        lock = _run_locks[loop] = asyncio.Lock()
    return lock


def resolve_heartbeat_interval_ms(config: Config, override_every: str | None = None) -> int | None:
    """Heartbeat interval in milliseconds, or None when no valid interval is set.

    Bare numbers are minutes. Blank, unparsable, and non-positive values
    all mean "no interval".
    """
    raw = override_every if override_every is not None else config.heartbeat.every
    if raw is None:
        return None
    trimmed = str(raw).strip()
    if not trimmed:
        return None
    try:
        ms = parse_duration_ms(trimmed, default_unit="m")
    except ValueError:
        logger.warning(f"Invalid heartbeat interval: {raw!r}")
        return None
    if ms <= 0:
        return None
    return ms


def resolve_heartbeat_prompt(config: Config) -> str:
    """Configured heartbeat prompt, or the default when blank."""
    raw = config.heartbeat.prompt
    trimmed = raw.strip() if isinstance(raw, str) else ""
    return trimmed or HEARTBEAT_PROMPT


def resolve_heartbeat_session_key(config: Config) -> str:
    """Session the heartbeat reads: "global" for global scope, else the main key."""
    if config.session.scope == "global":
        return "global"
    return config.session.main_key


def _no_queue(lane: str) -> int:
    return 0


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class HeartbeatDeps:
    """External collaborators of the heartbeat runner.

    Attributes:
        reply_generator: Reply engine. Defaults to a chat model built from ``config.agent``.
        senders: Send primitive per channel name ("whatsapp", "telegram").
        queue_size: Work-queue size per lane; read fresh on every run.
            Defaults to "always empty" (no in-process live traffic).
        now_ms: Clock in epoch milliseconds.
        events: Event bus; a private one is created when omitted.
    """

    reply_generator: ReplyGenerator | None = None
    senders: Mapping[str, ChannelSender] = field(default_factory=dict)
    queue_size: QueueSizeProvider | None = None
    now_ms: Callable[[], int] | None = None
    events: HeartbeatEventBus | None = None


class HeartbeatRunner:
    """Executes heartbeat attempts, one at a time.

    Owns the global enable switch (:meth:`set_enabled`). :meth:`run_once` is
    serialized across all runners on the event loop, so concurrent callers
    never overlap. Failures are
    reported in the result and as a ``failed`` event, never raised.
    """

    def __init__(self, config: Config, deps: HeartbeatDeps | None = None):
        """Initialize the runner.

        Args:
            config: Gateway configuration (immutable per run).
            deps: External collaborators.
        """
        deps = deps or HeartbeatDeps()
        self.config = config
        self.senders: Mapping[str, ChannelSender] = deps.senders
        self.events = deps.events or HeartbeatEventBus()
        self._reply_generator = deps.reply_generator
        self._queue_size = deps.queue_size or _no_queue
        self._now_ms = deps.now_ms or _wall_clock_ms
        self._enabled = True

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Globally enable or disable heartbeats, regardless of interval."""
        if enabled != self._enabled:
            logger.info(f"Heartbeats {'enabled' if enabled else 'disabled'}")
        self._enabled = enabled

    @property
    def interval_ms(self) -> int | None:
        return resolve_heartbeat_interval_ms(self.config)

    def _get_reply_generator(self) -> ReplyGenerator:
        if self._reply_generator is None:
            from pulsegate.agent.reply import ChatModelReplyGenerator

            self._reply_generator = ChatModelReplyGenerator(self.config.agent)
        return self._reply_generator

    async def __call__(self, reason: str | None = None) -> HeartbeatRunResult:
        """Wake handler entry point."""
        return await self.run_once(reason=reason)

    async def run_once(self, reason: str | None = None) -> HeartbeatRunResult:
        """Run a single heartbeat attempt.

        Args:
            reason: Why the run was requested ("interval", "requested", ...).

        Returns:
            ran / skipped / failed result. Never raises for run failures.
        """
        async with _run_lock():
            return await self._run(reason)

    def _check_preconditions(self) -> str | None:
        if not self._enabled:
            return "disabled"
        if not self.interval_ms:
            return "disabled"
        if self._queue_size(MAIN_LANE) > 0:
            return "requests-in-flight"
        return None

    async def _load_session(self) -> tuple[Path, str, SessionEntry | None]:
        store_path = resolve_store_path(self.config.session.store)
        session_key = resolve_heartbeat_session_key(self.config)
        store = await asyncio.to_thread(load_session_store, store_path)
        return store_path, session_key, store.get(session_key)

    def _emit(self, event: HeartbeatEvent) -> None:
        try:
            self.events.emit(event)
        except Exception as e:
            logger.warning(f"Failed to emit heartbeat event: {e}")

    async def _run(self, reason: str | None) -> HeartbeatRunResult:
        skip_reason = self._check_preconditions()
        if skip_reason:
            logger.debug(f"Heartbeat skipped: {skip_reason}")
            return HeartbeatRunResult.skipped(skip_reason)

        started_at = self._now_ms()

        def elapsed() -> int:
            return self._now_ms() - started_at

        try:
            store_path, session_key, entry = await self._load_session()
            snapshot = FreshnessSnapshot.capture(store_path, session_key, entry)
            sender = resolve_heartbeat_sender(
                self.config.routing.allow_from,
                last_to=entry.last_to if entry else None,
                last_channel=entry.last_channel if entry else None,
            )
            context = ReplyContext(
                body=resolve_heartbeat_prompt(self.config),
                from_=sender,
                to=sender,
                surface="heartbeat",
            )

            logger.info(f"Running heartbeat (reason: {reason or 'unspecified'})")
            reply_result = await self._get_reply_generator()(context, ReplyOptions(is_heartbeat=True), self.config)
            payload = reply_result[0] if isinstance(reply_result, list) and reply_result else reply_result
            if isinstance(payload, list):
                payload = None

            if payload is None or payload.is_empty:
                await snapshot.restore()
                self._emit(HeartbeatEvent(status="ok-empty", reason=reason, duration_ms=elapsed()))
                return HeartbeatRunResult.ran(elapsed())

            normalized = normalize_heartbeat_reply(payload, self.config.messages.response_prefix)
            if normalized.should_skip and not normalized.has_media:
                await snapshot.restore()
                self._emit(HeartbeatEvent(status="ok-token", reason=reason, duration_ms=elapsed()))
                return HeartbeatRunResult.ran(elapsed())

            delivery = resolve_delivery_target(self.config, entry)
            media_urls = payload.attachments()

            if not delivery.deliverable:
                logger.info(f"Heartbeat reply not delivered: {delivery.reason or 'no-target'}")
                self._emit(
                    HeartbeatEvent(
                        status="skipped",
                        reason=delivery.reason or "no-target",
                        preview=truncate_preview(normalized.text, PREVIEW_LIMIT) or None,
                        duration_ms=elapsed(),
                        has_media=bool(media_urls),
                    )
                )
                return HeartbeatRunResult.ran(elapsed())

            sent = await deliver_heartbeat_reply(
                channel=delivery.channel,
                to=delivery.to or "",
                text=normalized.text,
                media_urls=media_urls,
                senders=self.senders,
            )
            logger.info(f"Heartbeat sent to {delivery.channel}/{delivery.to} ({sent} message(s))")
            self._emit(
                HeartbeatEvent(
                    status="sent",
                    to=delivery.to,
                    preview=truncate_preview(normalized.text, PREVIEW_LIMIT) or None,
                    duration_ms=elapsed(),
                    has_media=bool(media_urls),
                    reason=delivery.reason,
                )
            )
            return HeartbeatRunResult.ran(elapsed())

        except Exception as e:
            self._emit(HeartbeatEvent(status="failed", reason=str(e), duration_ms=elapsed()))
            logger.error(f"Heartbeat failed: {e}", exc_info=True)
            return HeartbeatRunResult.failed(str(e))


async def run_heartbeat_once(
    config: Config | None = None,
    reason: str | None = None,
    deps: HeartbeatDeps | None = None,
) -> HeartbeatRunResult:
    """Run one heartbeat with a throwaway runner.

    The config is loaded from ``config.yaml`` when omitted. Calls are
    serialized with every other run on the event loop.
    """
    if config is None:
        config = await asyncio.to_thread(load_config)
    return await HeartbeatRunner(config, deps).run_once(reason=reason)
