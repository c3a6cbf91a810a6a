"""Domain models for heartbeat runs, replies, and delivery targets."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

DeliveryChannel = Literal["whatsapp", "telegram", "none"]
RunStatus = Literal["ran", "skipped", "failed"]
EventStatus = Literal["sent", "ok-empty", "ok-token", "skipped", "failed"]


@dataclass(frozen=True)
class ReplyPayload:
    """A reply produced by the reply engine.

    Attributes:
        text: Reply text (may be empty).
        media_url: Single attachment reference.
        media_urls: Ordered attachment references; takes precedence over media_url.
    """

    text: str | None = None
    media_url: str | None = None
    media_urls: Sequence[str] | None = None

    def attachments(self) -> list[str]:
        """Ordered attachment list for delivery."""
        if self.media_urls is not None:
            return list(self.media_urls)
        if self.media_url:
            return [self.media_url]
        return []

    @property
    def is_empty(self) -> bool:
        """True when the reply has no text and no attachments."""
        return not self.text and not self.media_url and not self.media_urls


@dataclass(frozen=True)
class ReplyContext:
    """Synthetic inbound request handed to the reply engine."""

    body: str
    from_: str
    to: str
    surface: str = "heartbeat"


@dataclass(frozen=True)
class ReplyOptions:
    """Options passed alongside a reply request."""

    is_heartbeat: bool = True


@dataclass(frozen=True)
class DeliveryTarget:
    """Where a heartbeat reply should go.

    ``channel="none"`` or a missing ``to`` means "do not deliver";
    ``reason`` carries a diagnostic code (target-none, no-target, allowFrom-fallback).
    """

    channel: DeliveryChannel
    to: str | None = None
    reason: str | None = None

    @property
    def deliverable(self) -> bool:
        return self.channel != "none" and bool(self.to)


@dataclass(frozen=True)
class HeartbeatRunResult:
    """Terminal outcome of one heartbeat attempt."""

    status: RunStatus
    duration_ms: int | None = None
    reason: str | None = None

    @classmethod
    def ran(cls, duration_ms: int) -> "HeartbeatRunResult":
        return cls(status="ran", duration_ms=duration_ms)

    @classmethod
    def skipped(cls, reason: str) -> "HeartbeatRunResult":
        return cls(status="skipped", reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "HeartbeatRunResult":
        return cls(status="failed", reason=reason)


@dataclass
class HeartbeatEvent:
    """Observability record emitted once per heartbeat that reached the reply engine."""

    status: EventStatus
    ts: int = 0
    to: str | None = None
    preview: str | None = None
    duration_ms: int | None = None
    has_media: bool | None = None
    reason: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict, omitting unset fields."""
        data: dict[str, Any] = {"ts": self.ts, "status": self.status}
        if self.to is not None:
            data["to"] = self.to
        if self.preview is not None:
            data["preview"] = self.preview
        if self.duration_ms is not None:
            data["duration_ms"] = self.duration_ms
        if self.has_media is not None:
            data["has_media"] = self.has_media
        if self.reason is not None:
            data["reason"] = self.reason
        data.update(self.extra)
        return data
