"""Ordered delivery of heartbeat replies.

A reply becomes an explicit plan of :class:`DeliveryStep` items which are sent
strictly in sequence to one recipient. The first failing send aborts the rest
of the plan and propagates to the caller.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from pulsegate.channels.base import ChannelSender

logger = logging.getLogger(__name__)

TEXT_CHUNK_LIMIT = 4000


@dataclass(frozen=True)
class DeliveryStep:
    """One outbound message: text (or caption) plus an optional attachment."""

    text: str
    media_url: str | None = None


def _find_split(window: str) -> int:
    """Index just past the best break in ``window``, or 0 if there is none."""
    for separator in ("\n\n", "\n"):
        idx = window.rfind(separator)
        if idx > 0:
            return idx + len(separator)
    for idx in range(len(window) - 1, 0, -1):
        if window[idx].isspace():
            return idx + 1
    return 0


def chunk_text(text: str, limit: int = TEXT_CHUNK_LIMIT) -> list[str]:
    """Split text into chunks of at most ``limit`` characters.

    Breaks prefer paragraph boundaries, then line breaks, then other
    whitespace, falling back to a hard split. Separators stay at the end of
    the preceding chunk, so ``"".join(chunk_text(t)) == t`` always holds.

    Args:
        text: Text to split.
        limit: Maximum chunk length (must be positive).

    Returns:
        Ordered chunks; empty list for empty text.

    Raises:
        ValueError: If limit is not positive.
    """
    if limit <= 0:
        raise ValueError(f"Chunk limit must be positive: {limit}")
    if not text:
        return []

    chunks: list[str] = []
    remaining = text
    while len(remaining) > limit:
        split_at = _find_split(remaining[:limit]) or limit
        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:]
    if remaining:
        chunks.append(remaining)
    return chunks


def build_delivery_plan(text: str, media_urls: Sequence[str], limit: int = TEXT_CHUNK_LIMIT) -> list[DeliveryStep]:
    """Turn a normalized reply into an ordered list of sends.

    Without attachments the text is chunked. With attachments there is one
    step per attachment in list order; only the first carries the text as
    caption.
    """
    if not media_urls:
        return [DeliveryStep(text=chunk) for chunk in chunk_text(text, limit)]

    return [
        DeliveryStep(text=text if index == 0 else "", media_url=url)
        for index, url in enumerate(media_urls)
    ]


async def deliver_heartbeat_reply(
    channel: str,
    to: str,
    text: str,
    media_urls: Sequence[str],
    senders: Mapping[str, ChannelSender],
) -> int:
    """Send a reply to one recipient, strictly in order.

    Args:
        channel: Resolved channel name.
        to: Resolved recipient.
        text: Normalized reply text.
        media_urls: Ordered attachment references (may be empty).
        senders: Send primitive per channel name.

    Returns:
        Number of messages sent.

    Raises:
        RuntimeError: If no sender is registered for ``channel``.
        Exception: Whatever the sender raises; remaining steps are not sent.
    """
    send = senders.get(channel)
    if send is None:
        raise RuntimeError(f"No sender configured for channel: {channel}")

    plan = build_delivery_plan(text, media_urls)
    for index, step in enumerate(plan, start=1):
        if step.media_url:
            await send(to, step.text, media_url=step.media_url)
        else:
            await send(to, step.text)
        logger.debug(f"Heartbeat delivery step {index}/{len(plan)} sent to {channel}/{to}")
    return len(plan)
