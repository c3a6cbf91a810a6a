"""Reply normalization for heartbeat output."""

import re
from dataclasses import dataclass

from pulsegate.model.heartbeat import ReplyPayload
from pulsegate.prompts.heartbeat import HEARTBEAT_TOKEN

_TOKEN_PATTERN = re.compile(re.escape(HEARTBEAT_TOKEN), re.IGNORECASE)


@dataclass(frozen=True)
class StrippedReply:
    should_skip: bool
    text: str


@dataclass(frozen=True)
class NormalizedReply:
    """Reply text ready for delivery.

    Attributes:
        should_skip: True when the reply is a deliberate "say nothing".
        text: Text to deliver (caption of the first attachment when media is present).
        has_media: Whether the reply carries attachments.
    """

    should_skip: bool
    text: str
    has_media: bool


def strip_heartbeat_token(raw: str | None) -> StrippedReply:
    """Remove the heartbeat token from reply text.

    Empty text, or text that is nothing but the token, is a skip.

    Examples:
        >>> strip_heartbeat_token("HEARTBEAT_OK")
        StrippedReply(should_skip=True, text='')
        >>> strip_heartbeat_token("Build is red. HEARTBEAT_OK")
        StrippedReply(should_skip=False, text='Build is red.')
    """
    if not raw:
        return StrippedReply(should_skip=True, text="")

    trimmed = raw.strip()
    if not trimmed:
        return StrippedReply(should_skip=True, text="")
    if not _TOKEN_PATTERN.search(trimmed):
        return StrippedReply(should_skip=False, text=trimmed)

    without_token = _TOKEN_PATTERN.sub("", trimmed).strip()
    if not without_token:
        return StrippedReply(should_skip=True, text="")
    return StrippedReply(should_skip=False, text=without_token)


def apply_response_prefix(text: str, prefix: str | None) -> str:
    """Prepend ``"<prefix> "`` unless the text is empty or already prefixed."""
    if not prefix or not text or text.startswith(prefix):
        return text
    return f"{prefix} {text}"


def normalize_heartbeat_reply(payload: ReplyPayload, response_prefix: str | None = None) -> NormalizedReply:
    """Strip control tokens and apply the response prefix.

    A reply with attachments is never skipped; its text (possibly empty)
    becomes the caption.
    """
    stripped = strip_heartbeat_token(payload.text)
    has_media = bool(payload.attachments())
    if stripped.should_skip and not has_media:
        return NormalizedReply(should_skip=True, text="", has_media=False)

    return NormalizedReply(
        should_skip=False,
        text=apply_response_prefix(stripped.text, response_prefix),
        has_media=has_media,
    )
