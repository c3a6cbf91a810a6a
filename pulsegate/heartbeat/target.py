"""Delivery target resolution for heartbeat replies.

Decides which channel and recipient receive a heartbeat, from the configured
target mode, the last-known session state, and the WhatsApp allow-list. The
allow-list is a hard boundary: a WhatsApp heartbeat never goes to a number
outside it, falling back to the first allowed number instead.
"""

import logging
from collections.abc import Sequence

from pulsegate.core.config import Config
from pulsegate.core.utils import normalize_e164
from pulsegate.model.heartbeat import DeliveryTarget
from pulsegate.model.session import WEBCHAT_CHANNEL, SessionEntry

logger = logging.getLogger(__name__)

WILDCARD = "*"

# The allow-list only governs this channel.
RESTRICTED_CHANNEL = "whatsapp"

_DELIVERY_CHANNELS = ("whatsapp", "telegram")

DEFAULT_SENDER = "heartbeat"


def _last_channel(entry: SessionEntry | None) -> str | None:
    if entry is None or not entry.last_channel or entry.last_channel == WEBCHAT_CHANNEL:
        return None
    return entry.last_channel


def resolve_delivery_target(config: Config, entry: SessionEntry | None) -> DeliveryTarget:
    """Compute where a heartbeat reply should be delivered.

    Args:
        config: Gateway configuration (heartbeat target/to and routing allow-list).
        entry: Last-known session entry, if any.

    Returns:
        A DeliveryTarget. ``channel="none"`` means do not deliver.
    """
    target = config.heartbeat.target
    if target == "none":
        return DeliveryTarget(channel="none", reason="target-none")

    explicit_to = config.heartbeat.to
    last_channel = _last_channel(entry)
    last_to = (entry.last_to or "").strip() if entry else ""

    if target == "last":
        channel = last_channel
    else:
        channel = target

    to = (
        explicit_to
        or (last_to if channel and last_channel == channel else None)
        or (last_to if target == "last" else None)
    )

    if not channel or channel not in _DELIVERY_CHANNELS or not to:
        return DeliveryTarget(channel="none", reason="no-target")

    if channel != RESTRICTED_CHANNEL:
        return DeliveryTarget(channel=channel, to=to)

    return _apply_allow_list(channel, to, config.routing.allow_from)


def _apply_allow_list(channel: str, to: str, raw_allow: Sequence[str | int]) -> DeliveryTarget:
    if WILDCARD in (str(entry).strip() for entry in raw_allow):
        return DeliveryTarget(channel=channel, to=to)

    allow_from = [normalize_e164(entry) for entry in raw_allow]
    # A bare "+" means the entry had no digits
    allow_from = [entry for entry in allow_from if len(entry) > 1]
    if not allow_from:
        return DeliveryTarget(channel=channel, to=to)

    normalized = normalize_e164(to)
    if normalized in allow_from:
        return DeliveryTarget(channel=channel, to=normalized)

    logger.info(f"Heartbeat recipient {to} not in allow-list, falling back to {allow_from[0]}")
    return DeliveryTarget(channel=channel, to=allow_from[0], reason="allowFrom-fallback")


def resolve_heartbeat_sender(
    allow_from: Sequence[str | int],
    last_to: str | None = None,
    last_channel: str | None = None,
) -> str:
    """Derive the synthetic origin identity for the heartbeat request.

    This is who the reply engine sees the heartbeat as coming from. It is
    separate from delivery target resolution.

    Args:
        allow_from: Routing allow-list (may contain "*").
        last_to: Last-known recipient.
        last_channel: Last-known channel.

    Returns:
        A sender identity, ``"heartbeat"`` when nothing resolves.
    """
    trimmed_to = last_to.strip() if last_to else ""
    candidates = [
        trimmed_to,
        f"telegram:{trimmed_to}" if last_channel == "telegram" and trimmed_to else "",
        f"whatsapp:{trimmed_to}" if last_channel == "whatsapp" and trimmed_to else "",
    ]
    candidates = [candidate for candidate in candidates if candidate]

    allow_strings = [str(entry) for entry in allow_from]
    allow_list = [entry for entry in allow_strings if entry and entry != WILDCARD]

    if WILDCARD in allow_strings:
        return candidates[0] if candidates else DEFAULT_SENDER
    if candidates and allow_list:
        for candidate in candidates:
            if candidate in allow_list:
                return candidate
    if candidates and not allow_list:
        return candidates[0]
    if allow_list:
        return allow_list[0]
    return candidates[0] if candidates else DEFAULT_SENDER
