"""Shared utility functions for PulseGate."""

import re

_NON_E164 = re.compile(r"[^\d+]")


def normalize_e164(number: str | int) -> str:
    """Normalize a phone number to canonical E.164 form.

    Strips a ``whatsapp:`` prefix, drops every character other than digits
    and ``+``, and ensures a single leading ``+``.

    Examples:
        >>> normalize_e164("whatsapp:+1 (555) 123-4567")
        '+15551234567'
        >>> normalize_e164(15551234567)
        '+15551234567'
    """
    text = str(number).strip()
    if text.lower().startswith("whatsapp:"):
        text = text[len("whatsapp:"):]
    digits = _NON_E164.sub("", text)
    if digits.startswith("+"):
        return "+" + digits[1:].replace("+", "")
    return "+" + digits.replace("+", "")


def truncate_preview(text: str | None, limit: int = 200) -> str | None:
    """Return the first ``limit`` characters of ``text`` for event previews."""
    if text is None:
        return None
    return text[:limit]
