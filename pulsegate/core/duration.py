"""Duration string parsing for interval settings."""

import re

_DURATION_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(ms|s|m|h|d)?$")

_UNIT_MS = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration_ms(raw: str, default_unit: str = "m") -> int:
    """Parse a duration like ``"30m"``, ``"1.5h"`` or ``"45"`` into milliseconds.

    Args:
        raw: Duration string. A bare number uses ``default_unit``.
        default_unit: Unit applied when ``raw`` carries none (ms, s, m, h, d).

    Returns:
        Duration in whole milliseconds (rounded).

    Raises:
        ValueError: If ``raw`` is empty or not a valid duration.
    """
    if default_unit not in _UNIT_MS:
        raise ValueError(f"Invalid default unit: {default_unit}")

    text = str(raw).strip().lower()
    if not text:
        raise ValueError("Duration is empty")

    match = _DURATION_PATTERN.match(text)
    if not match:
        raise ValueError(f"Invalid duration: {raw}")

    value = float(match.group(1))
    unit = match.group(2) or default_unit
    return round(value * _UNIT_MS[unit])
