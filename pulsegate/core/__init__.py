"""Core functionality for PulseGate: configuration, logging, and shared helpers."""

from pulsegate.core.config import Config, load_config
from pulsegate.core.duration import parse_duration_ms
from pulsegate.core.logging import setup_logging
from pulsegate.core.utils import normalize_e164

__all__ = [
    "Config",
    "load_config",
    "normalize_e164",
    "parse_duration_ms",
    "setup_logging",
]
