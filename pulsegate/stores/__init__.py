"""Persistence layer for PulseGate."""

from pulsegate.stores.session import (
    DEFAULT_STORE_PATH,
    load_session_store,
    record_session_activity,
    resolve_store_path,
    save_session_store,
)

__all__ = [
    "DEFAULT_STORE_PATH",
    "load_session_store",
    "record_session_activity",
    "resolve_store_path",
    "save_session_store",
]
