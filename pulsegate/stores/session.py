"""File-backed session store.

The store is a single JSON object mapping session keys to entries. It is
shared with the live conversation path, so every read-modify-write is
last-writer-wins: callers must reload before writing rather than keep a copy.
"""

import json
import logging
import time
from pathlib import Path

from pulsegate.model.session import SessionEntry

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = Path("~/.pulsegate/sessions.json")


def resolve_store_path(store: str | Path | None = None) -> Path:
    """Resolve the session store path, expanding ``~``.

    Args:
        store: Configured path, or None for the default location.
    """
    return Path(store or DEFAULT_STORE_PATH).expanduser()


def load_session_store(store_path: str | Path) -> dict[str, SessionEntry]:
    """Load all session entries from disk.

    A missing, unreadable, or malformed file yields an empty store; malformed
    individual entries are skipped.

    Args:
        store_path: Path to the JSON store.

    Returns:
        Mapping of session key to SessionEntry.
    """
    path = Path(store_path)
    if not path.exists():
        logger.debug(f"Session store does not exist: {path}")
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Corrupted session store {path}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Failed to read session store {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.error(f"Invalid session store format (expected object): {path}")
        return {}

    store: dict[str, SessionEntry] = {}
    for session_key, entry_data in data.items():
        if not isinstance(entry_data, dict):
            logger.warning(f"Skipping malformed session entry {session_key} in {path}")
            continue
        store[session_key] = SessionEntry.from_dict(session_key, entry_data)
    return store


def save_session_store(store_path: str | Path, store: dict[str, SessionEntry]) -> None:
    """Persist the session store atomically (tmp file + rename).

    Raises:
        OSError: If the file cannot be written.
    """
    path = Path(store_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {session_key: entry.to_dict() for session_key, entry in store.items()}

    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    tmp_path.replace(path)

    logger.debug(f"Saved {len(store)} session(s) to {path}")


def record_session_activity(
    store_path: str | Path,
    session_key: str,
    channel: str,
    to: str,
    now_ms: int | None = None,
) -> SessionEntry:
    """Record a real user interaction on a session.

    This is the only writer that should move ``updated_at`` forward.

    Args:
        store_path: Path to the JSON store.
        session_key: Session to update.
        channel: Channel the interaction arrived on.
        to: Recipient replies should go to.
        now_ms: Interaction time in epoch milliseconds (defaults to now).

    Returns:
        The updated entry.
    """
    store = load_session_store(store_path)
    previous = store.get(session_key)
    entry = SessionEntry(
        session_key=session_key,
        last_channel=channel,
        last_to=to,
        updated_at=now_ms if now_ms is not None else int(time.time() * 1000),
        extra=dict(previous.extra) if previous else {},
    )
    store[session_key] = entry
    save_session_store(store_path, store)
    return entry
