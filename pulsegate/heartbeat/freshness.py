"""Session freshness bookkeeping for heartbeat runs.

Running the reply engine for a heartbeat can touch the session entry's
``updated_at`` as if the user had spoken. When a run produces nothing
visible, the original timestamp is put back so heartbeat probing never
counts as user activity.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from pulsegate.model.session import SessionEntry
from pulsegate.stores.session import load_session_store, save_session_store

logger = logging.getLogger(__name__)


def _restore_sync(store_path: Path, session_key: str, updated_at: int) -> bool:
    # Always reload: live traffic may have rewritten the store during the run.
    store = load_session_store(store_path)
    entry = store.get(session_key)
    if entry is None:
        return False
    if entry.updated_at == updated_at:
        return False
    store[session_key] = entry.with_updated_at(updated_at)
    save_session_store(store_path, store)
    return True


async def restore_heartbeat_updated_at(
    store_path: str | Path,
    session_key: str,
    updated_at: int | None,
) -> bool:
    """Put a session entry's freshness timestamp back to its pre-run value.

    No-op when there was no timestamp to begin with, when the entry no longer
    exists, or when the timestamp already matches. The read-modify-write is
    last-writer-wins; no lock is taken against concurrent live writes.

    Args:
        store_path: Session store path.
        session_key: Entry to restore.
        updated_at: Timestamp captured before the run.

    Returns:
        True if the entry was rewritten.
    """
    if updated_at is None:
        return False
    restored = await asyncio.to_thread(_restore_sync, Path(store_path), session_key, updated_at)
    if restored:
        logger.debug(f"Restored updated_at for session {session_key} to {updated_at}")
    return restored


@dataclass(frozen=True)
class FreshnessSnapshot:
    """Pre-run snapshot of one session entry's freshness timestamp."""

    store_path: Path
    session_key: str
    updated_at: int | None

    @classmethod
    def capture(cls, store_path: str | Path, session_key: str, entry: SessionEntry | None) -> "FreshnessSnapshot":
        return cls(
            store_path=Path(store_path),
            session_key=session_key,
            updated_at=entry.updated_at if entry else None,
        )

    async def restore(self) -> bool:
        """Restore the captured timestamp (see :func:`restore_heartbeat_updated_at`)."""
        return await restore_heartbeat_updated_at(self.store_path, self.session_key, self.updated_at)
