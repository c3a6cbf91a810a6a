"""Domain models for the session store."""

from dataclasses import dataclass, field, replace
from typing import Any

# Pseudo-channel for the built-in web chat; never a heartbeat destination.
WEBCHAT_CHANNEL = "webchat"


@dataclass
class SessionEntry:
    """The most recent real interaction for a logical conversation.

    Attributes:
        session_key: Store key ("main", "global", ...).
        last_channel: Channel of the last inbound message (whatsapp, telegram, webchat).
        last_to: Recipient the last reply went to on that channel.
        updated_at: Epoch milliseconds of the last real user interaction.
        extra: Fields owned by other subsystems, preserved untouched on round trip.
    """

    session_key: str
    last_channel: str | None = None
    last_to: str | None = None
    updated_at: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def with_updated_at(self, updated_at: int | None) -> "SessionEntry":
        """Return a copy with only the freshness timestamp changed."""
        return replace(self, updated_at=updated_at, extra=dict(self.extra))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk JSON representation.

        Returns:
            Dictionary with camelCase keys; unset fields are omitted.
        """
        data: dict[str, Any] = dict(self.extra)
        if self.last_channel is not None:
            data["lastChannel"] = self.last_channel
        if self.last_to is not None:
            data["lastTo"] = self.last_to
        if self.updated_at is not None:
            data["updatedAt"] = self.updated_at
        return data

    @classmethod
    def from_dict(cls, session_key: str, data: dict[str, Any]) -> "SessionEntry":
        """Create instance from the on-disk JSON representation.

        Args:
            session_key: Key the entry is stored under.
            data: Dictionary from the JSON file.

        Returns:
            SessionEntry with unknown keys kept in ``extra``.
        """
        extra = {k: v for k, v in data.items() if k not in ("lastChannel", "lastTo", "updatedAt")}
        updated_at = data.get("updatedAt")
        last_to = data.get("lastTo")
        return cls(
            session_key=session_key,
            last_channel=data.get("lastChannel"),
            last_to=str(last_to) if last_to is not None else None,
            updated_at=updated_at if isinstance(updated_at, int | float) and not isinstance(updated_at, bool) else None,
            extra=extra,
        )
