"""Base channel adapter interface."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

# Outbound send primitive: (recipient, text, media_url) -> None. Raises on failure.
ChannelSender = Callable[..., Awaitable[None]]


class ChannelAdapter(ABC):
    """Abstract base class for outbound channel adapters.

    Adapters own the transport for one channel kind and expose a single
    ordered send primitive. Callers await each send before issuing the next.
    """

    name: str = "base"

    @abstractmethod
    async def start(self) -> None:
        """Start the adapter (connect, authenticate, etc.)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the adapter gracefully."""
        ...

    @abstractmethod
    async def send_message(self, to: str, text: str, media_url: str | None = None) -> None:
        """Send one message.

        Args:
            to: Channel-specific recipient (chat ID, E.164 number, ...).
            text: Message text, or the caption when ``media_url`` is set.
            media_url: Optional attachment reference sent with this message.

        Raises:
            RuntimeError: If the adapter isn't started or the transport fails.
        """
        ...
