"""Abort signal with synchronous listeners."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

AbortListener = Callable[[], None]


class AbortSignal:
    """One-shot abort flag.

    Listeners run inline inside :meth:`set`, before it returns, so whatever
    they tear down is gone by the time the caller continues. Coroutines can
    still ``await signal.wait()``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._listeners: list[AbortListener] = []

    def is_set(self) -> bool:
        return self._event.is_set()

    def add_listener(self, listener: AbortListener) -> Callable[[], None]:
        """Register a listener; it runs immediately if the signal is already set.

        Returns:
            A callable that removes the listener.
        """
        if self.is_set():
            listener()
            return lambda: None

        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def set(self) -> None:
        """Set the signal and run every listener. Idempotent."""
        if self._event.is_set():
            return
        self._event.set()
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Abort listener failed: {e}", exc_info=True)

    async def wait(self) -> None:
        """Wait until the signal is set."""
        await self._event.wait()
