"""Telegram channel adapter using python-telegram-bot."""

import logging
import os

from telegram import Bot
from telegram.error import TelegramError

from pulsegate.channels.base import ChannelAdapter

logger = logging.getLogger(__name__)


class TelegramChannel(ChannelAdapter):
    """Outbound Telegram adapter.

    Recipients are chat IDs (``"123456"``) or ``telegram:123456``. Attachments
    are sent with ``sendDocument`` so any file type the URL points to works.
    """

    name = "telegram"

    def __init__(self, token: str | None = None):
        """Initialize the Telegram channel.

        Args:
            token: Bot token (falls back to TELEGRAM_BOT_TOKEN env var).
        """
        resolved_token = token or os.environ.get("TELEGRAM_BOT_TOKEN")
        if not resolved_token:
            raise ValueError("Telegram bot token required (pass token or set TELEGRAM_BOT_TOKEN)")
        self.token: str = resolved_token
        self._bot: Bot | None = None

    async def start(self) -> None:
        """Initialize the bot client."""
        self._bot = Bot(self.token)
        await self._bot.initialize()
        logger.info("Telegram channel started")

    async def stop(self) -> None:
        """Shut down the bot client."""
        if self._bot:
            await self._bot.shutdown()
            self._bot = None
            logger.info("Telegram channel stopped")

    @staticmethod
    def parse_chat_id(to: str) -> int | str:
        """Extract the chat ID from a recipient.

        Numeric IDs become ints; ``@channelname`` handles pass through.
        """
        value = to.strip()
        if value.lower().startswith("telegram:"):
            value = value.split(":", 1)[1].strip()
        try:
            return int(value)
        except ValueError:
            return value

    async def send_message(self, to: str, text: str, media_url: str | None = None) -> None:
        """Send a text message, or a document with caption when ``media_url`` is set."""
        if not self._bot:
            raise RuntimeError("Telegram channel not started")

        chat_id = self.parse_chat_id(to)
        try:
            if media_url:
                await self._bot.send_document(chat_id=chat_id, document=media_url, caption=text or None)
            else:
                await self._bot.send_message(chat_id=chat_id, text=text)
        except TelegramError as e:
            raise RuntimeError(f"Telegram send failed: {e}") from e
        logger.debug(f"Sent Telegram message to {chat_id} (media: {bool(media_url)})")
