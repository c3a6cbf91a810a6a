"""WhatsApp channel adapter for the WhatsApp Business Cloud API."""

import logging
import mimetypes
import os
from typing import Any

import httpx

from pulsegate.channels.base import ChannelAdapter
from pulsegate.core.utils import normalize_e164

logger = logging.getLogger(__name__)

GRAPH_API_BASE = "https://graph.facebook.com"


class WhatsAppChannel(ChannelAdapter):
    """Outbound WhatsApp adapter.

    Recipients are E.164 numbers. Attachments are sent by link; the media
    type (image, video, audio, document) is guessed from the URL.
    """

    name = "whatsapp"

    def __init__(
        self,
        phone_id: str | None = None,
        token: str | None = None,
        api_version: str = "v18.0",
        timeout: float = 30.0,
        base_url: str = GRAPH_API_BASE,
    ):
        """Initialize the WhatsApp channel.

        Args:
            phone_id: Business phone number ID (falls back to WHATSAPP_PHONE_ID).
            token: Access token (falls back to WHATSAPP_TOKEN).
            api_version: Graph API version.
            timeout: Request timeout in seconds.
            base_url: Graph API base URL.
        """
        self.phone_id = phone_id or os.environ.get("WHATSAPP_PHONE_ID")
        self.token = token or os.environ.get("WHATSAPP_TOKEN")
        if not self.phone_id or not self.token:
            raise ValueError("WhatsApp credentials required (pass phone_id/token or set WHATSAPP_PHONE_ID/WHATSAPP_TOKEN)")
        self.api_version = api_version
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._client: httpx.AsyncClient | None = None

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/{self.api_version}/{self.phone_id}/messages"

    async def start(self) -> None:
        """Open the HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.token}"},
        )
        logger.info("WhatsApp channel started")

    async def stop(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("WhatsApp channel stopped")

    @staticmethod
    def media_type_for(url: str) -> str:
        """Guess the Cloud API media type for an attachment URL."""
        mime_type, _ = mimetypes.guess_type(url.split("?", 1)[0])
        if mime_type:
            for kind in ("image", "video", "audio"):
                if mime_type.startswith(f"{kind}/"):
                    return kind
        return "document"

    def build_payload(self, to: str, text: str, media_url: str | None = None) -> dict[str, Any]:
        """Build the Cloud API request body for one message."""
        payload: dict[str, Any] = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": normalize_e164(to).lstrip("+"),
        }
        if not media_url:
            payload["type"] = "text"
            payload["text"] = {"body": text}
            return payload

        media_type = self.media_type_for(media_url)
        media: dict[str, Any] = {"link": media_url}
        # Audio messages cannot carry a caption
        if text and media_type != "audio":
            media["caption"] = text
        payload["type"] = media_type
        payload[media_type] = media
        return payload

    async def send_message(self, to: str, text: str, media_url: str | None = None) -> None:
        """Send one WhatsApp message."""
        if not self._client:
            raise RuntimeError("WhatsApp channel not started")

        payload = self.build_payload(to, text, media_url)
        try:
            response = await self._client.post(self.messages_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RuntimeError(
                f"WhatsApp API HTTP error: {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise RuntimeError(f"WhatsApp API request failed: {e}") from e
        logger.debug(f"Sent WhatsApp {payload['type']} message to {payload['to']}")
