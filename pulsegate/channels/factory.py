"""Channel factory for creating channel adapters from configuration."""

import logging

from pulsegate.channels.base import ChannelAdapter, ChannelSender
from pulsegate.core.config import ChannelsConfig

logger = logging.getLogger(__name__)


def create_channel(channel_type: str, config: ChannelsConfig) -> ChannelAdapter:
    """Create a channel adapter from type string and config.

    Args:
        channel_type: Channel type identifier ("telegram" or "whatsapp").
        config: Channels configuration.

    Returns:
        Configured (not yet started) ChannelAdapter.

    Raises:
        ValueError: If channel_type is unsupported or not configured.
    """
    if channel_type == "telegram" and config.telegram is not None:
        from pulsegate.channels.telegram import TelegramChannel

        return TelegramChannel(token=config.telegram.token)
    if channel_type == "whatsapp" and config.whatsapp is not None:
        from pulsegate.channels.whatsapp import WhatsAppChannel

        return WhatsAppChannel(
            phone_id=config.whatsapp.phone_id,
            token=config.whatsapp.token,
            api_version=config.whatsapp.api_version,
        )
    raise ValueError(f"Unsupported or unconfigured channel type: {channel_type}")


def create_channels(config: ChannelsConfig) -> dict[str, ChannelAdapter]:
    """Create an adapter for every configured channel."""
    channels: dict[str, ChannelAdapter] = {}
    for channel_type in ("whatsapp", "telegram"):
        if getattr(config, channel_type) is None:
            continue
        channels[channel_type] = create_channel(channel_type, config)
        logger.info(f"Configured channel: {channel_type}")
    return channels


def build_senders(channels: dict[str, ChannelAdapter]) -> dict[str, ChannelSender]:
    """Map channel names to their send primitive."""
    return {name: channel.send_message for name, channel in channels.items()}
