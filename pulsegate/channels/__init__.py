"""Outbound channel adapters."""

from pulsegate.channels.base import ChannelAdapter, ChannelSender
from pulsegate.channels.factory import build_senders, create_channel, create_channels

__all__ = ["ChannelAdapter", "ChannelSender", "build_senders", "create_channel", "create_channels"]
