"""Pydantic configuration models for PulseGate.

This module defines all configuration models used throughout PulseGate.
For loading and merging logic, see loader.py.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

HeartbeatTargetMode = Literal["last", "whatsapp", "telegram", "none"]

_TARGET_MODES = ("last", "whatsapp", "telegram", "none")


class HeartbeatConfig(BaseModel):
    """Configuration for the heartbeat runner."""

    every: str | None = Field(
        default=None,
        description="Interval between heartbeats (e.g. '30m', '1h', '45'). Bare numbers are minutes. None = no timer",
    )
    prompt: str | None = Field(default=None, description="Prompt sent to the agent on each heartbeat")
    target: HeartbeatTargetMode = Field(
        default="last",
        description="Delivery target: last (most recent channel), whatsapp, telegram, none",
    )
    to: str | None = Field(default=None, description="Explicit recipient overriding the last-known one")

    @field_validator("every", mode="before")
    @classmethod
    def coerce_every(cls, v: Any) -> Any:
        """Accept numeric intervals from YAML (e.g. ``every: 30``)."""
        if isinstance(v, int | float) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("target", mode="before")
    @classmethod
    def coerce_target(cls, v: Any) -> Any:
        """Fall back to 'last' for missing or unknown target modes."""
        if isinstance(v, str) and v.strip().lower() in _TARGET_MODES:
            return v.strip().lower()
        return "last"

    @field_validator("to", mode="before")
    @classmethod
    def strip_to(cls, v: Any) -> Any:
        """Treat blank recipients as unset."""
        if v is None:
            return None
        text = str(v).strip()
        return text or None


class RoutingConfig(BaseModel):
    """Recipient allow-list for the WhatsApp channel."""

    allow_from: list[str | int] = Field(
        default_factory=list,
        description="Allowed recipients in E.164 form. '*' disables the restriction",
    )


class SessionConfig(BaseModel):
    """Configuration for the session store."""

    scope: Literal["per-sender", "global"] = Field(
        default="per-sender",
        description="Session scope: per-sender (main key) or global",
    )
    main_key: str = Field(default="main", description="Session key used for the primary conversation")
    store: str | None = Field(default=None, description="Path to sessions.json (default ~/.pulsegate/sessions.json)")

    @field_validator("main_key", mode="before")
    @classmethod
    def default_main_key(cls, v: Any) -> Any:
        """Blank main keys resolve to 'main'."""
        if v is None or not str(v).strip():
            return "main"
        return str(v).strip()


class MessagesConfig(BaseModel):
    """Configuration for outbound message formatting."""

    response_prefix: str | None = Field(
        default=None,
        description="Prefix prepended to every outbound heartbeat reply (e.g. '[bot]')",
    )


class LaneConfig(BaseModel):
    """Configuration for queue lanes."""

    main_concurrency: int = Field(default=1, description="Max concurrent runs in main lane")
    cron_concurrency: int = Field(default=2, description="Max concurrent runs in cron lane")


class AgentConfig(BaseModel):
    """Configuration for the reply-generation model."""

    model: str = Field(default="anthropic:claude-sonnet-4-20250514", description="Model identifier (provider:model)")
    api_key: str | None = Field(default=None, description="API key for the model provider")
    temperature: float = Field(default=0.7, description="Model temperature")
    system_prompt: str | None = Field(default=None, description="Optional system prompt for heartbeat replies")


class TelegramConfig(BaseModel):
    """Telegram channel credentials."""

    token: str | None = Field(default=None, description="Bot token (falls back to TELEGRAM_BOT_TOKEN)")


class WhatsAppConfig(BaseModel):
    """WhatsApp Cloud API credentials."""

    phone_id: str | None = Field(default=None, description="Business phone number ID (falls back to WHATSAPP_PHONE_ID)")
    token: str | None = Field(default=None, description="Access token (falls back to WHATSAPP_TOKEN)")
    api_version: str = Field(default="v18.0", description="Graph API version")


class ChannelsConfig(BaseModel):
    """Outbound channel configuration."""

    telegram: TelegramConfig | None = Field(default=None, description="Telegram channel (None = disabled)")
    whatsapp: WhatsAppConfig | None = Field(default=None, description="WhatsApp channel (None = disabled)")


class LoggingConfig(BaseModel):
    """Configuration for logging system."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    directory: str = Field(default="logs", description="Directory for log files")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB before rotation")
    backup_count: int = Field(default=5, description="Number of backup log files to keep")
    heartbeat_events: bool = Field(default=True, description="Append heartbeat events to heartbeat.jsonl")


class Config(BaseModel):
    """Root configuration for PulseGate."""

    heartbeat: HeartbeatConfig = Field(default_factory=HeartbeatConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    lanes: LaneConfig = Field(default_factory=LaneConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    model_config = {"extra": "allow"}
