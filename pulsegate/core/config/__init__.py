"""Configuration package for PulseGate.

Pydantic models and YAML loading utilities, re-exported at the package level.
"""

from pulsegate.core.config.loader import (
    DEFAULT_CONFIG_PATH,
    check_unexpanded_vars,
    expand_env_vars,
    expand_env_vars_recursive,
    load_config,
    merge_configs,
)
from pulsegate.core.config.models import (
    AgentConfig,
    ChannelsConfig,
    Config,
    HeartbeatConfig,
    HeartbeatTargetMode,
    LaneConfig,
    LoggingConfig,
    MessagesConfig,
    RoutingConfig,
    SessionConfig,
    TelegramConfig,
    WhatsAppConfig,
)

__all__ = [
    # Models
    "AgentConfig",
    "ChannelsConfig",
    "Config",
    "HeartbeatConfig",
    "HeartbeatTargetMode",
    "LaneConfig",
    "LoggingConfig",
    "MessagesConfig",
    "RoutingConfig",
    "SessionConfig",
    "TelegramConfig",
    "WhatsAppConfig",
    # Loaders
    "DEFAULT_CONFIG_PATH",
    "check_unexpanded_vars",
    "expand_env_vars",
    "expand_env_vars_recursive",
    "load_config",
    "merge_configs",
]
