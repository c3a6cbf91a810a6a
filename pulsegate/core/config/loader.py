"""Configuration loading for PulseGate.

Reads the YAML config file, expands ``${VAR}`` environment references, and
validates the result into a :class:`Config`.
"""

import copy
import os
import re
from pathlib import Path
from typing import Any

import yaml

from pulsegate.core.config.models import Config

DEFAULT_CONFIG_PATH = Path("config.yaml")

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """Replace ``${VAR}`` references in a string with environment values.

    Unknown variables are left in place so they can be reported by
    :func:`check_unexpanded_vars`.

    Examples:
        >>> os.environ['TELEGRAM_BOT_TOKEN'] = 'abc'
        >>> expand_env_vars('${TELEGRAM_BOT_TOKEN}')
        'abc'
    """
    return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)


def expand_env_vars_recursive(obj: Any) -> Any:
    """Expand environment references in every string of a nested structure."""
    if isinstance(obj, dict):
        return {key: expand_env_vars_recursive(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [expand_env_vars_recursive(item) for item in obj]
    if isinstance(obj, str):
        return expand_env_vars(obj)
    return obj


def merge_configs(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Deep merge ``overrides`` onto ``base``.

    Nested dicts merge key by key; any other value in ``overrides`` replaces
    the base value outright (lists are not concatenated).

    Examples:
        >>> merge_configs({'heartbeat': {'every': '30m', 'target': 'last'}}, {'heartbeat': {'every': '5m'}})
        {'heartbeat': {'every': '5m', 'target': 'last'}}
    """
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def check_unexpanded_vars(data: Any, source: str) -> None:
    """Fail fast when environment references survived expansion.

    Args:
        data: Expanded configuration data.
        source: Label used in the error message (usually the file path).

    Raises:
        ValueError: If any ``${VAR}`` reference is unresolved.
    """
    found: list[str] = []
    _collect_unexpanded_vars(data, found)
    if found:
        raise ValueError(
            f"Unresolved environment variable(s) in {source}: {', '.join(sorted(set(found)))}. "
            f"Set these variables or remove the ${{VAR}} references."
        )


def _collect_unexpanded_vars(obj: Any, found: list[str]) -> None:
    if isinstance(obj, dict):
        for value in obj.values():
            _collect_unexpanded_vars(value, found)
    elif isinstance(obj, list):
        for item in obj:
            _collect_unexpanded_vars(item, found)
    elif isinstance(obj, str):
        found.extend(f"${{{name}}}" for name in _ENV_PATTERN.findall(obj))


def load_config(path: Path | str = DEFAULT_CONFIG_PATH, overrides: dict[str, Any] | None = None) -> Config:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file (default ``config.yaml``).
        overrides: Optional values deep-merged over the file contents
            (e.g. from CLI flags).

    Returns:
        Validated Config.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If environment references are unresolved.
        yaml.YAMLError: If the YAML is malformed.
    """
    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open(encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    data = expand_env_vars_recursive(data)
    check_unexpanded_vars(data, source=str(config_path))

    if overrides:
        data = merge_configs(data, overrides)

    return Config(**data)
