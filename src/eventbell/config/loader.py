"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from eventbell.config.models import ConfigError, EventbellConfig
from eventbell.config.paths import get_config_path


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("eventbell.toml"),  # Current directory
        get_config_path(),  # ~/.eventbell/config.toml (or EVENTBELL_HOME)
        Path("/etc/eventbell/config.toml"),  # System-wide
    ]


def _resolve_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment overrides for top-level settings."""
    env_mappings = [
        ("owner_id", "EVENTBELL_OWNER"),
        ("timezone", "EVENTBELL_TIMEZONE"),
    ]
    for key, env_var in env_mappings:
        value = os.environ.get(env_var)
        if value:
            config[key] = value
    return config


def load_config(path: Path | None = None) -> EventbellConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default
            locations and falls back to built-in defaults when none exists.

    Returns:
        Validated EventbellConfig instance.

    Raises:
        FileNotFoundError: If an explicit config file does not exist.
        ConfigError: If the config file is not valid TOML.
        pydantic.ValidationError: If config values are invalid.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    raw_config: dict[str, Any] = {}
    if config_path is not None:
        try:
            with config_path.open("rb") as f:
                raw_config = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    raw_config = _resolve_env_overrides(raw_config)

    return EventbellConfig.model_validate(raw_config)


def get_default_config() -> EventbellConfig:
    """Get a default configuration for development/testing."""
    return EventbellConfig.model_validate(_resolve_env_overrides({}))
