"""Configuration module."""

from eventbell.config.loader import get_default_config, load_config
from eventbell.config.models import (
    ConfigError,
    DeliveryConfig,
    EventbellConfig,
    LeaderConfig,
    QuietHoursConfig,
    SchedulerConfig,
    parse_hhmm,
)
from eventbell.config.paths import (
    get_config_path,
    get_eventbell_home,
    get_lock_path,
    get_notifications_path,
    get_watches_path,
)

__all__ = [
    "ConfigError",
    "DeliveryConfig",
    "EventbellConfig",
    "LeaderConfig",
    "QuietHoursConfig",
    "SchedulerConfig",
    "get_config_path",
    "get_default_config",
    "get_eventbell_home",
    "get_lock_path",
    "get_notifications_path",
    "get_watches_path",
    "load_config",
    "parse_hhmm",
]
