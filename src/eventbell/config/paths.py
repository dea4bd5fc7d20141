"""Centralized path management for eventbell.

All state (config, watches, notifications, leader lock, logs) lives under a
single base directory shared by every scheduler instance on the machine.
The base directory can be overridden with the EVENTBELL_HOME environment
variable.

Default locations:
- Linux/macOS: ~/.eventbell
- Windows: %USERPROFILE%\\.eventbell
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "EVENTBELL_HOME"


def get_system_timezone() -> str:
    """Detect system timezone, falling back to UTC.

    Resolution order:
    1. TZ environment variable (if set)
    2. /etc/timezone file (Debian/Ubuntu)
    3. /etc/localtime symlink target (most Linux distros)
    4. Fallback to UTC

    Returns:
        IANA timezone name (e.g., "America/New_York", "Europe/London", "UTC").
    """
    if tz := os.environ.get("TZ"):
        return tz

    try:
        tz = Path("/etc/timezone").read_text().strip()
        if tz:
            return tz
    except (FileNotFoundError, PermissionError):
        pass

    try:
        link = Path("/etc/localtime").resolve()
        parts = str(link).split("zoneinfo/")
        if len(parts) > 1:
            return parts[1]
    except (FileNotFoundError, PermissionError):
        pass

    return "UTC"


@lru_cache(maxsize=1)
def get_eventbell_home() -> Path:
    """Get the base directory for all eventbell data.

    Resolution order:
    1. EVENTBELL_HOME environment variable (if set)
    2. Platform default (~/.eventbell)
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".eventbell"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_eventbell_home() / "config.toml"


def get_watches_path() -> Path:
    """Get the watched-events document path."""
    return get_eventbell_home() / "watches.json"


def get_notifications_path() -> Path:
    """Get the notification log path (one JSON record per line)."""
    return get_eventbell_home() / "notifications.jsonl"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_eventbell_home() / "logs"


def get_run_path() -> Path:
    """Get the runtime directory path (leader lock)."""
    return get_eventbell_home() / "run"


def get_lock_path() -> Path:
    """Get the scheduler leader lock path."""
    return get_run_path() / "scheduler.lock"


def ensure_eventbell_home() -> Path:
    """Ensure the eventbell home directory exists."""
    home = get_eventbell_home()
    home.mkdir(parents=True, exist_ok=True)
    return home


def get_all_paths() -> dict[str, Path]:
    """Get all standard paths for debugging/display."""
    return {
        "home": get_eventbell_home(),
        "config": get_config_path(),
        "watches": get_watches_path(),
        "notifications": get_notifications_path(),
        "logs": get_logs_path(),
        "lock": get_lock_path(),
    }
