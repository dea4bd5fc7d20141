"""CLI command modules."""

from eventbell.cli.commands import config, lock, notifications, run, watch

__all__ = [
    "config",
    "lock",
    "notifications",
    "run",
    "watch",
]
