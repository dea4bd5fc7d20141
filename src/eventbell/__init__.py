"""eventbell - leader-elected reminders for watched calendar events."""

__version__ = "0.1.0"
