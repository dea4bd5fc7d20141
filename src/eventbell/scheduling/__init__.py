"""Scheduling subsystem: event reminders at a lead time before each event.

Public API:
- resolve_event_time: Calendar time text -> instant (or None)
- WatchStore / WatchRegistry: Durable watch list and change signals
- FiredTracker: Per-process delivery deduplication
- QuietHours: Time-of-day suppression window
- LeaderLock: Single active scheduler among concurrent instances
- ReminderPipeline: Notification record, toast and audio for one reminder
- ReminderTicker: Leader-only evaluation loop
"""

from eventbell.scheduling.fired import FiredTracker
from eventbell.scheduling.leader import LeaderLock, LockMarker
from eventbell.scheduling.pipeline import ReminderPipeline, format_reminder
from eventbell.scheduling.quiet_hours import QuietHours
from eventbell.scheduling.registry import WatchRegistry
from eventbell.scheduling.store import WatchStore
from eventbell.scheduling.ticker import ReminderTicker
from eventbell.scheduling.timeparse import minutes_until, resolve_event_time
from eventbell.scheduling.types import (
    NOTIFICATION_TYPE,
    CalendarEvent,
    FiredKey,
    FireResult,
    Impact,
    InvalidLeadTimeError,
    NotificationRecord,
    WatchedEvent,
    make_fingerprint,
)

__all__ = [
    "NOTIFICATION_TYPE",
    "CalendarEvent",
    "FireResult",
    "FiredKey",
    "FiredTracker",
    "Impact",
    "InvalidLeadTimeError",
    "LeaderLock",
    "LockMarker",
    "NotificationRecord",
    "QuietHours",
    "ReminderPipeline",
    "ReminderTicker",
    "WatchRegistry",
    "WatchStore",
    "WatchedEvent",
    "format_reminder",
    "make_fingerprint",
    "minutes_until",
    "resolve_event_time",
]
