"""Reminder delivery surfaces: notification store, toast, audio cue."""

from eventbell.delivery.audio import AudioCue
from eventbell.delivery.notifications import NotificationLog, NotificationStore
from eventbell.delivery.toast import ConsoleToaster, Toaster

__all__ = [
    "AudioCue",
    "ConsoleToaster",
    "NotificationLog",
    "NotificationStore",
    "Toaster",
]
