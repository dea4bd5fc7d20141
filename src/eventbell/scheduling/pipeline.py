"""Reminder firing pipeline."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from eventbell.scheduling.types import FireResult, NotificationRecord, WatchedEvent

if TYPE_CHECKING:
    from eventbell.delivery.audio import AudioCue
    from eventbell.delivery.notifications import NotificationStore
    from eventbell.delivery.toast import Toaster

logger = logging.getLogger(__name__)

TOAST_TITLE = "Event reminder"


def format_reminder(event: WatchedEvent) -> str:
    """Build the user-facing reminder text."""
    return f"Reminder: {event.name} in {event.lead_minutes} minute(s) ({event.time_text})"


class ReminderPipeline:
    """Delivers one reminder: notification record, toast, then audio cue.

    The notification record is the delivery of record. If it cannot be
    written the firing is abandoned and reported as undelivered so the
    caller does not mark it fired. Toast and audio are cosmetic.
    """

    def __init__(
        self,
        notifications: NotificationStore,
        toaster: Toaster | None = None,
        audio: AudioCue | None = None,
    ) -> None:
        self._notifications = notifications
        self._toaster = toaster
        self._audio = audio

    async def fire(self, event: WatchedEvent, now: datetime) -> FireResult:
        message = format_reminder(event)
        record = NotificationRecord(
            owner_id=event.owner_id,
            from_id=event.owner_id,
            message=message,
        )

        try:
            await asyncio.to_thread(self._notifications.append, record)
        except Exception as e:
            logger.error(
                "reminder_delivery_failed",
                extra={
                    "reminder.fingerprint": event.fingerprint,
                    "reminder.lead_minutes": event.lead_minutes,
                    "error.message": str(e),
                },
            )
            return FireResult(event=event, message=message, delivered=False, error=str(e))

        logger.info(
            "reminder_fired",
            extra={
                "reminder.fingerprint": event.fingerprint,
                "reminder.lead_minutes": event.lead_minutes,
                "reminder.fired_at": now.isoformat(),
            },
        )

        if self._toaster is not None:
            try:
                self._toaster.show(TOAST_TITLE, message)
            except Exception as e:
                logger.warning("reminder_toast_failed", extra={"error.message": str(e)})

        if self._audio is not None:
            self._audio.play()

        return FireResult(event=event, message=message, delivered=True, record=record)
