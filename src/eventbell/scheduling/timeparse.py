"""Resolve calendar time-of-day text into absolute instants.

Calendar sources publish times as loose strings ("8:30 AM", "2pm",
"All Day", "Tentative", "Data unavailable"). Only 12-hour clock times are
schedulable; everything else resolves to None and is never a reminder
candidate.
"""

import logging
import math
import re
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

UNSCHEDULABLE_TEXTS = frozenset({"All Day", "Tentative"})
UNSCHEDULABLE_MARKER = "Data"

_TIME_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)", re.IGNORECASE)


def resolve_event_time(
    time_text: str,
    on: date,
    tz: tzinfo | str | None = None,
) -> datetime | None:
    """Resolve a time-of-day string on a calendar date.

    Args:
        time_text: Time as published by the calendar source.
        on: Calendar date of the event.
        tz: Timezone the time is expressed in (tzinfo or IANA name).
            None means naive local time.

    Returns:
        The event instant, or None when the text is unschedulable.
    """
    if time_text in UNSCHEDULABLE_TEXTS or UNSCHEDULABLE_MARKER in time_text:
        return None

    match = _TIME_RE.search(time_text.strip())
    if not match:
        logger.debug("unschedulable_time_text", extra={"event.time_text": time_text})
        return None

    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    period = match.group(3).lower()

    if hour > 12 or minute > 59:
        return None

    if period == "pm" and hour < 12:
        hour += 12
    if period == "am" and hour == 12:
        hour = 0

    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    return datetime(on.year, on.month, on.day, hour, minute, tzinfo=tz)


def minutes_until(instant: datetime, now: datetime) -> int:
    """Whole minutes from now until instant, floored."""
    return math.floor((instant - now) / timedelta(minutes=1))
