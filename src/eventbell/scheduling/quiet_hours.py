"""Quiet hours policy."""

from dataclasses import dataclass
from datetime import datetime, time

from eventbell.config.models import QuietHoursConfig, parse_hhmm


def _minutes(value: time | datetime) -> int:
    return value.hour * 60 + value.minute


@dataclass(frozen=True)
class QuietHours:
    """A [start, end) local time-of-day window that suppresses reminders.

    When start is after end the window wraps past midnight, so 22:00-06:00
    covers late evening and early morning. start == end is an empty window.
    """

    start: time = time(22, 0)
    end: time = time(6, 0)
    enabled: bool = True

    @classmethod
    def from_config(cls, config: QuietHoursConfig) -> "QuietHours":
        return cls(
            start=parse_hhmm(config.start),
            end=parse_hhmm(config.end),
            enabled=config.enabled,
        )

    def is_suppressed(self, now: datetime) -> bool:
        if not self.enabled:
            return False

        current = _minutes(now)
        start = _minutes(self.start)
        end = _minutes(self.end)

        if start <= end:
            return start <= current < end
        return current >= start or current < end
