"""Configuration models using Pydantic."""

import getpass
import logging
import re
from datetime import time
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from eventbell.config.paths import get_system_timezone

logger = logging.getLogger(__name__)

_HHMM_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """Parse a 24-hour "HH:MM" string into a time.

    Raises:
        ValueError: If the string is not a valid time of day.
    """
    match = _HHMM_RE.match(value.strip())
    if not match:
        raise ValueError(f"Expected HH:MM (24-hour), got {value!r}")
    return time(int(match.group(1)), int(match.group(2)))


def _default_owner() -> str:
    try:
        return getpass.getuser()
    except Exception:
        return "default"


class SchedulerConfig(BaseModel):
    """Configuration for the reminder ticker.

    trigger_window controls when a reminder is due:
    - "exact": only on the tick where minutes-to-event equals the lead time.
      A missed tick loses the reminder.
    - "catch_up": on the first tick where minutes-to-event is between 0 and
      the lead time. Deduplication keeps it to a single firing.
    """

    tick_interval: float = Field(default=60.0, gt=0)
    lead_minutes: list[int] = Field(default_factory=lambda: [1, 5, 15])
    trigger_window: Literal["exact", "catch_up"] = "exact"

    @field_validator("lead_minutes")
    @classmethod
    def _validate_lead_minutes(cls, value: list[int]) -> list[int]:
        if not value:
            raise ValueError("lead_minutes must not be empty")
        if any(minutes <= 0 for minutes in value):
            raise ValueError("lead_minutes must be positive")
        return sorted(set(value))


class QuietHoursConfig(BaseModel):
    """Time-of-day window during which no reminders are delivered.

    The window is [start, end) in local time and may wrap past midnight.
    """

    enabled: bool = True
    start: str = "22:00"
    end: str = "06:00"

    @field_validator("start", "end")
    @classmethod
    def _validate_hhmm(cls, value: str) -> str:
        parse_hhmm(value)
        return value.strip()


class LeaderConfig(BaseModel):
    """Configuration for cross-instance leader election.

    lock_ttl_seconds: a lock whose heartbeat is older than this is treated
    as abandoned and may be reclaimed. None disables expiry, in which case a
    crashed leader keeps the lock until it is cleared manually.
    """

    lock_ttl_seconds: float | None = Field(default=600.0, gt=0)
    acquire_timeout: float = Field(default=5.0, gt=0)


class DeliveryConfig(BaseModel):
    """Configuration for reminder delivery surfaces."""

    toast: bool = True
    audio: bool = True


class ConfigError(Exception):
    """Configuration error."""

    pass


class EventbellConfig(BaseModel):
    """Root configuration model."""

    owner_id: str = Field(default_factory=_default_owner)
    timezone: str = Field(default_factory=get_system_timezone)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    quiet_hours: QuietHoursConfig = Field(default_factory=QuietHoursConfig)
    leader: LeaderConfig = Field(default_factory=LeaderConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
