"""Scheduling types.

Public types:
- CalendarEvent: An event as supplied by the calendar source
- WatchedEvent: A user's watch on one calendar event at one lead time
- FiredKey: Deduplication key for delivered reminders
- NotificationRecord: A reminder written to the notification store
- FireResult: Outcome of one firing attempt
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any, NamedTuple

NOTIFICATION_TYPE = "event_reminder"


class Impact(StrEnum):
    """Market impact rating from the calendar source."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class InvalidLeadTimeError(ValueError):
    """Raised when a watch requests a lead time outside the allowed set."""

    def __init__(self, lead_minutes: int, allowed: list[int]) -> None:
        self.lead_minutes = lead_minutes
        self.allowed = allowed
        allowed_str = ", ".join(str(m) for m in allowed)
        super().__init__(
            f"Lead time {lead_minutes} minute(s) is not allowed (choose from {allowed_str})"
        )


def make_fingerprint(on: date, name: str, time_text: str) -> str:
    """Build the stable key identifying one calendar occurrence."""
    return f"{on.isoformat()}|{name}|{time_text}"


@dataclass(frozen=True)
class CalendarEvent:
    """An event row from the calendar source."""

    name: str
    time_text: str
    date: date
    impact: Impact = Impact.HIGH

    @property
    def fingerprint(self) -> str:
        return make_fingerprint(self.date, self.name, self.time_text)


@dataclass
class WatchedEvent:
    """A user's watch on a calendar event at one lead time."""

    fingerprint: str
    name: str
    time_text: str
    date: date
    impact: Impact
    lead_minutes: int
    owner_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_calendar(
        cls, event: CalendarEvent, lead_minutes: int, owner_id: str
    ) -> WatchedEvent:
        return cls(
            fingerprint=event.fingerprint,
            name=event.name,
            time_text=event.time_text,
            date=event.date,
            impact=event.impact,
            lead_minutes=lead_minutes,
            owner_id=owner_id,
        )

    @property
    def watch_key(self) -> tuple[str, str, int]:
        return (self.owner_id, self.fingerprint, self.lead_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "name": self.name,
            "time_text": self.time_text,
            "date": self.date.isoformat(),
            "impact": self.impact.value,
            "lead_minutes": self.lead_minutes,
            "owner_id": self.owner_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WatchedEvent:
        on = date.fromisoformat(data["date"])
        name = str(data["name"])
        time_text = str(data["time_text"])
        created_raw = data.get("created_at")
        return cls(
            fingerprint=data.get("fingerprint") or make_fingerprint(on, name, time_text),
            name=name,
            time_text=time_text,
            date=on,
            impact=Impact(data.get("impact", Impact.HIGH.value)),
            lead_minutes=int(data["lead_minutes"]),
            owner_id=str(data["owner_id"]),
            created_at=datetime.fromisoformat(created_raw)
            if created_raw
            else datetime.now(UTC),
        )


class FiredKey(NamedTuple):
    """Identifies one delivered reminder within a process lifetime."""

    fingerprint: str
    lead_minutes: int
    year: int


@dataclass
class NotificationRecord:
    """A reminder appended to the notification store."""

    owner_id: str
    from_id: str
    message: str
    type: str = NOTIFICATION_TYPE
    read: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "from_id": self.from_id,
            "type": self.type,
            "message": self.message,
            "read": self.read,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NotificationRecord:
        return cls(
            id=str(data["id"]),
            owner_id=str(data["owner_id"]),
            from_id=str(data.get("from_id", data["owner_id"])),
            type=str(data.get("type", NOTIFICATION_TYPE)),
            message=str(data["message"]),
            read=bool(data.get("read", False)),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class FireResult:
    """Outcome of one firing attempt."""

    event: WatchedEvent
    message: str
    delivered: bool
    record: NotificationRecord | None = None
    error: str | None = None
