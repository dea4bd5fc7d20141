"""Shared test fixtures and factories."""

from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from eventbell.config.paths import get_eventbell_home
from eventbell.scheduling import (
    CalendarEvent,
    FiredTracker,
    Impact,
    LeaderLock,
    NotificationRecord,
    QuietHours,
    ReminderPipeline,
    ReminderTicker,
    WatchRegistry,
    WatchStore,
)

# Fixed-offset zone so tests do not depend on the tz database.
EST = timezone(timedelta(hours=-5), "EST")

CPI_DATE = date(2024, 3, 12)

# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def eventbell_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Isolate every test in its own state directory."""
    home = tmp_path / "eventbell-home"
    monkeypatch.setenv("EVENTBELL_HOME", str(home))
    monkeypatch.setenv("EVENTBELL_OWNER", "tester")
    monkeypatch.setenv("EVENTBELL_TIMEZONE", "UTC")
    monkeypatch.delenv("EVENTBELL_LOG_LEVEL", raising=False)
    monkeypatch.chdir(tmp_path)
    get_eventbell_home.cache_clear()
    yield home
    get_eventbell_home.cache_clear()


@pytest.fixture
def cli_runner(monkeypatch: pytest.MonkeyPatch):
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    from eventbell.cli.console import console

    # Shared console is created at import time; keep tables on one line.
    monkeypatch.setattr(console, "width", 200)
    return CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        """
owner_id = "alice"
timezone = "UTC"

[scheduler]
tick_interval = 30
lead_minutes = [5, 15]

[quiet_hours]
enabled = true
start = "23:00"
end = "07:00"
"""
    )
    return config_path


# =============================================================================
# Calendar Fixtures
# =============================================================================


@pytest.fixture
def cpi_event() -> CalendarEvent:
    return CalendarEvent(
        name="CPI Release",
        time_text="8:30 AM",
        date=CPI_DATE,
        impact=Impact.HIGH,
    )


def at(hour: int, minute: int, second: int = 0, day: date = CPI_DATE) -> datetime:
    """Build an aware local time on the test calendar day."""
    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=EST)


# =============================================================================
# Delivery Fakes
# =============================================================================


class MemoryNotifications:
    """Notification store that keeps records in a list."""

    def __init__(self) -> None:
        self.records: list[NotificationRecord] = []
        self.fail_with: Exception | None = None

    def append(self, record: NotificationRecord) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.records.append(record)


class RecordingToaster:
    def __init__(self) -> None:
        self.toasts: list[tuple[str, str]] = []

    def show(self, title: str, description: str) -> None:
        self.toasts.append((title, description))


class RecordingAudio:
    def __init__(self) -> None:
        self.plays = 0

    def play(self) -> bool:
        self.plays += 1
        return True


@pytest.fixture
def notifications() -> MemoryNotifications:
    return MemoryNotifications()


@pytest.fixture
def toaster() -> RecordingToaster:
    return RecordingToaster()


@pytest.fixture
def audio() -> RecordingAudio:
    return RecordingAudio()


# =============================================================================
# Scheduling Fixtures
# =============================================================================


@pytest.fixture
def watch_store(tmp_path: Path) -> WatchStore:
    return WatchStore(tmp_path / "watches.json")


@pytest.fixture
def registry(watch_store: WatchStore) -> WatchRegistry:
    return WatchRegistry(watch_store, owner_id="tester")


@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    return tmp_path / "run" / "scheduler.lock"


@pytest.fixture
def leader(lock_path: Path) -> LeaderLock:
    return LeaderLock(lock_path, instance_id="instance-a")


@pytest.fixture
def pipeline(
    notifications: MemoryNotifications,
    toaster: RecordingToaster,
    audio: RecordingAudio,
) -> ReminderPipeline:
    return ReminderPipeline(notifications, toaster=toaster, audio=audio)  # type: ignore[arg-type]


@pytest.fixture
def make_ticker(
    registry: WatchRegistry,
    pipeline: ReminderPipeline,
    leader: LeaderLock,
):
    """Factory for tickers sharing the test registry, pipeline and lock."""

    def _make(
        *,
        trigger_window: str = "exact",
        quiet_hours: QuietHours | None = None,
        tracker: FiredTracker | None = None,
        interval_seconds: float = 60.0,
        clock=None,
        lock: LeaderLock | None = None,
    ) -> ReminderTicker:
        return ReminderTicker(
            registry,
            tracker or FiredTracker(),
            pipeline,
            lock or leader,
            quiet_hours or QuietHours(enabled=False),
            interval_seconds=interval_seconds,
            timezone=EST,
            trigger_window=trigger_window,  # type: ignore[arg-type]
            clock=clock,
        )

    return _make
