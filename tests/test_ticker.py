"""Tests for the reminder ticker."""

import asyncio
from datetime import UTC, datetime, time
from zoneinfo import ZoneInfo

import pytest

from eventbell.scheduling import (
    CalendarEvent,
    FiredTracker,
    Impact,
    LeaderLock,
    QuietHours,
    ReminderTicker,
    WatchRegistry,
)
from tests.conftest import CPI_DATE, at


class TestRunOnce:
    async def test_fires_exactly_at_lead(self, make_ticker, registry, notifications, cpi_event):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()

        assert await ticker.run_once(at(8, 14)) == []
        results = await ticker.run_once(at(8, 15))
        assert await ticker.run_once(at(8, 16)) == []

        assert len(results) == 1
        assert results[0].delivered is True
        assert [r.message for r in notifications.records] == [
            "Reminder: CPI Release in 15 minute(s) (8:30 AM)"
        ]

    async def test_partial_minute_floors(self, make_ticker, registry, notifications, cpi_event):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()

        # 14.5 minutes out floors to 14
        assert await ticker.run_once(at(8, 15, 30)) == []
        assert notifications.records == []

    async def test_repeated_pass_fires_once(
        self, make_ticker, registry, notifications, toaster, audio, cpi_event
    ):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()

        await ticker.run_once(at(8, 15))
        await ticker.run_once(at(8, 15))
        await ticker.run_once(at(8, 15, 45))

        assert len(notifications.records) == 1
        assert len(toaster.toasts) == 1
        assert audio.plays == 1

    async def test_each_lead_fires_separately(
        self, make_ticker, registry, notifications, cpi_event
    ):
        registry.watch(cpi_event, 15)
        registry.watch(cpi_event, 5)
        registry.watch(cpi_event, 1)
        ticker = make_ticker()

        for minute in range(14, 31):
            await ticker.run_once(at(8, minute))

        assert [r.message for r in notifications.records] == [
            "Reminder: CPI Release in 15 minute(s) (8:30 AM)",
            "Reminder: CPI Release in 5 minute(s) (8:30 AM)",
            "Reminder: CPI Release in 1 minute(s) (8:30 AM)",
        ]

    async def test_unschedulable_events_never_fire(
        self, make_ticker, registry, notifications
    ):
        for text in ("All Day", "Tentative", "Data"):
            registry.watch(CalendarEvent("Bank Holiday", text, CPI_DATE, Impact.LOW), 15)
        ticker = make_ticker(trigger_window="catch_up")

        for hour in range(24):
            await ticker.run_once(at(hour, 0))

        assert notifications.records == []

    async def test_other_days_do_not_fire(self, make_ticker, registry, notifications):
        registry.watch(CalendarEvent("GDP", "8:30 AM", CPI_DATE.replace(day=13)), 15)
        ticker = make_ticker()

        await ticker.run_once(at(8, 15))

        assert notifications.records == []

    async def test_rewatch_fires_again(self, make_ticker, registry, notifications, cpi_event):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()
        await ticker.run_once(at(8, 15))

        registry.unwatch(cpi_event.fingerprint)
        registry.watch(cpi_event, 15)
        await ticker.run_once(at(8, 15))

        assert len(notifications.records) == 2

    async def test_external_watch_change_is_picked_up(
        self, make_ticker, registry, watch_store, notifications, cpi_event
    ):
        ticker = make_ticker()
        WatchRegistry(watch_store, "tester").watch(cpi_event, 15)

        await ticker.run_once(at(8, 15))

        assert len(notifications.records) == 1

    async def test_external_rewatch_fires_again(
        self, make_ticker, registry, watch_store, notifications, cpi_event
    ):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()
        await ticker.run_once(at(8, 15))

        # Another process unwatches and re-watches between two reloads
        other = WatchRegistry(watch_store, "tester")
        other.unwatch(cpi_event.fingerprint)
        other.watch(cpi_event, 15)
        await ticker.run_once(at(8, 15))

        assert len(notifications.records) == 2

    async def test_unrelated_watch_keeps_fired_keys(
        self, make_ticker, registry, notifications, cpi_event
    ):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()
        await ticker.run_once(at(8, 15))

        registry.watch(CalendarEvent("GDP", "10:00 AM", CPI_DATE), 5)
        await ticker.run_once(at(8, 15))

        assert len(notifications.records) == 1

    async def test_timezone_defaults_to_system_zone(
        self, monkeypatch, registry, notifications, pipeline, leader, cpi_event
    ):
        monkeypatch.setenv("TZ", "Asia/Tokyo")
        registry.watch(cpi_event, 15)
        ticker = ReminderTicker(registry, FiredTracker(), pipeline, leader)

        assert await ticker.run_once(datetime(2024, 3, 12, 8, 15, tzinfo=UTC)) == []
        await ticker.run_once(datetime(2024, 3, 12, 8, 15, tzinfo=ZoneInfo("Asia/Tokyo")))

        assert len(notifications.records) == 1

    async def test_aware_now_in_other_zone(self, make_ticker, registry, notifications, cpi_event):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()

        await ticker.run_once(datetime(2024, 3, 12, 13, 15, tzinfo=UTC))

        assert len(notifications.records) == 1

    async def test_naive_now_is_local(self, make_ticker, registry, notifications, cpi_event):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()

        await ticker.run_once(datetime(2024, 3, 12, 8, 15))

        assert len(notifications.records) == 1

    async def test_clock_used_when_now_omitted(
        self, make_ticker, registry, notifications, cpi_event
    ):
        registry.watch(cpi_event, 5)
        ticker = make_ticker(clock=lambda: at(8, 25))

        await ticker.run_once()

        assert len(notifications.records) == 1


class TestSuppression:
    async def test_quiet_hours_skip_without_marking(
        self, make_ticker, registry, notifications
    ):
        late = CalendarEvent("Earnings Call", "11:30 PM", CPI_DATE)
        registry.watch(late, 15)
        tracker = FiredTracker()
        ticker = make_ticker(quiet_hours=QuietHours(), tracker=tracker)

        assert await ticker.run_once(at(23, 15)) == []

        assert notifications.records == []
        assert len(tracker) == 0

    async def test_quiet_hours_outside_window(self, make_ticker, registry, notifications, cpi_event):
        registry.watch(cpi_event, 15)
        ticker = make_ticker(quiet_hours=QuietHours(start=time(22, 0), end=time(6, 0)))

        await ticker.run_once(at(8, 15))

        assert len(notifications.records) == 1

    async def test_failed_delivery_is_retried(
        self, make_ticker, registry, notifications, toaster, cpi_event
    ):
        registry.watch(cpi_event, 15)
        tracker = FiredTracker()
        ticker = make_ticker(tracker=tracker)
        notifications.fail_with = OSError("read-only file system")

        # 8:14:30 and 8:15:00 both floor to 15 minutes before the event
        results = await ticker.run_once(at(8, 14, 30))

        assert [r.delivered for r in results] == [False]
        assert len(tracker) == 0
        assert toaster.toasts == []

        notifications.fail_with = None
        results = await ticker.run_once(at(8, 15))

        assert [r.delivered for r in results] == [True]
        assert len(notifications.records) == 1


class TestCatchUpWindow:
    """The catch_up window deliberately differs from exact matching.

    A pass that lands anywhere between the lead time and the event still
    fires, so a delayed tick does not lose the reminder.
    """

    async def test_late_tick_still_fires_once(
        self, make_ticker, registry, notifications, cpi_event
    ):
        registry.watch(cpi_event, 15)
        ticker = make_ticker(trigger_window="catch_up")

        assert await ticker.run_once(at(8, 14)) == []
        results = await ticker.run_once(at(8, 16))
        await ticker.run_once(at(8, 20))

        assert len(results) == 1
        assert len(notifications.records) == 1

    async def test_unrelated_watch_does_not_refire(
        self, make_ticker, registry, notifications, cpi_event
    ):
        registry.watch(cpi_event, 15)
        ticker = make_ticker(trigger_window="catch_up")
        await ticker.run_once(at(8, 15))

        registry.watch(CalendarEvent("GDP", "10:00 AM", CPI_DATE), 5)
        await ticker.run_once(at(8, 16))

        assert len(notifications.records) == 1

    async def test_past_events_never_fire(self, make_ticker, registry, notifications, cpi_event):
        registry.watch(cpi_event, 15)
        ticker = make_ticker(trigger_window="catch_up")

        await ticker.run_once(at(8, 31))

        assert notifications.records == []

    async def test_exact_window_misses_late_tick(
        self, make_ticker, registry, notifications, cpi_event
    ):
        registry.watch(cpi_event, 15)
        ticker = make_ticker()

        await ticker.run_once(at(8, 16))

        assert notifications.records == []


class TestLifecycle:
    async def test_start_runs_immediate_pass(
        self, make_ticker, registry, notifications, leader, cpi_event
    ):
        registry.watch(cpi_event, 15)
        ticker = make_ticker(interval_seconds=3600, clock=lambda: at(8, 15))

        assert await ticker.start() is True
        try:
            assert ticker.is_running is True
            assert ticker.is_leader is True
            assert ticker.tick_count == 1
            assert len(notifications.records) == 1
        finally:
            await ticker.stop()

        assert ticker.is_running is False
        assert leader.read() is None

    async def test_second_instance_is_follower(
        self, make_ticker, registry, notifications, lock_path, cpi_event
    ):
        registry.watch(cpi_event, 15)
        clock = lambda: at(8, 15)  # noqa: E731
        first = make_ticker(interval_seconds=3600, clock=clock)
        second = make_ticker(
            interval_seconds=3600,
            clock=clock,
            lock=LeaderLock(lock_path, instance_id="instance-b"),
        )

        assert await first.start() is True
        try:
            assert await second.start() is False
            assert second.is_running is False
            assert second.tick_count == 0
            assert len(notifications.records) == 1
        finally:
            await second.stop()
            await first.stop()

    async def test_follower_can_lead_after_release(self, make_ticker, lock_path):
        first = make_ticker(interval_seconds=3600, clock=lambda: at(9, 0))
        second = make_ticker(
            interval_seconds=3600,
            clock=lambda: at(9, 0),
            lock=LeaderLock(lock_path, instance_id="instance-b"),
        )

        await first.start()
        await first.stop()

        assert await second.start() is True
        await second.stop()

    async def test_start_is_idempotent(self, make_ticker):
        ticker = make_ticker(interval_seconds=3600, clock=lambda: at(9, 0))
        assert await ticker.start() is True
        assert await ticker.start() is True
        assert ticker.tick_count == 1
        await ticker.stop()
        await ticker.stop()

    async def test_loop_ticks_on_interval(self, make_ticker):
        ticker = make_ticker(interval_seconds=0.01, clock=lambda: at(9, 0))

        await ticker.start()
        for _ in range(100):
            if ticker.tick_count >= 3:
                break
            await asyncio.sleep(0.01)
        await ticker.stop()

        assert ticker.tick_count >= 3

    async def test_cancelled_waiter_leaves_loop_running(self, make_ticker, leader):
        ticker = make_ticker(interval_seconds=3600, clock=lambda: at(9, 0))
        await ticker.start()

        waiter = asyncio.create_task(ticker.wait())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        assert ticker.is_running is True
        await ticker.stop()
        assert ticker.is_running is False
        assert leader.read() is None

    async def test_lost_leadership_stops_loop(self, make_ticker, lock_path):
        ticker = make_ticker(interval_seconds=0.01, clock=lambda: at(9, 0))
        await ticker.start()

        usurper = LeaderLock(lock_path, instance_id="usurper")
        usurper.force_clear()
        assert usurper.try_acquire() is True

        await asyncio.wait_for(ticker.wait(), timeout=2)

        assert ticker.is_running is False
        assert ticker.is_leader is False
        await ticker.stop()
        assert usurper.read() is not None
