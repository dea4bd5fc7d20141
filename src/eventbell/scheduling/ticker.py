"""Reminder ticker: the leader-only evaluation loop.

The ticker owns the timer task. Data access goes through the registry,
deduplication through the fired tracker and delivery through the pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, tzinfo
from typing import Literal
from zoneinfo import ZoneInfo

from eventbell.config.paths import get_system_timezone
from eventbell.scheduling.fired import FiredTracker
from eventbell.scheduling.leader import LeaderLock
from eventbell.scheduling.pipeline import ReminderPipeline
from eventbell.scheduling.quiet_hours import QuietHours
from eventbell.scheduling.registry import WatchRegistry
from eventbell.scheduling.timeparse import minutes_until, resolve_event_time
from eventbell.scheduling.types import FiredKey, FireResult

logger = logging.getLogger(__name__)

TriggerWindow = Literal["exact", "catch_up"]

# Log a heartbeat every this many ticks (~1 hour at the default interval)
HEARTBEAT_TICKS = 60


class ReminderTicker:
    """Evaluates watched events on a fixed interval while this instance leads.

    Leadership is attempted once, in start(). An instance that loses the
    election stays a passive follower until it is started again.

    Example:
        ticker = ReminderTicker(registry, FiredTracker(), pipeline, LeaderLock())
        if await ticker.start():
            ...
        await ticker.stop()
    """

    def __init__(
        self,
        registry: WatchRegistry,
        tracker: FiredTracker,
        pipeline: ReminderPipeline,
        leader: LeaderLock,
        quiet_hours: QuietHours | None = None,
        *,
        interval_seconds: float = 60.0,
        timezone: tzinfo | str | None = None,
        trigger_window: TriggerWindow = "exact",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._registry = registry
        self._tracker = tracker
        self._pipeline = pipeline
        self._leader = leader
        self._quiet_hours = quiet_hours or QuietHours(enabled=False)
        self._interval = interval_seconds
        if timezone is None:
            timezone = get_system_timezone()
        self._tz = ZoneInfo(timezone) if isinstance(timezone, str) else timezone
        self._trigger_window = trigger_window
        self._clock = clock or (lambda: datetime.now(self._tz))
        self._running = False
        self._task: asyncio.Task | None = None
        self._tick_count = 0

        self._known_watches = self._watch_identities()
        self._registry.subscribe(self._on_watches_changed)

    @property
    def is_leader(self) -> bool:
        return self._leader.is_held

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tick_count(self) -> int:
        return self._tick_count

    async def start(self) -> bool:
        """Try to lead and, if successful, start ticking.

        Returns:
            True if this instance is the leader and the loop is running.
        """
        if self._running:
            return True

        if not self._leader.try_acquire():
            logger.info(
                "scheduler_follower",
                extra={"lock.path": str(self._leader.path)},
            )
            return False

        self._running = True
        logger.info(
            "reminder_ticker_started",
            extra={
                "ticker.interval_seconds": self._interval,
                "ticker.trigger_window": self._trigger_window,
                "lock.owner": self._leader.instance_id,
            },
        )
        await self._tick()
        if self._running:
            self._task = asyncio.create_task(self._tick_loop())
        return self._running

    async def stop(self) -> None:
        """Stop ticking and release leadership."""
        was_running = self._running
        self._running = False
        task, self._task = self._task, None
        if task:
            task.cancel()
            await self._join(task)
        self._leader.release()
        if was_running:
            logger.info("reminder_ticker_stopped", extra={"ticker.ticks": self._tick_count})

    async def wait(self) -> None:
        """Block until the loop ends (stop() or lost leadership).

        Cancelling the waiter leaves the loop running.
        """
        if self._task:
            await self._join(self._task)

    @staticmethod
    async def _join(task: asyncio.Task) -> None:
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            # Only the loop's own cancellation is expected here.
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise

    async def _tick_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            if not self._running:
                break
            await self._tick()

    async def _tick(self) -> None:
        self._tick_count += 1
        try:
            if not self._leader.heartbeat():
                logger.warning("scheduler_leadership_lost")
                self._running = False
                return
            if self._tick_count % HEARTBEAT_TICKS == 0:
                logger.info(
                    "reminder_ticker_heartbeat",
                    extra={
                        "ticker.ticks": self._tick_count,
                        "watch.count": len(self._registry.snapshot),
                    },
                )
            await self.run_once()
        except Exception as e:
            logger.error("reminder_tick_error", extra={"error.message": str(e)})

    def _watch_identities(self) -> dict[tuple[str, int], datetime]:
        return {
            (w.fingerprint, w.lead_minutes): w.created_at for w in self._registry.snapshot
        }

    def _on_watches_changed(self) -> None:
        """Forget deliveries of watches that were removed or re-created.

        A re-created watch has a new created_at, so an unwatch and re-watch
        fires again even when both happen between two reloads. Watches that
        did not change keep their keys.
        """
        current = self._watch_identities()
        stale = [
            pair
            for pair, created_at in self._known_watches.items()
            if current.get(pair) != created_at
        ]
        self._tracker.purge(stale)
        self._known_watches = current

    def _localize(self, now: datetime) -> datetime:
        if now.tzinfo is None:
            return now.replace(tzinfo=self._tz)
        return now.astimezone(self._tz)

    def _in_window(self, diff_minutes: int, lead_minutes: int) -> bool:
        if self._trigger_window == "catch_up":
            return 0 <= diff_minutes <= lead_minutes
        return diff_minutes == lead_minutes

    async def run_once(self, now: datetime | None = None) -> list[FireResult]:
        """Run one evaluation pass.

        Args:
            now: Evaluation time; defaults to the clock. Naive values are
                taken as local time in the configured timezone.

        Returns:
            One result per firing attempted in this pass.
        """
        now = self._localize(now if now is not None else self._clock())
        self._registry.refresh()

        results: list[FireResult] = []
        for event in self._registry.snapshot:
            instant = resolve_event_time(event.time_text, event.date, self._tz)
            if instant is None:
                continue

            diff_minutes = minutes_until(instant, now)
            if not self._in_window(diff_minutes, event.lead_minutes):
                continue

            if self._quiet_hours.is_suppressed(now):
                logger.debug(
                    "reminder_quiet_hours_skipped",
                    extra={"reminder.fingerprint": event.fingerprint},
                )
                continue

            key = FiredKey(event.fingerprint, event.lead_minutes, now.year)
            if self._tracker.has_fired(key):
                logger.debug(
                    "reminder_duplicate_skipped",
                    extra={
                        "reminder.fingerprint": event.fingerprint,
                        "reminder.lead_minutes": event.lead_minutes,
                    },
                )
                continue

            result = await self._pipeline.fire(event, now)
            if result.delivered:
                self._tracker.mark_fired(key)
            results.append(result)

        return results
