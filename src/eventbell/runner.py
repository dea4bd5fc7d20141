"""Scheduler process orchestration."""

from __future__ import annotations

import asyncio
import logging
import os
import signal as signal_module
from dataclasses import dataclass

from eventbell.config.models import EventbellConfig
from eventbell.delivery import AudioCue, ConsoleToaster, NotificationLog
from eventbell.scheduling import (
    FiredTracker,
    FireResult,
    LeaderLock,
    QuietHours,
    ReminderPipeline,
    ReminderTicker,
    WatchRegistry,
    WatchStore,
)

logger = logging.getLogger(__name__)


@dataclass
class SchedulerComponents:
    """Everything one scheduler instance owns."""

    store: WatchStore
    registry: WatchRegistry
    tracker: FiredTracker
    leader: LeaderLock
    notifications: NotificationLog
    pipeline: ReminderPipeline
    ticker: ReminderTicker


def build_components(config: EventbellConfig) -> SchedulerComponents:
    """Wire a scheduler instance from configuration."""
    store = WatchStore()
    registry = WatchRegistry(
        store,
        owner_id=config.owner_id,
        allowed_lead_minutes=config.scheduler.lead_minutes,
    )
    tracker = FiredTracker()
    leader = LeaderLock(
        ttl_seconds=config.leader.lock_ttl_seconds,
        acquire_timeout=config.leader.acquire_timeout,
    )
    notifications = NotificationLog()
    pipeline = ReminderPipeline(
        notifications,
        toaster=ConsoleToaster() if config.delivery.toast else None,
        audio=AudioCue() if config.delivery.audio else None,
    )
    ticker = ReminderTicker(
        registry,
        tracker,
        pipeline,
        leader,
        QuietHours.from_config(config.quiet_hours),
        interval_seconds=config.scheduler.tick_interval,
        timezone=config.tzinfo,
        trigger_window=config.scheduler.trigger_window,
    )
    return SchedulerComponents(
        store=store,
        registry=registry,
        tracker=tracker,
        leader=leader,
        notifications=notifications,
        pipeline=pipeline,
        ticker=ticker,
    )


class SchedulerRunner:
    """Owns the ticker lifecycle for one process.

    SIGTERM/SIGINT stop the ticker gracefully, which releases the leader
    lock. A second signal exits immediately.
    """

    def __init__(
        self,
        config: EventbellConfig,
        components: SchedulerComponents | None = None,
    ) -> None:
        self._config = config
        self._components = components or build_components(config)

    @property
    def components(self) -> SchedulerComponents:
        return self._components

    async def run(self) -> bool:
        """Run until stopped.

        Returns:
            False if another instance already leads (nothing was run).
        """
        ticker = self._components.ticker
        loop = asyncio.get_running_loop()
        shutdown_count = 0

        def handle_signal() -> None:
            nonlocal shutdown_count
            shutdown_count += 1
            if shutdown_count == 1:
                logger.info("scheduler_shutting_down")
                loop.create_task(ticker.stop())
            else:
                logger.warning("scheduler_force_shutdown")
                os._exit(1)

        for sig in (signal_module.SIGTERM, signal_module.SIGINT):
            loop.add_signal_handler(sig, handle_signal)

        try:
            if not await ticker.start():
                return False
            await ticker.wait()
            return True
        finally:
            await ticker.stop()
            for sig in (signal_module.SIGTERM, signal_module.SIGINT):
                loop.remove_signal_handler(sig)

    async def run_once(self) -> list[FireResult] | None:
        """Evaluate a single pass if this instance can lead.

        Returns:
            The pass results, or None when another instance leads.
        """
        leader = self._components.leader
        if not leader.try_acquire():
            logger.info("scheduler_follower", extra={"lock.path": str(leader.path)})
            return None
        try:
            return await self._components.ticker.run_once()
        finally:
            leader.release()
