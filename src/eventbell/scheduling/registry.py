"""Watch registry: the owner's current watch list plus change signals."""

import logging
from collections.abc import Callable, Iterable

from eventbell.scheduling.store import WatchStore
from eventbell.scheduling.types import CalendarEvent, InvalidLeadTimeError, WatchedEvent

logger = logging.getLogger(__name__)

DEFAULT_LEAD_MINUTES = (1, 5, 15)

ChangeListener = Callable[[], None]


class WatchRegistry:
    """Holds the watched events for one owner.

    The store is shared by every process on the machine; the registry keeps
    a snapshot and notifies listeners synchronously whenever the set of
    watches changes (local watch/unwatch, or a reload that picked up another
    process's edit).

    Example:
        registry = WatchRegistry(WatchStore(), owner_id="alice")
        registry.subscribe(tracker.reset)
        registry.watch(CalendarEvent("CPI Release", "8:30 AM", date(2024, 3, 12)), 15)
    """

    def __init__(
        self,
        store: WatchStore,
        owner_id: str,
        allowed_lead_minutes: Iterable[int] = DEFAULT_LEAD_MINUTES,
    ) -> None:
        self._store = store
        self._owner_id = owner_id
        self._allowed = sorted(set(allowed_lead_minutes))
        self._listeners: list[ChangeListener] = []
        self._snapshot: list[WatchedEvent] = []
        self._revision: int | None = None

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def allowed_lead_minutes(self) -> list[int]:
        return list(self._allowed)

    @property
    def snapshot(self) -> list[WatchedEvent]:
        return list(self._snapshot)

    def subscribe(self, listener: ChangeListener) -> ChangeListener:
        """Register a callback invoked after every watch-list change."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def load(self, owner_id: str | None = None) -> list[WatchedEvent]:
        """Read the watch list from the store and replace the snapshot.

        Loading a different owner's list switches the registry to that owner.
        Always signals a change, the way a session refresh does.
        """
        if owner_id is not None:
            self._owner_id = owner_id
        self._revision, self._snapshot = self._store.snapshot(self._owner_id)
        self._notify()
        return self.snapshot

    def refresh(self) -> bool:
        """Reload only if another writer changed the store.

        Returns:
            True if the snapshot was reloaded.
        """
        if self._revision is not None and self._store.revision() == self._revision:
            return False
        self.load()
        return True

    def watch(self, event: CalendarEvent, lead_minutes: int) -> WatchedEvent:
        """Watch an event at a lead time.

        Raises:
            InvalidLeadTimeError: If the lead time is not an allowed value.
        """
        if lead_minutes not in self._allowed:
            raise InvalidLeadTimeError(lead_minutes, self._allowed)

        watch = WatchedEvent.from_calendar(event, lead_minutes, self._owner_id)
        if self._store.add(watch):
            logger.info(
                "event_watched",
                extra={
                    "reminder.fingerprint": watch.fingerprint,
                    "reminder.lead_minutes": lead_minutes,
                },
            )
            self.load()
        else:
            existing = next(
                (w for w in self._snapshot if w.watch_key == watch.watch_key), None
            )
            if existing is not None:
                return existing
        return watch

    def unwatch(self, fingerprint: str) -> int:
        """Stop watching an event at every lead time.

        Returns:
            Number of watches removed.
        """
        removed = self._store.remove(self._owner_id, fingerprint)
        if removed:
            logger.info(
                "event_unwatched",
                extra={"reminder.fingerprint": fingerprint, "reminder.removed": removed},
            )
            self.load()
        return removed

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
