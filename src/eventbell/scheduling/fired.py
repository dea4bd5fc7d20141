"""In-memory record of reminders already delivered by this process."""

import logging
from collections.abc import Iterable

from eventbell.scheduling.types import FiredKey

logger = logging.getLogger(__name__)


class FiredTracker:
    """Per-process set of delivered (fingerprint, lead, year) keys.

    Never persisted. The ticker purges the keys of watches that were removed
    or re-created so an unwatched and re-watched event can fire again.
    """

    def __init__(self) -> None:
        self._keys: set[FiredKey] = set()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def has_fired(self, key: FiredKey) -> bool:
        return key in self._keys

    def mark_fired(self, key: FiredKey) -> None:
        self._keys.add(key)

    def purge(self, watches: Iterable[tuple[str, int]]) -> int:
        """Drop every key for the given (fingerprint, lead_minutes) pairs.

        Returns:
            Number of keys removed.
        """
        targets = set(watches)
        stale = {k for k in self._keys if (k.fingerprint, k.lead_minutes) in targets}
        if stale:
            self._keys -= stale
            logger.debug("fired_tracker_purged", extra={"fired.count": len(stale)})
        return len(stale)

    def reset(self) -> None:
        if self._keys:
            logger.debug("fired_tracker_reset", extra={"fired.count": len(self._keys)})
        self._keys.clear()
