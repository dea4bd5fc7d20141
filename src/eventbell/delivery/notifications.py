"""Notification store for delivered reminders."""

from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path
from typing import Protocol

from filelock import FileLock

from eventbell.config.paths import get_notifications_path
from eventbell.scheduling.types import NotificationRecord

logger = logging.getLogger(__name__)


class NotificationStore(Protocol):
    """Destination for reminder records. Insert-only from the scheduler's view."""

    def append(self, record: NotificationRecord) -> None: ...


class NotificationLog:
    """Append-only JSONL notification store at ~/.eventbell/notifications.jsonl.

    Safe for concurrent writers via a sidecar file lock. Lines that fail to
    parse are skipped on read.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or get_notifications_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(str(self._path) + ".lock")

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: NotificationRecord) -> None:
        line = json.dumps(record.to_dict())
        with self._lock:
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

    def recent(
        self, owner_id: str | None = None, limit: int = 20
    ) -> list[NotificationRecord]:
        """Return the newest records, oldest first."""
        if not self._path.exists():
            return []

        records: deque[NotificationRecord] = deque(maxlen=limit)
        with self._lock:
            with self._path.open(encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        record = NotificationRecord.from_dict(json.loads(line))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                        logger.debug("Skipping unreadable notification line")
                        continue
                    if owner_id is None or record.owner_id == owner_id:
                        records.append(record)
        return list(records)
