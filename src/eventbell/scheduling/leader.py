"""Leader election across scheduler instances sharing one state directory.

The lock is a JSON marker file naming its holder. A sidecar FileLock guard
makes "read marker, write if absent" a single atomic step, so two instances
starting at the same moment cannot both win. Holders refresh a heartbeat
timestamp; when a TTL is configured, a marker whose heartbeat is older than
the TTL belongs to a dead instance and may be reclaimed.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from filelock import FileLock, Timeout

from eventbell.config.paths import get_lock_path

logger = logging.getLogger(__name__)

UNKNOWN_OWNER = "unknown"


@dataclass
class LockMarker:
    """Contents of the leader lock file."""

    owner: str
    pid: int
    host: str
    acquired_at: datetime
    heartbeat_at: datetime

    def to_json(self) -> str:
        data = asdict(self)
        data["acquired_at"] = self.acquired_at.isoformat()
        data["heartbeat_at"] = self.heartbeat_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> LockMarker:
        data = json.loads(raw)
        return cls(
            owner=str(data["owner"]),
            pid=int(data.get("pid", 0)),
            host=str(data.get("host", "")),
            acquired_at=datetime.fromisoformat(data["acquired_at"]),
            heartbeat_at=datetime.fromisoformat(
                data.get("heartbeat_at") or data["acquired_at"]
            ),
        )


def _default_instance_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}-{uuid.uuid4().hex[:6]}"


class LeaderLock:
    """Mutual exclusion over the shared scheduler lock file.

    Example:
        lock = LeaderLock(ttl_seconds=600)
        if lock.try_acquire():
            ...  # this instance is the leader
            lock.release()
    """

    def __init__(
        self,
        path: Path | None = None,
        *,
        ttl_seconds: float | None = None,
        instance_id: str | None = None,
        acquire_timeout: float = 5.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._path = path or get_lock_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._guard = FileLock(str(self._path) + ".guard", timeout=acquire_timeout)
        self._ttl_seconds = ttl_seconds
        self._instance_id = instance_id or _default_instance_id()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._held = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def instance_id(self) -> str:
        return self._instance_id

    @property
    def is_held(self) -> bool:
        return self._held

    def read(self) -> LockMarker | None:
        """Return the current marker, or None when the lock is free."""
        if not self._path.exists():
            return None
        try:
            return LockMarker.from_json(self._path.read_text())
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, OSError):
            # Unreadable marker: treat as held by an unknown instance, aged by mtime.
            try:
                mtime = datetime.fromtimestamp(self._path.stat().st_mtime, UTC)
            except OSError:
                return None
            return LockMarker(
                owner=UNKNOWN_OWNER, pid=0, host="", acquired_at=mtime, heartbeat_at=mtime
            )

    def is_stale(self, marker: LockMarker, now: datetime | None = None) -> bool:
        if self._ttl_seconds is None:
            return False
        now = now or self._clock()
        return (now - marker.heartbeat_at).total_seconds() > self._ttl_seconds

    def try_acquire(self) -> bool:
        """Become leader if nobody else is.

        Returns:
            True if this instance holds the lock afterwards.
        """
        try:
            with self._guard:
                now = self._clock()
                marker = self.read()
                if marker is not None:
                    if marker.owner == self._instance_id:
                        self._held = True
                        return True
                    if not self.is_stale(marker, now):
                        self._held = False
                        return False
                    logger.warning(
                        "stale_leader_lock_reclaimed",
                        extra={
                            "lock.previous_owner": marker.owner,
                            "lock.heartbeat_at": marker.heartbeat_at.isoformat(),
                        },
                    )
                self._write(
                    LockMarker(
                        owner=self._instance_id,
                        pid=os.getpid(),
                        host=socket.gethostname(),
                        acquired_at=now,
                        heartbeat_at=now,
                    )
                )
                self._held = True
                logger.info(
                    "leader_lock_acquired", extra={"lock.owner": self._instance_id}
                )
                return True
        except Timeout:
            logger.warning("leader_lock_guard_timeout", extra={"file.path": str(self._path)})
            return False

    def heartbeat(self) -> bool:
        """Refresh the heartbeat of a held lock.

        Returns:
            False if the lock was lost to another instance.
        """
        if not self._held:
            return False
        try:
            with self._guard:
                marker = self.read()
                if marker is None or marker.owner != self._instance_id:
                    self._held = False
                    logger.warning(
                        "leader_lock_lost",
                        extra={"lock.owner": marker.owner if marker else None},
                    )
                    return False
                marker.heartbeat_at = self._clock()
                self._write(marker)
                return True
        except Timeout:
            # Could not check; keep leadership until the next heartbeat.
            logger.warning("leader_lock_guard_timeout", extra={"file.path": str(self._path)})
            return True

    def release(self) -> None:
        """Give up the lock if this instance holds it."""
        was_held = self._held
        self._held = False
        try:
            with self._guard:
                marker = self.read()
                if marker is not None and marker.owner == self._instance_id:
                    self._path.unlink(missing_ok=True)
                    logger.info(
                        "leader_lock_released", extra={"lock.owner": self._instance_id}
                    )
        except Timeout:
            if was_held:
                logger.warning(
                    "leader_lock_release_timeout", extra={"file.path": str(self._path)}
                )

    def force_clear(self) -> bool:
        """Remove the lock regardless of holder.

        Returns:
            True if a lock was removed.
        """
        with self._guard:
            if not self._path.exists():
                return False
            self._path.unlink(missing_ok=True)
            self._held = False
            logger.warning("leader_lock_cleared", extra={"file.path": str(self._path)})
            return True

    def _write(self, marker: LockMarker) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(marker.to_json())
        tmp_path.replace(self._path)
