"""Watched-event store backed by a JSON document."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from filelock import FileLock

from eventbell.config.paths import get_watches_path
from eventbell.scheduling.types import WatchedEvent

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class WatchStore:
    """Read/write watched events from ~/.eventbell/watches.json.

    The document is {"revision": n, "watches": [...]}. Every mutation bumps
    the revision so other processes can cheaply detect changes. A sidecar
    file lock serializes writers across processes.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or get_watches_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(str(self._path) + ".lock")

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def revision(self) -> int:
        with self._lock:
            return int(self._read_document().get("revision", 0))

    def get_watches(self, owner_id: str | None = None) -> list[WatchedEvent]:
        with self._lock:
            document = self._read_document()
        return self._parse_watches(document, owner_id)

    def snapshot(self, owner_id: str | None = None) -> tuple[int, list[WatchedEvent]]:
        """Read revision and watches under one lock acquisition."""
        with self._lock:
            document = self._read_document()
        revision = int(document.get("revision", 0))
        return revision, self._parse_watches(document, owner_id)

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def add(self, watch: WatchedEvent) -> bool:
        """Add a watch. Returns False if the same watch already exists."""

        def mutate(watches: list[WatchedEvent]) -> bool:
            if any(w.watch_key == watch.watch_key for w in watches):
                return False
            watches.append(watch)
            return True

        return self._mutate(mutate)

    def remove(self, owner_id: str, fingerprint: str) -> int:
        """Remove every lead time watched for a fingerprint.

        Returns:
            Number of watches removed.
        """

        def mutate(watches: list[WatchedEvent]) -> int:
            kept = [
                w
                for w in watches
                if not (w.owner_id == owner_id and w.fingerprint == fingerprint)
            ]
            removed = len(watches) - len(kept)
            watches[:] = kept
            return removed

        return self._mutate(mutate)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_document(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"revision": 0, "watches": []}
        try:
            document = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to read %s: %s", self._path, e)
            return {"revision": 0, "watches": []}
        if not isinstance(document, dict):
            logger.warning("Ignoring malformed watch document %s", self._path)
            return {"revision": 0, "watches": []}
        return document

    def _parse_watches(
        self, document: dict[str, Any], owner_id: str | None
    ) -> list[WatchedEvent]:
        watches: list[WatchedEvent] = []
        for raw in document.get("watches", []):
            try:
                watch = WatchedEvent.from_dict(raw)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping invalid watch entry: %s", e)
                continue
            if owner_id is None or watch.owner_id == owner_id:
                watches.append(watch)
        return watches

    def _mutate(self, mutate: Callable[[list[WatchedEvent]], _T]) -> _T:
        with self._lock:
            document = self._read_document()
            watches = self._parse_watches(document, None)
            before = [w.watch_key for w in watches]

            result = mutate(watches)

            if [w.watch_key for w in watches] != before:
                document = {
                    "revision": int(document.get("revision", 0)) + 1,
                    "watches": [w.to_dict() for w in watches],
                }
                self._write_document(document)
            return result

    def _write_document(self, document: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, indent=2) + "\n")
        tmp_path.replace(self._path)
