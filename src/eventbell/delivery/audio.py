"""Audible reminder cue."""

import logging
from collections.abc import Callable

from rich.console import Console

logger = logging.getLogger(__name__)


class AudioCue:
    """Plays a short alert through the terminal bell.

    The output console is created on first use and reused for the life of
    the process. A non-interactive output counts as the host refusing audio;
    the cue is skipped. Nothing here ever raises.
    """

    def __init__(self, console_factory: Callable[[], Console] | None = None) -> None:
        self._console_factory = console_factory or (lambda: Console(stderr=True))
        self._console: Console | None = None
        self._denied = False

    @property
    def is_available(self) -> bool:
        return self._console is not None and not self._denied

    def play(self) -> bool:
        """Ring once. Returns True if the cue was emitted."""
        if self._denied:
            return False
        try:
            if self._console is None:
                self._console = self._console_factory()
                if not self._console.is_terminal:
                    self._denied = True
                    logger.debug("audio_output_unavailable")
                    return False
            self._console.bell()
            return True
        except Exception as e:
            logger.debug("audio_cue_failed", extra={"error.message": str(e)})
            return False
