"""Autosave progress callbacks for status displays and logging."""

import logging
from datetime import datetime
from typing import Protocol, runtime_checkable

from models.enums import AutosaveState

logger = logging.getLogger(__name__)


@runtime_checkable
class AutosaveCallback(Protocol):
    """Protocol for autosave session callbacks.

    Implement this protocol to surface save status (e.g. a "retrying"
    indicator) without touching the editor buffer.
    """

    def on_state_change(self, chapter_id: int, state: AutosaveState) -> None:
        """Called on every Idle/Dirty/Saving transition."""
        ...

    def on_saved(self, chapter_id: int, saved_at: datetime, word_count: int) -> None:
        """Called after a persist call succeeded."""
        ...

    def on_save_failed(self, chapter_id: int, error: Exception, attempt: int) -> None:
        """Called after a persist call failed; ``attempt`` counts consecutive failures."""
        ...


class LoggingCallback:
    """Lightweight callback that logs autosave activity to the standard logger."""

    def on_state_change(self, chapter_id: int, state: AutosaveState) -> None:
        logger.debug("Chapter %s autosave state: %s", chapter_id, state.value)

    def on_saved(self, chapter_id: int, saved_at: datetime, word_count: int) -> None:
        logger.info("Chapter %s saved at %s (%d words)", chapter_id, saved_at.strftime("%H:%M:%S"), word_count)

    def on_save_failed(self, chapter_id: int, error: Exception, attempt: int) -> None:
        logger.warning("Chapter %s autosave failed (attempt %d): %s", chapter_id, attempt, error)
