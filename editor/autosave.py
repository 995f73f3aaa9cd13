"""Debounced, single-flight autosave for one chapter-editing session.

State machine::

    Idle --edit--> Dirty --timer--> Saving --ok--> Idle
                     ^                 |
                     +----failure------+

An edit during Saving moves the session back to Dirty and re-arms the
timer; the in-flight persist is never cancelled. The buffer held here is
never replaced or reverted by a save outcome.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from config.exceptions import ValidationError
from editor.callbacks import AutosaveCallback, LoggingCallback
from models.enums import AutosaveState
from tools.text_utils import count_words

logger = logging.getLogger(__name__)

PersistFn = Callable[[str, int], Awaitable[Any]]


class AutosaveCoordinator:
    """Owns the editor buffer of one chapter and keeps it persisted.

    Args:
        chapter_id: Chapter being edited (used for logging and callbacks).
        persist: Async callable ``persist(content, word_count)`` that commits
            the buffer to the store. Any exception it raises is a failed save.
        initial_content: Content as last loaded from the store.
        debounce_seconds: Quiet period after the last edit before saving.
        max_retries: Automatic retries after consecutive failures; once
            used up the session stays Dirty until the next edit or manual save.
        max_backoff_seconds: Upper bound for the retry delay.
        callback: Receives state, save, and failure notifications.
        clock: Timestamp source for ``last_saved_at``.
    """

    def __init__(
        self,
        chapter_id: int,
        persist: PersistFn,
        initial_content: Optional[str] = "",
        debounce_seconds: float = 30.0,
        max_retries: int = 5,
        max_backoff_seconds: float = 300.0,
        callback: Optional[AutosaveCallback] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if debounce_seconds <= 0:
            raise ValidationError("debounce_seconds must be > 0", {"debounce_seconds": debounce_seconds})
        self.chapter_id = chapter_id
        self._persist_fn = persist
        self._debounce = debounce_seconds
        self._max_retries = max_retries
        self._max_backoff = max(max_backoff_seconds, debounce_seconds)
        self._callback = callback or LoggingCallback()
        self._clock = clock

        self._content = initial_content or ""
        self._word_count = count_words(self._content)
        self._saved_content = self._content
        self._state = AutosaveState.IDLE
        self._timer: Optional[asyncio.TimerHandle] = None
        self._inflight: Optional[asyncio.Task] = None
        self._save_queued = False
        self._failures = 0
        self._closed = False

        self.last_saved_at: Optional[datetime] = None
        self.last_error: Optional[Exception] = None

    # ---- Read-only view ----

    @property
    def state(self) -> AutosaveState:
        return self._state

    @property
    def content(self) -> str:
        return self._content

    @property
    def word_count(self) -> int:
        return self._word_count

    @property
    def saved_content(self) -> str:
        """Content of the last successful save."""
        return self._saved_content

    @property
    def failure_count(self) -> int:
        return self._failures

    @property
    def is_saving(self) -> bool:
        return self._inflight is not None

    @property
    def has_unsaved_changes(self) -> bool:
        return self._state is not AutosaveState.IDLE

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    # ---- Events ----

    def edit(self, content: str) -> None:
        """Record a content mutation and (re)start the debounce timer.

        Must be called from the event loop thread. Never blocks.
        """
        if self._closed:
            raise ValidationError("Editing session is closed", {"chapter_id": self.chapter_id})
        if content == self._content and self._state is AutosaveState.IDLE:
            return
        self._content = content
        self._word_count = count_words(content)
        self._failures = 0
        self._set_state(AutosaveState.DIRTY)
        self._arm_timer(self._debounce)

    async def save_now(self) -> bool:
        """Save immediately, bypassing the debounce timer.

        Waits for any in-flight save first (single-flight), then persists the
        current buffer if it is still dirty.

        Returns:
            True once the buffer is persisted (or nothing needed saving).

        Raises:
            Exception: Whatever the persist call raised. The session is left
                Dirty with a retry scheduled.
        """
        self._cancel_timer()
        self._save_queued = False
        await self._wait_inflight()
        if self._state is not AutosaveState.DIRTY:
            return True
        self._cancel_timer()
        if not await self._start_save():
            raise self.last_error
        return True

    async def close(self, save: bool = True) -> None:
        """End the session, optionally flushing unsaved content first."""
        try:
            if save:
                await self.save_now()
            else:
                self._cancel_timer()
                await self._wait_inflight()
        finally:
            self._closed = True
            self._save_queued = False
            self._cancel_timer()

    # ---- Timer ----

    def _arm_timer(self, delay: float) -> None:
        self._cancel_timer()
        if self._closed:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_timer)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._closed or self._state is not AutosaveState.DIRTY:
            return
        if self._inflight is not None:
            # Follow-up save starts as soon as the in-flight one resolves.
            self._save_queued = True
            return
        self._start_save()

    def _retry_delay(self) -> float:
        return min(self._debounce * 2 ** (self._failures - 1), self._max_backoff)

    # ---- Saving ----

    def _start_save(self) -> asyncio.Task:
        snapshot, words = self._content, self._word_count
        self._set_state(AutosaveState.SAVING)
        self._inflight = asyncio.get_running_loop().create_task(self._persist(snapshot, words))
        return self._inflight

    async def _wait_inflight(self) -> None:
        while self._inflight is not None:
            await asyncio.shield(self._inflight)

    async def _persist(self, snapshot: str, words: int) -> bool:
        logger.debug("Autosaving chapter %s (%d words)", self.chapter_id, words)
        try:
            await self._persist_fn(snapshot, words)
        except Exception as e:  # any persist failure keeps the buffer dirty
            self._on_failure(e)
            return False
        else:
            self._on_success(snapshot, words)
            return True
        finally:
            self._inflight = None
            if self._save_queued and not self._closed and self._state is AutosaveState.DIRTY:
                self._save_queued = False
                self._start_save()

    def _on_success(self, snapshot: str, words: int) -> None:
        self.last_saved_at = self._clock()
        self._saved_content = snapshot
        self._failures = 0
        self.last_error = None
        if self._state is AutosaveState.SAVING:
            self._set_state(AutosaveState.IDLE)
        self._callback.on_saved(self.chapter_id, self.last_saved_at, words)

    def _on_failure(self, error: Exception) -> None:
        self._failures += 1
        self.last_error = error
        self._set_state(AutosaveState.DIRTY)
        self._callback.on_save_failed(self.chapter_id, error, self._failures)
        if self._timer is not None or self._save_queued or self._closed:
            return  # a newer edit already scheduled the next attempt
        if self._failures <= self._max_retries:
            self._arm_timer(self._retry_delay())
        else:
            logger.error(
                "Autosave of chapter %s failed %d times; waiting for next edit or manual save",
                self.chapter_id, self._failures,
            )

    def _set_state(self, state: AutosaveState) -> None:
        if state is self._state:
            return
        self._state = state
        self._callback.on_state_change(self.chapter_id, state)
