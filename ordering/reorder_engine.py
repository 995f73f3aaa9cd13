"""Reorder engine: serialized, persisted chapter moves, appends, and deletions.

Order changes are computed by the pure functions in ``ordering.order_index``
and written through the async store adapter. Every "compute new orders +
dispatch updates" section runs under a per-book lock, and the in-memory
collection for a book is only ever replaced whole with a sorted sequence.
"""

import asyncio
import logging
from dataclasses import replace

from config.exceptions import (
    InvalidOrderError,
    NotFoundError,
    PartialReorderError,
    StoreError,
)
from models.chapter import Chapter
from models.enums import ReorderStrategy
from models.store import ChapterStore
from ordering.order_index import (
    OrderBatch,
    is_dense,
    next_order,
    plan_compaction,
    plan_move,
    sort_by_order,
)

logger = logging.getLogger(__name__)


class ReorderEngine:
    """Keeps each book's chapters in a dense 1..N order across store writes.

    Args:
        store: Async store adapter.
        strategy: ``transaction`` writes each batch atomically; ``concurrent``
            issues one update per changed chapter in parallel and reports a
            ``PartialReorderError`` when only some of them commit.
    """

    def __init__(
        self,
        store: ChapterStore,
        strategy: ReorderStrategy | str = ReorderStrategy.TRANSACTION,
    ):
        self.store = store
        self.strategy = ReorderStrategy(strategy)
        self._locks: dict[int, asyncio.Lock] = {}
        self._collections: dict[int, tuple[Chapter, ...]] = {}

    # ---- Published collections ----

    def _lock(self, book_id: int) -> asyncio.Lock:
        return self._locks.setdefault(book_id, asyncio.Lock())

    def chapters(self, book_id: int) -> tuple[Chapter, ...]:
        """Last published, sorted chapter sequence for a book (empty if never loaded)."""
        return self._collections.get(book_id, ())

    def is_loaded(self, book_id: int) -> bool:
        return book_id in self._collections

    def forget(self, book_id: int) -> None:
        self._collections.pop(book_id, None)

    def _publish(self, book_id: int, chapters) -> list[Chapter]:
        ordered = tuple(sort_by_order(chapters))
        self._collections[book_id] = ordered
        return list(ordered)

    async def load(self, book_id: int) -> list[Chapter]:
        """Fetch a book's chapters from the store and publish them."""
        async with self._lock(book_id):
            return self._publish(book_id, await self.store.get_chapters(book_id))

    # ---- Operations ----

    async def move_chapter(self, book_id: int, chapter_id: int, new_order: int) -> list[Chapter]:
        """Move one chapter to ``new_order`` and persist the shifted positions.

        Raises:
            NotFoundError: Unknown chapter (nothing written).
            InvalidOrderError: ``new_order`` outside [1, N] (nothing written).
            PartialReorderError: Only some updates committed (concurrent strategy).
            StoreError: The store rejected the batch.
        """
        async with self._lock(book_id):
            current = await self._fetch_dense(book_id)
            return await self._move_locked(book_id, current, chapter_id, new_order)

    async def append_chapter(self, chapter: Chapter) -> Chapter:
        """Insert a chapter at the end of its book (order N+1)."""
        async with self._lock(chapter.book_id):
            current = await self._fetch_dense(chapter.book_id)
            stored = await self.store.create_chapter(replace(chapter, order=next_order(current)))
            self._publish(chapter.book_id, [*current, stored])
            logger.info("Chapter %d appended to book %d at %d", stored.id, stored.book_id, stored.order)
            return stored

    async def insert_chapter_at(self, chapter: Chapter, position: int) -> Chapter:
        """Insert a chapter at ``position`` by appending and then moving it."""
        async with self._lock(chapter.book_id):
            current = await self._fetch_dense(chapter.book_id)
            last = next_order(current)
            if isinstance(position, bool) or not isinstance(position, int) or not 1 <= position <= last:
                raise InvalidOrderError(position, last)
            stored = await self.store.create_chapter(replace(chapter, order=last))
            chapters = self._publish(chapter.book_id, [*current, stored])
            if position != last:
                chapters = await self._move_locked(chapter.book_id, chapters, stored.id, position)
            return next(c for c in chapters if c.id == stored.id)

    async def delete_chapter(self, book_id: int, chapter_id: int) -> list[Chapter]:
        """Delete a chapter and compact the survivors to 1..N-1."""
        async with self._lock(book_id):
            current = await self.store.get_chapters(book_id)
            if not any(c.id == chapter_id for c in current):
                raise NotFoundError("chapter", chapter_id)
            await self.store.delete_chapter(chapter_id)
            survivors = [c for c in current if c.id != chapter_id]
            batch = plan_compaction(survivors, book_id=book_id)
            await self._dispatch(batch)
            logger.info("Chapter %d deleted from book %d; %d chapters renumbered",
                        chapter_id, book_id, len(batch))
            return self._publish(book_id, batch.apply_to(survivors))

    async def recompact(self, book_id: int) -> list[Chapter]:
        """Re-fetch a book's chapters and renumber them to 1..N.

        This is the recovery step after a ``PartialReorderError``.
        """
        async with self._lock(book_id):
            current = await self.store.get_chapters(book_id)
            batch = plan_compaction(current, book_id=book_id)
            if not batch.is_empty:
                logger.warning("Recompacting book %d: %d chapter(s) out of place", book_id, len(batch))
                await self._dispatch(batch)
            return self._publish(book_id, batch.apply_to(current))

    # ---- Internals (caller holds the book lock) ----

    async def _fetch_dense(self, book_id: int) -> list[Chapter]:
        current = await self.store.get_chapters(book_id)
        if is_dense(current):
            return current
        logger.warning("Book %d has a damaged chapter order; recompacting before use", book_id)
        batch = plan_compaction(current, book_id=book_id)
        await self._dispatch(batch)
        return batch.apply_to(current)

    async def _move_locked(
        self, book_id: int, current: list[Chapter], chapter_id: int, new_order: int
    ) -> list[Chapter]:
        batch = plan_move(current, chapter_id, new_order)
        if batch.is_empty:
            return self._publish(book_id, current)
        await self._dispatch(batch)
        logger.info("Chapter %d of book %d moved to %d (%d updates)",
                    chapter_id, book_id, new_order, len(batch))
        return self._publish(book_id, batch.apply_to(current))

    async def _dispatch(self, batch: OrderBatch) -> None:
        if batch.is_empty:
            return
        if self.strategy is ReorderStrategy.TRANSACTION:
            try:
                await self.store.apply_order_batch(batch)
            except StoreError:
                self._invalidate(batch.book_id)
                raise
            return

        results = await asyncio.gather(
            *(self.store.set_order(u.chapter_id, u.new_order) for u in batch),
            return_exceptions=True,
        )
        applied: list[int] = []
        failed: dict[int, Exception] = {}
        for update, result in zip(batch, results):
            if isinstance(result, Exception):
                failed[update.chapter_id] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                applied.append(update.chapter_id)
        if not failed:
            return

        logger.error("Reorder of book %d: %d/%d updates failed",
                     batch.book_id, len(failed), len(batch))
        self._invalidate(batch.book_id)
        if not applied:
            first = next(iter(failed.values()))
            raise StoreError(
                f"No order updates committed for book {batch.book_id}",
                {"book_id": batch.book_id, "failed": len(failed)},
            ) from first
        raise PartialReorderError(batch.book_id, applied, failed)

    def _invalidate(self, book_id: int) -> None:
        """Drop the published collection; the stored order may no longer be dense."""
        logger.warning("Chapter order of book %d may be damaged; re-fetch and recompact", book_id)
        self.forget(book_id)
