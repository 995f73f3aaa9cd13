"""Async adapter over the record store.

The core engines treat the store as a remote request/response service: every
call runs off the event loop and is bounded by a timeout, and expiry is
reported as a store failure.
"""

import asyncio
import functools
import logging
from typing import Callable, Optional, TYPE_CHECKING

from config.exceptions import StoreTimeoutError
from models.book import Book
from models.chapter import Chapter
from models.database import Database

if TYPE_CHECKING:
    from ordering.order_index import OrderBatch

logger = logging.getLogger(__name__)


class ChapterStore:
    """Async, timeout-bounded access to books and chapters."""

    def __init__(self, db: Database, timeout: float = 10.0):
        self.db = db
        self.timeout = timeout

    async def _call(self, fn: Callable, *args):
        name = getattr(fn, "__name__", "call")
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(functools.partial(fn, *args)), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning("Store call %s timed out after %.1fs", name, self.timeout)
            raise StoreTimeoutError(name, self.timeout) from e

    # ---- Books ----

    async def create_book(self, book: Book) -> Book:
        return await self._call(self.db.create_book, book)

    async def get_book(self, book_id: int) -> Optional[Book]:
        return await self._call(self.db.get_book, book_id)

    async def list_books(self, user_id: str) -> list[Book]:
        return await self._call(self.db.list_books, user_id)

    async def update_book(self, book_id: int, fields: dict) -> Book:
        return await self._call(self.db.update_book, book_id, fields)

    async def delete_book(self, book_id: int) -> None:
        await self._call(self.db.delete_book, book_id)

    async def refresh_book_total(self, book_id: int) -> int:
        return await self._call(self.db.refresh_book_total, book_id)

    # ---- Chapters ----

    async def create_chapter(self, chapter: Chapter) -> Chapter:
        return await self._call(self.db.create_chapter, chapter)

    async def get_chapter(self, chapter_id: int) -> Optional[Chapter]:
        return await self._call(self.db.get_chapter, chapter_id)

    async def get_chapters(self, book_id: int) -> list[Chapter]:
        return await self._call(self.db.get_chapters, book_id)

    async def update_chapter(self, chapter_id: int, fields: dict) -> Chapter:
        return await self._call(self.db.update_chapter_fields, chapter_id, fields)

    async def delete_chapter(self, chapter_id: int) -> None:
        await self._call(self.db.delete_chapter, chapter_id)

    # ---- Ordering ----

    async def set_order(self, chapter_id: int, order: int) -> Chapter:
        """Single-row order update (one independent call per chapter)."""
        return await self._call(self.db.update_chapter_fields, chapter_id, {"order": order})

    async def apply_order_batch(self, batch: "OrderBatch") -> int:
        """Apply a whole order batch atomically."""
        pairs = [(u.chapter_id, u.new_order) for u in batch]
        return await self._call(self.db.apply_order_updates, pairs)
