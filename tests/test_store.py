"""Tests for the async store adapter."""

import time

import pytest

from config.exceptions import StoreTimeoutError
from models.chapter import Chapter
from models.store import ChapterStore
from ordering.order_index import OrderBatch, OrderUpdate


class TestChapterStore:
    @pytest.mark.asyncio
    async def test_round_trips_through_thread(self, store, sample_book):
        created = await store.create_chapter(Chapter(book_id=sample_book.id, title="One", order=1))
        fetched = await store.get_chapter(created.id)
        assert fetched.title == "One"
        assert [c.id for c in await store.get_chapters(sample_book.id)] == [created.id]

    @pytest.mark.asyncio
    async def test_update_chapter_fields(self, store, sample_chapters):
        updated = await store.update_chapter(sample_chapters[0].id, {"title": "Renamed", "word_count": 9})
        assert updated.title == "Renamed"
        assert updated.word_count == 9

    @pytest.mark.asyncio
    async def test_apply_order_batch(self, store, sample_book, sample_chapters):
        a, b, c, d = sample_chapters
        batch = OrderBatch(book_id=sample_book.id, updates=(
            OrderUpdate(a.id, 1, 2),
            OrderUpdate(b.id, 2, 1),
        ))
        assert await store.apply_order_batch(batch) == 2
        assert [ch.title for ch in await store.get_chapters(sample_book.id)] == ["B", "A", "C", "D"]

    @pytest.mark.asyncio
    async def test_slow_call_raises_timeout(self, db, sample_book):
        store = ChapterStore(db, timeout=0.05)

        def slow_get_book(book_id):
            time.sleep(0.3)
            return None

        db.get_book = slow_get_book
        with pytest.raises(StoreTimeoutError) as exc:
            await store.get_book(sample_book.id)
        assert exc.value.timeout == 0.05
        assert exc.value.operation == "slow_get_book"
