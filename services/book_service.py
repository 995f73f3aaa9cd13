"""Owner-scoped book and chapter operations.

Every write is scoped to the authenticated owner's identifier: a book or
chapter that belongs to someone else is reported as not found.
"""

import logging
from datetime import datetime
from typing import Optional

from config.exceptions import InvalidTargetError, NotFoundError, ValidationError
from config.settings import Settings, get_settings
from editor.autosave import AutosaveCoordinator
from editor.callbacks import AutosaveCallback
from models.book import Book
from models.chapter import Chapter
from models.database import Database
from models.enums import BookStatus
from models.store import ChapterStore
from ordering.reorder_engine import ReorderEngine
from services.progress import BookProgress, summarize
from tools.text_utils import count_words

logger = logging.getLogger(__name__)

_BOOK_UPDATE_FIELDS = {
    "title", "subtitle", "description", "genre",
    "target_word_count", "status", "is_public",
}


def _validate_title(title: Optional[str], entity: str = "book") -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationError(f"{entity.capitalize()} title cannot be empty")
    return title


def _validate_target(target) -> int:
    """Accept a positive int (or a numeric string, as form input arrives)."""
    if isinstance(target, bool):
        raise InvalidTargetError(target)
    try:
        value = int(target)
    except (TypeError, ValueError) as e:
        raise InvalidTargetError(target, message=f"Invalid target word count: {target!r}") from e
    if value != target and not isinstance(target, str):
        raise InvalidTargetError(target, message=f"Target word count must be a whole number, got {target}")
    if value <= 0:
        raise InvalidTargetError(value)
    return value


class BookService:
    """Books, chapters, progress and editing sessions for one store."""

    def __init__(
        self,
        store: ChapterStore,
        engine: Optional[ReorderEngine] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.engine = engine or ReorderEngine(store, self.settings.reorder_strategy)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "BookService":
        """Build the service stack (database, store adapter, engine) from settings."""
        settings = settings or get_settings()
        store = ChapterStore(Database(settings.sqlite_db_path), timeout=settings.store_timeout_seconds)
        return cls(store, ReorderEngine(store, settings.reorder_strategy), settings)

    # ---- Books ----

    async def create_book(
        self,
        user_id: str,
        title: str,
        subtitle: Optional[str] = None,
        description: Optional[str] = None,
        genre: Optional[str] = None,
        target_word_count=None,
    ) -> Book:
        """Create an empty draft book owned by ``user_id``."""
        if target_word_count is None:
            target_word_count = self.settings.default_target_word_count
        book = Book(
            user_id=user_id,
            title=_validate_title(title),
            subtitle=subtitle or None,
            description=description or None,
            genre=genre or None,
            target_word_count=_validate_target(target_word_count),
            current_word_count=0,
            status=BookStatus.DRAFT,
        )
        stored = await self.store.create_book(book)
        logger.info("Book %d created for user %s: %s", stored.id, user_id, stored.title)
        return stored

    async def list_books(self, user_id: str) -> list[Book]:
        return await self.store.list_books(user_id)

    async def get_book(self, user_id: str, book_id: int) -> Book:
        book = await self.store.get_book(book_id)
        if book is None or book.user_id != user_id:
            raise NotFoundError("book", book_id)
        return book

    async def update_book(self, user_id: str, book_id: int, **fields) -> Book:
        """Apply a partial update to a book's user-editable fields.

        Raises:
            ValidationError: Unknown field, empty title, or bad status.
            InvalidTargetError: Non-positive target word count.
        """
        unknown = set(fields) - _BOOK_UPDATE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update book field(s): {', '.join(sorted(unknown))}")
        await self.get_book(user_id, book_id)

        if "title" in fields:
            fields["title"] = _validate_title(fields["title"])
        if "target_word_count" in fields:
            fields["target_word_count"] = _validate_target(fields["target_word_count"])
        if "status" in fields:
            try:
                fields["status"] = BookStatus(fields["status"])
            except ValueError as e:
                raise ValidationError(f"Unknown book status: {fields['status']}") from e
        if "is_public" in fields:
            fields["is_public"] = bool(fields["is_public"])
        if not fields:
            return await self.get_book(user_id, book_id)
        return await self.store.update_book(book_id, fields)

    async def delete_book(self, user_id: str, book_id: int) -> None:
        """Delete a book and, through the store's cascade, all its chapters."""
        await self.get_book(user_id, book_id)
        await self.store.delete_book(book_id)
        self.engine.forget(book_id)

    async def book_progress(self, user_id: str, book_id: int) -> BookProgress:
        book = await self.get_book(user_id, book_id)
        chapters = await self.store.get_chapters(book_id)
        return summarize(book, chapters)

    async def refresh_book_total(self, book_id: int) -> int:
        """Recompute ``current_word_count`` from the stored chapter counts."""
        total = await self.store.refresh_book_total(book_id)
        logger.debug("Book %d word total: %d", book_id, total)
        return total

    # ---- Chapters ----

    async def _owned_chapter(self, user_id: str, chapter_id: int) -> Chapter:
        chapter = await self.store.get_chapter(chapter_id)
        if chapter is None:
            raise NotFoundError("chapter", chapter_id)
        book = await self.store.get_book(chapter.book_id)
        if book is None or book.user_id != user_id:
            raise NotFoundError("chapter", chapter_id)
        return chapter

    async def list_chapters(self, user_id: str, book_id: int) -> list[Chapter]:
        await self.get_book(user_id, book_id)
        return await self.engine.load(book_id)

    async def get_chapter(self, user_id: str, chapter_id: int) -> Chapter:
        return await self._owned_chapter(user_id, chapter_id)

    async def create_chapter(
        self,
        user_id: str,
        book_id: int,
        title: str,
        content: Optional[str] = None,
        position: Optional[int] = None,
    ) -> Chapter:
        """Add a chapter at the end of the book, or at ``position`` if given."""
        await self.get_book(user_id, book_id)
        chapter = Chapter(
            book_id=book_id,
            title=_validate_title(title, "chapter"),
            content=content,
            word_count=count_words(content),
        )
        if position is None:
            stored = await self.engine.append_chapter(chapter)
        else:
            stored = await self.engine.insert_chapter_at(chapter, position)
        if stored.word_count:
            await self.refresh_book_total(book_id)
        return stored

    async def rename_chapter(self, user_id: str, chapter_id: int, title: str) -> Chapter:
        await self._owned_chapter(user_id, chapter_id)
        return await self.store.update_chapter(chapter_id, {"title": _validate_title(title, "chapter")})

    async def update_chapter_content(
        self,
        user_id: str,
        chapter_id: int,
        content: Optional[str],
        word_count: Optional[int] = None,
    ) -> Chapter:
        """Persist chapter content with its word count, then refresh the book total."""
        chapter = await self._owned_chapter(user_id, chapter_id)
        if word_count is None:
            word_count = count_words(content)
        updated = await self.store.update_chapter(chapter_id, {
            "content": content,
            "word_count": word_count,
            "last_autosave": datetime.now(),
        })
        await self.refresh_book_total(chapter.book_id)
        return updated

    async def move_chapter(self, user_id: str, chapter_id: int, new_order: int) -> list[Chapter]:
        chapter = await self._owned_chapter(user_id, chapter_id)
        return await self.engine.move_chapter(chapter.book_id, chapter_id, new_order)

    async def delete_chapter(self, user_id: str, chapter_id: int) -> list[Chapter]:
        """Delete a chapter; survivors are compacted and the book total refreshed."""
        chapter = await self._owned_chapter(user_id, chapter_id)
        survivors = await self.engine.delete_chapter(chapter.book_id, chapter_id)
        await self.refresh_book_total(chapter.book_id)
        return survivors

    async def recompact_chapters(self, user_id: str, book_id: int) -> list[Chapter]:
        await self.get_book(user_id, book_id)
        return await self.engine.recompact(book_id)

    async def open_editor(
        self,
        user_id: str,
        chapter_id: int,
        callback: Optional[AutosaveCallback] = None,
    ) -> AutosaveCoordinator:
        """Start an autosaving editing session for a chapter."""
        chapter = await self._owned_chapter(user_id, chapter_id)

        async def persist(content: str, word_count: int) -> None:
            await self.update_chapter_content(user_id, chapter_id, content, word_count)

        return AutosaveCoordinator(
            chapter_id,
            persist,
            initial_content=chapter.content,
            debounce_seconds=self.settings.autosave_debounce_seconds,
            max_retries=self.settings.autosave_max_retries,
            max_backoff_seconds=self.settings.autosave_max_backoff_seconds,
            callback=callback,
        )
