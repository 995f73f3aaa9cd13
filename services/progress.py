"""Book progress: read-only rollup of word counts against the book's goal."""

from dataclasses import dataclass
from typing import Iterable, Optional

from config.exceptions import InvalidTargetError, ValidationError
from models.book import Book
from models.chapter import Chapter
from models.enums import BookStatus


def progress_percent(current: int, target: int) -> float:
    """Return ``min(100, 100 * current / target)``.

    Raises:
        InvalidTargetError: ``target`` is zero or negative.
        ValidationError: ``current`` is negative.
    """
    if target <= 0:
        raise InvalidTargetError(target)
    if current < 0:
        raise ValidationError(f"Word count cannot be negative, got {current}", {"current": current})
    return min(100.0, 100.0 * current / target)


@dataclass
class BookProgress:
    """Display snapshot of a book's progress. Never persisted."""
    book_id: Optional[int]
    current_word_count: int
    target_word_count: int
    percent: float
    remaining_words: int
    chapter_count: int
    goal_reached: bool
    suggested_status: Optional[BookStatus] = None


def suggest_status(book: Book, percent: float) -> Optional[BookStatus]:
    """Status a book's owner might move to; ``None`` when no change is suggested.

    Guidance only: a book's status is never changed automatically.
    """
    if book.status in (BookStatus.COMPLETED, BookStatus.PUBLISHED):
        return None
    if percent >= 100:
        return BookStatus.COMPLETED
    if book.status is BookStatus.DRAFT and percent > 0:
        return BookStatus.IN_PROGRESS
    return None


def summarize(book: Book, chapters: Optional[Iterable[Chapter]] = None) -> BookProgress:
    """Build a progress snapshot from the book's stored totals.

    When ``chapters`` is given, the chapter count comes from it; the word
    total always comes from ``book.current_word_count``.
    """
    current = book.current_word_count
    percent = progress_percent(current, book.target_word_count)
    chapter_count = len(list(chapters)) if chapters is not None else 0
    return BookProgress(
        book_id=book.id,
        current_word_count=current,
        target_word_count=book.target_word_count,
        percent=percent,
        remaining_words=max(0, book.target_word_count - current),
        chapter_count=chapter_count,
        goal_reached=current >= book.target_word_count,
        suggested_status=suggest_status(book, percent),
    )
