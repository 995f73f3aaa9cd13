"""Record store, async store adapter, data models and enums."""

from models.database import Database
from models.store import ChapterStore
from models.book import Book
from models.chapter import Chapter
from models.enums import (
    BookStatus,
    AutosaveState,
    SuggestionCategory,
    Emphasis,
    ReorderStrategy,
)

__all__ = [
    "Database",
    "ChapterStore",
    "Book",
    "Chapter",
    "BookStatus",
    "AutosaveState",
    "SuggestionCategory",
    "Emphasis",
    "ReorderStrategy",
]
