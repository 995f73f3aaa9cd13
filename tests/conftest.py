"""Shared pytest fixtures for the penwright test suite."""

import pytest
from unittest.mock import MagicMock, AsyncMock


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite database path."""
    return tmp_path / "test_books.db"


@pytest.fixture
def db(tmp_db_path):
    """Return an initialized Database instance backed by a temp file."""
    from models.database import Database
    return Database(tmp_db_path)


@pytest.fixture
def store(db):
    """Return the async store adapter over the temp database."""
    from models.store import ChapterStore
    return ChapterStore(db, timeout=5.0)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path and short autosave delays."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        sqlite_db_path=tmp_path / "books.db",
        log_dir=tmp_path / "logs",
        autosave_debounce_seconds=0.02,
        autosave_max_retries=2,
        autosave_max_backoff_seconds=0.05,
        store_timeout_seconds=5.0,
    )


# ---------------------------------------------------------------------------
# Engine / service fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def engine(store):
    from ordering.reorder_engine import ReorderEngine
    return ReorderEngine(store)


@pytest.fixture
def service(store, engine, settings):
    from services.book_service import BookService
    return BookService(store, engine, settings)


# ---------------------------------------------------------------------------
# AI client mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm():
    """Return a MagicMock replacing AgentSDKClient."""
    llm = MagicMock()
    llm.chat = AsyncMock(return_value="")
    llm.chat_json = AsyncMock(return_value={"suggestions": []})
    llm.get_usage_summary.return_value = {"total_calls": 1}
    return llm


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_book(db):
    """Insert and return a sample Book owned by user 'alice'."""
    from models.book import Book
    return db.create_book(Book(
        user_id="alice",
        title="The Long Road",
        genre="fantasy",
        target_word_count=1000,
    ))


@pytest.fixture
def sample_chapters(db, sample_book):
    """Insert four chapters A, B, C, D at orders 1..4."""
    from models.chapter import Chapter
    chapters = []
    for order, (title, content) in enumerate([
        ("A", "one two three"),
        ("B", "four five"),
        ("C", "six"),
        ("D", "seven eight nine ten"),
    ], start=1):
        chapters.append(db.create_chapter(Chapter(
            book_id=sample_book.id,
            title=title,
            content=content,
            word_count=len(content.split()),
            order=order,
        )))
    return chapters

