"""SQLite record store: generic table primitives plus typed book/chapter CRUD."""

import logging
import shutil
import sqlite3
from contextlib import closing, contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from config.exceptions import NotFoundError, StoreError
from models.book import Book
from models.chapter import Chapter
from models.enums import BookStatus

logger = logging.getLogger(__name__)

# SQL for creating all tables. "order" is a keyword and is always quoted.
_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS books (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    subtitle TEXT,
    description TEXT,
    genre TEXT,
    target_word_count INTEGER NOT NULL DEFAULT 50000 CHECK (target_word_count > 0),
    current_word_count INTEGER NOT NULL DEFAULT 0 CHECK (current_word_count >= 0),
    status TEXT NOT NULL DEFAULT 'draft',
    is_public INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS chapters (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    title TEXT NOT NULL DEFAULT '',
    content TEXT,
    word_count INTEGER NOT NULL DEFAULT 0 CHECK (word_count >= 0),
    "order" INTEGER NOT NULL CHECK ("order" > 0),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    last_autosave TIMESTAMP
);
"""

# Indexes added via migration (idempotent). No unique index on
# (book_id, "order"): non-atomic reorders pass through transient duplicates.
_MIGRATION_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_books_user ON books(user_id, created_at)",
    'CREATE INDEX IF NOT EXISTS idx_chapters_book_order ON chapters(book_id, "order")',
]

_TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "books": (
        "id", "user_id", "title", "subtitle", "description", "genre",
        "target_word_count", "current_word_count", "status", "is_public", "created_at",
    ),
    "chapters": (
        "id", "book_id", "title", "content", "word_count", "order",
        "created_at", "last_autosave",
    ),
}


def _now() -> datetime:
    return datetime.now()


def _to_db(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return value


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _columns(table: str, names: Iterable[str]) -> list[str]:
    if table not in _TABLE_COLUMNS:
        raise StoreError(f"Unknown table: {table}")
    allowed = _TABLE_COLUMNS[table]
    unknown = [n for n in names if n not in allowed]
    if unknown:
        raise StoreError(f"Unknown column(s) for {table}: {', '.join(unknown)}")
    return list(names)


def _q(column: str) -> str:
    return f'"{column}"'


class Database:
    """SQLite record store for books and chapters."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _transaction(self):
        """Yield a connection inside one transaction; sqlite errors become StoreError."""
        try:
            with closing(self._get_conn()) as conn:
                with conn:
                    yield conn
        except sqlite3.Error as e:
            raise StoreError(f"SQLite operation failed: {e}") from e

    def _init_db(self):
        with self._transaction() as conn:
            conn.executescript(_CREATE_TABLES_SQL)
        self._migrate()

    def _migrate(self):
        """Apply idempotent schema migrations (indexes)."""
        with self._transaction() as conn:
            for sql in _MIGRATION_SQL:
                try:
                    conn.execute(sql)
                except sqlite3.OperationalError as e:
                    logger.debug("Migration skipped (already applied): %s", e)

    def backup_database(self, target_path: str | Path) -> Path:
        """Create a backup copy of the database.

        Args:
            target_path: Path for the backup file.

        Returns:
            Path to the backup file.
        """
        target = Path(target_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(str(self.db_path), str(target))
        logger.info("Database backed up to %s", target)
        return target

    # ---- Generic record primitives ----

    def select(
        self,
        table: str,
        filters: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict]:
        """Return rows of ``table`` matching all equality ``filters``."""
        filters = filters or {}
        cols = _columns(table, filters.keys())
        sql = f"SELECT * FROM {table}"
        if cols:
            sql += " WHERE " + " AND ".join(f"{_q(c)} = ?" for c in cols)
        if order_by:
            _columns(table, [order_by])
            sql += f" ORDER BY {_q(order_by)} {'DESC' if descending else 'ASC'}, id"
        with self._transaction() as conn:
            rows = conn.execute(sql, [_to_db(filters[c]) for c in cols]).fetchall()
            return [dict(r) for r in rows]

    def insert(self, table: str, row: dict) -> dict:
        """Insert ``row`` and return it as stored (with its assigned id)."""
        row = {k: v for k, v in row.items() if not (k == "id" and v is None)}
        cols = _columns(table, row.keys())
        sql = (
            f"INSERT INTO {table} ({', '.join(_q(c) for c in cols)}) "
            f"VALUES ({', '.join('?' for _ in cols)})"
        )
        with self._transaction() as conn:
            cursor = conn.execute(sql, [_to_db(row[c]) for c in cols])
            stored = conn.execute(
                f"SELECT * FROM {table} WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
            return dict(stored)

    def update(self, table: str, row_id: int, fields: dict) -> dict:
        """Apply a partial update and return the updated row."""
        cols = _columns(table, fields.keys())
        if "id" in cols:
            raise StoreError("Row id cannot be updated")
        with self._transaction() as conn:
            if cols:
                cursor = conn.execute(
                    f"UPDATE {table} SET {', '.join(f'{_q(c)} = ?' for c in cols)} WHERE id = ?",
                    [_to_db(fields[c]) for c in cols] + [row_id],
                )
                if cursor.rowcount == 0:
                    raise NotFoundError(table.rstrip("s"), row_id)
            stored = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
            if stored is None:
                raise NotFoundError(table.rstrip("s"), row_id)
            return dict(stored)

    def delete(self, table: str, row_id: int) -> None:
        _columns(table, [])
        with self._transaction() as conn:
            cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
            if cursor.rowcount == 0:
                logger.debug("Delete from %s matched no row (id=%s)", table, row_id)

    def apply_order_updates(self, updates: list[tuple[int, int]]) -> int:
        """Write every (chapter_id, new_order) pair in one transaction.

        Either all pairs commit or none do.
        """
        with self._transaction() as conn:
            for chapter_id, new_order in updates:
                cursor = conn.execute(
                    'UPDATE chapters SET "order" = ? WHERE id = ?', (new_order, chapter_id)
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("chapter", chapter_id)
        return len(updates)

    # ---- Book CRUD ----

    def create_book(self, book: Book) -> Book:
        row = self.insert("books", {
            "user_id": book.user_id,
            "title": book.title,
            "subtitle": book.subtitle,
            "description": book.description,
            "genre": book.genre,
            "target_word_count": book.target_word_count,
            "current_word_count": book.current_word_count,
            "status": book.status,
            "is_public": book.is_public,
            "created_at": book.created_at or _now(),
        })
        return self._row_to_book(row)

    def get_book(self, book_id: int) -> Optional[Book]:
        rows = self.select("books", {"id": book_id})
        return self._row_to_book(rows[0]) if rows else None

    def list_books(self, user_id: str) -> list[Book]:
        """Return the user's books, newest first."""
        rows = self.select("books", {"user_id": user_id}, order_by="created_at", descending=True)
        return [self._row_to_book(r) for r in rows]

    def update_book(self, book_id: int, fields: dict) -> Book:
        return self._row_to_book(self.update("books", book_id, fields))

    def delete_book(self, book_id: int):
        """Delete a book; its chapters go with it (ON DELETE CASCADE)."""
        self.delete("books", book_id)
        logger.info("Book %d and its chapters deleted", book_id)

    def _row_to_book(self, row: dict) -> Book:
        return Book(
            id=row["id"], user_id=row["user_id"], title=row["title"],
            subtitle=row["subtitle"], description=row["description"],
            genre=row["genre"],
            target_word_count=row["target_word_count"],
            current_word_count=row["current_word_count"],
            status=BookStatus(row["status"]),
            is_public=bool(row["is_public"]),
            created_at=_parse_ts(row["created_at"]),
        )

    # ---- Chapter CRUD ----

    def create_chapter(self, chapter: Chapter) -> Chapter:
        row = self.insert("chapters", {
            "book_id": chapter.book_id,
            "title": chapter.title,
            "content": chapter.content,
            "word_count": chapter.word_count,
            "order": chapter.order,
            "created_at": chapter.created_at or _now(),
            "last_autosave": chapter.last_autosave,
        })
        return self._row_to_chapter(row)

    def get_chapter(self, chapter_id: int) -> Optional[Chapter]:
        rows = self.select("chapters", {"id": chapter_id})
        return self._row_to_chapter(rows[0]) if rows else None

    def get_chapters(self, book_id: int) -> list[Chapter]:
        """Return a book's chapters ordered by their stored position."""
        rows = self.select("chapters", {"book_id": book_id}, order_by="order")
        return [self._row_to_chapter(r) for r in rows]

    def update_chapter_fields(self, chapter_id: int, fields: dict) -> Chapter:
        return self._row_to_chapter(self.update("chapters", chapter_id, fields))

    def delete_chapter(self, chapter_id: int):
        self.delete("chapters", chapter_id)

    def refresh_book_total(self, book_id: int) -> int:
        """Set the book's ``current_word_count`` to the sum of its chapters in one statement.

        The sum is read and written by the same UPDATE, so a refresh always
        reflects every chapter write committed before it.
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE books SET current_word_count = ("
                "SELECT COALESCE(SUM(word_count), 0) FROM chapters WHERE book_id = ?"
                ") WHERE id = ?",
                (book_id, book_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("book", book_id)
            row = conn.execute(
                "SELECT current_word_count FROM books WHERE id = ?", (book_id,)
            ).fetchone()
            return row["current_word_count"]

    def _row_to_chapter(self, row: dict) -> Chapter:
        return Chapter(
            id=row["id"], book_id=row["book_id"], title=row["title"],
            content=row["content"], word_count=row["word_count"],
            order=row["order"],
            created_at=_parse_ts(row["created_at"]),
            last_autosave=_parse_ts(row["last_autosave"]),
        )
