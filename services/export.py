"""Render a book and its chapters as a single markdown manuscript."""

import logging
from pathlib import Path
from typing import Iterable

from models.book import Book
from models.chapter import Chapter
from ordering.order_index import sort_by_order

logger = logging.getLogger(__name__)


def render_book_markdown(book: Book, chapters: Iterable[Chapter]) -> str:
    """Return the manuscript: title block, then every chapter in order.

    Chapter content is emitted as-is, so inline emphasis markers survive.
    """
    parts = [f"# {book.title}"]
    if book.subtitle:
        parts.append(f"*{book.subtitle}*")
    if book.description:
        parts.append(book.description.strip())
    for chapter in sort_by_order(chapters):
        parts.append(f"## {chapter.order}. {chapter.title}")
        body = (chapter.content or "").strip()
        if body:
            parts.append(body)
    return "\n\n".join(parts) + "\n"


def export_book(book: Book, chapters: Iterable[Chapter], target_path: str | Path) -> Path:
    """Write the rendered manuscript to ``target_path`` and return the path."""
    target = Path(target_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_book_markdown(book, chapters), encoding="utf-8")
    logger.info("Book %s exported to %s", book.id, target)
    return target
