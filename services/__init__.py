"""Owner-scoped book and chapter operations, with progress and export."""

from services.book_service import BookService
from services.export import export_book, render_book_markdown
from services.progress import BookProgress, progress_percent, suggest_status, summarize

__all__ = [
    "BookService",
    "BookProgress",
    "progress_percent",
    "suggest_status",
    "summarize",
    "export_book",
    "render_book_markdown",
]
