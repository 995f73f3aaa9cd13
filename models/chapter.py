"""Chapter data model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Chapter:
    """Represents a single chapter of a book."""
    id: Optional[int] = None
    book_id: int = 0
    title: str = ""
    content: Optional[str] = None
    word_count: int = 0
    order: int = 0  # 1-based, dense per book_id
    created_at: Optional[datetime] = None
    last_autosave: Optional[datetime] = None
