"""Book data model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.enums import BookStatus


@dataclass
class Book:
    """Represents a book owned by a single user."""
    id: Optional[int] = None
    user_id: str = ""
    title: str = ""
    subtitle: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[str] = None
    target_word_count: int = 50000
    current_word_count: int = 0  # sum of chapter word counts, kept eagerly
    status: BookStatus = BookStatus.DRAFT
    is_public: bool = False
    created_at: Optional[datetime] = None
