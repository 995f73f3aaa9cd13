"""Enumerations for book, autosave, and proofreading status tracking."""

from enum import Enum


class BookStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PUBLISHED = "published"


class AutosaveState(str, Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    SAVING = "saving"


class SuggestionCategory(str, Enum):
    GRAMMAR = "grammar"
    STYLE = "style"
    SPELLING = "spelling"


class Emphasis(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"


class ReorderStrategy(str, Enum):
    TRANSACTION = "transaction"  # one atomic batch write
    CONCURRENT = "concurrent"    # one update per changed row, no rollback
