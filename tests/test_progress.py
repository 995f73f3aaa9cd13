"""Tests for progress calculation and status suggestions."""

import pytest

from config.exceptions import InvalidTargetError, ValidationError
from models.book import Book
from models.chapter import Chapter
from models.enums import BookStatus
from services.progress import progress_percent, suggest_status, summarize


class TestProgressPercent:
    @pytest.mark.parametrize("current, target, expected", [
        (0, 1000, 0.0),
        (250, 1000, 25.0),
        (1000, 1000, 100.0),
        (5000, 1000, 100.0),
        (1, 3, 100 / 3),
    ])
    def test_values(self, current, target, expected):
        assert progress_percent(current, target) == pytest.approx(expected)

    @pytest.mark.parametrize("target", [0, -1])
    def test_non_positive_target_raises(self, target):
        with pytest.raises(InvalidTargetError):
            progress_percent(10, target)

    def test_negative_current_raises(self):
        with pytest.raises(ValidationError):
            progress_percent(-1, 100)


class TestSuggestStatus:
    def test_draft_with_words_suggests_in_progress(self):
        assert suggest_status(Book(status=BookStatus.DRAFT), 10.0) == BookStatus.IN_PROGRESS

    def test_empty_draft_suggests_nothing(self):
        assert suggest_status(Book(status=BookStatus.DRAFT), 0.0) is None

    def test_goal_reached_suggests_completed(self):
        assert suggest_status(Book(status=BookStatus.IN_PROGRESS), 100.0) == BookStatus.COMPLETED

    def test_published_book_is_left_alone(self):
        assert suggest_status(Book(status=BookStatus.PUBLISHED), 100.0) is None


class TestSummarize:
    def test_snapshot_fields(self):
        book = Book(id=3, target_word_count=200, current_word_count=150)
        chapters = [Chapter(id=1, order=1), Chapter(id=2, order=2)]
        snapshot = summarize(book, chapters)

        assert snapshot.book_id == 3
        assert snapshot.percent == pytest.approx(75.0)
        assert snapshot.remaining_words == 50
        assert snapshot.chapter_count == 2
        assert snapshot.goal_reached is False

    def test_over_goal(self):
        snapshot = summarize(Book(target_word_count=100, current_word_count=120))
        assert snapshot.percent == 100.0
        assert snapshot.remaining_words == 0
        assert snapshot.goal_reached is True
