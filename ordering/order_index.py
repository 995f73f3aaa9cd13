"""Dense 1..N chapter ordering for a single book.

Everything here is pure: inputs are never mutated and the store is never
touched. Results are new, re-sorted lists of ``Chapter`` copies, and the
writes needed to reach them are described as an ``OrderBatch``.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Iterator, Optional

from config.exceptions import InvalidOrderError, NotFoundError
from models.chapter import Chapter


@dataclass(frozen=True)
class OrderUpdate:
    """One order-field write for one chapter."""
    chapter_id: int
    old_order: int
    new_order: int


@dataclass(frozen=True)
class OrderBatch:
    """The set of order-field writes that takes a book from one state to the next."""
    book_id: int
    updates: tuple[OrderUpdate, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.updates

    def __len__(self) -> int:
        return len(self.updates)

    def __iter__(self) -> Iterator[OrderUpdate]:
        return iter(self.updates)

    def apply_to(self, chapters: Iterable[Chapter]) -> list[Chapter]:
        """Return sorted copies of ``chapters`` with the batch applied."""
        new_orders = {u.chapter_id: u.new_order for u in self.updates}
        return sort_by_order(
            replace(c, order=new_orders[c.id]) if c.id in new_orders else replace(c)
            for c in chapters
        )


def _sort_key(chapter: Chapter):
    # Ties (only possible in a damaged sequence) fall back to creation time, then id.
    return (chapter.order, chapter.created_at or datetime.min, chapter.id or 0)


def sort_by_order(chapters: Iterable[Chapter]) -> list[Chapter]:
    """Return chapters sorted ascending by position."""
    return sorted(chapters, key=_sort_key)


def is_dense(chapters: Iterable[Chapter]) -> bool:
    """True when the orders are exactly {1..N}, each once."""
    orders = sorted(c.order for c in chapters)
    return orders == list(range(1, len(orders) + 1))


def check_dense(chapters: Iterable[Chapter]) -> None:
    chapters = list(chapters)
    if not is_dense(chapters):
        orders = sorted(c.order for c in chapters)
        raise InvalidOrderError(
            None, len(chapters),
            message=f"Chapter orders {orders} are not a dense 1..{len(chapters)} sequence",
        )


def next_order(chapters: Iterable[Chapter]) -> int:
    """Position for a newly appended chapter (N+1)."""
    return sum(1 for _ in chapters) + 1


def _find(chapters: list[Chapter], chapter_id: int) -> Chapter:
    for chapter in chapters:
        if chapter.id == chapter_id:
            return chapter
    raise NotFoundError("chapter", chapter_id)


def _validate_position(new_order, count: int) -> None:
    if isinstance(new_order, bool) or not isinstance(new_order, int):
        raise InvalidOrderError(new_order, count, message=f"Order must be an integer, got {new_order!r}")
    if not 1 <= new_order <= count:
        raise InvalidOrderError(new_order, count)


def plan_move(chapters: Iterable[Chapter], chapter_id: int, new_order: int) -> OrderBatch:
    """Compute the writes needed to move one chapter to ``new_order``.

    Only chapters whose position actually changes get an update.

    Raises:
        NotFoundError: ``chapter_id`` is not in the set.
        InvalidOrderError: ``new_order`` is outside [1, N].
    """
    chapters = list(chapters)
    moved = _find(chapters, chapter_id)
    _validate_position(new_order, len(chapters))

    old_order = moved.order
    updates: list[OrderUpdate] = []
    if new_order != old_order:
        for c in sort_by_order(chapters):
            if c.id == chapter_id:
                updates.append(OrderUpdate(c.id, old_order, new_order))
            elif old_order < new_order and old_order < c.order <= new_order:
                updates.append(OrderUpdate(c.id, c.order, c.order - 1))
            elif old_order > new_order and new_order <= c.order < old_order:
                updates.append(OrderUpdate(c.id, c.order, c.order + 1))
    return OrderBatch(book_id=moved.book_id, updates=tuple(updates))


def move_chapter(chapters: Iterable[Chapter], chapter_id: int, new_order: int) -> list[Chapter]:
    """Return the chapter set with one chapter moved to ``new_order``.

    Chapters between the old and new positions shift by one toward the gap
    the moved chapter left; the result is re-sorted. Moving a chapter to its
    current position returns an equal, unchanged sequence.
    """
    chapters = list(chapters)
    return plan_move(chapters, chapter_id, new_order).apply_to(chapters)


def plan_compaction(chapters: Iterable[Chapter], book_id: Optional[int] = None) -> OrderBatch:
    """Renumber chapters to 1..N in their current sorted order.

    Works on damaged sequences too (gaps, duplicates), which makes it the
    recovery step after a partially applied reorder.
    """
    ordered = sort_by_order(chapters)
    if book_id is None:
        book_id = ordered[0].book_id if ordered else 0
    updates = tuple(
        OrderUpdate(c.id, c.order, position)
        for position, c in enumerate(ordered, start=1)
        if c.order != position
    )
    return OrderBatch(book_id=book_id, updates=updates)


def remove_chapter(chapters: Iterable[Chapter], chapter_id: int) -> list[Chapter]:
    """Return the survivors of removing ``chapter_id``, compacted to 1..N-1."""
    chapters = list(chapters)
    removed = _find(chapters, chapter_id)
    survivors = [c for c in chapters if c.id != chapter_id]
    return plan_compaction(survivors, book_id=removed.book_id).apply_to(survivors)
