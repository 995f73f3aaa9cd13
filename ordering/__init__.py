"""Dense chapter order index and the persisted reorder engine."""

from ordering.order_index import (
    OrderBatch,
    OrderUpdate,
    check_dense,
    is_dense,
    move_chapter,
    next_order,
    plan_compaction,
    plan_move,
    remove_chapter,
    sort_by_order,
)
from ordering.reorder_engine import ReorderEngine

__all__ = [
    "OrderBatch",
    "OrderUpdate",
    "ReorderEngine",
    "check_dense",
    "is_dense",
    "move_chapter",
    "next_order",
    "plan_compaction",
    "plan_move",
    "remove_chapter",
    "sort_by_order",
]
