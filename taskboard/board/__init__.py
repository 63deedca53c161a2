"""
Board core: ordering, filtering, date buckets and state transitions.

Модули этого пакета (кроме reconciler) - чистые функции без I/O.
"""

from .dates import DateBucket, classify, due_label, matches_bucket
from .filters import count_by_date_bucket, count_by_tag, visible_tasks
from .ordering import ORDER_GAP, DropPosition, compute_order, is_noop_move
from .records import TagColor, TagRecord, TaskRecord, TaskStatus
from .state import BoardState, transition

__all__ = [
    "TaskStatus",
    "TagColor",
    "TaskRecord",
    "TagRecord",
    "ORDER_GAP",
    "DropPosition",
    "compute_order",
    "is_noop_move",
    "DateBucket",
    "classify",
    "matches_bucket",
    "due_label",
    "visible_tasks",
    "count_by_date_bucket",
    "count_by_tag",
    "BoardState",
    "transition",
]
