"""
Ordering Engine: fractional sort keys for tasks within a column.

Задача получает числовой ключ order. Колонка сортируется по возрастанию
ключа. При перемещении меняется только ключ перемещаемой задачи:

    append (без цели)         -> max + 1000 (1000 для пустой колонки)
    before первой задачи      -> first / 2
    after последней задачи    -> last + 1000
    между двумя задачами      -> (a + b) / 2
    цель не найдена в колонке -> append

Повторные вставки в одну и ту же точку со временем исчерпывают точность
float. Автоматической перебалансировки нет: needs_rebalance() и
spread_orders() используются явным действием "rebalance column".
"""

import enum
from collections.abc import Iterable

from .records import TaskRecord, TaskStatus

ORDER_GAP = 1000.0

# Minimal distance between neighbouring keys before a column should be rebalanced
MIN_ORDER_GAP = 1e-9


class DropPosition(str, enum.Enum):
    """Where the dragged task lands relative to the hovered task."""

    BEFORE = "before"
    AFTER = "after"


def column_tasks(
    tasks: Iterable[TaskRecord], status: TaskStatus, exclude_id: str | None = None
) -> list[TaskRecord]:
    """Tasks of one column sorted ascending by order (missing order = 0)."""
    column = [t for t in tasks if t.status == status and t.id != exclude_id]
    column.sort(key=lambda t: t.sort_key)
    return column


def append_order(siblings: list[TaskRecord]) -> float:
    if not siblings:
        return ORDER_GAP
    return max(t.sort_key for t in siblings) + ORDER_GAP


def compute_order(
    tasks: Iterable[TaskRecord],
    status: TaskStatus,
    target_id: str | None = None,
    position: DropPosition | None = None,
    moving_id: str | None = None,
) -> float:
    """
    Compute the order key for a task inserted or moved into a column.

    Args:
        tasks: Full current task list
        status: Column the task is placed in
        target_id: Task next to which the task is dropped (None = append)
        position: BEFORE or AFTER the target (default AFTER)
        moving_id: Task being moved; excluded from the siblings

    Returns:
        New order key; no other task's key changes.
    """
    siblings = column_tasks(tasks, status, exclude_id=moving_id)

    if target_id is None:
        return append_order(siblings)

    index = next((i for i, t in enumerate(siblings) if t.id == target_id), None)
    if index is None:
        # Stale reference: target left the column or was deleted
        return append_order(siblings)

    target = siblings[index]
    if position == DropPosition.BEFORE:
        if index == 0:
            return target.sort_key / 2
        return (siblings[index - 1].sort_key + target.sort_key) / 2

    if index == len(siblings) - 1:
        return target.sort_key + ORDER_GAP
    return (target.sort_key + siblings[index + 1].sort_key) / 2


def is_noop_move(task: TaskRecord, status: TaskStatus, target_id: str | None) -> bool:
    """Dropping a task back onto its own column without a target changes nothing."""
    if task.status != status:
        return False
    return target_id is None or target_id == task.id


def needs_rebalance(tasks: Iterable[TaskRecord], status: TaskStatus) -> bool:
    """True if two neighbouring keys in the column are closer than MIN_ORDER_GAP."""
    column = column_tasks(tasks, status)
    return any(
        b.sort_key - a.sort_key < MIN_ORDER_GAP for a, b in zip(column, column[1:])
    )


def spread_orders(tasks: Iterable[TaskRecord], status: TaskStatus) -> dict[str, float]:
    """
    Evenly spaced keys (1000, 2000, ...) for a column, preserving its order.

    Returns only the tasks whose key actually changes.
    """
    column = column_tasks(tasks, status)
    changes = {}
    for i, task in enumerate(column, start=1):
        new_order = i * ORDER_GAP
        if task.order != new_order:
            changes[task.id] = new_order
    return changes
