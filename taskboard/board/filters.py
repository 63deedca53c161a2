"""Filter Engine: visible tasks per column and sidebar counts."""

from collections.abc import Collection, Iterable
from datetime import date

from .dates import DateBucket, matches_bucket
from .ordering import column_tasks
from .records import TagRecord, TaskRecord, TaskStatus


def passes_tag_filter(task: TaskRecord, tag_filters: Collection[str]) -> bool:
    """OR semantics: any selected tag is enough. No selection passes everything."""
    if not tag_filters:
        return True
    return not task.tags.isdisjoint(tag_filters)


def passes_date_filter(task: TaskRecord, date_filter: DateBucket | None, today: date) -> bool:
    if date_filter is None:
        return True
    return matches_bucket(date_filter, task.due_date, today)


def visible_tasks(
    column: TaskStatus,
    tasks: Iterable[TaskRecord],
    tag_filters: Collection[str] = frozenset(),
    date_filter: DateBucket | None = None,
    today: date | None = None,
) -> list[TaskRecord]:
    """
    Tasks of a column that pass both filters, sorted ascending by order.

    Tag filter и date filter комбинируются через AND.
    Функция чистая: ничего не меняет и ничего не пишет в store.
    """
    today = today or date.today()
    return [
        task
        for task in column_tasks(tasks, column)
        if passes_tag_filter(task, tag_filters) and passes_date_filter(task, date_filter, today)
    ]


def count_by_date_bucket(tasks: Iterable[TaskRecord], today: date) -> dict[DateBucket, int]:
    """Badge counts per date bucket. Completed tasks are never counted."""
    open_tasks = [t for t in tasks if t.status != TaskStatus.COMPLETED]
    return {
        bucket: sum(1 for t in open_tasks if matches_bucket(bucket, t.due_date, today))
        for bucket in DateBucket
    }


def count_by_tag(tasks: Iterable[TaskRecord], tags: Iterable[TagRecord]) -> dict[str, int]:
    """Number of tasks referencing each tag."""
    tasks = list(tasks)
    return {tag.id: sum(1 for t in tasks if tag.id in t.tags) for tag in tags}
