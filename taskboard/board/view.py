"""Renderable projection of the board state."""

from dataclasses import dataclass
from datetime import date, datetime

from .dates import DateBucket, DueLabel, due_label
from .filters import count_by_date_bucket, count_by_tag, visible_tasks
from .ordering import DropPosition, needs_rebalance
from .records import COLUMN_TITLES, TagColor, TaskStatus
from .state import BoardState, EditorState


@dataclass(frozen=True)
class TagChip:
    id: str
    name: str
    color: TagColor


@dataclass(frozen=True)
class TaskCard:
    id: str
    title: str
    description: str | None
    status: TaskStatus
    order: float | None
    due_date: date | None
    due: DueLabel | None
    tags: list[TagChip]
    created_at: datetime | None
    is_dragging: bool = False
    drop_indicator: DropPosition | None = None


@dataclass(frozen=True)
class ColumnView:
    status: TaskStatus
    title: str
    tasks: list[TaskCard]
    is_drop_target: bool = False
    needs_rebalance: bool = False


@dataclass(frozen=True)
class TagSummary:
    id: str
    name: str
    color: TagColor
    task_count: int
    selected: bool


@dataclass(frozen=True)
class BoardView:
    loading: bool
    columns: list[ColumnView]
    tags: list[TagSummary]
    date_counts: dict[DateBucket, int]
    tag_filters: list[str]
    date_filter: DateBucket | None
    dragging_task_id: str | None
    editor: EditorState | None
    error: str | None
    total_tasks: int = 0
    visible_tasks: int = 0


def render(state: BoardState, today: date) -> BoardView:
    """Build the view for the current state; `today` anchors due labels and date filters."""
    drag = state.drag

    columns = []
    for status in TaskStatus:
        cards = []
        for task in visible_tasks(status, state.tasks, state.tag_filters, state.date_filter, today):
            chips = [
                TagChip(tag.id, tag.name, tag.color)
                for tag in state.tags
                if tag.id in task.tags
            ]
            cards.append(
                TaskCard(
                    id=task.id,
                    title=task.title,
                    description=task.description,
                    status=task.status,
                    order=task.order,
                    due_date=task.due_date,
                    due=due_label(task.due_date, today),
                    tags=chips,
                    created_at=task.created_at,
                    is_dragging=task.id == drag.task_id,
                    drop_indicator=drag.drop_position if task.id == drag.drop_target_id else None,
                )
            )
        columns.append(
            ColumnView(
                status=status,
                title=COLUMN_TITLES[status],
                tasks=cards,
                is_drop_target=drag.active and drag.hover_column == status,
                needs_rebalance=needs_rebalance(state.tasks, status),
            )
        )

    tag_counts = count_by_tag(state.tasks, state.tags)
    tags = [
        TagSummary(
            id=tag.id,
            name=tag.name,
            color=tag.color,
            task_count=tag_counts[tag.id],
            selected=tag.id in state.tag_filters,
        )
        for tag in state.tags
    ]

    return BoardView(
        loading=state.loading,
        columns=columns,
        tags=tags,
        date_counts=count_by_date_bucket(state.tasks, today),
        tag_filters=sorted(state.tag_filters),
        date_filter=state.date_filter,
        dragging_task_id=drag.task_id,
        editor=state.editor,
        error=state.error,
        total_tasks=len(state.tasks),
        visible_tasks=sum(len(c.tasks) for c in columns),
    )
