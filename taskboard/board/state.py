"""
Board state and the pure state-transition function.

transition(state, event) -> Transition(state, commands)

Функция ничего не пишет и не обращается к store: запись описывается
командой (UpdateTask), которую исполняет BoardReconciler. Поэтому каждый
переход можно проверить без фреймворка и без базы.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, NamedTuple

from .dates import DateBucket
from .ordering import DropPosition, compute_order, is_noop_move
from .records import TagRecord, TaskRecord, TaskStatus, find_task

# ============================================================================
# STATE
# ============================================================================


@dataclass(frozen=True)
class DragSession:
    """
    Transient drag-and-drop state.

    enter_counts считает вложенные dragenter/dragleave по колонкам:
    колонка перестаёт быть подсвеченной, только когда счётчик вернулся в 0.
    """

    task_id: str | None = None
    hover_column: TaskStatus | None = None
    drop_target_id: str | None = None
    drop_position: DropPosition | None = None
    enter_counts: Mapping[TaskStatus, int] = field(default_factory=dict)

    @property
    def active(self) -> bool:
        return self.task_id is not None


EDITABLE_FIELDS = frozenset({"title", "description", "status", "due_date", "tag_ids"})


@dataclass(frozen=True)
class EditorState:
    """Buffer of the open create/edit task modal. task_id None means a new task."""

    task_id: str | None = None
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    due_date: date | None = None
    tag_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def can_submit(self) -> bool:
        return bool(self.title.strip())


@dataclass(frozen=True)
class BoardState:
    tasks: tuple[TaskRecord, ...] = ()
    tags: tuple[TagRecord, ...] = ()
    tasks_loaded: bool = False
    tags_loaded: bool = False
    tag_filters: frozenset[str] = field(default_factory=frozenset)
    date_filter: DateBucket | None = None
    drag: DragSession = field(default_factory=DragSession)
    editor: EditorState | None = None
    error: str | None = None

    @property
    def loading(self) -> bool:
        return not (self.tasks_loaded and self.tags_loaded)


# ============================================================================
# EVENTS
# ============================================================================


@dataclass(frozen=True)
class TasksSnapshot:
    tasks: tuple[TaskRecord, ...]


@dataclass(frozen=True)
class TagsSnapshot:
    tags: tuple[TagRecord, ...]


@dataclass(frozen=True)
class DragStarted:
    task_id: str


@dataclass(frozen=True)
class DragEntered:
    column: TaskStatus


@dataclass(frozen=True)
class DragLeft:
    column: TaskStatus


@dataclass(frozen=True)
class DragOver:
    """Pointer over a task card; top/height describe the card's box."""

    column: TaskStatus
    task_id: str
    pointer_y: float
    top: float
    height: float


@dataclass(frozen=True)
class Dropped:
    column: TaskStatus


@dataclass(frozen=True)
class DragCancelled:
    pass


@dataclass(frozen=True)
class TagFilterToggled:
    tag_id: str


@dataclass(frozen=True)
class DateFilterSelected:
    bucket: DateBucket | None


@dataclass(frozen=True)
class FiltersCleared:
    pass


@dataclass(frozen=True)
class EditorOpened:
    task_id: str | None = None
    status: TaskStatus = TaskStatus.TODO


@dataclass(frozen=True)
class EditorChanged:
    changes: Mapping[str, Any]


@dataclass(frozen=True)
class EditorClosed:
    pass


@dataclass(frozen=True)
class WriteFailed:
    message: str


@dataclass(frozen=True)
class ErrorDismissed:
    pass


# ============================================================================
# COMMANDS
# ============================================================================


@dataclass(frozen=True)
class UpdateTask:
    """Write a partial update to one task."""

    task_id: str
    changes: Mapping[str, Any]


class Transition(NamedTuple):
    state: BoardState
    commands: tuple[UpdateTask, ...] = ()


# ============================================================================
# HANDLERS
# ============================================================================


def _on_tasks_snapshot(state: BoardState, event: TasksSnapshot) -> Transition:
    # Wholesale replace: no merge with the previous list
    editor = state.editor
    if editor is not None and editor.task_id is not None:
        if find_task(event.tasks, editor.task_id) is None:
            editor = None
    return Transition(
        replace(state, tasks=tuple(event.tasks), tasks_loaded=True, editor=editor)
    )


def _on_tags_snapshot(state: BoardState, event: TagsSnapshot) -> Transition:
    tag_ids = {tag.id for tag in event.tags}
    return Transition(
        replace(
            state,
            tags=tuple(event.tags),
            tags_loaded=True,
            tag_filters=frozenset(state.tag_filters & tag_ids),
        )
    )


def _on_drag_started(state: BoardState, event: DragStarted) -> Transition:
    if find_task(state.tasks, event.task_id) is None:
        return Transition(state)
    return Transition(replace(state, drag=DragSession(task_id=event.task_id)))


def _on_drag_entered(state: BoardState, event: DragEntered) -> Transition:
    drag = state.drag
    if not drag.active:
        return Transition(state)
    counts = dict(drag.enter_counts)
    counts[event.column] = counts.get(event.column, 0) + 1
    return Transition(
        replace(state, drag=replace(drag, hover_column=event.column, enter_counts=counts))
    )


def _on_drag_left(state: BoardState, event: DragLeft) -> Transition:
    drag = state.drag
    if not drag.active:
        return Transition(state)
    counts = dict(drag.enter_counts)
    counts[event.column] = max(counts.get(event.column, 0) - 1, 0)
    hover = drag.hover_column
    if counts[event.column] == 0 and hover == event.column:
        hover = None
    return Transition(replace(state, drag=replace(drag, hover_column=hover, enter_counts=counts)))


def _on_drag_over(state: BoardState, event: DragOver) -> Transition:
    drag = state.drag
    if not drag.active:
        return Transition(state)
    if event.task_id == drag.task_id:
        # Над самой перетаскиваемой карточкой цели нет
        return Transition(
            replace(
                state,
                drag=replace(
                    drag, hover_column=event.column, drop_target_id=None, drop_position=None
                ),
            )
        )
    midpoint = event.top + event.height / 2
    position = DropPosition.BEFORE if event.pointer_y < midpoint else DropPosition.AFTER
    return Transition(
        replace(
            state,
            drag=replace(
                drag,
                hover_column=event.column,
                drop_target_id=event.task_id,
                drop_position=position,
            ),
        )
    )


def _on_dropped(state: BoardState, event: Dropped) -> Transition:
    drag = state.drag
    cleared = replace(state, drag=DragSession())

    task = find_task(state.tasks, drag.task_id)
    if task is None:
        return Transition(cleared)
    if is_noop_move(task, event.column, drag.drop_target_id):
        return Transition(cleared)

    order = compute_order(
        state.tasks,
        event.column,
        target_id=drag.drop_target_id,
        position=drag.drop_position,
        moving_id=task.id,
    )
    command = UpdateTask(task.id, {"status": event.column, "order": order})
    return Transition(cleared, (command,))


def _on_drag_cancelled(state: BoardState, event: DragCancelled) -> Transition:
    return Transition(replace(state, drag=DragSession()))


def _on_tag_filter_toggled(state: BoardState, event: TagFilterToggled) -> Transition:
    return Transition(replace(state, tag_filters=state.tag_filters ^ {event.tag_id}))


def _on_date_filter_selected(state: BoardState, event: DateFilterSelected) -> Transition:
    return Transition(replace(state, date_filter=event.bucket))


def _on_filters_cleared(state: BoardState, event: FiltersCleared) -> Transition:
    return Transition(replace(state, tag_filters=frozenset(), date_filter=None))


def _on_editor_opened(state: BoardState, event: EditorOpened) -> Transition:
    if event.task_id is None:
        return Transition(replace(state, editor=EditorState(status=event.status)))

    task = find_task(state.tasks, event.task_id)
    if task is None:
        return Transition(state)
    editor = EditorState(
        task_id=task.id,
        title=task.title,
        description=task.description or "",
        status=task.status,
        due_date=task.due_date,
        tag_ids=task.tags,
    )
    return Transition(replace(state, editor=editor))


def _on_editor_changed(state: BoardState, event: EditorChanged) -> Transition:
    if state.editor is None:
        return Transition(state)
    unknown = set(event.changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown editor fields: {sorted(unknown)}")

    changes = dict(event.changes)
    if "tag_ids" in changes:
        changes["tag_ids"] = frozenset(changes["tag_ids"] or ())
    if "status" in changes:
        # Без колонки редактор не остаётся: null значит "не менять"
        if changes["status"] is None:
            del changes["status"]
        else:
            changes["status"] = TaskStatus(changes["status"])
    if "description" in changes and changes["description"] is None:
        changes["description"] = ""
    return Transition(replace(state, editor=replace(state.editor, **changes)))


def _on_editor_closed(state: BoardState, event: EditorClosed) -> Transition:
    return Transition(replace(state, editor=None))


def _on_write_failed(state: BoardState, event: WriteFailed) -> Transition:
    return Transition(replace(state, error=event.message))


def _on_error_dismissed(state: BoardState, event: ErrorDismissed) -> Transition:
    return Transition(replace(state, error=None))


_HANDLERS: dict[type, Callable[[BoardState, Any], Transition]] = {
    TasksSnapshot: _on_tasks_snapshot,
    TagsSnapshot: _on_tags_snapshot,
    DragStarted: _on_drag_started,
    DragEntered: _on_drag_entered,
    DragLeft: _on_drag_left,
    DragOver: _on_drag_over,
    Dropped: _on_dropped,
    DragCancelled: _on_drag_cancelled,
    TagFilterToggled: _on_tag_filter_toggled,
    DateFilterSelected: _on_date_filter_selected,
    FiltersCleared: _on_filters_cleared,
    EditorOpened: _on_editor_opened,
    EditorChanged: _on_editor_changed,
    EditorClosed: _on_editor_closed,
    WriteFailed: _on_write_failed,
    ErrorDismissed: _on_error_dismissed,
}


def transition(state: BoardState, event: Any) -> Transition:
    """Apply one event to the board state."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unsupported board event: {type(event).__name__}")
    return handler(state, event)
