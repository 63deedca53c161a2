"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.
Ответы доски строятся из BoardView (dataclasses) через from_attributes.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..board.dates import DateBucket
from ..board.ordering import DropPosition
from ..board.records import TagColor, TaskStatus

# ============================================================================
# ERROR SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """Детали ошибки по конкретному полю."""

    field: str
    message: str


class ErrorBody(BaseModel):
    code: str
    message: str
    details: list[ErrorDetail] | None = None


class ErrorResponse(BaseModel):
    """
    Единый формат ошибки для всего API.

    Пример:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Task with id=abc not found",
            "details": null
        }
    }
    """

    error: ErrorBody


# ============================================================================
# AUTH SCHEMAS
# ============================================================================


class SignInRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=320)
    password: str = Field(..., min_length=1)


class SignUpRequest(SignInRequest):
    display_name: str | None = Field(None, max_length=200)


class PasswordResetRequest(BaseModel):
    # Пустой email не ошибка валидации: на него отвечает сообщение для пользователя
    email: str = Field("", max_length=320)


class PasswordResetResponse(BaseModel):
    ok: bool
    message: str


class UserResponse(BaseModel):
    """
    Пример ответа:
    {"uid": "4f1c...", "email": "ann@example.com", "display_name": null, "greeting_name": "ann"}
    """

    uid: str
    email: str
    display_name: str | None
    greeting_name: str

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagCreate(BaseModel):
    """
    Схема для создания тега (POST /tags).

    Пример запроса:
    {"name": "backend", "color": "blue"}
    """

    name: str = Field(..., min_length=1, max_length=50, description="Название тега")
    color: TagColor = Field(..., description="Цвет из фиксированной палитры")


class TagResponse(BaseModel):
    id: str
    name: str
    color: TagColor
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class TagDeleteResponse(BaseModel):
    tag_id: str
    tasks_updated: int


# ============================================================================
# TASK SCHEMAS
# ============================================================================


class TaskCreate(BaseModel):
    """
    Схема для создания задачи (POST /tasks).

    Пример запроса:
    {
        "title": "Написать отчёт",
        "description": "Квартальный",
        "status": "todo",
        "due_date": "2026-06-10",
        "tag_ids": ["4f1c..."]
    }

    Задача встаёт в конец колонки (order = max + 1000).
    """

    title: str = Field(..., min_length=1, max_length=300, description="Название задачи")
    description: str | None = Field(None, description="Описание задачи")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Колонка")
    due_date: date | None = Field(None, description="Дедлайн")
    tag_ids: list[str] = Field(default_factory=list, description="id тегов")


class TaskUpdate(BaseModel):
    """
    Частичное обновление (PATCH /tasks/{id}).

    Переданный явно null сбрасывает description / due_date.
    """

    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    due_date: date | None = None
    tag_ids: list[str] | None = None


class TaskMove(BaseModel):
    """
    Перемещение без drag session (POST /tasks/{id}/move).

    Пример запроса:
    {"status": "in-progress", "target_id": "9a2e...", "position": "before"}
    """

    status: TaskStatus
    target_id: str | None = None
    position: DropPosition | None = None


class TaskResponse(BaseModel):
    id: str
    title: str
    description: str | None
    status: TaskStatus
    order: float | None
    tags: list[str]
    due_date: date | None
    created_at: datetime | None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("tags", mode="before")
    @classmethod
    def sort_tags(cls, value):
        return sorted(value)


class MoveResponse(BaseModel):
    committed: bool
    task: TaskResponse


# ============================================================================
# BOARD SCHEMAS
# ============================================================================


class DueLabelResponse(BaseModel):
    text: str
    css_class: str

    model_config = ConfigDict(from_attributes=True)


class TagChipResponse(BaseModel):
    id: str
    name: str
    color: TagColor

    model_config = ConfigDict(from_attributes=True)


class TaskCardResponse(BaseModel):
    id: str
    title: str
    description: str | None
    status: TaskStatus
    order: float | None
    due_date: date | None
    due: DueLabelResponse | None
    tags: list[TagChipResponse]
    created_at: datetime | None
    is_dragging: bool
    drop_indicator: DropPosition | None

    model_config = ConfigDict(from_attributes=True)


class ColumnResponse(BaseModel):
    status: TaskStatus
    title: str
    tasks: list[TaskCardResponse]
    is_drop_target: bool
    needs_rebalance: bool

    model_config = ConfigDict(from_attributes=True)


class TagSummaryResponse(BaseModel):
    id: str
    name: str
    color: TagColor
    task_count: int
    selected: bool

    model_config = ConfigDict(from_attributes=True)


class EditorResponse(BaseModel):
    task_id: str | None
    title: str
    description: str
    status: TaskStatus
    due_date: date | None
    tag_ids: list[str]
    can_submit: bool

    model_config = ConfigDict(from_attributes=True)

    @field_validator("tag_ids", mode="before")
    @classmethod
    def sort_tag_ids(cls, value):
        return sorted(value)


class BoardResponse(BaseModel):
    """
    Отрисованная доска.

    Пример ответа (сокращённо):
    {
        "loading": false,
        "columns": [{"status": "todo", "title": "To Do", "tasks": [...], "is_drop_target": false}, ...],
        "tags": [{"id": "...", "name": "backend", "color": "blue", "task_count": 2, "selected": false}],
        "date_counts": {"overdue": 0, "today": 1, ...},
        "tag_filters": [],
        "date_filter": null,
        "dragging_task_id": null,
        "editor": null,
        "error": null,
        "total_tasks": 3,
        "visible_tasks": 3
    }
    """

    loading: bool
    columns: list[ColumnResponse]
    tags: list[TagSummaryResponse]
    date_counts: dict[DateBucket, int]
    tag_filters: list[str]
    date_filter: DateBucket | None
    dragging_task_id: str | None
    editor: EditorResponse | None
    error: str | None
    total_tasks: int
    visible_tasks: int

    model_config = ConfigDict(from_attributes=True)


class DragStartRequest(BaseModel):
    task_id: str


class ColumnRequest(BaseModel):
    column: TaskStatus


class DragOverRequest(BaseModel):
    """Pointer over a task card: координата указателя и вертикальные границы карточки."""

    column: TaskStatus
    task_id: str
    pointer_y: float
    top: float
    height: float = Field(..., gt=0)


class DateFilterRequest(BaseModel):
    bucket: DateBucket | None = None


class EditorOpenRequest(BaseModel):
    task_id: str | None = None
    status: TaskStatus = TaskStatus.TODO


class EditorUpdateRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    due_date: date | None = None
    tag_ids: list[str] | None = None


class DropResponse(BaseModel):
    committed: bool
    board: BoardResponse


class EditorSubmitResponse(BaseModel):
    saved: bool
    board: BoardResponse


class RebalanceResponse(BaseModel):
    updated: int
