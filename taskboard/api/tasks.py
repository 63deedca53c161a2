"""
API endpoints для работы с задачами.

Чтение идёт из последнего снимка доски, запись - через TaskService.
Новый снимок приходит сразу после успешной записи, поэтому ответ
уже отражает изменение.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from ..board.dates import DateBucket
from ..board.filters import visible_tasks
from ..board.reconciler import BoardReconciler
from ..board.records import TaskRecord, TaskStatus, find_task
from .dependencies import get_board
from .errors import BadRequestError, NotFoundError
from .schemas import ErrorResponse, MoveResponse, TaskCreate, TaskMove, TaskResponse, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _task_or_404(board: BoardReconciler, task_id: str) -> TaskRecord:
    task = find_task(board.state.tasks, task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


# ============================================================================
# GET TASKS (с фильтрацией)
# ============================================================================


@router.get(
    "",
    response_model=list[TaskResponse],
    summary="Получить задачи с фильтрами",
    description="""
    **Фильтры:**
    - status: колонка (todo, in-progress, completed)
    - tag: id тега, можно несколько (задача проходит, если есть ЛЮБОЙ из тегов)
    - due: корзина дат (overdue, today, tomorrow, this-week, upcoming, no-date)

    Фильтр по тегам и фильтр по дате комбинируются через AND.
    Внутри колонки задачи отсортированы по order.
    """,
)
async def get_tasks(
    status: TaskStatus | None = Query(None, description="Фильтр по колонке"),
    tag: list[str] | None = Query(None, description="Фильтр по тегам (OR)"),
    due: DateBucket | None = Query(None, description="Фильтр по сроку"),
    today: date | None = Query(None, description="Опорная дата для фильтра по сроку"),
    board: BoardReconciler = Depends(get_board),
) -> list[TaskResponse]:
    """
    Примеры запросов:
    ```
    GET /tasks                           # все задачи по колонкам
    GET /tasks?status=todo               # только To Do
    GET /tasks?tag=a1&tag=b2&due=today   # (a1 ИЛИ b2) И срок сегодня
    ```
    """
    today = today or board.today()
    columns = [status] if status is not None else list(TaskStatus)
    tasks = []
    for column in columns:
        tasks.extend(visible_tasks(column, board.state.tasks, frozenset(tag or ()), due, today))
    return [TaskResponse.model_validate(t) for t in tasks]


# ============================================================================
# GET TASK BY ID
# ============================================================================


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Получить задачу по ID",
    responses={404: {"model": ErrorResponse, "description": "Задача не найдена"}},
)
async def get_task(task_id: str, board: BoardReconciler = Depends(get_board)) -> TaskResponse:
    return TaskResponse.model_validate(_task_or_404(board, task_id))


# ============================================================================
# CREATE TASK
# ============================================================================


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать задачу",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}},
)
async def create_task(data: TaskCreate, board: BoardReconciler = Depends(get_board)) -> TaskResponse:
    """
    Создать задачу в конце колонки.

    Пример запроса:
    ```json
    {"title": "Написать отчёт", "status": "todo", "due_date": "2026-06-10", "tag_ids": []}
    ```
    """
    try:
        task_id = await board.task_service.create_task(
            title=data.title,
            description=data.description,
            status=data.status,
            due_date=data.due_date,
            tag_ids=data.tag_ids,
        )
    except ValueError as e:
        raise BadRequestError(str(e)) from e
    return TaskResponse.model_validate(_task_or_404(board, task_id))


# ============================================================================
# UPDATE TASK
# ============================================================================


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Обновить задачу",
    description="""
    Частичное обновление. Смена status ставит задачу в конец новой колонки.
    Явный null в description или due_date сбрасывает поле.
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        404: {"model": ErrorResponse, "description": "Задача не найдена"},
    },
)
async def update_task(
    task_id: str, data: TaskUpdate, board: BoardReconciler = Depends(get_board)
) -> TaskResponse:
    _task_or_404(board, task_id)
    fields = data.model_dump(exclude_unset=True)
    if "title" in fields and fields["title"] is None:
        raise BadRequestError("Task title cannot be empty")
    try:
        await board.task_service.update_task(task_id, **fields)
    except ValueError as e:
        raise BadRequestError(str(e)) from e
    return TaskResponse.model_validate(_task_or_404(board, task_id))


# ============================================================================
# MOVE TASK
# ============================================================================


@router.post(
    "/{task_id}/move",
    response_model=MoveResponse,
    summary="Переместить задачу",
    description="""
    То же, что drag and drop: меняются только status и order задачи.

    - target_id = null - в конец колонки
    - position: before / after относительно target_id (по умолчанию after)
    - перемещение в свою же колонку без цели ничего не пишет (committed = false)
    """,
    responses={404: {"model": ErrorResponse, "description": "Задача не найдена"}},
)
async def move_task(
    task_id: str, data: TaskMove, board: BoardReconciler = Depends(get_board)
) -> MoveResponse:
    _task_or_404(board, task_id)
    committed = await board.move_task(task_id, data.status, data.target_id, data.position)
    return MoveResponse(
        committed=committed, task=TaskResponse.model_validate(_task_or_404(board, task_id))
    )


# ============================================================================
# DELETE TASK
# ============================================================================


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить задачу",
    responses={404: {"model": ErrorResponse, "description": "Задача не найдена"}},
)
async def delete_task(task_id: str, board: BoardReconciler = Depends(get_board)) -> None:
    _task_or_404(board, task_id)
    await board.task_service.delete_task(task_id)
