"""
API endpoints доски.

Каждый endpoint превращает HTTP-запрос в событие доски, применяет его
и возвращает заново отрисованную доску. Запись в store делает только
drop, submit редактора и rebalance.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from ..board.reconciler import BoardReconciler
from ..board.records import TaskStatus
from ..board.state import (
    DateFilterSelected,
    DragCancelled,
    DragEntered,
    DragLeft,
    DragOver,
    DragStarted,
    Dropped,
    EditorChanged,
    EditorClosed,
    EditorOpened,
    ErrorDismissed,
    FiltersCleared,
    TagFilterToggled,
)
from .dependencies import get_board
from .errors import BadRequestError
from .schemas import (
    BoardResponse,
    ColumnRequest,
    DateFilterRequest,
    DragOverRequest,
    DragStartRequest,
    DropResponse,
    EditorOpenRequest,
    EditorSubmitResponse,
    EditorUpdateRequest,
    ErrorResponse,
    RebalanceResponse,
)

router = APIRouter(prefix="/board", tags=["board"])


def _view(board: BoardReconciler, today: date | None = None) -> BoardResponse:
    return BoardResponse.model_validate(board.render(today))


# ============================================================================
# BOARD
# ============================================================================


@router.get(
    "",
    response_model=BoardResponse,
    summary="Отрисованная доска",
    description="""
    Три колонки (To Do, In Progress, Completed) с видимыми задачами,
    сайдбар тегов и счётчики по датам.

    Пока не пришли оба снимка (tasks и tags), loading = true.
    """,
    responses={401: {"model": ErrorResponse, "description": "Никто не вошёл"}},
)
async def get_board_view(
    today: date | None = Query(None, description="Опорная дата для меток и фильтра по датам"),
    board: BoardReconciler = Depends(get_board),
) -> BoardResponse:
    return _view(board, today)


# ============================================================================
# FILTERS
# ============================================================================


@router.post("/filters/tags/{tag_id}", response_model=BoardResponse, summary="Переключить тег")
async def toggle_tag_filter(
    tag_id: str, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    """Добавить тег в фильтр или убрать его (фильтр по тегам - OR)."""
    board.apply(TagFilterToggled(tag_id))
    return _view(board)


@router.put("/filters/date", response_model=BoardResponse, summary="Фильтр по дате")
async def select_date_filter(
    data: DateFilterRequest, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    """
    Выбрать корзину дат (null - любой срок).

    Пример запроса:
    ```json
    {"bucket": "this-week"}
    ```
    """
    board.apply(DateFilterSelected(data.bucket))
    return _view(board)


@router.delete("/filters", response_model=BoardResponse, summary="Сбросить фильтры")
async def clear_filters(board: BoardReconciler = Depends(get_board)) -> BoardResponse:
    board.apply(FiltersCleared())
    return _view(board)


# ============================================================================
# DRAG AND DROP
# ============================================================================


@router.post("/drag/start", response_model=BoardResponse, summary="Начать перетаскивание")
async def drag_start(
    data: DragStartRequest, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    board.apply(DragStarted(data.task_id))
    return _view(board)


@router.post("/drag/enter", response_model=BoardResponse, summary="Указатель вошёл в колонку")
async def drag_enter(
    data: ColumnRequest, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    board.apply(DragEntered(data.column))
    return _view(board)


@router.post("/drag/leave", response_model=BoardResponse, summary="Указатель покинул колонку")
async def drag_leave(
    data: ColumnRequest, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    board.apply(DragLeft(data.column))
    return _view(board)


@router.post("/drag/over", response_model=BoardResponse, summary="Указатель над карточкой")
async def drag_over(
    data: DragOverRequest, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    """
    Выше середины карточки - вставка before, ниже - after.

    Пример запроса:
    ```json
    {"column": "todo", "task_id": "9a2e...", "pointer_y": 130, "top": 100, "height": 80}
    ```
    """
    board.apply(DragOver(data.column, data.task_id, data.pointer_y, data.top, data.height))
    return _view(board)


@router.post(
    "/drag/drop",
    response_model=DropResponse,
    summary="Бросить задачу в колонку",
    description="""
    Одна запись в store: status + order перетаскиваемой задачи.

    - бросок в свою колонку без цели ничего не пишет
    - ошибка записи показывается в поле error доски
    - drag session сбрасывается в любом случае
    """,
)
async def drop(data: ColumnRequest, board: BoardReconciler = Depends(get_board)) -> DropResponse:
    committed = await board.dispatch(Dropped(data.column))
    return DropResponse(committed=committed, board=_view(board))


@router.post("/drag/cancel", response_model=BoardResponse, summary="Отменить перетаскивание")
async def drag_cancel(board: BoardReconciler = Depends(get_board)) -> BoardResponse:
    board.apply(DragCancelled())
    return _view(board)


# ============================================================================
# EDITOR
# ============================================================================


@router.post("/editor", response_model=BoardResponse, summary="Открыть редактор")
async def open_editor(
    data: EditorOpenRequest, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    """
    task_id = null - новая задача в колонке status, иначе редактирование.

    Пример запроса:
    ```json
    {"task_id": null, "status": "in-progress"}
    ```
    """
    board.apply(EditorOpened(data.task_id, data.status))
    return _view(board)


@router.patch("/editor", response_model=BoardResponse, summary="Изменить поля редактора")
async def change_editor(
    data: EditorUpdateRequest, board: BoardReconciler = Depends(get_board)
) -> BoardResponse:
    # exclude_unset: явный null сбрасывает поле, отсутствующее поле не трогаем
    changes = data.model_dump(exclude_unset=True)
    if board.state.editor is None:
        raise BadRequestError("Editor is not open")
    if "title" in changes and changes["title"] is None:
        changes["title"] = ""
    try:
        board.apply(EditorChanged(changes))
    except ValueError as e:
        raise BadRequestError(str(e)) from e
    return _view(board)


@router.post(
    "/editor/submit",
    response_model=EditorSubmitResponse,
    summary="Сохранить задачу из редактора",
    responses={400: {"model": ErrorResponse, "description": "Неизвестные теги или задача"}},
)
async def submit_editor(board: BoardReconciler = Depends(get_board)) -> EditorSubmitResponse:
    """
    Пустое название не сохраняется (saved = false, записи нет).
    При ошибке store редактор остаётся открытым, а error заполняется.
    """
    try:
        saved = await board.submit_editor()
    except ValueError as e:
        raise BadRequestError(str(e)) from e
    return EditorSubmitResponse(saved=saved, board=_view(board))


@router.delete("/editor", response_model=BoardResponse, summary="Закрыть редактор")
async def close_editor(board: BoardReconciler = Depends(get_board)) -> BoardResponse:
    board.apply(EditorClosed())
    return _view(board)


# ============================================================================
# MISC
# ============================================================================


@router.delete("/error", response_model=BoardResponse, summary="Скрыть сообщение об ошибке")
async def dismiss_error(board: BoardReconciler = Depends(get_board)) -> BoardResponse:
    board.apply(ErrorDismissed())
    return _view(board)


@router.post(
    "/columns/{status}/rebalance",
    response_model=RebalanceResponse,
    summary="Перенумеровать колонку",
    description="Ключи order колонки становятся 1000, 2000, ... одной атомарной записью.",
)
async def rebalance_column(
    status: TaskStatus, board: BoardReconciler = Depends(get_board)
) -> RebalanceResponse:
    updated = await board.rebalance_column(status)
    return RebalanceResponse(updated=updated)
