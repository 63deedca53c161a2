"""
API endpoints для работы с тегами.

Цвет тега выбирается из фиксированной палитры.
Удаление тега убирает его из всех задач одной атомарной записью.
"""

from fastapi import APIRouter, Depends, status

from ..board.reconciler import BoardReconciler
from .dependencies import get_board
from .errors import BadRequestError, NotFoundError
from .schemas import ErrorResponse, TagCreate, TagDeleteResponse, TagResponse

router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse], summary="Получить все теги")
async def get_tags(board: BoardReconciler = Depends(get_board)) -> list[TagResponse]:
    """
    Теги в порядке создания.

    Пример запроса:
    ```
    GET /tags
    ```
    """
    return [TagResponse.model_validate(t) for t in board.state.tags]


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать тег",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}},
)
async def create_tag(data: TagCreate, board: BoardReconciler = Depends(get_board)) -> TagResponse:
    """
    Пример запроса:
    ```json
    {"name": "backend", "color": "blue"}
    ```
    """
    try:
        tag_id = await board.tag_service.create_tag(data.name, data.color)
    except ValueError as e:
        raise BadRequestError(str(e)) from e
    tag = next(t for t in board.state.tags if t.id == tag_id)
    return TagResponse.model_validate(tag)


@router.delete(
    "/{tag_id}",
    response_model=TagDeleteResponse,
    summary="Удалить тег",
    description="""
    Тег удаляется и его id убирается из всех задач владельца.
    Всё одним batch: либо применилось всё, либо ничего.
    """,
    responses={404: {"model": ErrorResponse, "description": "Тег не найден"}},
)
async def delete_tag(tag_id: str, board: BoardReconciler = Depends(get_board)) -> TagDeleteResponse:
    if not any(t.id == tag_id for t in board.state.tags):
        raise NotFoundError("Tag", tag_id)
    tasks_updated = await board.tag_service.delete_tag(tag_id)
    return TagDeleteResponse(tag_id=tag_id, tasks_updated=tasks_updated)
