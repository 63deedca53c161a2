"""
Dependencies для FastAPI endpoints.

Endpoints не создают ни store, ни доску сами:
    async def get_board_view(board: BoardReconciler = Depends(get_board)):
        ...

В тестах get_session_manager подменяется через app.dependency_overrides.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from ..board.reconciler import BoardReconciler
from ..core.config import settings
from ..core.logging import owner_id_var
from ..session import SessionManager
from .errors import NotSignedInError, StoreUnavailableError

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Не выбрасывать ошибку автоматически, мы сами обработаем
    description="API ключ клиента. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str = Depends(api_key_header)) -> str:
    """
    Проверка API ключа.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/board
    """
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


# ============================================================================
# SESSION / BOARD DEPENDENCIES
# ============================================================================


async def get_session_manager(request: Request) -> SessionManager:
    """SessionManager создаётся в lifespan и хранится в app.state."""
    return request.app.state.sessions


async def get_board(
    request: Request, sessions: SessionManager = Depends(get_session_manager)
) -> BoardReconciler:
    """
    Доска вошедшего пользователя.

    Цепочка:
        get_board -> get_session_manager -> app.state.sessions
    401 если никто не вошёл, 503 если подписки на store не удалось поднять.
    """
    if sessions.user is None:
        raise NotSignedInError()
    board = await sessions.ensure_board()
    if board is None:
        raise StoreUnavailableError()

    owner_id_var.set(board.owner_id)
    request.state.owner_id = board.owner_id
    return board
