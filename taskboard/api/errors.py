"""
Обработчики ошибок (Exception Handlers) для API.

Единый формат ошибок для всего API:
    {"error": {"code": "...", "message": "...", "details": [...]}}

- APIError и наследники - ошибки, которые endpoints выбрасывают сами
- RequestValidationError - ошибки Pydantic (422)
- StoreError - store недоступен или отклонил запись (503)
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..store.base import StoreError
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class APIError(Exception):
    """
    Базовый класс для всех API ошибок.

    Использование:
        raise APIError(code="NOT_FOUND", message="Task not found", status_code=404)
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    """
    Ресурс не найден (404).

    Использование:
        raise NotFoundError("Task", "4f1c...")
    """

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} with id={resource_id} not found",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class BadRequestError(APIError):
    """Ошибка валидации бизнес-логики (400)."""

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class NotSignedInError(APIError):
    """Нет вошедшего пользователя - доски нет (401)."""

    def __init__(self):
        super().__init__(
            code="NOT_SIGNED_IN",
            message="Sign in to use the board",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class StoreUnavailableError(APIError):
    """Store не принял запись или не отвечает (503)."""

    def __init__(self, message: str = "Task store is unavailable. Please try again."):
        super().__init__(
            code="STORE_UNAVAILABLE",
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


def _error_response(exc: APIError) -> JSONResponse:
    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]
    body = ErrorResponse(error=ErrorBody(code=exc.code, message=exc.message, details=details))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Преобразует APIError в единый формат ErrorResponse."""
    logger.warning(f"API Error: {exc.code} - {exc.message}")
    return _error_response(exc)


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """
    Ошибка записи в store.

    Локальное состояние не трогаем: доска обновится только следующим
    снимком, а неудавшаяся запись просто не появится.
    """
    logger.error(f"Store Error: {exc}")
    return _error_response(StoreUnavailableError())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Обработчик для ошибок валидации Pydantic (422).

    Ошибки Pydantic:
        {"detail": [{"type": "string_too_short", "loc": ["body", "title"], "msg": "..."}]}

    Наш формат:
        {"error": {"code": "VALIDATION_ERROR", "details": [{"field": "title", ...}]}}
    """
    logger.warning(f"Validation Error: {exc.errors()}")

    details = []
    for error in exc.errors():
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        # Если поле в body, убираем "body" из пути
        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Validation error"))
        )

    body = ErrorResponse(
        error=ErrorBody(
            code="VALIDATION_ERROR",
            message="Request validation failed",
            details=details,
        )
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(),
    )


def register_error_handlers(app):
    """
    Регистрирует все error handlers в приложении FastAPI.

    Вызывается из main.py:
        register_error_handlers(app)
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("Error handlers registered")
