"""
Главный файл FastAPI приложения.

Точка входа в HTTP-адаптер Taskboard.

Запуск:
    uvicorn taskboard.main:app --reload

API документация:
    http://localhost:8000/docs       - Swagger UI
    http://localhost:8000/redoc      - ReDoc

Версионирование:
    API доступно по путям /api/v1/...
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .api import auth_router, board_router, tags_router, tasks_router
from .api.dependencies import verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import settings
from .core.database import AsyncSessionLocal
from .core.logging import get_logger, setup_logging
from .identity import LocalIdentityProvider
from .session import SessionManager
from .store import SqlLiveStore

# Инициализируем логирование при импорте модуля
# LOG_LEVEL: DEBUG/INFO/WARNING/ERROR - что логировать
# LOG_FORMAT: json (production) / simple (development)
setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

logger = get_logger(__name__)

# ============================================================================
# APPLICATION METADATA
# ============================================================================

APP_VERSION = "1.0.0"
APP_START_TIME: float = 0.0  # Will be set on startup

# ============================================================================
# RATE LIMITER SETUP
# ============================================================================

# key_func определяет по какому ключу группировать запросы (по IP адресу)
limiter = Limiter(key_func=get_remote_address)


def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Кастомный обработчик превышения лимита запросов.

    Возвращает ошибку в едином формате ErrorResponse.
    """
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests. Limit: {exc.detail}",
                "details": [{"field": "rate_limit", "message": str(exc.detail)}],
            }
        },
    )


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: store, identity provider и SessionManager.
    Shutdown: освобождение всех подписок.
    """
    global APP_START_TIME
    APP_START_TIME = time.time()

    store = SqlLiveStore(AsyncSessionLocal)
    identity = LocalIdentityProvider(AsyncSessionLocal)
    sessions = SessionManager(identity, store)
    await sessions.start()
    app.state.sessions = sessions

    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "debug": settings.DEBUG,
            "log_level": settings.LOG_LEVEL,
        },
    )

    yield  # Application runs here

    await sessions.close()
    uptime = int(time.time() - APP_START_TIME)
    logger.info("Application stopped", extra={"uptime_seconds": uptime})


# ============================================================================
# CREATE APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Kanban-доска с тремя колонками: To Do, In Progress, Completed.

    ## Возможности

    * **Доска** - drag and drop между колонками и внутри колонки
    * **Задачи** - название, описание, срок, теги
    * **Теги** - цвет из палитры, фильтр по тегам (OR)
    * **Сроки** - фильтр и счётчики: overdue, today, tomorrow, this week, upcoming, no date
    * **Аккаунты** - регистрация, вход, сброс пароля

    ## Архитектура

    ```
    API Layer (FastAPI) → BoardReconciler → Services → Live Collection Store (SQLAlchemy)
    ```

    ## Rate Limiting

    - **100 запросов/минуту** для служебных endpoints
    - При превышении лимита вернётся ошибка 429 Too Many Requests
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
# slowapi handler имеет специфичный тип, но работает корректно
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)  # type: ignore[arg-type]


# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В продакшене указать конкретные домены
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


# ============================================================================
# API VERSIONING
# ============================================================================

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(auth_router)
api_v1_router.include_router(board_router)
api_v1_router.include_router(tasks_router)
api_v1_router.include_router(tags_router)

# dependencies=[Depends(verify_api_key)] - все endpoints роутера требуют API ключ
app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

register_error_handlers(app)


# ============================================================================
# ROOT ENDPOINT
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint", description="Информация о API")
@limiter.limit(settings.RATE_LIMIT)
async def root(request: Request):
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "api_version": "v1",
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
        "endpoints": {
            "auth": "/api/v1/auth",
            "board": "/api/v1/board",
            "tasks": "/api/v1/tasks",
            "tags": "/api/v1/tags",
        },
        "rate_limit": settings.RATE_LIMIT,
    }


# ============================================================================
# HEALTH CHECK
# ============================================================================


@app.get(
    "/health", tags=["health"], summary="Health check", description="Проверка работоспособности API"
)
@limiter.limit(settings.RATE_LIMIT)
async def health_check(request: Request):
    """
    Health check endpoint.

    Проверяет подключение к базе данных (backend store).

    Пример ответа (200 OK):
    ```json
    {
        "status": "ok",
        "checks": {"database": "connected", "version": "1.0.0", "uptime_seconds": 3600},
        "timestamp": "2026-01-22T12:00:00Z"
    }
    ```
    """
    uptime_seconds = int(time.time() - APP_START_TIME) if APP_START_TIME > 0 else 0

    db_status = "disconnected"
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            db_status = "connected"
    except (SQLAlchemyError, OSError):
        logger.warning("Health check: database unavailable", exc_info=True)

    checks = {
        "database": db_status,
        "version": APP_VERSION,
        "uptime_seconds": uptime_seconds,
    }

    overall_status = "ok" if db_status == "connected" else "error"
    return JSONResponse(
        status_code=200 if overall_status == "ok" else 503,
        content={
            "status": overall_status,
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
