"""
API endpoints для входа и выхода.

Сервер держит одну пользовательскую сессию (как вкладка браузера):
вход создаёт доску пользователя, выход освобождает её подписки.
"""

from fastapi import APIRouter, Depends, status

from ..core.config import settings
from ..identity import AuthError
from ..identity.messages import sign_in_error_message
from ..session import SessionManager
from .dependencies import get_session_manager
from .errors import APIError, NotSignedInError
from .schemas import (
    ErrorResponse,
    PasswordResetRequest,
    PasswordResetResponse,
    SignInRequest,
    SignUpRequest,
    UserResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_failed(exc: AuthError) -> APIError:
    return APIError(
        code=exc.code.value.upper().replace("-", "_"),
        message=sign_in_error_message(exc.code),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@router.post(
    "/sign-up",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Регистрация",
    responses={400: {"model": ErrorResponse, "description": "Email занят или слабый пароль"}},
)
async def sign_up(
    data: SignUpRequest, sessions: SessionManager = Depends(get_session_manager)
) -> UserResponse:
    """
    Создать аккаунт и сразу войти.

    Пример запроса:
    ```json
    {"email": "ann@example.com", "password": "secret1", "display_name": "Ann"}
    ```
    """
    try:
        user = await sessions.identity.sign_up(data.email, data.password, data.display_name)
    except AuthError as e:
        raise _auth_failed(e) from e
    return UserResponse.model_validate(user)


@router.post(
    "/sign-in",
    response_model=UserResponse,
    summary="Вход",
    responses={400: {"model": ErrorResponse, "description": "Неверный email или пароль"}},
)
async def sign_in(
    data: SignInRequest, sessions: SessionManager = Depends(get_session_manager)
) -> UserResponse:
    try:
        user = await sessions.identity.sign_in(data.email, data.password)
    except AuthError as e:
        raise _auth_failed(e) from e
    return UserResponse.model_validate(user)


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT, summary="Выход")
async def sign_out(sessions: SessionManager = Depends(get_session_manager)) -> None:
    """Выход. Подписки доски освобождаются до того, как ответ вернётся."""
    if not await sessions.sign_out():
        raise APIError(
            code="SIGN_OUT_FAILED",
            message="Could not sign out. Please try again.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


@router.post(
    "/password-reset",
    response_model=PasswordResetResponse,
    summary="Письмо для сброса пароля",
    description=f"Не больше {settings.PASSWORD_RESET_LIMIT} запросов на один email в час.",
)
async def password_reset(
    data: PasswordResetRequest,
    sessions: SessionManager = Depends(get_session_manager),
) -> PasswordResetResponse:
    """
    Запросить письмо для сброса пароля.

    Ответ всегда 200: ok и сообщение для показа пользователю.

    Пример ответа:
    ```json
    {"ok": false, "message": "No account found with this email address."}
    ```
    """
    result = await sessions.request_password_reset(data.email)
    return PasswordResetResponse(ok=result.ok, message=result.message)


@router.get("/me", response_model=UserResponse, summary="Текущий пользователь")
async def me(sessions: SessionManager = Depends(get_session_manager)) -> UserResponse:
    if sessions.user is None:
        raise NotSignedInError()
    return UserResponse.model_validate(sessions.user)
