"""
Identity Provider capability.

Провайдер аутентифицирует пользователя и сообщает об изменениях
состояния входа. Ядро получает провайдер через конструктор.
"""

import enum
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..store.base import Subscription


@dataclass(frozen=True)
class User:
    """Signed-in user as reported by the identity provider."""

    uid: str
    email: str
    display_name: str | None = None

    @property
    def greeting_name(self) -> str:
        """Display name, else the local part of the email."""
        return self.display_name or self.email.split("@")[0]


class AuthErrorCode(str, enum.Enum):
    USER_NOT_FOUND = "user-not-found"
    INVALID_EMAIL = "invalid-email"
    TOO_MANY_REQUESTS = "too-many-requests"
    WRONG_PASSWORD = "wrong-password"
    EMAIL_ALREADY_IN_USE = "email-already-in-use"
    WEAK_PASSWORD = "weak-password"
    OTHER = "other"


class AuthError(Exception):
    """Identity operation failed; `code` is one of AuthErrorCode."""

    def __init__(self, code: AuthErrorCode, message: str | None = None):
        self.code = code
        self.message = message or code.value
        super().__init__(self.message)


AuthListener = Callable[[User | None], Awaitable[None]]


class IdentityProvider(ABC):
    @abstractmethod
    async def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        """Register a listener; it is called with the current user right away."""

    @abstractmethod
    async def sign_up(self, email: str, password: str, display_name: str | None = None) -> User:
        """Create an account and sign it in."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> User: ...

    @abstractmethod
    async def sign_out(self) -> None: ...

    @abstractmethod
    async def send_password_reset_email(self, email: str) -> None: ...

    @property
    @abstractmethod
    def current_user(self) -> User | None: ...
