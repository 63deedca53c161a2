"""
Local identity provider backed by the accounts table.

Заменяет внешний сервис аутентификации: email + пароль, регистрация,
выход и запрос на сброс пароля. Письмо не отправляется - провайдер
сохраняет токен сброса и пишет событие в лог.
"""

import hashlib
import re
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import bcrypt
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.config import settings
from ..core.logging import get_logger
from ..models import Account, utc_now
from ..repositories import AccountRepository
from ..store.base import Subscription
from .base import AuthError, AuthErrorCode, AuthListener, IdentityProvider, User

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def _prehash(password: str) -> bytes:
    # bcrypt читает не больше 72 байт
    return hashlib.sha256(password.encode("utf-8")).digest()


def hash_password(password: str, rounds: int = settings.PASSWORD_HASH_ROUNDS) -> str:
    """bcrypt(sha256(password)) as a utf-8 string."""
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(_prehash(password), stored.encode("utf-8"))
    except ValueError:
        # Не bcrypt-хэш
        return False


def normalize_email(email: str) -> str:
    email = (email or "").strip()
    if not EMAIL_RE.match(email):
        raise AuthError(AuthErrorCode.INVALID_EMAIL)
    return email


def _to_user(account: Account) -> User:
    return User(uid=account.id, email=account.email, display_name=account.display_name)


class LocalIdentityProvider(IdentityProvider):
    """Single-client identity provider: one signed-in user at a time."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        reset_limit: int = settings.PASSWORD_RESET_LIMIT,
        reset_window: int = settings.PASSWORD_RESET_WINDOW_SECONDS,
        hash_rounds: int = settings.PASSWORD_HASH_ROUNDS,
    ):
        self._session_factory = session_factory
        self._hash_rounds = hash_rounds
        self._listeners: dict[Subscription, AuthListener] = {}
        self._user: User | None = None
        # Moving window per email; MemoryStorage expires old hits itself
        self._reset_rate = parse(f"{reset_limit}/{int(reset_window)} seconds")
        self._reset_limiter = MovingWindowRateLimiter(MemoryStorage())

    @property
    def current_user(self) -> User | None:
        return self._user

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AccountRepository]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield AccountRepository(session)
        except SQLAlchemyError as exc:
            logger.error("Identity storage failed", extra={"error": str(exc)})
            raise AuthError(AuthErrorCode.OTHER, "Identity storage unavailable") from exc

    async def _set_user(self, user: User | None) -> None:
        self._user = user
        for subscription, listener in list(self._listeners.items()):
            if subscription.active:
                await listener(user)

    async def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        subscription = Subscription(on_release=lambda: self._listeners.pop(subscription, None))
        self._listeners[subscription] = listener
        await listener(self._user)
        return subscription

    async def sign_up(self, email: str, password: str, display_name: str | None = None) -> User:
        email = normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(AuthErrorCode.WEAK_PASSWORD)

        async with self._transaction() as accounts:
            if await accounts.get_by_email(email):
                raise AuthError(AuthErrorCode.EMAIL_ALREADY_IN_USE)
            account = await accounts.create(
                Account(
                    email=email,
                    display_name=(display_name or "").strip() or None,
                    password_hash=hash_password(password, self._hash_rounds),
                )
            )
            user = _to_user(account)

        logger.info("Account created", extra={"user_id": user.uid})
        await self._set_user(user)
        return user

    async def sign_in(self, email: str, password: str) -> User:
        email = normalize_email(email)
        async with self._transaction() as accounts:
            account = await accounts.get_by_email(email)
            if account is None:
                raise AuthError(AuthErrorCode.USER_NOT_FOUND)
            if not verify_password(password or "", account.password_hash):
                raise AuthError(AuthErrorCode.WRONG_PASSWORD)
            user = _to_user(account)

        logger.info("User signed in", extra={"user_id": user.uid})
        await self._set_user(user)
        return user

    async def sign_out(self) -> None:
        if self._user is None:
            return
        logger.info("User signed out", extra={"user_id": self._user.uid})
        await self._set_user(None)

    def _check_reset_rate(self, email: str) -> None:
        if not self._reset_limiter.hit(self._reset_rate, "password-reset", email.lower()):
            raise AuthError(AuthErrorCode.TOO_MANY_REQUESTS)

    async def send_password_reset_email(self, email: str) -> None:
        email = normalize_email(email)
        self._check_reset_rate(email)

        async with self._transaction() as accounts:
            account = await accounts.get_by_email(email)
            if account is None:
                raise AuthError(AuthErrorCode.USER_NOT_FOUND)
            account.reset_token = secrets.token_urlsafe(32)
            account.reset_requested_at = utc_now()

        logger.info("Password reset email queued", extra={"user_id": account.id})
