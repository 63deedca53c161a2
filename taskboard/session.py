"""
User session lifecycle.

SessionManager слушает Identity Provider. При входе создаёт доску
пользователя и подписывает её на store, при выходе (или смене
пользователя) сначала освобождает подписки старой доски - иначе
устаревшая подписка могла бы доставить данные чужого пользователя.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from .board.reconciler import BoardReconciler
from .core.logging import get_logger
from .identity import AuthError, IdentityProvider, User
from .identity.messages import RESET_EMAIL_REQUIRED, RESET_EMAIL_SENT, reset_error_message
from .store.base import LiveStore, StoreError, Subscription

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResetResult:
    """Outcome of a password-reset request, ready to show to the user."""

    ok: bool
    message: str


class SessionManager:
    def __init__(
        self,
        identity: IdentityProvider,
        store: LiveStore,
        clock: Callable[[], date] = date.today,
    ):
        self.identity = identity
        self.store = store
        self.user: User | None = None
        self.board: BoardReconciler | None = None
        self._clock = clock
        self._auth_subscription: Subscription | None = None

    async def start(self) -> None:
        if self._auth_subscription is None:
            self._auth_subscription = await self.identity.on_auth_state_change(
                self._on_auth_state_changed
            )

    async def close(self) -> None:
        if self._auth_subscription is not None:
            self._auth_subscription.release()
            self._auth_subscription = None
        self._close_board()
        self.user = None

    def _close_board(self) -> None:
        if self.board is not None:
            self.board.close()
            self.board = None

    async def _on_auth_state_changed(self, user: User | None) -> None:
        if self.board is not None and (user is None or user.uid != self.board.owner_id):
            self._close_board()
        self.user = user
        if user is None or self.board is not None:
            return

        board = BoardReconciler(user.uid, self.store, clock=self._clock)
        try:
            await board.start()
        except StoreError:
            # Пользователь вошёл, но доска недоступна: повтор через ensure_board()
            logger.error("Board could not be started", extra={"user_id": user.uid})
            return
        self.board = board

    async def ensure_board(self) -> BoardReconciler | None:
        """Board of the signed-in user, starting it if an earlier start failed."""
        if self.user is not None and self.board is None:
            await self._on_auth_state_changed(self.user)
        return self.board

    async def sign_out(self) -> bool:
        """Returns False (and logs) if the provider refused to sign out."""
        try:
            await self.identity.sign_out()
        except AuthError as exc:
            logger.error("Sign out error", extra={"code": exc.code.value})
            return False
        return True

    async def request_password_reset(self, email: str) -> ResetResult:
        email = (email or "").strip()
        if not email:
            return ResetResult(ok=False, message=RESET_EMAIL_REQUIRED)
        try:
            await self.identity.send_password_reset_email(email)
        except AuthError as exc:
            logger.warning("Password reset failed", extra={"code": exc.code.value})
            return ResetResult(ok=False, message=reset_error_message(exc.code))
        return ResetResult(ok=True, message=RESET_EMAIL_SENT)
