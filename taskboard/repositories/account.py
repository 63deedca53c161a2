"""Account repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Account
from .base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Учётные записи локального identity provider."""

    def __init__(self, db: AsyncSession):
        super().__init__(Account, db)

    async def get_by_email(self, email: str) -> Account | None:
        """
        Найти аккаунт по email (без учёта регистра).

        SQL эквивалент:
            SELECT * FROM accounts WHERE LOWER(email) = LOWER({email});
        """
        result = await self.db.execute(
            select(Account).where(func.lower(Account.email) == email.lower())
        )
        return result.scalar_one_or_none()
