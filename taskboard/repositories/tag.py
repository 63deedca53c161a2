"""Tag repository with specific queries."""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Tag
from .base import OwnedRepository


class TagRepository(OwnedRepository[Tag]):
    """Репозиторий тегов одного владельца."""

    def __init__(self, db: AsyncSession, owner_id: str):
        super().__init__(Tag, db, owner_id)

    async def get_ordered(self) -> list[Tag]:
        """
        Теги в порядке создания.

        SQL эквивалент:
            SELECT * FROM tags WHERE owner_id = {owner_id} ORDER BY created_at;
        """
        result = await self.db.execute(self._select().order_by(Tag.created_at, Tag.id))
        return list(result.scalars().all())

    async def get_by_ids(self, ids: Iterable[str]) -> list[Tag]:
        """
        Получить теги по списку id.

        Чужие и несуществующие id в результат не попадают - вызывающий
        код сравнивает размер результата с запросом.
        """
        ids = list(ids)
        if not ids:
            return []
        result = await self.db.execute(self._select().where(Tag.id.in_(ids)))
        return list(result.scalars().all())
