"""Task repository with specific queries."""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Task
from .base import OwnedRepository


class TaskRepository(OwnedRepository[Task]):
    """
    Репозиторий задач одного владельца.

    Теги всегда загружаются вместе с задачей (selectinload): снимок
    задачи без множества тегов не имеет смысла.
    """

    def __init__(self, db: AsyncSession, owner_id: str):
        super().__init__(Task, db, owner_id)

    def _select(self):
        return super()._select().options(selectinload(Task.tags))

    async def get_ordered(self) -> list[Task]:
        """
        Все задачи владельца по возрастанию order.

        SQL эквивалент:
            SELECT * FROM tasks WHERE owner_id = {owner_id}
            ORDER BY sort_order, created_at;
        """
        result = await self.db.execute(self._select().order_by(Task.order, Task.created_at))
        return list(result.scalars().all())
