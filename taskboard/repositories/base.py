"""Base repository with common CRUD operations."""

from typing import Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Репозиторий не делает commit: транзакцией управляет вызывающий код
    (store открывает одну транзакцию на одну запись или на один batch).

    Пример использования:
        repo = AccountRepository(session)
        account = await repo.get_by_id("4f1c...")
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    def _select(self):
        return select(self.model)

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        flush() отправляет INSERT, refresh() подтягивает id и значения по умолчанию.
        """
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def get_by_id(self, id: str) -> ModelType | None:
        """
        Получить объект по ID.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(self._select().where(self.model.id == id))
        return result.scalar_one_or_none()

    async def delete(self, id: str) -> bool:
        """
        Удалить запись по ID.

        Удаление через ORM (а не DELETE по таблице), чтобы SQLAlchemy
        убрал и строки many-to-many связей.

        Returns:
            True если удалено, False если не найдено
        """
        obj = await self.get_by_id(id)
        if obj is None:
            return False
        await self.db.delete(obj)
        await self.db.flush()
        return True


class OwnedRepository(BaseRepository[ModelType]):
    """
    Репозиторий для документов одного владельца.

    Все запросы автоматически ограничены owner_id: чужие документы
    для такого репозитория просто не существуют.
    """

    def __init__(self, model: type[ModelType], db: AsyncSession, owner_id: str):
        super().__init__(model, db)
        self.owner_id = owner_id

    def _select(self):
        return select(self.model).where(self.model.owner_id == self.owner_id)

    async def create(self, obj: ModelType) -> ModelType:
        obj.owner_id = self.owner_id
        return await super().create(obj)
