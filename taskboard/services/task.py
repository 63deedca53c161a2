"""Task service with business logic."""

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from ..board.ordering import compute_order
from ..board.records import TaskRecord, TaskStatus, find_task
from ..core.logging import get_logger
from ..store.base import TagCollection, TaskCollection

logger = get_logger(__name__)

_UNSET: Any = object()


class TaskService:
    """
    Сервис для работы с задачами одного владельца.

    Валидация выполняется ДО обращения к store: пустое название
    не приводит ни к одной записи (ValueError).
    Ошибки самого store (StoreError) пробрасываются вызывающему коду.
    """

    def __init__(self, tasks: TaskCollection, tags: TagCollection):
        self.tasks = tasks
        self.tags = tags

    async def create_task(
        self,
        title: str,
        description: str | None = None,
        status: TaskStatus = TaskStatus.TODO,
        due_date: date | None = None,
        tag_ids: Iterable[str] = (),
    ) -> str:
        """
        Создать задачу в конце колонки.

        Returns:
            id, выданный store

        Raises:
            ValueError: пустое название или неизвестные теги
        """
        title = self._validate_title(title)
        status = TaskStatus(status)
        tag_ids = await self._validate_tags(tag_ids)

        siblings = await self.tasks.list()
        order = compute_order(siblings, status)

        task_id = await self.tasks.add(
            {
                "title": title,
                "description": self._clean_description(description),
                "status": status,
                "order": order,
                "due_date": due_date,
                "tags": tag_ids,
            }
        )
        logger.info("Task created", extra={"task_id": task_id, "status": status.value})
        return task_id

    async def update_task(
        self,
        task_id: str,
        title: str | None = None,
        description: str | None = _UNSET,
        status: TaskStatus | None = None,
        due_date: date | None = _UNSET,
        tag_ids: Iterable[str] | None = None,
    ) -> None:
        """
        Обновить поля задачи.

        description и due_date можно сбросить, передав None явно.
        Бизнес-правило: при смене колонки задача встаёт в её конец.
        """
        current = await self._get(task_id)
        changes: dict[str, Any] = {}

        if title is not None:
            changes["title"] = self._validate_title(title)
        if description is not _UNSET:
            changes["description"] = self._clean_description(description)
        if due_date is not _UNSET:
            changes["due_date"] = due_date
        if tag_ids is not None:
            changes["tags"] = await self._validate_tags(tag_ids)
        if status is not None and TaskStatus(status) != current.status:
            status = TaskStatus(status)
            changes["status"] = status
            changes["order"] = compute_order(await self.tasks.list(), status, moving_id=task_id)

        if not changes:
            return
        await self.tasks.update(task_id, changes)

    async def move_task(self, task_id: str, status: TaskStatus, order: float) -> None:
        """Status + order update produced by a drop."""
        await self.tasks.update(task_id, {"status": TaskStatus(status), "order": order})
        logger.info("Task moved", extra={"task_id": task_id, "status": TaskStatus(status).value})

    async def delete_task(self, task_id: str) -> None:
        await self._get(task_id)
        await self.tasks.delete(task_id)

    async def reorder(self, orders: Mapping[str, float]) -> None:
        """Write several order keys atomically (column rebalancing)."""
        batch = self.tags.batch()
        for task_id, order in orders.items():
            batch.update_task(task_id, {"order": order})
        await batch.commit()
        logger.info("Column rebalanced", extra={"tasks": len(orders)})

    # Вспомогательные методы (private)

    async def _get(self, task_id: str) -> TaskRecord:
        task = find_task(await self.tasks.list(), task_id)
        if task is None:
            raise ValueError(f"Task with id {task_id} not found")
        return task

    async def _validate_tags(self, tag_ids: Iterable[str]) -> list[str]:
        wanted = set(tag_ids or ())
        if not wanted:
            return []
        known = {tag.id for tag in await self.tags.list()}
        missing = wanted - known
        if missing:
            raise ValueError(f"Unknown tag ids: {', '.join(sorted(missing))}")
        return sorted(wanted)

    @staticmethod
    def _validate_title(title: str) -> str:
        if not title or not title.strip():
            raise ValueError("Task title cannot be empty")
        return title.strip()

    @staticmethod
    def _clean_description(description: str | None) -> str | None:
        if description is None:
            return None
        return description.strip() or None
