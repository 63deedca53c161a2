"""
SQLAlchemy backend of the Live Collection Store.

Каждая запись - отдельная транзакция. После успешного commit store
перечитывает коллекцию владельца и раздаёт полный снимок подписчикам
этой коллекции (в порядке записи: store работает в одном event loop).
"""

from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..board.records import TagColor, TagRecord, TaskRecord, TaskStatus
from ..core.logging import get_logger
from ..models import Tag, Task
from ..repositories import TagRepository, TaskRepository
from .base import (
    Listener,
    ListenerRegistry,
    LiveStore,
    StoreError,
    Subscription,
    TagCollection,
    TaskCollection,
    WriteBatch,
    tag_ids,
)

logger = get_logger(__name__)

TASK_FIELDS = frozenset({"title", "description", "status", "order", "due_date", "tags"})
TAG_FIELDS = frozenset({"name", "color"})


class SqlLiveStore(LiveStore):
    """Live store over an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        # Реестр владельца живёт, пока у него есть хотя бы одна подписка
        self._task_listeners: dict[str, ListenerRegistry[TaskRecord]] = {}
        self._tag_listeners: dict[str, ListenerRegistry[TagRecord]] = {}

    def tasks(self, owner_id: str) -> "SqlTaskCollection":
        return SqlTaskCollection(self, owner_id)

    def tags(self, owner_id: str) -> "SqlTagCollection":
        return SqlTagCollection(self, owner_id)

    def subscribed_owners(self) -> set[str]:
        return set(self._task_listeners) | set(self._tag_listeners)

    # ------------------------------------------------------------------
    # Internals shared by the collections
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """One commit or one rollback; database errors surface as StoreError."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            logger.error("Store transaction failed", extra={"error": str(exc)})
            raise StoreError(str(exc)) from exc

    async def list_tasks(self, owner_id: str) -> list[TaskRecord]:
        async with self.transaction() as session:
            tasks = await TaskRepository(session, owner_id).get_ordered()
            return [task.to_record() for task in tasks]

    async def list_tags(self, owner_id: str) -> list[TagRecord]:
        async with self.transaction() as session:
            tags = await TagRepository(session, owner_id).get_ordered()
            return [tag.to_record() for tag in tags]

    async def _publish(
        self,
        registry: ListenerRegistry | None,
        load: Callable[[str], Awaitable[list]],
        owner_id: str,
    ) -> None:
        if registry is None or not len(registry):
            return
        try:
            snapshot = await load(owner_id)
        except StoreError:
            # Запись уже зафиксирована: подписчики получат следующий снимок
            logger.warning("Snapshot publish failed", extra={"owner_id": owner_id})
            return
        registry.notify(snapshot)

    async def publish_tasks(self, owner_id: str) -> None:
        await self._publish(self._task_listeners.get(owner_id), self.list_tasks, owner_id)

    async def publish_tags(self, owner_id: str) -> None:
        await self._publish(self._tag_listeners.get(owner_id), self.list_tags, owner_id)

    @staticmethod
    def _registry(registries: dict[str, ListenerRegistry], owner_id: str) -> ListenerRegistry:
        registry = registries.get(owner_id)
        if registry is None:

            def drop() -> None:
                if registries.get(owner_id) is registry:
                    del registries[owner_id]

            registry = registries[owner_id] = ListenerRegistry(on_empty=drop)
        return registry

    def task_listeners(self, owner_id: str) -> ListenerRegistry[TaskRecord]:
        return self._registry(self._task_listeners, owner_id)

    def tag_listeners(self, owner_id: str) -> ListenerRegistry[TagRecord]:
        return self._registry(self._tag_listeners, owner_id)


async def apply_task_fields(task: Task, fields: Mapping[str, Any], tag_repo: TagRepository) -> None:
    """
    Copy document fields onto an ORM task.

    tags заменяет множество целиком. Ссылка на несуществующий тег
    отклоняется: висячих ссылок в store быть не должно.
    """
    unknown = set(fields) - TASK_FIELDS
    if unknown:
        raise StoreError(f"Unknown task fields: {sorted(unknown)}")

    for key, value in fields.items():
        if key == "tags":
            wanted = tag_ids(value)
            tags = await tag_repo.get_by_ids(wanted)
            missing = wanted - {tag.id for tag in tags}
            if missing:
                raise StoreError(f"Unknown tag ids: {sorted(missing)}")
            task.tags = tags
        elif key == "status":
            task.status = TaskStatus(value)
        else:
            setattr(task, key, value)


class SqlTaskCollection(TaskCollection):
    def __init__(self, store: SqlLiveStore, owner_id: str):
        self._store = store
        self.owner_id = owner_id

    async def add(self, fields: Mapping[str, Any]) -> str:
        async with self._store.transaction() as session:
            task = Task(tags=[])
            await apply_task_fields(task, fields, TagRepository(session, self.owner_id))
            task = await TaskRepository(session, self.owner_id).create(task)
            task_id = task.id
        logger.info("Task added", extra={"task_id": task_id})
        await self._store.publish_tasks(self.owner_id)
        return task_id

    async def update(self, task_id: str, changes: Mapping[str, Any]) -> None:
        async with self._store.transaction() as session:
            task = await TaskRepository(session, self.owner_id).get_by_id(task_id)
            if task is None:
                raise StoreError(f"Task {task_id} not found")
            await apply_task_fields(task, changes, TagRepository(session, self.owner_id))
        logger.info("Task updated", extra={"task_id": task_id, "fields": sorted(changes)})
        await self._store.publish_tasks(self.owner_id)

    async def delete(self, task_id: str) -> None:
        async with self._store.transaction() as session:
            deleted = await TaskRepository(session, self.owner_id).delete(task_id)
        if deleted:
            logger.info("Task deleted", extra={"task_id": task_id})
            await self._store.publish_tasks(self.owner_id)

    async def list(self) -> list[TaskRecord]:
        return await self._store.list_tasks(self.owner_id)

    async def subscribe(self, listener: Listener) -> Subscription:
        subscription = self._store.task_listeners(self.owner_id).add(listener)
        try:
            snapshot = await self.list()
        except StoreError:
            subscription.release()
            raise
        if subscription.active:
            listener(snapshot)
        return subscription


class SqlWriteBatch(WriteBatch):
    """Operations are queued and executed in a single transaction on commit()."""

    def __init__(self, store: SqlLiveStore, owner_id: str):
        self._store = store
        self.owner_id = owner_id
        self._task_updates: list[tuple[str, dict[str, Any]]] = []
        self._tag_deletes: list[str] = []
        self._committed = False

    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> "SqlWriteBatch":
        self._task_updates.append((task_id, dict(changes)))
        return self

    def delete_tag(self, tag_id: str) -> "SqlWriteBatch":
        self._tag_deletes.append(tag_id)
        return self

    async def commit(self) -> None:
        if self._committed:
            raise StoreError("Batch already committed")

        async with self._store.transaction() as session:
            task_repo = TaskRepository(session, self.owner_id)
            tag_repo = TagRepository(session, self.owner_id)
            # Сначала обновления задач, затем удаление тегов
            for task_id, changes in self._task_updates:
                task = await task_repo.get_by_id(task_id)
                if task is None:
                    raise StoreError(f"Task {task_id} not found")
                await apply_task_fields(task, changes, tag_repo)
            await session.flush()
            for tag_id in self._tag_deletes:
                await tag_repo.delete(tag_id)
        self._committed = True

        logger.info(
            "Batch committed",
            extra={"task_updates": len(self._task_updates), "tag_deletes": len(self._tag_deletes)},
        )
        if self._task_updates:
            await self._store.publish_tasks(self.owner_id)
        if self._tag_deletes:
            await self._store.publish_tags(self.owner_id)


class SqlTagCollection(TagCollection):
    def __init__(self, store: SqlLiveStore, owner_id: str):
        self._store = store
        self.owner_id = owner_id

    async def add(self, fields: Mapping[str, Any]) -> str:
        unknown = set(fields) - TAG_FIELDS
        if unknown:
            raise StoreError(f"Unknown tag fields: {sorted(unknown)}")
        async with self._store.transaction() as session:
            tag = Tag(name=fields["name"], color=TagColor(fields["color"]))
            tag = await TagRepository(session, self.owner_id).create(tag)
            tag_id = tag.id
        logger.info("Tag added", extra={"tag_id": tag_id})
        await self._store.publish_tags(self.owner_id)
        return tag_id

    async def delete(self, tag_id: str) -> None:
        async with self._store.transaction() as session:
            deleted = await TagRepository(session, self.owner_id).delete(tag_id)
        if deleted:
            logger.info("Tag deleted", extra={"tag_id": tag_id})
            await self._store.publish_tags(self.owner_id)

    async def list(self) -> list[TagRecord]:
        return await self._store.list_tags(self.owner_id)

    async def subscribe(self, listener: Listener) -> Subscription:
        subscription = self._store.tag_listeners(self.owner_id).add(listener)
        try:
            snapshot = await self.list()
        except StoreError:
            subscription.release()
            raise
        if subscription.active:
            listener(snapshot)
        return subscription

    def batch(self) -> SqlWriteBatch:
        return SqlWriteBatch(self._store, self.owner_id)
