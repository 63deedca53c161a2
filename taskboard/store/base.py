"""
Live Collection Store capability.

Store - единственный источник правды. Каждая коллекция принадлежит одному
владельцу и отдаёт подписчикам ПОЛНЫЙ текущий список после каждой записи.
Ядро доски получает store через конструктор (а не глобальный синглтон),
поэтому в тестах его можно заменить in-memory реализацией.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Generic, TypeVar

from ..board.records import TagRecord, TaskRecord

RecordT = TypeVar("RecordT")
Listener = Callable[[list[RecordT]], None]


class StoreError(Exception):
    """A store write or query failed (network, permission, quota, database)."""


class Subscription:
    """
    Explicit handle of a live subscription.

    После release() слушатель больше никогда не вызывается.
    """

    def __init__(self, on_release: Callable[[], None] | None = None):
        self._on_release = on_release
        self.active = True

    def release(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._on_release is not None:
            self._on_release()
            self._on_release = None


class ListenerRegistry(Generic[RecordT]):
    """Listeners of one collection; notify() fans a snapshot out in registration order."""

    def __init__(self, on_empty: Callable[[], None] | None = None):
        self._entries: dict[Subscription, Listener] = {}
        self._on_empty = on_empty

    def add(self, listener: Listener) -> Subscription:
        subscription = Subscription(on_release=lambda: self._remove(subscription))
        self._entries[subscription] = listener
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        self._entries.pop(subscription, None)
        if not self._entries and self._on_empty is not None:
            self._on_empty()

    def notify(self, snapshot: list[RecordT]) -> None:
        for subscription, listener in list(self._entries.items()):
            if subscription.active:
                listener(list(snapshot))

    def __len__(self) -> int:
        return len(self._entries)


class TaskCollection(ABC):
    """Tasks of one owner, ordered by `order` ascending."""

    @abstractmethod
    async def add(self, fields: Mapping[str, Any]) -> str:
        """Create a task; returns the id assigned by the store."""

    @abstractmethod
    async def update(self, task_id: str, changes: Mapping[str, Any]) -> None:
        """Partial update. `tags` replaces the whole tag set."""

    @abstractmethod
    async def delete(self, task_id: str) -> None: ...

    @abstractmethod
    async def list(self) -> list[TaskRecord]: ...

    @abstractmethod
    async def subscribe(self, listener: Listener) -> Subscription:
        """Register a listener; it receives the current snapshot immediately."""


class WriteBatch(ABC):
    """Task updates and tag deletions committed atomically."""

    @abstractmethod
    def update_task(self, task_id: str, changes: Mapping[str, Any]) -> "WriteBatch": ...

    @abstractmethod
    def delete_tag(self, tag_id: str) -> "WriteBatch": ...

    @abstractmethod
    async def commit(self) -> None:
        """All operations happen, or none of them."""


class TagCollection(ABC):
    """Tags of one owner, ordered by `created_at` ascending."""

    @abstractmethod
    async def add(self, fields: Mapping[str, Any]) -> str: ...

    @abstractmethod
    async def delete(self, tag_id: str) -> None: ...

    @abstractmethod
    async def list(self) -> list[TagRecord]: ...

    @abstractmethod
    async def subscribe(self, listener: Listener) -> Subscription: ...

    @abstractmethod
    def batch(self) -> WriteBatch: ...


class LiveStore(ABC):
    """Entry point: per-owner collections."""

    @abstractmethod
    def tasks(self, owner_id: str) -> TaskCollection: ...

    @abstractmethod
    def tags(self, owner_id: str) -> TagCollection: ...


def tag_ids(value: Iterable[str] | None) -> set[str]:
    """Normalize a `tags` field: order irrelevant, duplicates collapse."""
    return set(value or ())
