"""
Pytest fixtures для тестов.

Предоставляет:
- test_engine / session_factory: изолированная SQLite in-memory БД для каждого теста
- sql_store, identity, sessions: настоящие реализации поверх этой БД
- fake_store: in-memory Live Collection Store, который записывает все записи
  и умеет падать по запросу (для тестов доски без БД)
- test_client: HTTP клиент для тестирования API endpoints
"""

import itertools
from collections import defaultdict
from dataclasses import replace
from datetime import date, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from taskboard.api.dependencies import get_session_manager
from taskboard.board.records import TagColor, TagRecord, TaskRecord, TaskStatus
from taskboard.core.config import settings
from taskboard.core.database import create_engine_for, create_session_factory, drop_db, init_db
from taskboard.identity import LocalIdentityProvider
from taskboard.main import app
from taskboard.session import SessionManager
from taskboard.store import (
    ListenerRegistry,
    LiveStore,
    SqlLiveStore,
    StoreError,
    TagCollection,
    TaskCollection,
    WriteBatch,
)

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Вторник: конец недели - воскресенье 2025-06-15
TODAY = date(2025, 6, 10)


# ============================================================================
# DATABASE
# ============================================================================


@pytest_asyncio.fixture
async def test_engine():
    """
    Создаёт async engine для тестовой БД (SQLite in-memory).

    StaticPool обеспечивает что используется одно и то же соединение,
    что критично для in-memory БД (иначе данные теряются).
    """
    engine = create_engine_for(TEST_DATABASE_URL)

    await init_db(engine)

    yield engine

    await drop_db(engine)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def sql_store(session_factory):
    return SqlLiveStore(session_factory)


@pytest.fixture
def identity(session_factory):
    return LocalIdentityProvider(
        session_factory, reset_limit=3, reset_window=3600, hash_rounds=4
    )


@pytest_asyncio.fixture
async def sessions(identity, sql_store):
    manager = SessionManager(identity, sql_store, clock=lambda: TODAY)
    await manager.start()
    yield manager
    await manager.close()


# ============================================================================
# IN-MEMORY STORE
# ============================================================================


class FakeLiveStore(LiveStore):
    """
    In-memory store.

    writes - журнал всех успешных записей: ("add_task", owner, id), ...
    fail_writes / fail_subscribe - следующая запись/подписка выбросит StoreError.
    """

    def __init__(self):
        self.tasks_by_owner: dict[str, dict[str, TaskRecord]] = defaultdict(dict)
        self.tags_by_owner: dict[str, dict[str, TagRecord]] = defaultdict(dict)
        self.task_listeners: dict[str, ListenerRegistry] = defaultdict(ListenerRegistry)
        self.tag_listeners: dict[str, ListenerRegistry] = defaultdict(ListenerRegistry)
        self.writes: list[tuple] = []
        self.fail_writes = False
        self.fail_subscribe = False
        self._ids = itertools.count(1)

    def tasks(self, owner_id):
        return FakeTaskCollection(self, owner_id)

    def tags(self, owner_id):
        return FakeTagCollection(self, owner_id)

    def new_id(self, prefix):
        return f"{prefix}{next(self._ids)}"

    def check_write(self):
        if self.fail_writes:
            raise StoreError("permission denied")

    def task_list(self, owner_id):
        return sorted(self.tasks_by_owner[owner_id].values(), key=lambda t: t.sort_key)

    def tag_list(self, owner_id):
        return sorted(
            self.tags_by_owner[owner_id].values(), key=lambda t: (t.created_at, t.id)
        )

    def publish_tasks(self, owner_id):
        self.task_listeners[owner_id].notify(self.task_list(owner_id))

    def publish_tags(self, owner_id):
        self.tag_listeners[owner_id].notify(self.tag_list(owner_id))

    # Helpers for arranging test data without going through services

    def put_task(self, owner_id, task):
        self.tasks_by_owner[owner_id][task.id] = task
        self.publish_tasks(owner_id)

    def put_tag(self, owner_id, tag):
        self.tags_by_owner[owner_id][tag.id] = tag
        self.publish_tags(owner_id)


def _apply(task, changes):
    changes = dict(changes)
    if "tags" in changes:
        changes["tags"] = frozenset(changes["tags"] or ())
    if "status" in changes:
        changes["status"] = TaskStatus(changes["status"])
    return replace(task, **changes)


class FakeTaskCollection(TaskCollection):
    def __init__(self, store, owner_id):
        self.store = store
        self.owner_id = owner_id

    async def add(self, fields):
        self.store.check_write()
        task_id = self.store.new_id("task-")
        task = _apply(TaskRecord(id=task_id, title="", created_at=datetime(2025, 6, 1)), fields)
        self.store.tasks_by_owner[self.owner_id][task_id] = task
        self.store.writes.append(("add_task", self.owner_id, task_id))
        self.store.publish_tasks(self.owner_id)
        return task_id

    async def update(self, task_id, changes):
        self.store.check_write()
        tasks = self.store.tasks_by_owner[self.owner_id]
        if task_id not in tasks:
            raise StoreError(f"Task {task_id} not found")
        tasks[task_id] = _apply(tasks[task_id], changes)
        self.store.writes.append(("update_task", self.owner_id, task_id, dict(changes)))
        self.store.publish_tasks(self.owner_id)

    async def delete(self, task_id):
        self.store.check_write()
        if self.store.tasks_by_owner[self.owner_id].pop(task_id, None) is not None:
            self.store.writes.append(("delete_task", self.owner_id, task_id))
            self.store.publish_tasks(self.owner_id)

    async def list(self):
        return self.store.task_list(self.owner_id)

    async def subscribe(self, listener):
        if self.store.fail_subscribe:
            raise StoreError("subscription refused")
        subscription = self.store.task_listeners[self.owner_id].add(listener)
        listener(self.store.task_list(self.owner_id))
        return subscription


class FakeWriteBatch(WriteBatch):
    def __init__(self, store, owner_id):
        self.store = store
        self.owner_id = owner_id
        self.task_updates = []
        self.tag_deletes = []

    def update_task(self, task_id, changes):
        self.task_updates.append((task_id, dict(changes)))
        return self

    def delete_tag(self, tag_id):
        self.tag_deletes.append(tag_id)
        return self

    async def commit(self):
        self.store.check_write()
        tasks = self.store.tasks_by_owner[self.owner_id]
        for task_id, changes in self.task_updates:
            tasks[task_id] = _apply(tasks[task_id], changes)
        for tag_id in self.tag_deletes:
            self.store.tags_by_owner[self.owner_id].pop(tag_id, None)
        self.store.writes.append(
            ("batch", self.owner_id, list(self.task_updates), list(self.tag_deletes))
        )
        self.store.publish_tasks(self.owner_id)
        self.store.publish_tags(self.owner_id)


class FakeTagCollection(TagCollection):
    def __init__(self, store, owner_id):
        self.store = store
        self.owner_id = owner_id

    async def add(self, fields):
        self.store.check_write()
        tag_id = self.store.new_id("tag-")
        tag = TagRecord(
            id=tag_id,
            name=fields["name"],
            color=TagColor(fields["color"]),
            created_at=datetime(2025, 6, 1),
        )
        self.store.tags_by_owner[self.owner_id][tag_id] = tag
        self.store.writes.append(("add_tag", self.owner_id, tag_id))
        self.store.publish_tags(self.owner_id)
        return tag_id

    async def delete(self, tag_id):
        self.store.check_write()
        if self.store.tags_by_owner[self.owner_id].pop(tag_id, None) is not None:
            self.store.writes.append(("delete_tag", self.owner_id, tag_id))
            self.store.publish_tags(self.owner_id)

    async def list(self):
        return self.store.tag_list(self.owner_id)

    async def subscribe(self, listener):
        if self.store.fail_subscribe:
            raise StoreError("subscription refused")
        subscription = self.store.tag_listeners[self.owner_id].add(listener)
        listener(self.store.tag_list(self.owner_id))
        return subscription

    def batch(self):
        return FakeWriteBatch(self.store, self.owner_id)


@pytest.fixture
def fake_store():
    return FakeLiveStore()


# ============================================================================
# HTTP CLIENT
# ============================================================================


@pytest_asyncio.fixture
async def test_client(sessions):
    """
    Предоставляет HTTP клиент для тестирования API endpoints.

    SessionManager поверх тестовой БД вместо созданного в lifespan.
    """
    app.dependency_overrides[get_session_manager] = lambda: sessions

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    # Очищаем overrides после теста
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def signed_in_client(test_client):
    """Клиент, от имени которого уже выполнен вход."""
    response = await test_client.post(
        "/api/v1/auth/sign-up",
        json={"email": "ann@example.com", "password": "secret1", "display_name": "Ann"},
    )
    assert response.status_code == 201
    return test_client


# Pytest configuration
@pytest.fixture(scope="session")
def anyio_backend():
    """Используем asyncio для всех async тестов."""
    return "asyncio"
