"""
Тесты для SqlLiveStore (SQLite in-memory).

Проверяем:
- подписка сразу получает снимок и получает новый после каждой записи
- освобождённая подписка больше не вызывается
- batch атомарен: ошибка в любой операции - не меняется ничего
- коллекции разных владельцев изолированы
"""

from datetime import date

import pytest

from taskboard.board.records import TagColor, TaskStatus
from taskboard.services import TagService, TaskService
from taskboard.store import StoreError

OWNER = "owner-1"


async def add_task(store, owner=OWNER, **fields):
    data = {"title": "Task", "status": TaskStatus.TODO, "order": 1000.0}
    data.update(fields)
    return await store.tasks(owner).add(data)


@pytest.mark.asyncio
async def test_subscribe_receives_initial_and_later_snapshots(sql_store):
    """Test: снимок приходит сразу и после каждой записи, отсортированный по order."""
    snapshots = []
    await add_task(sql_store, title="Second", order=2000.0)
    await sql_store.tasks(OWNER).subscribe(snapshots.append)

    assert [[t.title for t in s] for s in snapshots] == [["Second"]]

    await add_task(sql_store, title="First", order=500.0)
    assert [t.title for t in snapshots[-1]] == ["First", "Second"]


@pytest.mark.asyncio
async def test_released_subscription_is_never_called(sql_store):
    snapshots = []
    subscription = await sql_store.tasks(OWNER).subscribe(snapshots.append)
    subscription.release()
    subscription.release()  # повторный release безопасен

    await add_task(sql_store)
    assert len(snapshots) == 1
    assert sql_store.subscribed_owners() == set()


@pytest.mark.asyncio
async def test_writes_without_subscribers_keep_no_registries(sql_store):
    await add_task(sql_store)
    await sql_store.tags(OWNER).add({"name": "backend", "color": TagColor.BLUE})
    assert sql_store.subscribed_owners() == set()

    first = await sql_store.tasks(OWNER).subscribe(lambda tasks: None)
    second = await sql_store.tasks(OWNER).subscribe(lambda tasks: None)
    first.release()
    assert sql_store.subscribed_owners() == {OWNER}
    second.release()
    assert sql_store.subscribed_owners() == set()


@pytest.mark.asyncio
async def test_publish_failure_does_not_fail_committed_write(sql_store, monkeypatch):
    """Test: запись зафиксирована, даже если перечитать снимок не удалось."""
    snapshots = []
    await sql_store.tasks(OWNER).subscribe(snapshots.append)

    async def broken_list(owner_id):
        raise StoreError("connection lost")

    monkeypatch.setattr(sql_store, "list_tasks", broken_list)
    task_id = await add_task(sql_store, title="Saved")
    monkeypatch.undo()

    assert snapshots == [[]]
    assert [t.id for t in await sql_store.tasks(OWNER).list()] == [task_id]


@pytest.mark.asyncio
async def test_owners_are_isolated(sql_store):
    snapshots = []
    await sql_store.tasks("other").subscribe(snapshots.append)
    await add_task(sql_store, owner=OWNER)

    assert snapshots == [[]]
    assert await sql_store.tasks("other").list() == []
    assert len(await sql_store.tasks(OWNER).list()) == 1


@pytest.mark.asyncio
async def test_task_fields_round_trip(sql_store):
    tag_id = await sql_store.tags(OWNER).add({"name": "backend", "color": TagColor.BLUE})
    task_id = await add_task(
        sql_store,
        title="Ship it",
        description="soon",
        status=TaskStatus.IN_PROGRESS,
        order=1500.5,
        due_date=date(2025, 6, 10),
        tags=[tag_id, tag_id],
    )

    [task] = await sql_store.tasks(OWNER).list()
    assert task.id == task_id
    assert task.status == TaskStatus.IN_PROGRESS
    assert task.order == 1500.5
    assert task.due_date == date(2025, 6, 10)
    assert task.tags == {tag_id}
    assert task.created_at is not None


@pytest.mark.asyncio
async def test_update_is_partial(sql_store):
    task_id = await add_task(sql_store, title="Keep me", description="desc")
    await sql_store.tasks(OWNER).update(task_id, {"status": TaskStatus.COMPLETED, "order": 42.0})

    [task] = await sql_store.tasks(OWNER).list()
    assert task.title == "Keep me"
    assert task.description == "desc"
    assert task.status == TaskStatus.COMPLETED
    assert task.order == 42.0


@pytest.mark.asyncio
async def test_update_of_missing_task_fails(sql_store):
    with pytest.raises(StoreError, match="not found"):
        await sql_store.tasks(OWNER).update("missing", {"title": "x"})


@pytest.mark.asyncio
async def test_unknown_tag_reference_is_rejected(sql_store):
    with pytest.raises(StoreError, match="Unknown tag ids"):
        await add_task(sql_store, tags=["nope"])
    assert await sql_store.tasks(OWNER).list() == []


@pytest.mark.asyncio
async def test_unknown_fields_are_rejected(sql_store):
    with pytest.raises(StoreError, match="Unknown task fields"):
        await add_task(sql_store, priority="high")


@pytest.mark.asyncio
async def test_tags_ordered_by_creation(sql_store):
    for name in ("b", "a", "c"):
        await sql_store.tags(OWNER).add({"name": name, "color": "green"})
    assert [t.name for t in await sql_store.tags(OWNER).list()] == ["b", "a", "c"]


@pytest.mark.asyncio
async def test_delete_task(sql_store):
    task_id = await add_task(sql_store)
    await sql_store.tasks(OWNER).delete(task_id)
    await sql_store.tasks(OWNER).delete(task_id)
    assert await sql_store.tasks(OWNER).list() == []


# ============================================================================
# BATCH
# ============================================================================


@pytest.mark.asyncio
async def test_tag_deletion_strips_tag_from_every_task(sql_store):
    """Test: удаление тега - один batch; ни одна задача не ссылается на удалённый тег."""
    tags = sql_store.tags(OWNER)
    red = await tags.add({"name": "red", "color": "red"})
    blue = await tags.add({"name": "blue", "color": "blue"})
    await add_task(sql_store, title="one", tags=[red, blue])
    await add_task(sql_store, title="two", tags=[red], order=2000.0)
    await add_task(sql_store, title="three", tags=[blue], order=3000.0)

    tag_snapshots = []
    await tags.subscribe(tag_snapshots.append)

    service = TagService(tags, sql_store.tasks(OWNER))
    stripped = await service.delete_tag(red)

    assert stripped == 2
    tasks = await sql_store.tasks(OWNER).list()
    assert [sorted(t.tags) for t in tasks] == [[blue], [], [blue]]
    assert [t.id for t in tag_snapshots[-1]] == [blue]


@pytest.mark.asyncio
async def test_failed_batch_changes_nothing(sql_store):
    """Test: одна неудачная операция откатывает весь batch."""
    tags = sql_store.tags(OWNER)
    red = await tags.add({"name": "red", "color": "red"})
    task_id = await add_task(sql_store, tags=[red])

    batch = tags.batch()
    batch.update_task(task_id, {"tags": []})
    batch.update_task("missing", {"tags": []})
    batch.delete_tag(red)

    with pytest.raises(StoreError):
        await batch.commit()

    [task] = await sql_store.tasks(OWNER).list()
    assert task.tags == {red}
    assert [t.id for t in await tags.list()] == [red]


@pytest.mark.asyncio
async def test_batch_cannot_be_committed_twice(sql_store):
    batch = sql_store.tags(OWNER).batch()
    await batch.commit()
    with pytest.raises(StoreError, match="already committed"):
        await batch.commit()


@pytest.mark.asyncio
async def test_reorder_through_service(sql_store):
    service = TaskService(sql_store.tasks(OWNER), sql_store.tags(OWNER))
    first = await service.create_task("first")
    second = await service.create_task("second")

    await service.reorder({first: 3000.0, second: 1000.0})
    assert [t.title for t in await sql_store.tasks(OWNER).list()] == ["second", "first"]
