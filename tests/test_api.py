"""
Тесты для API Layer (REST endpoints).

Проверяем:
- HTTP статус-коды
- Форматы запросов/ответов (JSON)
- Обработку ошибок (400, 401, 404, 422)
- Интеграцию всех слоёв (API → BoardReconciler → Service → SqlLiveStore → DB)
"""

import pytest
from httpx import AsyncClient

API = "/api/v1"


async def create_tag(client, name="backend", color="blue"):
    response = await client.post(f"{API}/tags", json={"name": name, "color": color})
    assert response.status_code == 201
    return response.json()


async def create_task(client, title, **fields):
    response = await client.post(f"{API}/tasks", json={"title": title, **fields})
    assert response.status_code == 201
    return response.json()


# ============================================================================
# AUTH / API KEY
# ============================================================================


@pytest.mark.asyncio
async def test_api_key_required(test_client: AsyncClient):
    response = await test_client.get(f"{API}/board", headers={"X-API-Key": "wrong"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_board_requires_sign_in(test_client: AsyncClient):
    response = await test_client.get(f"{API}/board")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "NOT_SIGNED_IN"


@pytest.mark.asyncio
async def test_sign_up_and_me(test_client: AsyncClient):
    response = await test_client.post(
        f"{API}/auth/sign-up", json={"email": "bob@example.com", "password": "secret1"}
    )
    assert response.status_code == 201
    assert response.json()["greeting_name"] == "bob"

    response = await test_client.get(f"{API}/auth/me")
    assert response.status_code == 200
    assert response.json()["email"] == "bob@example.com"


@pytest.mark.asyncio
async def test_sign_in_wrong_password(signed_in_client: AsyncClient):
    await signed_in_client.post(f"{API}/auth/sign-out")
    response = await signed_in_client.post(
        f"{API}/auth/sign-in", json={"email": "ann@example.com", "password": "nope!!"}
    )
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "WRONG_PASSWORD"
    assert error["message"] == "Incorrect email or password."


@pytest.mark.asyncio
async def test_sign_out_ends_board(signed_in_client: AsyncClient):
    response = await signed_in_client.post(f"{API}/auth/sign-out")
    assert response.status_code == 204

    response = await signed_in_client.get(f"{API}/board")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_password_reset(signed_in_client: AsyncClient):
    response = await signed_in_client.post(f"{API}/auth/password-reset", json={"email": ""})
    assert response.json() == {"ok": False, "message": "Please enter your email address."}

    response = await signed_in_client.post(
        f"{API}/auth/password-reset", json={"email": "ann@example.com"}
    )
    assert response.json() == {
        "ok": True,
        "message": "Password reset email sent! Check your inbox.",
    }


# ============================================================================
# TASKS
# ============================================================================


@pytest.mark.asyncio
async def test_create_task(signed_in_client: AsyncClient):
    """Test: POST /tasks - задача встаёт в конец колонки."""
    tag = await create_tag(signed_in_client)
    first = await create_task(signed_in_client, "First", due_date="2025-06-10", tag_ids=[tag["id"]])
    second = await create_task(signed_in_client, "Second")

    assert first["order"] == 1000.0
    assert second["order"] == 2000.0
    assert first["status"] == "todo"
    assert first["tags"] == [tag["id"]]
    assert first["due_date"] == "2025-06-10"


@pytest.mark.asyncio
async def test_create_task_validation_error(signed_in_client: AsyncClient):
    """Test: пустое название - 422 в едином формате ErrorResponse."""
    response = await signed_in_client.post(f"{API}/tasks", json={"title": ""})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert "title" in [d["field"] for d in error["details"]]


@pytest.mark.asyncio
async def test_create_task_blank_title_and_unknown_tag(signed_in_client: AsyncClient):
    response = await signed_in_client.post(f"{API}/tasks", json={"title": "   "})
    assert response.status_code == 400

    response = await signed_in_client.post(
        f"{API}/tasks", json={"title": "Task", "tag_ids": ["ghost"]}
    )
    assert response.status_code == 400
    assert "Unknown tag ids" in response.json()["error"]["message"]


@pytest.mark.asyncio
async def test_get_task_not_found(signed_in_client: AsyncClient):
    response = await signed_in_client.get(f"{API}/tasks/missing")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_filter_tasks(signed_in_client: AsyncClient):
    """Test: GET /tasks?tag=..&due=.. - теги через OR, теги и дата через AND."""
    red = await create_tag(signed_in_client, "red", "red")
    blue = await create_tag(signed_in_client, "blue", "blue")
    await create_task(signed_in_client, "Red today", tag_ids=[red["id"]], due_date="2025-06-10")
    await create_task(signed_in_client, "Blue later", tag_ids=[blue["id"]], due_date="2025-07-01")
    await create_task(signed_in_client, "Plain")

    response = await signed_in_client.get(
        f"{API}/tasks", params={"tag": [red["id"], blue["id"]], "today": "2025-06-10"}
    )
    assert [t["title"] for t in response.json()] == ["Red today", "Blue later"]

    response = await signed_in_client.get(
        f"{API}/tasks",
        params={"tag": [red["id"], blue["id"]], "due": "upcoming", "today": "2025-06-10"},
    )
    assert [t["title"] for t in response.json()] == ["Blue later"]

    response = await signed_in_client.get(f"{API}/tasks", params={"due": "no-date"})
    assert [t["title"] for t in response.json()] == ["Plain"]


@pytest.mark.asyncio
async def test_update_task(signed_in_client: AsyncClient):
    task = await create_task(signed_in_client, "Task", description="desc", due_date="2025-06-10")

    response = await signed_in_client.patch(
        f"{API}/tasks/{task['id']}", json={"title": "Renamed", "due_date": None}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Renamed"
    assert data["description"] == "desc"
    assert data["due_date"] is None


@pytest.mark.asyncio
async def test_move_task(signed_in_client: AsyncClient):
    a = await create_task(signed_in_client, "A")
    b = await create_task(signed_in_client, "B")

    response = await signed_in_client.post(
        f"{API}/tasks/{b['id']}/move",
        json={"status": "todo", "target_id": a["id"], "position": "before"},
    )
    assert response.status_code == 200
    assert response.json()["committed"] is True
    assert response.json()["task"]["order"] == 500.0

    response = await signed_in_client.post(f"{API}/tasks/{b['id']}/move", json={"status": "todo"})
    assert response.json()["committed"] is False


@pytest.mark.asyncio
async def test_delete_task(signed_in_client: AsyncClient):
    task = await create_task(signed_in_client, "Task")
    response = await signed_in_client.delete(f"{API}/tasks/{task['id']}")
    assert response.status_code == 204

    response = await signed_in_client.get(f"{API}/tasks/{task['id']}")
    assert response.status_code == 404


# ============================================================================
# TAGS
# ============================================================================


@pytest.mark.asyncio
async def test_tag_color_must_be_from_palette(signed_in_client: AsyncClient):
    response = await signed_in_client.post(f"{API}/tags", json={"name": "x", "color": "#FF0000"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_tag_strips_tasks(signed_in_client: AsyncClient):
    red = await create_tag(signed_in_client, "red", "red")
    task = await create_task(signed_in_client, "Task", tag_ids=[red["id"]])

    response = await signed_in_client.delete(f"{API}/tags/{red['id']}")
    assert response.status_code == 200
    assert response.json() == {"tag_id": red["id"], "tasks_updated": 1}

    response = await signed_in_client.get(f"{API}/tasks/{task['id']}")
    assert response.json()["tags"] == []
    response = await signed_in_client.get(f"{API}/tags")
    assert response.json() == []

    response = await signed_in_client.delete(f"{API}/tags/{red['id']}")
    assert response.status_code == 404


# ============================================================================
# BOARD
# ============================================================================


@pytest.mark.asyncio
async def test_board_view(signed_in_client: AsyncClient):
    await create_task(signed_in_client, "Due today", due_date="2025-06-10")
    await create_task(signed_in_client, "Done", status="completed", due_date="2025-06-10")

    response = await signed_in_client.get(f"{API}/board")
    assert response.status_code == 200
    board = response.json()

    assert board["loading"] is False
    assert [c["title"] for c in board["columns"]] == ["To Do", "In Progress", "Completed"]
    card = board["columns"][0]["tasks"][0]
    assert card["due"] == {"text": "Today", "css_class": "today"}
    # Completed не считается в счётчиках по датам
    assert board["date_counts"]["today"] == 1
    assert board["total_tasks"] == 2


@pytest.mark.asyncio
async def test_drag_and_drop_flow(signed_in_client: AsyncClient):
    """Test: drag start -> enter -> over -> drop = одна запись, drag state очищен."""
    a = await create_task(signed_in_client, "A")
    d = await create_task(signed_in_client, "D", status="in-progress")

    await signed_in_client.post(f"{API}/board/drag/start", json={"task_id": a["id"]})
    response = await signed_in_client.post(
        f"{API}/board/drag/enter", json={"column": "in-progress"}
    )
    assert response.json()["columns"][1]["is_drop_target"] is True

    response = await signed_in_client.post(
        f"{API}/board/drag/over",
        json={"column": "in-progress", "task_id": d["id"], "pointer_y": 10, "top": 0, "height": 100},
    )
    assert response.json()["columns"][1]["tasks"][0]["drop_indicator"] == "before"

    response = await signed_in_client.post(
        f"{API}/board/drag/drop", json={"column": "in-progress"}
    )
    data = response.json()
    assert data["committed"] is True
    assert data["board"]["dragging_task_id"] is None
    assert [t["title"] for t in data["board"]["columns"][1]["tasks"]] == ["A", "D"]
    assert data["board"]["columns"][0]["tasks"] == []


@pytest.mark.asyncio
async def test_drop_on_same_column_is_noop(signed_in_client: AsyncClient):
    a = await create_task(signed_in_client, "A")
    await signed_in_client.post(f"{API}/board/drag/start", json={"task_id": a["id"]})
    response = await signed_in_client.post(f"{API}/board/drag/drop", json={"column": "todo"})
    assert response.json()["committed"] is False
    assert response.json()["board"]["columns"][0]["tasks"][0]["order"] == 1000.0


@pytest.mark.asyncio
async def test_board_filters(signed_in_client: AsyncClient):
    red = await create_tag(signed_in_client, "red", "red")
    await create_task(signed_in_client, "Red", tag_ids=[red["id"]])
    await create_task(signed_in_client, "Plain")

    response = await signed_in_client.post(f"{API}/board/filters/tags/{red['id']}")
    board = response.json()
    assert board["tag_filters"] == [red["id"]]
    assert [t["title"] for t in board["columns"][0]["tasks"]] == ["Red"]

    response = await signed_in_client.put(f"{API}/board/filters/date", json={"bucket": "no-date"})
    assert response.json()["date_filter"] == "no-date"

    response = await signed_in_client.delete(f"{API}/board/filters")
    board = response.json()
    assert board["tag_filters"] == []
    assert board["date_filter"] is None
    assert board["visible_tasks"] == 2


@pytest.mark.asyncio
async def test_editor_flow(signed_in_client: AsyncClient):
    response = await signed_in_client.post(
        f"{API}/board/editor", json={"task_id": None, "status": "in-progress"}
    )
    assert response.json()["editor"]["can_submit"] is False

    response = await signed_in_client.post(f"{API}/board/editor/submit")
    assert response.json()["saved"] is False

    await signed_in_client.patch(f"{API}/board/editor", json={"title": "From editor"})
    response = await signed_in_client.post(f"{API}/board/editor/submit")
    data = response.json()
    assert data["saved"] is True
    assert data["board"]["editor"] is None
    assert [t["title"] for t in data["board"]["columns"][1]["tasks"]] == ["From editor"]


@pytest.mark.asyncio
async def test_editor_change_requires_open_editor(signed_in_client: AsyncClient):
    response = await signed_in_client.patch(f"{API}/board/editor", json={"title": "x"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_editor_null_status_is_ignored(signed_in_client: AsyncClient):
    await signed_in_client.post(f"{API}/board/editor", json={"status": "completed"})

    response = await signed_in_client.patch(
        f"{API}/board/editor", json={"status": None, "title": "Keep column"}
    )
    assert response.status_code == 200
    editor = response.json()["editor"]
    assert editor["status"] == "completed"
    assert editor["title"] == "Keep column"


@pytest.mark.asyncio
async def test_editor_invalid_status_is_rejected(signed_in_client: AsyncClient):
    await signed_in_client.post(f"{API}/board/editor", json={})

    response = await signed_in_client.patch(f"{API}/board/editor", json={"status": "archived"})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_rebalance_column(signed_in_client: AsyncClient):
    a = await create_task(signed_in_client, "A")
    b = await create_task(signed_in_client, "B")
    await signed_in_client.post(
        f"{API}/tasks/{b['id']}/move",
        json={"status": "todo", "target_id": a["id"], "position": "before"},
    )

    response = await signed_in_client.post(f"{API}/board/columns/todo/rebalance")
    assert response.json() == {"updated": 2}

    response = await signed_in_client.get(f"{API}/tasks", params={"status": "todo"})
    assert [(t["title"], t["order"]) for t in response.json()] == [("B", 1000.0), ("A", 2000.0)]
