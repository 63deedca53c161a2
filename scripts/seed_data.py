#!/usr/bin/env python3
"""
Seed script: demo account, tags and tasks on all three columns.

Сервер должен быть запущен (uvicorn taskboard.main:app).
"""

import requests

API_URL = "http://localhost:8000/api/v1"
API_KEY = "dev-api-key-change-in-production"
HEADERS = {"X-API-Key": API_KEY, "Content-Type": "application/json"}

ACCOUNT = {"email": "demo@example.com", "password": "demo-password", "display_name": "Demo"}

TAGS = [
    {"name": "backend", "color": "blue"},
    {"name": "frontend", "color": "purple"},
    {"name": "bug", "color": "red"},
    {"name": "docs", "color": "teal"},
    {"name": "urgent", "color": "orange"},
]

# Tasks per column; due_date в формате YYYY-MM-DD
TASKS = {
    "todo": [
        {
            "title": "Описать API доски в README",
            "due_date": "2026-10-25",
            "tags": ["docs"],
        },
        {
            "title": "Починить подсветку колонки при drag leave",
            "description": "Подсветка пропадает над карточкой внутри колонки",
            "tags": ["frontend", "bug"],
        },
        {
            "title": "Индекс по (owner_id, status, sort_order)",
            "due_date": "2026-10-20",
            "tags": ["backend"],
        },
    ],
    "in-progress": [
        {
            "title": "Фильтр по срокам: this week / upcoming",
            "due_date": "2026-10-21",
            "tags": ["frontend", "backend"],
        },
        {
            "title": "Письмо для сброса пароля",
            "due_date": "2026-10-18",
            "tags": ["backend", "urgent"],
        },
    ],
    "completed": [
        {"title": "Палитра цветов тегов", "tags": ["frontend"]},
        {"title": "Атомарное удаление тега", "tags": ["backend"]},
    ],
}


def sign_in():
    """Sign up the demo account, or sign in if it already exists."""
    response = requests.post(f"{API_URL}/auth/sign-up", headers=HEADERS, json=ACCOUNT)
    if response.status_code == 201:
        return response.json()

    credentials = {"email": ACCOUNT["email"], "password": ACCOUNT["password"]}
    response = requests.post(f"{API_URL}/auth/sign-in", headers=HEADERS, json=credentials)
    if response.status_code == 200:
        return response.json()
    print(f"Error signing in: {response.text}")
    return None


def create_tag(tag_data):
    """Create a tag via API."""
    response = requests.post(f"{API_URL}/tags", headers=HEADERS, json=tag_data)
    if response.status_code == 201:
        return response.json()
    else:
        print(f"Error creating tag {tag_data['name']}: {response.text}")
        return None


def create_task(task_data, status, tag_ids):
    """Create a task via API."""
    task_payload = {
        "title": task_data["title"],
        "status": status,
        "tag_ids": [tag_ids[name] for name in task_data.get("tags", []) if name in tag_ids],
    }

    if "description" in task_data:
        task_payload["description"] = task_data["description"]

    if "due_date" in task_data:
        task_payload["due_date"] = task_data["due_date"]

    response = requests.post(f"{API_URL}/tasks", headers=HEADERS, json=task_payload)
    if response.status_code == 201:
        return response.json()
    else:
        print(f"Error creating task {task_data['title']}: {response.text}")
        return None


def main():
    print("=" * 60)
    print("Seeding the board with demo tags and tasks")
    print("=" * 60)

    user = sign_in()
    if user is None:
        return
    print(f"\n👤 Signed in as {user['greeting_name']} ({user['email']})")

    tag_ids = {}
    print("\n🏷️ Creating tags...")
    for tag_data in TAGS:
        tag = create_tag(tag_data)
        if tag:
            tag_ids[tag_data["name"]] = tag["id"]
            print(f"  ✅ {tag_data['name']} ({tag_data['color']})")

    print("\n📋 Creating tasks...")
    total_tasks = 0
    for status, tasks in TASKS.items():
        print(f"\n  🗂️ {status}:")
        for task_data in tasks:
            task = create_task(task_data, status, tag_ids)
            if task:
                total_tasks += 1
                due = task_data.get("due_date", "no date")
                print(f"    ✅ {task_data['title'][:50]} ({due}, order={task['order']})")

    print("\n" + "=" * 60)
    print(f"✅ Done! Created {len(tag_ids)} tags and {total_tasks} tasks")
    print("=" * 60)


if __name__ == "__main__":
    main()
