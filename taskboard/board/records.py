"""Immutable task and tag records delivered by live snapshots."""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime


class TaskStatus(str, enum.Enum):
    """Workflow column a task belongs to."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


COLUMN_TITLES: dict[TaskStatus, str] = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.COMPLETED: "Completed",
}


class TagColor(str, enum.Enum):
    """Fixed tag palette (color tokens, not free-form colors)."""

    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    TEAL = "teal"
    BLUE = "blue"
    PURPLE = "purple"
    PINK = "pink"


@dataclass(frozen=True)
class TaskRecord:
    """
    Read-only projection of a stored task.

    order может отсутствовать (None) - при сортировке считается нулём.
    """

    id: str
    title: str
    status: TaskStatus = TaskStatus.TODO
    order: float | None = None
    description: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    due_date: date | None = None
    created_at: datetime | None = None

    @property
    def sort_key(self) -> float:
        return self.order or 0.0


@dataclass(frozen=True)
class TagRecord:
    """Read-only projection of a stored tag."""

    id: str
    name: str
    color: TagColor
    created_at: datetime | None = None


def find_task(tasks, task_id: str | None) -> TaskRecord | None:
    """Return the task with the given id, or None."""
    if task_id is None:
        return None
    return next((t for t in tasks if t.id == task_id), None)
