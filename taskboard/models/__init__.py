"""SQLAlchemy models for Taskboard."""

from .account import Account
from .base import Base, new_id, utc_now
from .tag import Tag
from .task import Task
from .task_tag import task_tags

__all__ = [
    "Base",
    "new_id",
    "utc_now",
    "Account",
    "Tag",
    "Task",
    "task_tags",
]
