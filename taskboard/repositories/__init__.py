"""Repository layer for data access."""

from .account import AccountRepository
from .base import BaseRepository, OwnedRepository
from .tag import TagRepository
from .task import TaskRepository

__all__ = [
    "BaseRepository",
    "OwnedRepository",
    "AccountRepository",
    "TaskRepository",
    "TagRepository",
]
