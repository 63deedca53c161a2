"""Live Collection Store: capability interfaces and the SQLAlchemy backend."""

from .base import (
    ListenerRegistry,
    LiveStore,
    StoreError,
    Subscription,
    TagCollection,
    TaskCollection,
    WriteBatch,
)
from .sql import SqlLiveStore

__all__ = [
    "LiveStore",
    "TaskCollection",
    "TagCollection",
    "WriteBatch",
    "Subscription",
    "ListenerRegistry",
    "StoreError",
    "SqlLiveStore",
]
