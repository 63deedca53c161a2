"""Base classes for SQLAlchemy models."""

import uuid
from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


def utc_now() -> datetime:
    """Return current UTC datetime (naive, for SQLite compatibility)."""
    return datetime.now(UTC).replace(tzinfo=None)


def new_id() -> str:
    """Opaque document id assigned by the store."""
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all models."""

    pass
