"""Task-Tag junction table."""

from sqlalchemy import Column, ForeignKey, String, Table

from .base import Base

# Many-to-many junction table for tasks and tags
task_tags = Table(
    "task_tags",
    Base.metadata,
    Column("task_id", String(32), ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(32), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)
