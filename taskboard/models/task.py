"""Task model."""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, Index, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..board.records import TaskRecord, TaskStatus
from .base import Base, new_id, utc_now


class Task(Base):
    """Task document of one owner; `status` is the board column."""

    __tablename__ = "tasks"
    __table_args__ = (Index("ix_tasks_owner_status_order", "owner_id", "status", "sort_order"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(TaskStatus, native_enum=False), default=TaskStatus.TODO, nullable=False
    )
    # "order" - зарезервированное слово в SQL, поэтому колонка sort_order
    order: Mapped[float | None] = mapped_column("sort_order", Float, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    # Tags relationship (many-to-many)
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary="task_tags", back_populates="tasks"
    )

    def to_record(self) -> TaskRecord:
        """Snapshot projection (requires `tags` to be loaded)."""
        return TaskRecord(
            id=self.id,
            title=self.title,
            status=self.status,
            order=self.order,
            description=self.description,
            tags=frozenset(tag.id for tag in self.tags),
            due_date=self.due_date,
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title='{self.title}', status={self.status.value})>"
