"""Tag model."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..board.records import TagColor, TagRecord
from .base import Base, new_id, utc_now


class Tag(Base):
    """Colored tag of one owner."""

    __tablename__ = "tags"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    owner_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[TagColor] = mapped_column(SQLEnum(TagColor, native_enum=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    # Relationships
    tasks: Mapped[list["Task"]] = relationship(
        "Task", secondary="task_tags", back_populates="tags"
    )

    def to_record(self) -> TagRecord:
        return TagRecord(id=self.id, name=self.name, color=self.color, created_at=self.created_at)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}', color={self.color.value})>"
