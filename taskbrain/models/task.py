"""Task model."""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class TaskStatus(str, enum.Enum):
    """Task status enum. Every transition is allowed."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"


DEFAULT_AUTO_PRIORITY = 50


class Task(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    Node of the task forest.

    The parent is a plain foreign key (parent index), not an owning
    relationship: traversals and the subtree cascade are computed from
    the (id, parent_id) pairs by the service layer.
    """

    __tablename__ = "tasks"

    name: Mapped[str] = mapped_column(String(500), nullable=False)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True
    )  # NULL for root tasks

    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(TaskStatus, native_enum=False),
        default=TaskStatus.NOT_STARTED,
        nullable=False,
        index=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    links: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Scheduling hints
    preferred_time: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    energy_required: Mapped[str | None] = mapped_column(String(20), default="medium", nullable=True)
    estimated_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recurrence_pattern: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Maintained by the scheduling layer, never reset here
    auto_priority: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_AUTO_PRIORITY, nullable=False
    )
    times_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    times_skipped: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Directly owned tags (many-to-many through task_tags)
    tags: Mapped[list["Tag"]] = relationship(
        "Tag", secondary="task_tags", viewonly=True, order_by="Tag.name"
    )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, name='{self.name}', status={self.status.value})>"
