"""Activity log model for behavioural tracking."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utc_now


class ActivityAction:
    """Action labels written by the task service."""

    COMPLETED = "completed"
    SKIPPED = "skipped"
    STARTED = "started"
    STATUS_CHANGED = "status_changed"


class ActivityLog(Base, UUIDPrimaryKeyMixin):
    """
    Append-only record of something that happened to a task.

    task_id becomes NULL when the task is deleted; task_name keeps the
    entry readable afterwards.
    """

    __tablename__ = "activity_log"

    task_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True, index=True
    )
    task_name: Mapped[str] = mapped_column(String(500), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)

    location_tag_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tags.id", ondelete="SET NULL"), nullable=True
    )
    mood_tag_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("tags.id", ondelete="SET NULL"), nullable=True
    )

    # Buckets: 0 = Sunday .. 6 = Saturday, 0..23
    day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    hour_of_day: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, task='{self.task_name}', action='{self.action}')>"
