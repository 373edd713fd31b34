"""Tag model."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utc_now

DEFAULT_TAG_COLOR = "#667eea"

# Types shipped with the default vocabulary. The column itself is free text,
# so new types can be introduced without a code change.
KNOWN_TAG_TYPES = (
    "subject",
    "category",
    "mood",
    "location",
    "duration",
    "priority",
    "project",
    "tool",
    "time_slot",
    "energy",
)


class Tag(Base, UUIDPrimaryKeyMixin):
    """Labeled classifier; the same name may exist under different types."""

    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("name", "type", name="uq_tags_name_type"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    color: Mapped[str] = mapped_column(String(7), default=DEFAULT_TAG_COLOR, nullable=False)
    is_focused: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name='{self.name}', type='{self.type}')>"
