"""Key-value memory for assistant context."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDPrimaryKeyMixin, utc_now


class ChatMemory(Base, UUIDPrimaryKeyMixin):
    """Flat string -> string mapping (user_name, default_location, work_hours, ...)."""

    __tablename__ = "chat_memory"

    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<ChatMemory(key='{self.key}', value='{self.value}')>"
