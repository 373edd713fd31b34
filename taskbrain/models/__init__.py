"""SQLAlchemy models for TaskBrain."""

from .activity_log import ActivityAction, ActivityLog
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .chat_memory import ChatMemory
from .tag import DEFAULT_TAG_COLOR, KNOWN_TAG_TYPES, Tag
from .task import DEFAULT_AUTO_PRIORITY, Task, TaskStatus
from .task_tag import TaskTag

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Tag",
    "DEFAULT_TAG_COLOR",
    "KNOWN_TAG_TYPES",
    "Task",
    "TaskStatus",
    "DEFAULT_AUTO_PRIORITY",
    "TaskTag",
    "ActivityLog",
    "ActivityAction",
    "ChatMemory",
]
