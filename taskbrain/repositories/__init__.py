"""Repository layer for data access."""

from .activity_log import ActivityLogRepository
from .base import BaseRepository
from .chat_memory import ChatMemoryRepository
from .tag import TagRepository
from .task import TaskRepository
from .task_tag import TaskTagRepository

__all__ = [
    "BaseRepository",
    "TaskRepository",
    "TagRepository",
    "TaskTagRepository",
    "ActivityLogRepository",
    "ChatMemoryRepository",
]
