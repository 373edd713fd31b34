"""Service layer with business logic."""

from .activity import ActivityService
from .exceptions import (
    CorruptionBoundError,
    CycleViolationError,
    NotFoundError,
    TaskBrainError,
    UniquenessViolationError,
    ValidationError,
)
from .hierarchy import InheritedTag
from .memory import MemoryService
from .tag import TagService
from .task import TaskService

__all__ = [
    "TaskService",
    "TagService",
    "ActivityService",
    "MemoryService",
    "InheritedTag",
    "TaskBrainError",
    "NotFoundError",
    "ValidationError",
    "CycleViolationError",
    "UniquenessViolationError",
    "CorruptionBoundError",
]
