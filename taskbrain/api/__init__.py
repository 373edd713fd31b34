"""API layer - FastAPI endpoints."""

from .activity import router as activity_router
from .memory import router as memory_router
from .tags import router as tags_router
from .tasks import router as tasks_router

__all__ = [
    "tasks_router",
    "tags_router",
    "activity_router",
    "memory_router",
]
