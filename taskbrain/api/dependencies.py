"""
Dependencies для FastAPI endpoints.

Сервисы не создаются вручную в каждом endpoint: FastAPI Depends()
строит цепочку get_db -> get_*_service, а сессия живёт ровно один
запрос (commit при успехе, rollback при любой ошибке).

    async def delete_task(
        task_id: uuid.UUID,
        service: TaskService = Depends(get_task_service),
    ):
        removed = await service.delete_task(task_id)
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..services import ActivityService, MemoryService, TagService, TaskService

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

# Схема авторизации для Swagger UI
api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Ошибку формируем сами
    description="API ключ для авторизации. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str = Depends(api_key_header)) -> str:
    """
    Dependency для проверки API ключа.

    Один общий ключ на всё приложение (однопользовательский сервис),
    не разграничение доступа между пользователями.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/tasks
    """
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_task_service(db: AsyncSession = Depends(get_db)) -> TaskService:
    """
    Dependency для TaskService.

    Цепочка зависимостей:
        get_task_service зависит от get_db
        -> FastAPI вызовет get_db()
        -> передаст сессию в get_task_service()
        -> вернёт TaskService в endpoint
    """
    return TaskService(db)


async def get_tag_service(db: AsyncSession = Depends(get_db)) -> TagService:
    return TagService(db)


async def get_activity_service(db: AsyncSession = Depends(get_db)) -> ActivityService:
    return ActivityService(db)


async def get_memory_service(db: AsyncSession = Depends(get_db)) -> MemoryService:
    return MemoryService(db)
