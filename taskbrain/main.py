"""
Главный файл FastAPI приложения TaskBrain.

Запуск:
    uvicorn taskbrain.main:app --reload

API документация:
    http://localhost:8000/docs       - Swagger UI
    http://localhost:8000/redoc      - ReDoc

Все ресурсные endpoints доступны по путям /api/v1/... и требуют
заголовок X-API-Key.
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from .api import activity_router, memory_router, tags_router, tasks_router
from .api.dependencies import verify_api_key
from .api.errors import register_error_handlers
from .api.middleware import RequestLoggingMiddleware
from .core.config import settings
from .core.database import AsyncSessionLocal, init_db
from .core.logging import get_logger, setup_logging
from .repositories import TaskRepository

# LOG_LEVEL: DEBUG/INFO/WARNING/ERROR, LOG_FORMAT: json (production) / simple (development)
setup_logging(log_level=settings.LOG_LEVEL, log_format=settings.LOG_FORMAT)

logger = get_logger(__name__)

# ============================================================================
# APPLICATION METADATA
# ============================================================================

APP_VERSION = "1.0.0"
APP_START_TIME: float = 0.0  # Set on startup

# ============================================================================
# RATE LIMITER SETUP
# ============================================================================

# Запросы группируются по IP адресу клиента
limiter = Limiter(key_func=get_remote_address)


def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Превышение лимита запросов в едином формате ErrorResponse."""
    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests. Limit: {exc.detail}",
                "details": [{"field": "rate_limit", "message": str(exc.detail)}],
            }
        },
    )


# ============================================================================
# LIFESPAN EVENT HANDLER
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: создание таблиц (create_all идемпотентен), засечка uptime.
    Shutdown: запись в лог.
    """
    global APP_START_TIME

    APP_START_TIME = time.time()
    await init_db()

    logger.info(
        "Application started",
        extra={
            "app_name": settings.APP_NAME,
            "version": APP_VERSION,
            "debug": settings.DEBUG,
            "log_level": settings.LOG_LEVEL,
            "rate_limit": settings.RATE_LIMIT,
        },
    )

    yield

    uptime = int(time.time() - APP_START_TIME)
    logger.info("Application stopped", extra={"uptime_seconds": uptime})


# ============================================================================
# CREATE APPLICATION
# ============================================================================

app = FastAPI(
    lifespan=lifespan,
    title=settings.APP_NAME,
    description="""
    Иерархический менеджер задач с наследуемыми тегами.

    ## Возможности

    * **Дерево задач** - произвольная вложенность, перенос с защитой от циклов
    * **Каскадное удаление** - задача удаляется вместе с поддеревом
    * **Теги** - типизированные (location, mood, subject, ...), наследуются вниз по дереву
    * **Журнал активности** - когда, где и в каком настроении задачи выполняются
    * **Память ассистента** - плоское хранилище ключ-значение

    ## 3-Layer Architecture

    ```
    API Layer (FastAPI) → Service Layer (Business Logic) → Repository Layer (Database)
    ```

    ## Модель данных

    ```
    Tasks (parent_id → Tasks)  ←M:M→  Tags (name, type)
      ↓
    Activity log               Chat memory (key → value)
    ```
    """,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
# slowapi handler имеет специфичный тип, но работает корректно
app.add_exception_handler(RateLimitExceeded, custom_rate_limit_exceeded_handler)  # type: ignore[arg-type]


# ============================================================================
# MIDDLEWARE
# ============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # В продакшене указать конкретные домены
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


# ============================================================================
# API VERSIONING
# ============================================================================

api_v1_router = APIRouter(prefix="/api/v1")

api_v1_router.include_router(tasks_router)
api_v1_router.include_router(tags_router)
api_v1_router.include_router(activity_router)
api_v1_router.include_router(memory_router)

# Все endpoints v1 требуют X-API-Key
app.include_router(api_v1_router, dependencies=[Depends(verify_api_key)])

register_error_handlers(app)


# ============================================================================
# ROOT ENDPOINT
# ============================================================================


@app.get("/", tags=["root"], summary="Root endpoint", description="Информация о API")
@limiter.limit(settings.RATE_LIMIT)
async def root(request: Request):
    return {
        "name": settings.APP_NAME,
        "version": APP_VERSION,
        "api_version": "v1",
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
        "endpoints": {
            "tasks": "/api/v1/tasks",
            "tags": "/api/v1/tags",
            "activity": "/api/v1/activity",
            "memory": "/api/v1/memory",
        },
        "rate_limit": settings.RATE_LIMIT,
    }


# ============================================================================
# HEALTH CHECK
# ============================================================================


@app.get(
    "/health", tags=["health"], summary="Health check", description="Проверка работоспособности API"
)
@limiter.limit(settings.RATE_LIMIT)
async def health_check(request: Request):
    """
    Проверяет подключение к базе данных (заодно считает задачи).

    Пример ответа (200 OK):
    ```json
    {
        "status": "ok",
        "checks": {"database": "connected", "tasks": 27, "version": "1.0.0", "uptime_seconds": 3600},
        "timestamp": "2026-10-19T12:00:00+00:00"
    }
    ```

    При недоступной БД - 503 и "database": "disconnected".
    """
    uptime_seconds = int(time.time() - APP_START_TIME) if APP_START_TIME > 0 else 0

    db_status = "disconnected"
    task_count = None
    try:
        async with AsyncSessionLocal() as session:
            task_count = await TaskRepository(session).count()
            db_status = "connected"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unavailable", extra={"error": str(e)})

    overall_status = "ok" if db_status == "connected" else "error"

    return JSONResponse(
        status_code=200 if overall_status == "ok" else 503,
        content={
            "status": overall_status,
            "checks": {
                "database": db_status,
                "tasks": task_count,
                "version": APP_VERSION,
                "uptime_seconds": uptime_seconds,
            },
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
