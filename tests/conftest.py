"""
Pytest fixtures для тестов.

Предоставляет:
- test_engine: изолированная SQLite in-memory БД для каждого теста
- test_db: async сессия к ней
- test_client: HTTP клиент для тестирования API endpoints (с X-API-Key)
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskbrain.core.config import settings
from taskbrain.core.database import build_engine, get_db
from taskbrain.main import app
from taskbrain.models import Base

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Async engine для тестовой БД (SQLite in-memory).

    Тот же build_engine, что и у приложения: StaticPool держит одно
    соединение (иначе in-memory данные теряются), внешние ключи включены.
    Таблицы пересоздаются для каждого теста.
    """
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """
    Async session для работы с тестовой БД.

    Каждый тест получает чистую БД; незакоммиченное откатывается после теста.
    """
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_engine):
    """
    HTTP клиент для API endpoints.

    get_db подменяется сессией к тестовой БД, заголовок X-API-Key
    проставляется для всех запросов.
    """
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def anyio_backend():
    """Используем asyncio для всех async тестов."""
    return "asyncio"
