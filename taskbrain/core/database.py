"""Database connection and session management."""

from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from .config import settings


def configure_sqlite(engine: AsyncEngine, foreign_keys: bool = True) -> None:
    """
    Подключить обработчики соединений SQLite.

    1. PRAGMA foreign_keys=ON - SQLite по умолчанию не проверяет внешние
       ключи, и ON DELETE CASCADE / SET NULL моделей не срабатывают
    2. Драйвер не открывает транзакцию сам, BEGIN выдаётся явно, иначе
       SAVEPOINT (session.begin_nested) не работает
    """

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        if foreign_keys:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Создать async engine под конкретную БД.

    SQLite: StaticPool (одно соединение, иначе :memory: теряет данные)
    плюс configure_sqlite. PostgreSQL: без пула соединений.
    """
    if "sqlite" not in url:
        return create_async_engine(url, echo=echo, poolclass=NullPool)

    engine = create_async_engine(
        url,
        echo=echo,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite(engine, foreign_keys=settings.SQLITE_FOREIGN_KEYS)
    return engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Provide a session whose whole lifetime is one transaction.

    Commits when the caller finishes cleanly and rolls everything back
    otherwise, so multi-row mutations (cascade delete, reparenting, bulk
    tag attach) are never partially visible.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Initialize database (create all tables)."""
    from ..models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db():
    """Drop all tables (use with caution!)."""
    from ..models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
