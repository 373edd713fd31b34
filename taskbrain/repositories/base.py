"""Base repository with common CRUD operations."""

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar для Generic класса - репозиторий работает с любой моделью
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Репозиторий никогда не делает commit: flush() отправляет изменения
    в текущую транзакцию, а commit/rollback выполняет владелец сессии
    (dependency get_db). Поэтому несколько вызовов складываются в одну
    атомарную операцию.

    Пример использования:
        tag_repo = BaseRepository[Tag](Tag, db_session)
        tag = await tag_repo.get_by_id(tag_id)
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy (Task, Tag, ...)
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        Returns:
            Созданный объект с заполненными id и значениями по умолчанию
        """
        self.db.add(obj)
        await self.db.flush()  # INSERT в рамках транзакции, без commit
        await self.db.refresh(obj)
        return obj

    async def create_in_savepoint(self, obj: ModelType) -> ModelType:
        """
        Создать запись внутри SAVEPOINT.

        Нарушение уникального ключа (параллельная вставка того же самого)
        откатывает только SAVEPOINT: IntegrityError уходит вызывающему,
        а внешняя транзакция остаётся рабочей.

        SQL эквивалент:
            SAVEPOINT sa_savepoint_1;
            INSERT INTO table (...) VALUES (...);
            RELEASE SAVEPOINT sa_savepoint_1;  -- или ROLLBACK TO при ошибке

        Raises:
            IntegrityError: нарушено ограничение БД
        """
        async with self.db.begin_nested():
            self.db.add(obj)
        await self.db.refresh(obj)
        return obj

    async def get_by_id(self, id: uuid.UUID) -> ModelType | None:
        """
        Получить объект по ID.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def update(self, id: uuid.UUID, **kwargs: Any) -> ModelType | None:
        """
        Обновить запись по ID.

        Args:
            id: Первичный ключ записи
            **kwargs: Поля для обновления (name="Новое имя", status=...)

        Returns:
            Обновлённый объект или None, если не найден

        Неизвестные поля игнорируются.
        """
        obj = await self.get_by_id(id)
        if not obj:
            return None

        for key, value in kwargs.items():
            if hasattr(obj, key):
                setattr(obj, key, value)

        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: uuid.UUID) -> bool:
        """
        Удалить запись по ID.

        Returns:
            True если удалено, False если не найдено
        """
        result = await self.db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0

    async def exists(self, id: uuid.UUID) -> bool:
        """
        Проверить существование записи.

        SQL эквивалент:
            SELECT EXISTS(SELECT 1 FROM table WHERE id={id});
        """
        result = await self.db.execute(select(self.model.id).where(self.model.id == id))
        return result.first() is not None

    async def count(self) -> int:
        """
        Подсчитать количество записей.

        SQL эквивалент:
            SELECT COUNT(*) FROM table;
        """
        result = await self.db.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()
