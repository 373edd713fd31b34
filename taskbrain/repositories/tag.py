"""Tag repository with specific queries."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Tag, TaskTag
from .base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    """
    Репозиторий для работы с тегами.

    Тег идентифицируется парой (name, type): "Room" как location и
    "Room" как project - разные теги.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Tag, db)

    async def get_by_name_and_type(self, name: str, type: str) -> Tag | None:
        """
        Получить тег по паре (name, type).

        SQL эквивалент:
            SELECT * FROM tags WHERE name = {name} AND type = {type};
        """
        result = await self.db.execute(select(Tag).where(Tag.name == name, Tag.type == type))
        return result.scalar_one_or_none()

    async def get_or_create(self, name: str, type: str, **defaults: Any) -> tuple[Tag, bool]:
        """
        Получить тег или создать, если его нет.

        Returns:
            (тег, created) - created=True, если тег только что создан

        Паттерн "get or create" защищает от дубликатов (name, type)
        при импорте и загрузке словаря тегов. Если тег появился между
        SELECT и INSERT, уникальный ключ откатывает SAVEPOINT и
        возвращается тег, записанный параллельно.
        """
        tag = await self.get_by_name_and_type(name, type)
        if tag:
            return tag, False

        try:
            tag = await self.create_in_savepoint(Tag(name=name, type=type, **defaults))
        except IntegrityError:
            existing = await self.get_by_name_and_type(name, type)
            if existing is None:
                raise
            return existing, False
        return tag, True

    async def get_filtered(self, type: str | None = None, focused_only: bool = False) -> list[Tag]:
        """
        Получить теги, сгруппированные по типу.

        SQL эквивалент:
            SELECT * FROM tags
            WHERE type = {type}        -- если указан
              AND is_focused = TRUE    -- если focused_only
            ORDER BY type, sort_order, name;
        """
        query = select(Tag)
        if type is not None:
            query = query.where(Tag.type == type)
        if focused_only:
            query = query.where(Tag.is_focused.is_(True))

        result = await self.db.execute(query.order_by(Tag.type, Tag.sort_order, Tag.name))
        return list(result.scalars().all())

    async def get_many(self, ids: list) -> list[Tag]:
        """Получить теги по списку ID."""
        if not ids:
            return []
        result = await self.db.execute(select(Tag).where(Tag.id.in_(ids)))
        return list(result.scalars().all())

    async def get_usage(self) -> list[tuple[Tag, int]]:
        """
        Теги с количеством задач, к которым они привязаны напрямую.

        SQL эквивалент:
            SELECT tags.*, COUNT(task_tags.task_id) AS usage_count
            FROM tags
            LEFT JOIN task_tags ON tags.id = task_tags.tag_id
            GROUP BY tags.id
            ORDER BY usage_count DESC, tags.name;
        """
        usage_count = func.count(TaskTag.task_id).label("usage_count")
        result = await self.db.execute(
            select(Tag, usage_count)
            .outerjoin(TaskTag, Tag.id == TaskTag.tag_id)
            .group_by(Tag.id)
            .order_by(usage_count.desc(), Tag.name)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def search_tags(self, search_term: str) -> list[Tag]:
        """
        Поиск тегов по имени.

        SQL эквивалент:
            SELECT * FROM tags WHERE LOWER(name) LIKE LOWER('%{search_term}%');
        """
        result = await self.db.execute(
            select(Tag).where(Tag.name.ilike(f"%{search_term}%")).order_by(Tag.type, Tag.name)
        )
        return list(result.scalars().all())
