"""Task-Tag association repository."""

import uuid
from collections import defaultdict

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Tag, TaskTag
from .base import BaseRepository


class TaskTagRepository(BaseRepository[TaskTag]):
    """
    Репозиторий для связей задача-тег.

    Связь живёт не дольше любого из концов: при удалении задачи или тега
    сервис вызывает delete_for_tasks / delete_for_tag в той же транзакции.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(TaskTag, db)

    async def get_tag_ids(self, task_id: uuid.UUID) -> set[uuid.UUID]:
        """ID тегов, привязанных к задаче напрямую."""
        result = await self.db.execute(select(TaskTag.tag_id).where(TaskTag.task_id == task_id))
        return set(result.scalars().all())

    async def get_task_ids(self, tag_id: uuid.UUID) -> list[uuid.UUID]:
        """ID задач, к которым тег привязан напрямую."""
        result = await self.db.execute(select(TaskTag.task_id).where(TaskTag.tag_id == tag_id))
        return list(result.scalars().all())

    async def get_tags_by_task(self, task_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[Tag]]:
        """
        Собственные теги сразу для нескольких задач.

        SQL эквивалент:
            SELECT task_tags.task_id, tags.*
            FROM tags JOIN task_tags ON tags.id = task_tags.tag_id
            WHERE task_tags.task_id IN (...)
            ORDER BY tags.type, tags.sort_order, tags.name;

        Returns:
            {task_id: [Tag, ...]}; задачи без тегов в словарь не попадают
        """
        if not task_ids:
            return {}

        result = await self.db.execute(
            select(TaskTag.task_id, Tag)
            .join(Tag, Tag.id == TaskTag.tag_id)
            .where(TaskTag.task_id.in_(task_ids))
            .order_by(Tag.type, Tag.sort_order, Tag.name)
        )

        tags_by_task: dict[uuid.UUID, list[Tag]] = defaultdict(list)
        for task_id, tag in result.all():
            tags_by_task[task_id].append(tag)
        return dict(tags_by_task)

    async def get_link(self, task_id: uuid.UUID, tag_id: uuid.UUID) -> TaskTag | None:
        result = await self.db.execute(
            select(TaskTag).where(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id)
        )
        return result.scalar_one_or_none()

    async def attach(self, task_id: uuid.UUID, tag_id: uuid.UUID) -> TaskTag:
        """
        Создать связь или вернуть уже существующую.

        Вставка идёт внутри SAVEPOINT: если ту же пару (task_id, tag_id)
        успел записать параллельный запрос, уникальный ключ
        uq_task_tags_task_tag отклоняет дубликат и возвращается
        существующая связь.
        """
        try:
            return await self.create_in_savepoint(TaskTag(task_id=task_id, tag_id=tag_id))
        except IntegrityError:
            existing = await self.get_link(task_id, tag_id)
            if existing is None:
                # Не дубликат: задачи или тега нет (внешний ключ)
                raise
            return existing

    async def detach(self, task_id: uuid.UUID, tag_id: uuid.UUID) -> bool:
        """
        Удалить связь.

        Returns:
            True если связь была, False если нет
        """
        result = await self.db.execute(
            delete(TaskTag).where(TaskTag.task_id == task_id, TaskTag.tag_id == tag_id)
        )
        return result.rowcount > 0

    async def delete_for_tasks(self, task_ids: list[uuid.UUID]) -> int:
        """
        Удалить все связи набора задач (каскад при удалении поддерева).

        SQL эквивалент:
            DELETE FROM task_tags WHERE task_id IN (...);
        """
        if not task_ids:
            return 0
        result = await self.db.execute(delete(TaskTag).where(TaskTag.task_id.in_(task_ids)))
        return result.rowcount

    async def delete_for_tag(self, tag_id: uuid.UUID) -> int:
        """Удалить все связи тега (каскад при удалении тега)."""
        result = await self.db.execute(delete(TaskTag).where(TaskTag.tag_id == tag_id))
        return result.rowcount
