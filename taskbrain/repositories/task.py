"""Task repository with specific queries."""

import uuid

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Task, TaskStatus, TaskTag
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """
    Репозиторий для работы с задачами.

    Иерархия хранится как parent index (tasks.parent_id), поэтому здесь
    нет рекурсивных запросов: get_parent_index() одним SELECT отдаёт все
    пары (id, parent_id), а обход делает services/hierarchy.py.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Task, db)

    @staticmethod
    def _select_with_tags():
        """
        SELECT задач с их собственными тегами (eager loading).

        populate_existing перечитывает tags, даже если задача уже есть
        в identity map, иначе после attach/detach вернулся бы старый список.
        """
        return (
            select(Task)
            .options(selectinload(Task.tags))
            .execution_options(populate_existing=True)
        )

    async def get_by_id_full(self, id: uuid.UUID) -> Task | None:
        """Получить задачу вместе с её собственными тегами."""
        result = await self.db.execute(self._select_with_tags().where(Task.id == id))
        return result.scalar_one_or_none()

    async def get_many(self, ids: list[uuid.UUID]) -> list[Task]:
        """Получить задачи по списку ID (порядок не гарантирован)."""
        if not ids:
            return []
        result = await self.db.execute(self._select_with_tags().where(Task.id.in_(ids)))
        return list(result.scalars().all())

    async def get_parent_index(self) -> dict[uuid.UUID, uuid.UUID | None]:
        """
        Снимок структуры дерева: {task_id: parent_id}.

        SQL эквивалент:
            SELECT id, parent_id FROM tasks;

        Один запрос даёт согласованное состояние в рамках транзакции;
        его размер (число задач) служит защитным пределом для обхода.
        """
        result = await self.db.execute(select(Task.id, Task.parent_id))
        return {row.id: row.parent_id for row in result.all()}

    async def get_children(self, parent_id: uuid.UUID) -> list[Task]:
        """
        Получить прямых потомков задачи.

        SQL эквивалент:
            SELECT * FROM tasks WHERE parent_id = {parent_id} ORDER BY created_at;
        """
        result = await self.db.execute(
            self._select_with_tags()
            .where(Task.parent_id == parent_id)
            .order_by(Task.created_at)
        )
        return list(result.scalars().all())

    async def find_child_by_name(self, parent_id: uuid.UUID | None, name: str) -> Task | None:
        """
        Найти задачу по имени среди детей parent_id (None - среди корней).

        Один шаг "пути" при импорте: ["Life goals", "AI expert"] разрешается
        двумя вызовами. При одинаковых именах берётся самая ранняя задача.
        """
        parent_clause = Task.parent_id.is_(None) if parent_id is None else Task.parent_id == parent_id
        result = await self.db.execute(
            select(Task).where(and_(parent_clause, Task.name == name)).order_by(Task.created_at)
        )
        return result.scalars().first()

    async def get_tasks_by_tag(self, tag_id: uuid.UUID) -> list[Task]:
        """
        Получить задачи, к которым тег привязан напрямую.

        SQL эквивалент:
            SELECT tasks.* FROM tasks
            JOIN task_tags ON tasks.id = task_tags.task_id
            WHERE task_tags.tag_id = {tag_id};
        """
        result = await self.db.execute(
            self._select_with_tags()
            .join(TaskTag, TaskTag.task_id == Task.id)
            .where(TaskTag.tag_id == tag_id)
            .order_by(Task.created_at)
        )
        return list(result.scalars().all())

    async def search_by_name(self, search_term: str) -> list[Task]:
        """
        Поиск задач по названию (регистронезависимый).

        SQL эквивалент:
            SELECT * FROM tasks WHERE LOWER(name) LIKE LOWER('%{search_term}%');
        """
        result = await self.db.execute(
            self._select_with_tags()
            .where(Task.name.ilike(f"%{search_term}%"))
            .order_by(Task.created_at)
        )
        return list(result.scalars().all())

    async def get_filtered(
        self,
        status: TaskStatus | None = None,
        parent_id: uuid.UUID | None = None,
        root_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Task]:
        """
        Получить задачи с фильтрами и пагинацией.

        Все фильтры комбинируются через AND. parent_id и root_only
        взаимоисключающие; если заданы оба, побеждает parent_id.
        """
        query = self._select_with_tags()

        conditions = []
        if status is not None:
            conditions.append(Task.status == status)
        if parent_id is not None:
            conditions.append(Task.parent_id == parent_id)
        elif root_only:
            conditions.append(Task.parent_id.is_(None))

        if conditions:
            query = query.where(and_(*conditions))

        query = query.order_by(Task.created_at).offset(skip).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete_many(self, ids: list[uuid.UUID]) -> int:
        """
        Удалить задачи пачкой одним DELETE.

        SQL эквивалент:
            DELETE FROM tasks WHERE id IN (...);

        Returns:
            Количество удалённых строк
        """
        if not ids:
            return 0
        result = await self.db.execute(delete(Task).where(Task.id.in_(ids)))
        return result.rowcount
