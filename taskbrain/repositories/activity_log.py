"""Activity log repository."""

import uuid

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ActivityLog
from .base import BaseRepository


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """
    Репозиторий журнала активности.

    Журнал только дополняется: записи не редактируются, а при удалении
    задачи или тега ссылки на них обнуляются (ON DELETE SET NULL).
    """

    def __init__(self, db: AsyncSession):
        super().__init__(ActivityLog, db)

    async def get_by_task(self, task_id: uuid.UUID, limit: int = 100) -> list[ActivityLog]:
        """Записи по задаче, новые первыми."""
        result = await self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.task_id == task_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_recent(self, limit: int = 50, action: str | None = None) -> list[ActivityLog]:
        """Последние записи, опционально только с заданным action."""
        query = select(ActivityLog)
        if action is not None:
            query = query.where(ActivityLog.action == action)
        result = await self.db.execute(query.order_by(ActivityLog.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    async def count_by_hour(self, action: str | None = None) -> list[tuple[int, int]]:
        """
        Количество записей по часу суток.

        SQL эквивалент:
            SELECT hour_of_day, COUNT(*) FROM activity_log
            WHERE hour_of_day IS NOT NULL [AND action = {action}]
            GROUP BY hour_of_day ORDER BY hour_of_day;
        """
        query = select(ActivityLog.hour_of_day, func.count()).where(
            ActivityLog.hour_of_day.is_not(None)
        )
        if action is not None:
            query = query.where(ActivityLog.action == action)
        result = await self.db.execute(
            query.group_by(ActivityLog.hour_of_day).order_by(ActivityLog.hour_of_day)
        )
        return [(row[0], row[1]) for row in result.all()]

    async def detach_tasks(self, task_ids: list[uuid.UUID]) -> int:
        """
        Обнулить task_id у записей удаляемых задач.

        SQL эквивалент:
            UPDATE activity_log SET task_id = NULL WHERE task_id IN (...);
        """
        if not task_ids:
            return 0
        result = await self.db.execute(
            update(ActivityLog).where(ActivityLog.task_id.in_(task_ids)).values(task_id=None)
        )
        return result.rowcount

    async def detach_tag(self, tag_id: uuid.UUID) -> None:
        """
        Обнулить ссылки location/mood на удаляемый тег.

        SQL эквивалент:
            UPDATE activity_log SET location_tag_id = NULL WHERE location_tag_id = {tag_id};
            UPDATE activity_log SET mood_tag_id = NULL WHERE mood_tag_id = {tag_id};
        """
        await self.db.execute(
            update(ActivityLog)
            .where(ActivityLog.location_tag_id == tag_id)
            .values(location_tag_id=None)
        )
        await self.db.execute(
            update(ActivityLog).where(ActivityLog.mood_tag_id == tag_id).values(mood_tag_id=None)
        )
