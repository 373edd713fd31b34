"""Activity recorder: append-only log of task state transitions."""

import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import ActivityLog
from ..repositories import ActivityLogRepository, TagRepository, TaskRepository
from .exceptions import NotFoundError, ValidationError

logger = get_logger(__name__)


def time_buckets(moment: datetime) -> tuple[int, int]:
    """(day_of_week, hour_of_day) with Sunday = 0, as PostgreSQL EXTRACT(DOW) counts."""
    return moment.isoweekday() % 7, moment.hour


class ActivityService:
    """
    Сервис журнала активности.

    Ядро задач журнал не читает: это потребитель переходов состояния
    (completed, skipped, ...), данные для анализа поведения - в какое
    время, где и в каком настроении задачи реально выполняются.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.activity_repo = ActivityLogRepository(db)
        self.task_repo = TaskRepository(db)
        self.tag_repo = TagRepository(db)

    async def record(
        self,
        task_id: uuid.UUID,
        action: str,
        location_tag_id: uuid.UUID | None = None,
        mood_tag_id: uuid.UUID | None = None,
        duration_minutes: int | None = None,
        notes: str | None = None,
        day_of_week: int | None = None,
        hour_of_day: int | None = None,
    ) -> ActivityLog:
        """
        Добавить запись в журнал.

        Args:
            task_id: ID задачи (имя копируется в запись)
            action: Метка действия ("completed", "skipped", ...)
            location_tag_id: Тег места (type=location)
            mood_tag_id: Тег настроения (type=mood)
            duration_minutes: Сколько заняло
            notes: Свободный текст
            day_of_week, hour_of_day: Если не указаны - из текущего локального времени

        Raises:
            NotFoundError: задача или тег не найдены
            ValidationError: пустой action или значения вне диапазона
        """
        if not action or not action.strip():
            raise ValidationError("Activity action cannot be empty", field="action")

        task = await self.task_repo.get_by_id(task_id)
        if not task:
            raise NotFoundError("Task", task_id)

        for tag_id in (location_tag_id, mood_tag_id):
            if tag_id is not None and not await self.tag_repo.exists(tag_id):
                raise NotFoundError("Tag", tag_id)

        if duration_minutes is not None and duration_minutes < 0:
            raise ValidationError("Duration cannot be negative", field="duration_minutes")

        now_dow, now_hour = time_buckets(datetime.now())
        day_of_week = now_dow if day_of_week is None else day_of_week
        hour_of_day = now_hour if hour_of_day is None else hour_of_day
        if not 0 <= day_of_week <= 6:
            raise ValidationError("day_of_week must be between 0 and 6", field="day_of_week")
        if not 0 <= hour_of_day <= 23:
            raise ValidationError("hour_of_day must be between 0 and 23", field="hour_of_day")

        entry = await self.activity_repo.create(
            ActivityLog(
                task_id=task.id,
                task_name=task.name,
                action=action.strip(),
                location_tag_id=location_tag_id,
                mood_tag_id=mood_tag_id,
                day_of_week=day_of_week,
                hour_of_day=hour_of_day,
                duration_minutes=duration_minutes,
                notes=notes.strip() if notes else None,
            )
        )
        logger.info(
            "Activity recorded",
            extra={"task_id": str(task.id), "action": entry.action},
        )
        return entry

    async def list_for_task(self, task_id: uuid.UUID, limit: int = 100) -> list[ActivityLog]:
        """Журнал задачи (новые записи первыми). Удалённая задача даёт пустой список."""
        return await self.activity_repo.get_by_task(task_id, limit=limit)

    async def list_recent(self, limit: int = 50, action: str | None = None) -> list[ActivityLog]:
        return await self.activity_repo.get_recent(limit=limit, action=action)

    async def summarize_by_hour(self, action: str | None = None) -> dict[int, int]:
        """
        Сколько раз действие происходило в каждый час суток.

        Пример:
            {7: 3, 8: 5, 21: 2}  # утром задачи выполняются чаще
        """
        return dict(await self.activity_repo.count_by_hour(action=action))
