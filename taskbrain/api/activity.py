"""API endpoints журнала активности."""

import uuid

from fastapi import APIRouter, Depends, Query, status

from ..services import ActivityService
from .dependencies import get_activity_service
from .schemas import ActivityCreate, ActivityResponse, ErrorResponse, HourlySummary

router = APIRouter(prefix="/activity", tags=["activity"])


@router.post(
    "",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Добавить запись в журнал",
    responses={404: {"model": ErrorResponse, "description": "Задача или тег не найдены"}},
)
async def record_activity(
    data: ActivityCreate, service: ActivityService = Depends(get_activity_service)
) -> ActivityResponse:
    """
    Пример запроса:
    ```json
    {"task_id": "...", "action": "completed", "duration_minutes": 30}
    ```
    """
    entry = await service.record(**data.model_dump())
    return ActivityResponse.model_validate(entry)


@router.get("", response_model=list[ActivityResponse], summary="Последние записи")
async def list_recent(
    action: str | None = Query(None, description="Только это действие (completed, skipped, ...)"),
    limit: int = Query(50, ge=1, le=500),
    service: ActivityService = Depends(get_activity_service),
) -> list[ActivityResponse]:
    entries = await service.list_recent(limit=limit, action=action)
    return [ActivityResponse.model_validate(e) for e in entries]


@router.get(
    "/by-hour",
    response_model=list[HourlySummary],
    summary="Распределение по часам суток",
)
async def summarize_by_hour(
    action: str | None = Query(None),
    service: ActivityService = Depends(get_activity_service),
) -> list[HourlySummary]:
    summary = await service.summarize_by_hour(action=action)
    return [HourlySummary(hour_of_day=hour, count=count) for hour, count in summary.items()]


@router.get(
    "/tasks/{task_id}",
    response_model=list[ActivityResponse],
    summary="Журнал задачи",
)
async def list_for_task(
    task_id: uuid.UUID,
    limit: int = Query(100, ge=1, le=500),
    service: ActivityService = Depends(get_activity_service),
) -> list[ActivityResponse]:
    entries = await service.list_for_task(task_id, limit=limit)
    return [ActivityResponse.model_validate(e) for e in entries]
