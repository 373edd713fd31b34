"""
API endpoints для работы с тегами.

Тег идентифицируется парой (name, type) и разделяется задачами;
удаление тега снимает его со всех задач.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status

from ..services import TagService, TaskService
from .dependencies import get_tag_service, get_task_service
from .schemas import (
    ErrorResponse,
    TagCreate,
    TagDeleteResponse,
    TagFocusUpdate,
    TagResponse,
    TagUpdate,
    TagWithUsage,
    TaskResponse,
)

router = APIRouter(prefix="/tags", tags=["tags"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Тег не найден"}}


@router.post(
    "",
    response_model=TagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать тег",
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        409: {"model": ErrorResponse, "description": "Тег (name, type) уже существует"},
    },
)
async def create_tag(data: TagCreate, service: TagService = Depends(get_tag_service)) -> TagResponse:
    """
    Пример запроса:
    ```json
    {"name": "Park", "type": "location", "color": "#059669"}
    ```
    """
    tag = await service.create_tag(**data.model_dump())
    return TagResponse.model_validate(tag)


@router.get(
    "",
    response_model=list[TagResponse],
    summary="Получить теги",
    description="Сортировка: type, sort_order, name.",
)
async def get_tags(
    type: str | None = Query(None, description="Фильтр по типу (location, mood, ...)"),
    focused_only: bool = Query(False, description="Только теги быстрого фильтра"),
    service: TagService = Depends(get_tag_service),
) -> list[TagResponse]:
    tags = await service.list_tags(type=type, focused_only=focused_only)
    return [TagResponse.model_validate(t) for t in tags]


@router.get("/search", response_model=list[TagResponse], summary="Поиск тегов по имени")
async def search_tags(
    q: str = Query(..., min_length=1, description="Часть имени"),
    service: TagService = Depends(get_tag_service),
) -> list[TagResponse]:
    tags = await service.search_tags(q)
    return [TagResponse.model_validate(t) for t in tags]


@router.get(
    "/usage",
    response_model=list[TagWithUsage],
    summary="Теги с количеством задач",
)
async def get_tag_usage(service: TagService = Depends(get_tag_service)) -> list[TagWithUsage]:
    """
    Пример ответа:
    ```json
    [{"name": "Coding", "type": "category", "usage_count": 4, ...}]
    ```
    """
    usage = await service.get_tag_usage()
    return [
        TagWithUsage(**TagResponse.model_validate(tag).model_dump(), usage_count=count)
        for tag, count in usage
    ]


@router.get("/{tag_id}", response_model=TagResponse, responses=NOT_FOUND_RESPONSE)
async def get_tag(tag_id: uuid.UUID, service: TagService = Depends(get_tag_service)) -> TagResponse:
    tag = await service.get_tag(tag_id)
    return TagResponse.model_validate(tag)


@router.patch(
    "/{tag_id}",
    response_model=TagResponse,
    summary="Обновить тег",
    responses={409: {"model": ErrorResponse}, **NOT_FOUND_RESPONSE},
)
async def update_tag(
    tag_id: uuid.UUID, data: TagUpdate, service: TagService = Depends(get_tag_service)
) -> TagResponse:
    tag = await service.update_tag(tag_id, **data.model_dump(exclude_unset=True))
    return TagResponse.model_validate(tag)


@router.put(
    "/{tag_id}/focus",
    response_model=TagResponse,
    summary="Включить/выключить быстрый фильтр",
    responses=NOT_FOUND_RESPONSE,
)
async def set_focus(
    tag_id: uuid.UUID, data: TagFocusUpdate, service: TagService = Depends(get_tag_service)
) -> TagResponse:
    tag = await service.set_focus(tag_id, data.is_focused)
    return TagResponse.model_validate(tag)


@router.delete(
    "/{tag_id}",
    response_model=TagDeleteResponse,
    summary="Удалить тег",
    description="Тег снимается со всех задач той же транзакцией.",
    responses=NOT_FOUND_RESPONSE,
)
async def delete_tag(
    tag_id: uuid.UUID, service: TagService = Depends(get_tag_service)
) -> TagDeleteResponse:
    removed = await service.delete_tag(tag_id)
    return TagDeleteResponse(removed_links=removed)


@router.get(
    "/{tag_id}/tasks",
    response_model=list[TaskResponse],
    summary="Задачи с тегом",
    description="""
    include_inherited=false - только задачи, к которым тег привязан напрямую.
    include_inherited=true - также все их потомки.
    """,
    responses=NOT_FOUND_RESPONSE,
)
async def get_tasks_by_tag(
    tag_id: uuid.UUID,
    include_inherited: bool = Query(False, description="Учитывать наследование"),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    tasks = await service.get_tasks_by_tag(tag_id, include_inherited=include_inherited)
    return [TaskResponse.model_validate(t) for t in tasks]
