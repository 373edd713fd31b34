"""
API endpoints для работы с задачами.

Задачи - центральная часть API:
- CRUD операции и перенос в дереве (с защитой от циклов)
- Каскадное удаление поддерева
- Предки, потомки, унаследованные теги, поддерево
- Привязка тегов
- Импорт дерева и поиск по пути

Доменные ошибки (NotFound, CycleViolation, ...) не ловятся здесь:
их переводит в HTTP ответ api/errors.py.
"""

import uuid

from fastapi import APIRouter, Depends, Query, status

from ..models import TaskStatus
from ..services import TaskService
from .dependencies import get_task_service
from .errors import APIError
from .schemas import (
    ErrorResponse,
    InheritedTagResponse,
    TaskComplete,
    TaskCreate,
    TaskDeleteResponse,
    TaskIdsResponse,
    TaskImportRequest,
    TaskMove,
    TaskPathRequest,
    TaskResponse,
    TaskSkip,
    TaskTagsAttach,
    TaskTreeNode,
    TaskUpdate,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Задача не найдена"}}


# ============================================================================
# CREATE / LIST / SEARCH
# ============================================================================


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Создать задачу",
    description="""
    Создать корневую задачу или подзадачу.

    Бизнес-правила:
    - Родитель (если указан) должен существовать
    - Все tag_ids должны существовать, привязка в той же транзакции
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        **NOT_FOUND_RESPONSE,
    },
)
async def create_task(
    data: TaskCreate, service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """
    Пример запроса:
    ```json
    {"name": "Learn X", "parent_id": "0b7e...", "tag_ids": []}
    ```
    """
    task = await service.create_task(**data.model_dump())
    return TaskResponse.model_validate(task)


@router.get(
    "",
    response_model=list[TaskResponse],
    summary="Получить задачи с фильтрами",
    description="""
    **Фильтры** (комбинируются через AND):
    - status: not_started, in_progress, done, blocked
    - parent_id: только дети этой задачи
    - root_only: только корневые задачи

    **Пагинация:** skip, limit (1-100)
    """,
)
async def get_tasks(
    status: TaskStatus | None = Query(None, description="Фильтр по статусу"),
    parent_id: uuid.UUID | None = Query(None, description="Только дети этой задачи"),
    root_only: bool = Query(False, description="Только корневые задачи"),
    skip: int = Query(0, ge=0, description="Пропустить N записей"),
    limit: int = Query(20, ge=1, le=100, description="Максимум записей"),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    """
    Примеры запросов:
    ```
    GET /tasks?root_only=true
    GET /tasks?parent_id=0b7e...&status=in_progress
    ```
    """
    tasks = await service.list_tasks(
        status=status, parent_id=parent_id, root_only=root_only, skip=skip, limit=limit
    )
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/search", response_model=list[TaskResponse], summary="Поиск задач по названию")
async def search_tasks(
    q: str = Query(..., min_length=1, description="Часть названия"),
    service: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    tasks = await service.search_tasks(q)
    return [TaskResponse.model_validate(t) for t in tasks]


# ============================================================================
# BULK IMPORT & PATH LOOKUP
# ============================================================================


@router.post(
    "/import",
    response_model=list[TaskResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Импорт дерева задач",
    description="""
    Создать вложенное дерево задач одной транзакцией.

    Теги узлов ищутся по (name, type) и создаются при отсутствии.
    Ошибка в любом узле отменяет весь импорт.
    """,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND_RESPONSE},
)
async def import_tree(
    data: TaskImportRequest, service: TaskService = Depends(get_task_service)
) -> list[TaskResponse]:
    """Возвращает созданные задачи верхнего уровня импорта."""
    nodes = [node.model_dump() for node in data.nodes]
    roots = await service.import_tree(nodes, parent_id=data.parent_id)
    return [TaskResponse.model_validate(t) for t in roots]


@router.post(
    "/find-by-path",
    response_model=TaskResponse,
    summary="Найти задачу по пути имён",
    responses=NOT_FOUND_RESPONSE,
)
async def find_by_path(
    data: TaskPathRequest, service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    """
    Пример запроса:
    ```json
    {"path": ["Life goals", "AI expert", "Statistics"]}
    ```
    """
    task = await service.find_by_path(data.path)
    return TaskResponse.model_validate(task)


# ============================================================================
# SINGLE TASK
# ============================================================================


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Получить задачу по ID",
    responses=NOT_FOUND_RESPONSE,
)
async def get_task(
    task_id: uuid.UUID, service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    task = await service.get_task(task_id)
    return TaskResponse.model_validate(task)


@router.patch(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Обновить задачу",
    description="""
    Частичное обновление: меняются только переданные поля.

    - parent_id: перенос под другую задачу (409 при цикле)
    - clear_parent: true - сделать задачу корневой
    - status=done засчитывается как выполнение
    - times_completed / times_skipped нельзя уменьшить
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Ошибка валидации"},
        409: {"model": ErrorResponse, "description": "Перенос создаёт цикл"},
        **NOT_FOUND_RESPONSE,
    },
)
async def update_task(
    task_id: uuid.UUID,
    data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """
    Пример запроса:
    ```json
    {"name": "Learn Rust", "parent_id": "0b7e..."}
    ```
    """
    changes = data.model_dump(exclude_unset=True)
    clear_parent = changes.pop("clear_parent", False)
    if clear_parent:
        if changes.get("parent_id") is not None:
            raise APIError(
                code="VALIDATION_ERROR",
                message="parent_id and clear_parent cannot be combined",
                status_code=status.HTTP_400_BAD_REQUEST,
                details=[{"field": "clear_parent", "message": "Conflicts with parent_id"}],
            )
        changes["parent_id"] = None

    task = await service.update_task(task_id, **changes)
    return TaskResponse.model_validate(task)


@router.delete(
    "/{task_id}",
    response_model=TaskDeleteResponse,
    summary="Удалить задачу с поддеревом",
    description="""
    Удаляет задачу, всех её потомков и их связи с тегами одной транзакцией.
    Записи журнала активности сохраняются (task_id обнуляется).
    """,
    responses=NOT_FOUND_RESPONSE,
)
async def delete_task(
    task_id: uuid.UUID, service: TaskService = Depends(get_task_service)
) -> TaskDeleteResponse:
    removed = await service.delete_task(task_id)
    return TaskDeleteResponse(removed_tasks=removed)


@router.post(
    "/{task_id}/move",
    response_model=TaskResponse,
    summary="Перенести задачу",
    responses={409: {"model": ErrorResponse}, **NOT_FOUND_RESPONSE},
)
async def move_task(
    task_id: uuid.UUID, data: TaskMove, service: TaskService = Depends(get_task_service)
) -> TaskResponse:
    task = await service.move_task(task_id, data.parent_id)
    return TaskResponse.model_validate(task)


@router.post(
    "/{task_id}/complete",
    response_model=TaskResponse,
    summary="Отметить выполнение",
    description="status=done, times_completed += 1, запись в журнал активности.",
    responses=NOT_FOUND_RESPONSE,
)
async def complete_task(
    task_id: uuid.UUID,
    data: TaskComplete | None = None,
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    context = data.model_dump() if data else {}
    task = await service.complete_task(task_id, **context)
    return TaskResponse.model_validate(task)


@router.post(
    "/{task_id}/skip",
    response_model=TaskResponse,
    summary="Отметить пропуск",
    responses=NOT_FOUND_RESPONSE,
)
async def skip_task(
    task_id: uuid.UUID,
    data: TaskSkip | None = None,
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await service.skip_task(task_id, notes=data.notes if data else None)
    return TaskResponse.model_validate(task)


# ============================================================================
# HIERARCHY
# ============================================================================


@router.get(
    "/{task_id}/children",
    response_model=list[TaskResponse],
    summary="Прямые потомки",
    responses=NOT_FOUND_RESPONSE,
)
async def get_children(
    task_id: uuid.UUID, service: TaskService = Depends(get_task_service)
) -> list[TaskResponse]:
    children = await service.get_children(task_id)
    return [TaskResponse.model_validate(t) for t in children]


@router.get(
    "/{task_id}/ancestors",
    response_model=list[TaskResponse],
    summary="Предки задачи",
    description="От ближайшего родителя к корню. Для неизвестного ID - пустой список.",
    responses={500: {"model": ErrorResponse, "description": "В данных цикл"}},
)
async def get_ancestors(
    task_id: uuid.UUID, service: TaskService = Depends(get_task_service)
) -> list[TaskResponse]:
    ancestors = await service.get_ancestors(task_id)
    return [TaskResponse.model_validate(t) for t in ancestors]


@router.get(
    "/{task_id}/descendants",
    response_model=TaskIdsResponse,
    summary="ID всех потомков",
    description="Порядок обхода в ширину, без самой задачи. Для неизвестного ID - пустой список.",
)
async def get_descendants(
    task_id: uuid.UUID, service: TaskService = Depends(get_task_service)
) -> TaskIdsResponse:
    ids = await service.get_descendant_ids(task_id)
    return TaskIdsResponse(task_id=task_id, ids=ids)


@router.get(
    "/{task_id}/inherited-tags",
    response_model=list[InheritedTagResponse],
    summary="Эффективные теги задачи",
    description="""
    Собственные теги задачи и теги всех её предков, каждый один раз.
    is_own=true у собственных тегов (приоритет над унаследованными).
    """,
    responses={500: {"model": ErrorResponse, "description": "В данных цикл"}},
)
async def get_inherited_tags(
    task_id: uuid.UUID, service: TaskService = Depends(get_task_service)
) -> list[InheritedTagResponse]:
    tags = await service.get_inherited_tags(task_id)
    return [InheritedTagResponse.model_validate(t, from_attributes=True) for t in tags]


@router.get(
    "/{task_id}/subtree",
    response_model=TaskTreeNode,
    summary="Поддерево задачи",
    responses=NOT_FOUND_RESPONSE,
)
async def get_subtree(
    task_id: uuid.UUID, service: TaskService = Depends(get_task_service)
) -> TaskTreeNode:
    subtree = await service.get_subtree(task_id)
    return TaskTreeNode.model_validate(subtree, from_attributes=True)


# ============================================================================
# TAG ASSOCIATIONS
# ============================================================================


@router.post(
    "/{task_id}/tags",
    response_model=TaskResponse,
    summary="Привязать теги",
    description="Привязка нескольких тегов; уже привязанные пропускаются.",
    responses=NOT_FOUND_RESPONSE,
)
async def attach_tags(
    task_id: uuid.UUID,
    data: TaskTagsAttach,
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await service.attach_tags(task_id, data.tag_ids)
    return TaskResponse.model_validate(task)


@router.delete(
    "/{task_id}/tags/{tag_id}",
    response_model=TaskResponse,
    summary="Снять тег",
    description="404, если тег не привязан к задаче напрямую.",
    responses=NOT_FOUND_RESPONSE,
)
async def detach_tag(
    task_id: uuid.UUID,
    tag_id: uuid.UUID,
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = await service.detach_tag(task_id, tag_id)
    return TaskResponse.model_validate(task)
