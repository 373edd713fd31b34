"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.
Модели SQLAlchemy наружу не отдаются: схемы контролируют, что видит
клиент, и валидируют входящие данные до сервисного слоя.
"""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from ..models import KNOWN_TAG_TYPES, TaskStatus

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"

# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagBase(BaseModel):
    """Базовые поля тега."""

    name: str = Field(..., min_length=1, max_length=100, description="Название тега")
    type: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description=f"Тип: {', '.join(KNOWN_TAG_TYPES)} или любой свой",
    )


class TagCreate(TagBase):
    """
    Схема для создания тега (POST /tags).

    Пример запроса:
    {
        "name": "Coding",
        "type": "category",
        "color": "#1e3a8a"
    }
    """

    color: str | None = Field(None, pattern=COLOR_PATTERN, description="Цвет #RRGGBB")
    is_focused: bool = Field(False, description="Показывать в быстром фильтре")
    sort_order: int = Field(0, description="Порядок внутри типа")


class TagUpdate(BaseModel):
    """Схема для обновления тега (PATCH /tags/{id}). Все поля опциональные."""

    name: str | None = Field(None, min_length=1, max_length=100)
    type: str | None = Field(None, min_length=1, max_length=50)
    color: str | None = Field(None, pattern=COLOR_PATTERN)
    is_focused: bool | None = None
    sort_order: int | None = None


class TagFocusUpdate(BaseModel):
    is_focused: bool


class TagResponse(TagBase):
    """
    Схема тега в ответе.

    Пример ответа:
    {
        "id": "5f0c...",
        "name": "Growth",
        "type": "category",
        "color": "#667eea",
        "is_focused": false,
        "sort_order": 0,
        "created_at": "2026-10-19T12:00:00"
    }
    """

    id: uuid.UUID
    color: str
    is_focused: bool
    sort_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagWithUsage(TagResponse):
    """Тег с количеством задач (GET /tags/usage)."""

    usage_count: int = Field(..., description="Количество задач с этим тегом напрямую")


class InheritedTagResponse(BaseModel):
    """
    Тег в эффективном наборе задачи.

    is_own=True - тег привязан к самой задаче,
    is_own=False - унаследован от предка.
    """

    tag: TagResponse
    is_own: bool

    model_config = ConfigDict(from_attributes=True)


class TagDeleteResponse(BaseModel):
    removed_links: int = Field(..., description="Сколько связей задача-тег снято")


# ============================================================================
# TASK SCHEMAS
# ============================================================================


class TaskBase(BaseModel):
    """Базовые поля задачи."""

    name: str = Field(..., min_length=1, max_length=500, description="Название задачи")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="Статус задачи")
    notes: str | None = Field(None, description="Заметки (свободный текст)")
    links: str | None = Field(None, description="Ссылки")
    preferred_time: str | None = Field(None, max_length=50, description="morning, evening, ...")
    energy_required: str | None = Field("medium", max_length=20, description="low, medium, high")
    estimated_minutes: int | None = Field(None, gt=0, description="Оценка времени (минуты)")
    due_date: date | None = Field(None, description="Дедлайн")
    is_recurring: bool = Field(False, description="Повторяющаяся задача")
    recurrence_pattern: str | None = Field(None, max_length=100, description="daily, weekly, ...")


class TaskCreate(TaskBase):
    """
    Схема для создания задачи (POST /tasks).

    Пример запроса:
    {
        "name": "Practice daily",
        "parent_id": "0b7e...",
        "is_recurring": true,
        "recurrence_pattern": "daily",
        "tag_ids": ["5f0c..."]
    }
    """

    parent_id: uuid.UUID | None = Field(None, description="ID родителя (None - корневая задача)")
    tag_ids: list[uuid.UUID] = Field(default_factory=list, description="Теги для привязки")


class TaskUpdate(BaseModel):
    """
    Схема для частичного обновления задачи (PATCH /tasks/{id}).

    Передаются только изменяемые поля. parent_id переносит задачу
    (с проверкой на цикл), clear_parent=true делает её корневой.
    """

    name: str | None = Field(None, min_length=1, max_length=500)
    parent_id: uuid.UUID | None = None
    clear_parent: bool = False
    status: TaskStatus | None = None
    notes: str | None = None
    links: str | None = None
    preferred_time: str | None = Field(None, max_length=50)
    energy_required: str | None = Field(None, max_length=20)
    estimated_minutes: int | None = Field(None, gt=0)
    due_date: date | None = None
    is_recurring: bool | None = None
    recurrence_pattern: str | None = Field(None, max_length=100)
    auto_priority: int | None = Field(None, ge=0, le=100)
    times_completed: int | None = Field(None, ge=0)
    times_skipped: int | None = Field(None, ge=0)


class TaskMove(BaseModel):
    """Перенос задачи (POST /tasks/{id}/move). parent_id=null - в корень."""

    parent_id: uuid.UUID | None = None


class TaskComplete(BaseModel):
    """
    Контекст выполнения для журнала активности.

    Пример:
    {"location_tag_id": "...", "mood_tag_id": "...", "duration_minutes": 25}
    """

    location_tag_id: uuid.UUID | None = None
    mood_tag_id: uuid.UUID | None = None
    duration_minutes: int | None = Field(None, ge=0)
    notes: str | None = None


class TaskSkip(BaseModel):
    notes: str | None = None


class TaskTagsAttach(BaseModel):
    """Привязка нескольких тегов (POST /tasks/{id}/tags)."""

    tag_ids: list[uuid.UUID] = Field(..., min_length=1)


class TaskResponse(TaskBase):
    """
    Схема задачи в ответе.

    Включает собственные теги задачи; унаследованные - через
    GET /tasks/{id}/inherited-tags.
    """

    id: uuid.UUID
    parent_id: uuid.UUID | None
    last_completed_at: datetime | None
    auto_priority: int
    times_completed: int
    times_skipped: int
    created_at: datetime
    updated_at: datetime

    tags: list[TagResponse] = []

    model_config = ConfigDict(from_attributes=True)


class TaskTreeNode(BaseModel):
    """Узел поддерева (GET /tasks/{id}/subtree)."""

    task: TaskResponse
    children: list["TaskTreeNode"] = []


TaskTreeNode.model_rebuild()


class TaskDeleteResponse(BaseModel):
    removed_tasks: int = Field(..., description="Удалено задач: потомки + сама задача")


class TaskIdsResponse(BaseModel):
    task_id: uuid.UUID
    ids: list[uuid.UUID]


# ============================================================================
# IMPORT SCHEMAS
# ============================================================================


class ImportTag(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., min_length=1, max_length=50)
    color: str | None = Field(None, pattern=COLOR_PATTERN)


class ImportNode(BaseModel):
    """
    Узел импортируемого дерева.

    Пример:
    {
        "name": "AI expert",
        "tags": [{"name": "AI", "type": "subject"}],
        "children": [{"name": "Statistics"}, {"name": "Python"}]
    }
    """

    name: str = Field(..., min_length=1, max_length=500)
    status: TaskStatus = TaskStatus.NOT_STARTED
    notes: str | None = None
    links: str | None = None
    preferred_time: str | None = Field(None, max_length=50)
    energy_required: str | None = Field(None, max_length=20)
    estimated_minutes: int | None = Field(None, gt=0)
    is_recurring: bool = False
    recurrence_pattern: str | None = Field(None, max_length=100)
    tags: list[ImportTag] = []
    children: list["ImportNode"] = []


ImportNode.model_rebuild()


class TaskImportRequest(BaseModel):
    parent_id: uuid.UUID | None = Field(None, description="Куда подвесить импорт")
    nodes: list[ImportNode] = Field(..., min_length=1)


class TaskPathRequest(BaseModel):
    path: list[str] = Field(..., min_length=1, description='["Life goals", "AI expert"]')


# ============================================================================
# ACTIVITY SCHEMAS
# ============================================================================


class ActivityCreate(BaseModel):
    """
    Запись журнала (POST /activity).

    day_of_week (0 = воскресенье) и hour_of_day вычисляются из текущего
    времени, если не переданы.
    """

    task_id: uuid.UUID
    action: str = Field(..., min_length=1, max_length=50)
    location_tag_id: uuid.UUID | None = None
    mood_tag_id: uuid.UUID | None = None
    duration_minutes: int | None = Field(None, ge=0)
    notes: str | None = None
    day_of_week: int | None = Field(None, ge=0, le=6)
    hour_of_day: int | None = Field(None, ge=0, le=23)


class ActivityResponse(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID | None
    task_name: str
    action: str
    location_tag_id: uuid.UUID | None
    mood_tag_id: uuid.UUID | None
    day_of_week: int | None
    hour_of_day: int | None
    duration_minutes: int | None
    notes: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HourlySummary(BaseModel):
    hour_of_day: int
    count: int


# ============================================================================
# MEMORY SCHEMAS
# ============================================================================


class MemorySet(BaseModel):
    value: str = Field(..., description="Новое значение (last write wins)")


class MemoryResponse(BaseModel):
    key: str
    value: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# COMMON SCHEMAS
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {"field": "color", "message": "Invalid color format 'red'. Use #RRGGBB"}
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Коды:
    - VALIDATION_ERROR: ошибка валидации полей или бизнес-правила
    - NOT_FOUND: задача, тег, связь или ключ памяти не найдены
    - ALREADY_EXISTS: дубликат тега (name, type)
    - CYCLE_VIOLATION: перенос создал бы цикл
    - DATA_CORRUPTION: в сохранённых данных уже есть цикл
    """

    code: str = Field(..., description="Код ошибки (NOT_FOUND, CYCLE_VIOLATION, ...)")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(default=None, description="Ошибки по полям")


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример:
    {
        "error": {
            "code": "CYCLE_VIOLATION",
            "message": "Task ... cannot be moved under ...",
            "details": null
        }
    }
    """

    error: ErrorBody
