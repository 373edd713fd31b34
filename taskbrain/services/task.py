"""Task service with business logic."""

import uuid
from datetime import date
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import ActivityAction, Tag, Task, TaskStatus
from ..models.base import utc_now
from ..repositories import (
    ActivityLogRepository,
    TagRepository,
    TaskRepository,
    TaskTagRepository,
)
from .activity import ActivityService
from .exceptions import (
    CorruptionBoundError,
    CycleViolationError,
    NotFoundError,
    ValidationError,
)
from .hierarchy import (
    InheritedTag,
    build_children_index,
    collect_descendants,
    merge_inherited_tags,
    walk_ancestors,
    would_create_cycle,
)
from .tag import TagService

logger = get_logger(__name__)

UPDATABLE_TASK_FIELDS = frozenset(
    {
        "name",
        "parent_id",
        "status",
        "notes",
        "links",
        "preferred_time",
        "energy_required",
        "estimated_minutes",
        "due_date",
        "is_recurring",
        "recurrence_pattern",
        "auto_priority",
        "times_completed",
        "times_skipped",
    }
)

# Counters only move forward
MONOTONIC_FIELDS = ("times_completed", "times_skipped")


class TaskService:
    """
    Сервис для работы с задачами.

    Задачи образуют лес (parent_id), теги наследуются вниз по дереву.
    Здесь собраны:
    - CRUD и перенос задач с защитой от циклов
    - каскадное удаление поддерева одной транзакцией
    - предки / потомки / унаследованные теги
    - импорт дерева и поиск по пути имён
    """

    def __init__(self, db: AsyncSession):
        """Инициализация сервиса с несколькими репозиториями."""
        self.db = db
        self.task_repo = TaskRepository(db)
        self.tag_repo = TagRepository(db)
        self.task_tag_repo = TaskTagRepository(db)
        self.activity_repo = ActivityLogRepository(db)
        self.activity_service = ActivityService(db)
        self.tag_service = TagService(db)

    # ========================================================================
    # VALIDATION HELPERS
    # ========================================================================

    @staticmethod
    def _normalize_name(name: str | None) -> str:
        if not name or not name.strip():
            raise ValidationError("Task name cannot be empty", field="name")
        return name.strip()

    @staticmethod
    def _validate_metadata(fields: dict[str, Any]) -> None:
        estimated = fields.get("estimated_minutes")
        if estimated is not None and estimated <= 0:
            raise ValidationError("Estimated minutes must be positive", field="estimated_minutes")

        priority = fields.get("auto_priority")
        if priority is not None and not 0 <= priority <= 100:
            raise ValidationError("Auto priority must be between 0 and 100", field="auto_priority")

    @staticmethod
    def _coerce_status(value: Any) -> TaskStatus:
        try:
            return TaskStatus(value)
        except ValueError as e:
            raise ValidationError(f"Unknown task status '{value}'", field="status") from e

    async def _ensure_parent_exists(self, parent_id: uuid.UUID | None) -> None:
        if parent_id is not None and not await self.task_repo.exists(parent_id):
            raise NotFoundError("Parent task", parent_id)

    async def _ensure_tags_exist(self, tag_ids: list[uuid.UUID]) -> list[uuid.UUID]:
        """Проверить, что все теги существуют; вернуть ID без повторов (порядок сохраняется)."""
        unique_ids = list(dict.fromkeys(tag_ids))
        found = {tag.id for tag in await self.tag_repo.get_many(unique_ids)}
        for tag_id in unique_ids:
            if tag_id not in found:
                raise NotFoundError("Tag", tag_id)
        return unique_ids

    # ========================================================================
    # CRUD
    # ========================================================================

    async def create_task(
        self,
        name: str,
        parent_id: uuid.UUID | None = None,
        status: TaskStatus = TaskStatus.NOT_STARTED,
        notes: str | None = None,
        links: str | None = None,
        preferred_time: str | None = None,
        energy_required: str | None = "medium",
        estimated_minutes: int | None = None,
        due_date: date | None = None,
        is_recurring: bool = False,
        recurrence_pattern: str | None = None,
        tag_ids: list[uuid.UUID] | None = None,
    ) -> Task:
        """
        Создать задачу (корневую или дочернюю).

        Args:
            name: Название задачи
            parent_id: ID родителя (None - корневая задача)
            status: Начальный статус
            notes, links: Свободный текст
            preferred_time, energy_required, estimated_minutes,
            due_date, is_recurring, recurrence_pattern: Подсказки для планирования
            tag_ids: Теги, которые сразу привязать к задаче

        Returns:
            Созданная задача с тегами

        Raises:
            ValidationError: пустое имя, неверные метаданные
            NotFoundError: родитель или тег не найден

        Цикл при создании невозможен: у новой задачи нет потомков,
        а родитель обязан уже существовать.
        """
        name = self._normalize_name(name)
        self._validate_metadata({"estimated_minutes": estimated_minutes})
        await self._ensure_parent_exists(parent_id)
        unique_tag_ids = await self._ensure_tags_exist(tag_ids) if tag_ids else []

        task = await self.task_repo.create(
            Task(
                name=name,
                parent_id=parent_id,
                status=status,
                notes=notes,
                links=links,
                preferred_time=preferred_time,
                energy_required=energy_required,
                estimated_minutes=estimated_minutes,
                due_date=due_date,
                is_recurring=is_recurring,
                recurrence_pattern=recurrence_pattern,
            )
        )

        for tag_id in unique_tag_ids:
            await self.task_tag_repo.attach(task.id, tag_id)

        await self.db.flush()
        return await self.task_repo.get_by_id_full(task.id)

    async def get_task(self, task_id: uuid.UUID, full: bool = True) -> Task:
        """
        Получить задачу по ID.

        Raises:
            NotFoundError: задача не найдена
        """
        if full:
            task = await self.task_repo.get_by_id_full(task_id)
        else:
            task = await self.task_repo.get_by_id(task_id)

        if not task:
            raise NotFoundError("Task", task_id)
        return task

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        parent_id: uuid.UUID | None = None,
        root_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Task]:
        """
        Получить задачи с фильтрами и пагинацией.

        Примеры:
            await service.list_tasks(root_only=True)            # верхний уровень
            await service.list_tasks(parent_id=goal.id)         # дети цели
            await service.list_tasks(status=TaskStatus.BLOCKED)
        """
        return await self.task_repo.get_filtered(
            status=status, parent_id=parent_id, root_only=root_only, skip=skip, limit=limit
        )

    async def get_children(self, task_id: uuid.UUID) -> list[Task]:
        """Прямые потомки задачи (NotFoundError, если задачи нет)."""
        await self.get_task(task_id, full=False)
        return await self.task_repo.get_children(task_id)

    async def search_tasks(self, search_term: str) -> list[Task]:
        if not search_term or not search_term.strip():
            return []
        return await self.task_repo.search_by_name(search_term.strip())

    async def update_task(self, task_id: uuid.UUID, **changes: Any) -> Task:
        """
        Частичное обновление задачи.

        Args:
            task_id: ID задачи
            **changes: только переданные поля; неизвестные поля игнорируются.
                Наличие ключа parent_id (даже со значением None) означает перенос.

        Raises:
            NotFoundError: задача или новый родитель не найдены
            CycleViolationError: новый родитель - сама задача или её потомок
            ValidationError: пустое имя, счётчик уменьшается, неверные метаданные

        Бизнес-правила:
        1. Перенос проверяется на циклы ДО любой записи
        2. times_completed / times_skipped не уменьшаются
        3. Переход в DONE засчитывается как выполнение (счётчик, last_completed_at, журнал)
        4. updated_at обновляется автоматически (onupdate)
        """
        task = await self.get_task(task_id, full=False)

        updates = {k: v for k, v in changes.items() if k in UPDATABLE_TASK_FIELDS}

        if "name" in updates:
            updates["name"] = self._normalize_name(updates["name"])

        self._validate_metadata(updates)

        for field in MONOTONIC_FIELDS:
            if field in updates:
                if updates[field] is None:
                    del updates[field]
                elif updates[field] < getattr(task, field):
                    raise ValidationError(f"{field} cannot decrease", field=field)

        for field in ("status", "is_recurring", "auto_priority"):
            if field in updates and updates[field] is None:
                del updates[field]

        if "parent_id" in updates:
            if updates["parent_id"] == task.parent_id:
                del updates["parent_id"]
            else:
                await self._ensure_can_move(task_id, updates["parent_id"])

        old_status = task.status
        new_status = updates.pop("status", None)
        if new_status is not None:
            new_status = self._coerce_status(new_status)

        if updates:
            await self.task_repo.update(task_id, **updates)

        if new_status is not None and new_status != old_status:
            if new_status == TaskStatus.DONE:
                await self._apply_completion(task)
            else:
                await self.task_repo.update(task_id, status=new_status)
                await self.activity_service.record(
                    task_id,
                    ActivityAction.STARTED
                    if new_status == TaskStatus.IN_PROGRESS
                    else ActivityAction.STATUS_CHANGED,
                    notes=f"{old_status.value} -> {new_status.value}",
                )

        await self.db.flush()
        return await self.task_repo.get_by_id_full(task_id)

    async def move_task(self, task_id: uuid.UUID, new_parent_id: uuid.UUID | None) -> Task:
        """Перенести задачу под другого родителя (None - сделать корневой)."""
        return await self.update_task(task_id, parent_id=new_parent_id)

    # ========================================================================
    # COMPLETION / SKIP
    # ========================================================================

    async def _apply_completion(
        self,
        task: Task,
        location_tag_id: uuid.UUID | None = None,
        mood_tag_id: uuid.UUID | None = None,
        duration_minutes: int | None = None,
        notes: str | None = None,
    ) -> None:
        await self.task_repo.update(
            task.id,
            status=TaskStatus.DONE,
            times_completed=task.times_completed + 1,
            last_completed_at=utc_now(),
        )
        await self.activity_service.record(
            task.id,
            ActivityAction.COMPLETED,
            location_tag_id=location_tag_id,
            mood_tag_id=mood_tag_id,
            duration_minutes=duration_minutes,
            notes=notes,
        )

    async def complete_task(
        self,
        task_id: uuid.UUID,
        location_tag_id: uuid.UUID | None = None,
        mood_tag_id: uuid.UUID | None = None,
        duration_minutes: int | None = None,
        notes: str | None = None,
    ) -> Task:
        """
        Отметить выполнение задачи.

        Устанавливает:
        - status = DONE
        - times_completed += 1
        - last_completed_at = текущее время
        и пишет запись "completed" в журнал активности.

        Каждый вызов - отдельное выполнение: повторяющиеся задачи
        можно выполнять снова без смены статуса.
        """
        task = await self.get_task(task_id, full=False)
        await self._apply_completion(
            task,
            location_tag_id=location_tag_id,
            mood_tag_id=mood_tag_id,
            duration_minutes=duration_minutes,
            notes=notes,
        )
        await self.db.flush()
        return await self.task_repo.get_by_id_full(task_id)

    async def skip_task(self, task_id: uuid.UUID, notes: str | None = None) -> Task:
        """
        Отметить явный пропуск задачи.

        times_skipped += 1, статус не меняется, в журнал - "skipped".
        """
        task = await self.get_task(task_id, full=False)
        await self.task_repo.update(task_id, times_skipped=task.times_skipped + 1)
        await self.activity_service.record(task_id, ActivityAction.SKIPPED, notes=notes)
        await self.db.flush()
        return await self.task_repo.get_by_id_full(task_id)

    # ========================================================================
    # CYCLE & CASCADE GUARD
    # ========================================================================

    async def _ensure_can_move(self, task_id: uuid.UUID, new_parent_id: uuid.UUID | None) -> None:
        """
        Проверить перенос task_id под new_parent_id.

        Новый родитель не может быть самой задачей и не может
        находиться среди её потомков, то есть task_id не должен
        встречаться в цепочке предков нового родителя.
        """
        if new_parent_id is None:
            return
        if new_parent_id != task_id:
            await self._ensure_parent_exists(new_parent_id)

        parent_index = await self.task_repo.get_parent_index()
        try:
            rejected = would_create_cycle(parent_index, task_id, new_parent_id)
        except CorruptionBoundError:
            self._log_corruption(parent_index, new_parent_id)
            raise

        if rejected:
            logger.warning(
                "Reparent rejected: new parent is the task or its descendant",
                extra={"task_id": str(task_id), "parent_id": str(new_parent_id)},
            )
            raise CycleViolationError(task_id, new_parent_id)

    async def delete_task(self, task_id: uuid.UUID) -> int:
        """
        Удалить задачу вместе со всем поддеревом.

        Returns:
            Количество удалённых задач (потомки + сама задача)

        Raises:
            NotFoundError: задача не найдена

        Порядок (одна транзакция, commit делает владелец сессии):
        1. Собрать ID потомков по parent index
        2. DELETE FROM task_tags WHERE task_id IN (...)
        3. UPDATE activity_log SET task_id = NULL WHERE task_id IN (...)
        4. DELETE FROM tasks WHERE id IN (...)
        Любая ошибка откатывает всё: частичного каскада не бывает.
        """
        await self.get_task(task_id, full=False)

        parent_index = await self.task_repo.get_parent_index()
        subtree_ids = [task_id, *collect_descendants(parent_index, task_id)]

        removed_links = await self.task_tag_repo.delete_for_tasks(subtree_ids)
        await self.activity_repo.detach_tasks(subtree_ids)
        removed_tasks = await self.task_repo.delete_many(subtree_ids)
        await self.db.flush()

        logger.info(
            "Task subtree deleted",
            extra={
                "task_id": str(task_id),
                "removed_tasks": removed_tasks,
                "removed_links": removed_links,
            },
        )
        return removed_tasks

    # ========================================================================
    # TRAVERSAL & TAG INHERITANCE
    # ========================================================================

    @staticmethod
    def _log_corruption(parent_index: dict, task_id: uuid.UUID) -> None:
        logger.error(
            "Parent references contain a cycle, tree needs repair",
            extra={"task_id": str(task_id), "task_count": len(parent_index)},
        )

    def _walk_ancestors(self, parent_index: dict, task_id: uuid.UUID) -> list[uuid.UUID]:
        try:
            return walk_ancestors(parent_index, task_id)
        except CorruptionBoundError:
            self._log_corruption(parent_index, task_id)
            raise

    async def get_ancestor_ids(self, task_id: uuid.UUID) -> list[uuid.UUID]:
        """
        ID предков от ближайшего к корню.

        Неизвестный ID и корневая задача дают пустой список; кому важна
        разница, проверяет существование отдельно.

        Raises:
            CorruptionBoundError: в сохранённых данных цикл
        """
        parent_index = await self.task_repo.get_parent_index()
        return self._walk_ancestors(parent_index, task_id)

    async def get_ancestors(self, task_id: uuid.UUID) -> list[Task]:
        """Предки как объекты Task, в том же порядке (ближайший первым)."""
        ancestor_ids = await self.get_ancestor_ids(task_id)
        by_id = {task.id: task for task in await self.task_repo.get_many(ancestor_ids)}
        return [by_id[ancestor_id] for ancestor_id in ancestor_ids if ancestor_id in by_id]

    async def get_descendant_ids(self, task_id: uuid.UUID) -> list[uuid.UUID]:
        """
        ID всех потомков (порядок обхода в ширину, без самой задачи).

        Для листа и неизвестного ID - пустой список.
        """
        parent_index = await self.task_repo.get_parent_index()
        return collect_descendants(parent_index, task_id)

    async def get_inherited_tags(self, task_id: uuid.UUID) -> list[InheritedTag[Tag]]:
        """
        Эффективный набор тегов задачи: собственные + теги всех предков.

        Returns:
            Список InheritedTag(tag, is_own); каждый тег ровно один раз,
            собственный тег имеет приоритет над унаследованным.

        Пример:
            Goals [Growth]
              └─ Learn X
                   └─ Practice daily [Routine]

            get_inherited_tags(practice) ->
                [InheritedTag(Routine, is_own=True), InheritedTag(Growth, is_own=False)]

        SQL эквивалент:
            SELECT tags.*, TRUE AS is_own FROM tags JOIN task_tags ... WHERE task_id = :id
            UNION
            SELECT DISTINCT tags.*, FALSE FROM tags JOIN task_tags ...
            JOIN ancestors ON task_tags.task_id = ancestors.id
            WHERE tags.id NOT IN (SELECT tag_id FROM task_tags WHERE task_id = :id);
        """
        ancestor_ids = await self.get_ancestor_ids(task_id)
        tags_by_task = await self.task_tag_repo.get_tags_by_task([task_id, *ancestor_ids])

        return merge_inherited_tags(
            tags_by_task.get(task_id, []),
            (tags_by_task.get(ancestor_id, []) for ancestor_id in ancestor_ids),
        )

    async def get_tasks_by_tag(
        self, tag_id: uuid.UUID, include_inherited: bool = False
    ) -> list[Task]:
        """
        Задачи с тегом.

        Args:
            tag_id: ID тега
            include_inherited: также все потомки задач, несущих тег напрямую
                (тег "AI" на цели "AI expert" покрывает все её подзадачи)
        """
        await self.tag_service.get_tag(tag_id)

        tagged = await self.task_repo.get_tasks_by_tag(tag_id)
        if not include_inherited:
            return tagged

        parent_index = await self.task_repo.get_parent_index()
        children_index = build_children_index(parent_index)

        result_ids: list[uuid.UUID] = []
        seen: set[uuid.UUID] = set()
        for task in tagged:
            for node_id in (task.id, *collect_descendants(parent_index, task.id, children_index)):
                if node_id not in seen:
                    seen.add(node_id)
                    result_ids.append(node_id)

        by_id = {task.id: task for task in await self.task_repo.get_many(result_ids)}
        return [by_id[node_id] for node_id in result_ids if node_id in by_id]

    async def get_subtree(self, task_id: uuid.UUID) -> dict:
        """
        Поддерево задачи для отображения в UI.

        Пример:
            {
                "task": <Task Goals>,
                "children": [
                    {"task": <Task Learn X>, "children": [...]},
                ]
            }
        """
        root = await self.get_task(task_id)

        parent_index = await self.task_repo.get_parent_index()
        # Цикл в данных всегда проходит через предков корня поддерева
        self._walk_ancestors(parent_index, task_id)

        descendant_ids = collect_descendants(parent_index, task_id)
        tasks_by_id = {task.id: task for task in await self.task_repo.get_many(descendant_ids)}

        nodes = {root.id: {"task": root, "children": []}}
        for node_id in descendant_ids:
            if node_id in tasks_by_id:
                nodes[node_id] = {"task": tasks_by_id[node_id], "children": []}

        # Обход в ширину: родитель всегда собран раньше ребёнка
        for node_id in descendant_ids:
            parent_node = nodes.get(parent_index.get(node_id))
            if node_id in nodes and parent_node is not None:
                parent_node["children"].append(nodes[node_id])

        for node in nodes.values():
            node["children"].sort(key=lambda child: child["task"].created_at)
        return nodes[root.id]

    # ========================================================================
    # TAG ASSOCIATIONS
    # ========================================================================

    async def attach_tags(self, task_id: uuid.UUID, tag_ids: list[uuid.UUID]) -> Task:
        """
        Привязать несколько тегов к задаче одной операцией.

        Идемпотентно: уже привязанные теги пропускаются, дубликат связи
        никогда не создаётся. Все теги проверяются до первой записи.

        Raises:
            NotFoundError: задача или любой из тегов не найден
        """
        await self.get_task(task_id, full=False)
        unique_ids = await self._ensure_tags_exist(tag_ids)

        existing = await self.task_tag_repo.get_tag_ids(task_id)
        for tag_id in unique_ids:
            if tag_id not in existing:
                await self.task_tag_repo.attach(task_id, tag_id)

        await self.db.flush()
        return await self.task_repo.get_by_id_full(task_id)

    async def detach_tag(self, task_id: uuid.UUID, tag_id: uuid.UUID) -> Task:
        """
        Снять тег с задачи.

        Raises:
            NotFoundError: задача не найдена или тег к ней не привязан
                (унаследованный тег снять нельзя - только у предка)
        """
        await self.get_task(task_id, full=False)
        if not await self.task_tag_repo.detach(task_id, tag_id):
            raise NotFoundError("Task tag", f"{task_id}/{tag_id}")

        await self.db.flush()
        return await self.task_repo.get_by_id_full(task_id)

    # ========================================================================
    # BULK IMPORT & PATH LOOKUP
    # ========================================================================

    async def find_by_path(self, path: list[str]) -> Task:
        """
        Найти задачу по цепочке имён от корня.

        Пример:
            await service.find_by_path(["Life goals", "AI expert", "Statistics"])

        Raises:
            ValidationError: пустой путь
            NotFoundError: на каком-то шаге задача не найдена
        """
        if not path:
            raise ValidationError("Path cannot be empty", field="path")

        parent_id: uuid.UUID | None = None
        task: Task | None = None
        for depth, name in enumerate(path):
            task = await self.task_repo.find_child_by_name(parent_id, name.strip())
            if task is None:
                raise NotFoundError("Task path", " / ".join(path[: depth + 1]))
            parent_id = task.id

        return await self.task_repo.get_by_id_full(task.id)

    async def import_tree(
        self, nodes: list[dict[str, Any]], parent_id: uuid.UUID | None = None
    ) -> list[Task]:
        """
        Массовый импорт вложенного дерева задач.

        Args:
            nodes: [{"name", "status", "notes", "links",
                     "tags": [{"name", "type"}], "children": [...]}]
            parent_id: Куда подвесить импортируемые корни (None - верхний уровень)

        Returns:
            Созданные задачи верхнего уровня импорта

        Теги ищутся по (name, type) и создаются, если их нет. Всё
        происходит в одной транзакции: ошибка в любом узле отменяет импорт.
        """
        await self._ensure_parent_exists(parent_id)

        created_roots: list[Task] = []
        created_count = 0

        # Явный стек вместо рекурсии: (узел, ID родителя, это корень импорта?)
        stack: list[tuple[dict[str, Any], uuid.UUID | None, bool]] = [
            (node, parent_id, True) for node in reversed(nodes)
        ]
        while stack:
            node, node_parent_id, is_import_root = stack.pop()

            tag_ids = []
            for tag_spec in node.get("tags") or []:
                tag = await self.tag_service.get_or_create_tag(
                    tag_spec.get("name"), tag_spec.get("type"), color=tag_spec.get("color")
                )
                tag_ids.append(tag.id)

            task = await self.create_task(
                name=node.get("name"),
                parent_id=node_parent_id,
                status=self._coerce_status(node.get("status") or TaskStatus.NOT_STARTED),
                notes=node.get("notes"),
                links=node.get("links"),
                preferred_time=node.get("preferred_time"),
                energy_required=node.get("energy_required") or "medium",
                estimated_minutes=node.get("estimated_minutes"),
                is_recurring=bool(node.get("is_recurring", False)),
                recurrence_pattern=node.get("recurrence_pattern"),
                tag_ids=tag_ids,
            )
            created_count += 1
            if is_import_root:
                created_roots.append(task)

            for child in reversed(node.get("children") or []):
                stack.append((child, task.id, False))

        logger.info("Task tree imported", extra={"created_tasks": created_count})
        return created_roots
