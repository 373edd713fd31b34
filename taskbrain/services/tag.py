"""Tag service with business logic."""

import re
import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.logging import get_logger
from ..models import DEFAULT_TAG_COLOR, Tag
from ..repositories import ActivityLogRepository, TagRepository, TaskTagRepository
from .exceptions import NotFoundError, UniquenessViolationError, ValidationError

logger = get_logger(__name__)

COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

UPDATABLE_TAG_FIELDS = frozenset({"name", "type", "color", "is_focused", "sort_order"})


class TagService:
    """
    Сервис для работы с тегами.

    Тег принадлежит сам себе и разделяется задачами по ссылке;
    удаление тега снимает его со всех задач в той же транзакции.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tag_repo = TagRepository(db)
        self.task_tag_repo = TaskTagRepository(db)
        self.activity_repo = ActivityLogRepository(db)

    @staticmethod
    def _normalize_name(name: str | None) -> str:
        if not name or not name.strip():
            raise ValidationError("Tag name cannot be empty", field="name")
        return name.strip()

    @staticmethod
    def _normalize_type(type: str | None) -> str:
        """Типы - идентификаторы вида time_slot: lowercase, без крайних пробелов."""
        if not type or not type.strip():
            raise ValidationError("Tag type cannot be empty", field="type")
        return type.strip().lower()

    @staticmethod
    def _validate_color(color: str) -> str:
        if not COLOR_PATTERN.match(color):
            raise ValidationError(
                f"Invalid color format '{color}'. Use #RRGGBB", field="color"
            )
        return color

    async def create_tag(
        self,
        name: str,
        type: str,
        color: str | None = None,
        is_focused: bool = False,
        sort_order: int = 0,
    ) -> Tag:
        """
        Создать новый тег.

        Raises:
            ValidationError: пустое имя/тип, неверный цвет
            UniquenessViolationError: тег (name, type) уже существует

        Бизнес-правила:
        1. Имя и тип обязательны
        2. Пара (name, type) уникальна; одно имя в разных типах допустимо
        3. Цвет в формате #RRGGBB
        """
        name = self._normalize_name(name)
        type = self._normalize_type(type)
        color = self._validate_color(color) if color else DEFAULT_TAG_COLOR

        if await self.tag_repo.get_by_name_and_type(name, type):
            raise UniquenessViolationError("Tag", "name, type", f"{name}, {type}")

        try:
            tag = await self.tag_repo.create_in_savepoint(
                Tag(name=name, type=type, color=color, is_focused=is_focused, sort_order=sort_order)
            )
        except IntegrityError as e:
            # Тот же тег успел создать параллельный запрос
            raise UniquenessViolationError("Tag", "name, type", f"{name}, {type}") from e
        logger.info("Tag created", extra={"tag_id": str(tag.id), "tag_name": name, "tag_type": type})
        return tag

    async def get_or_create_tag(self, name: str, type: str, **defaults: Any) -> Tag:
        """
        Получить тег (name, type) или создать его.

        Используется импортом дерева и загрузкой словаря тегов.
        """
        name = self._normalize_name(name)
        type = self._normalize_type(type)
        if defaults.get("color"):
            self._validate_color(defaults["color"])
        defaults = {key: value for key, value in defaults.items() if value is not None}

        tag, _created = await self.tag_repo.get_or_create(name, type, **defaults)
        return tag

    async def get_tag(self, tag_id: uuid.UUID) -> Tag:
        """
        Raises:
            NotFoundError: тег не найден
        """
        tag = await self.tag_repo.get_by_id(tag_id)
        if not tag:
            raise NotFoundError("Tag", tag_id)
        return tag

    async def list_tags(self, type: str | None = None, focused_only: bool = False) -> list[Tag]:
        """Теги, упорядоченные по type, sort_order, name."""
        if type is not None:
            type = self._normalize_type(type)
        return await self.tag_repo.get_filtered(type=type, focused_only=focused_only)

    async def search_tags(self, search_term: str) -> list[Tag]:
        if not search_term or not search_term.strip():
            return []
        return await self.tag_repo.search_tags(search_term.strip())

    async def update_tag(self, tag_id: uuid.UUID, **changes: Any) -> Tag:
        """
        Частичное обновление тега.

        Переименование или смена типа повторно проверяет уникальность (name, type).
        """
        tag = await self.get_tag(tag_id)

        updates = {k: v for k, v in changes.items() if k in UPDATABLE_TAG_FIELDS}
        if "name" in updates:
            updates["name"] = self._normalize_name(updates["name"])
        if "type" in updates:
            updates["type"] = self._normalize_type(updates["type"])
        if "color" in updates:
            if updates["color"] is None:
                updates["color"] = DEFAULT_TAG_COLOR
            self._validate_color(updates["color"])
        for flag in ("is_focused", "sort_order"):
            if flag in updates and updates[flag] is None:
                del updates[flag]

        new_name = updates.get("name", tag.name)
        new_type = updates.get("type", tag.type)
        if (new_name, new_type) != (tag.name, tag.type):
            existing = await self.tag_repo.get_by_name_and_type(new_name, new_type)
            if existing and existing.id != tag.id:
                raise UniquenessViolationError("Tag", "name, type", f"{new_name}, {new_type}")

        if updates:
            tag = await self.tag_repo.update(tag_id, **updates)
        return tag

    async def set_focus(self, tag_id: uuid.UUID, is_focused: bool) -> Tag:
        """Включить/выключить тег в быстром фильтре UI."""
        await self.get_tag(tag_id)
        return await self.tag_repo.update(tag_id, is_focused=is_focused)

    async def delete_tag(self, tag_id: uuid.UUID) -> int:
        """
        Удалить тег вместе со всеми его связями.

        Returns:
            Количество снятых связей задача-тег

        Порядок в одной транзакции:
        1. DELETE FROM task_tags WHERE tag_id = ...
        2. ссылки журнала активности -> NULL
        3. DELETE FROM tags WHERE id = ...
        """
        await self.get_tag(tag_id)

        removed_links = await self.task_tag_repo.delete_for_tag(tag_id)
        await self.activity_repo.detach_tag(tag_id)
        await self.tag_repo.delete(tag_id)
        await self.db.flush()

        logger.info(
            "Tag deleted", extra={"tag_id": str(tag_id), "removed_links": removed_links}
        )
        return removed_links

    async def get_tag_usage(self) -> list[tuple[Tag, int]]:
        """
        Теги с количеством задач (только прямые привязки).

        Пример:
            [(Tag('Coding'), 4), (Tag('Room'), 3), (Tag('Park'), 0), ...]
        """
        return await self.tag_repo.get_usage()
