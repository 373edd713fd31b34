"""Key-value memory store for assistant context."""

from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ChatMemory
from ..repositories import ChatMemoryRepository
from .exceptions import NotFoundError, ValidationError


class MemoryService:
    """Небольшие факты для ассистента: user_name, default_location, work_hours..."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.memory_repo = ChatMemoryRepository(db)

    @staticmethod
    def _normalize_key(key: str) -> str:
        if not key or not key.strip():
            raise ValidationError("Memory key cannot be empty", field="key")
        return key.strip()

    async def set(self, key: str, value: str) -> ChatMemory:
        """Записать значение (последняя запись побеждает)."""
        if value is None:
            raise ValidationError("Memory value cannot be null", field="value")
        return await self.memory_repo.upsert(self._normalize_key(key), value)

    async def set_default(self, key: str, value: str) -> bool:
        """Записать значение, только если ключа ещё нет. True - если записано."""
        return await self.memory_repo.insert_if_missing(self._normalize_key(key), value)

    async def get(self, key: str) -> ChatMemory:
        """
        Raises:
            NotFoundError: ключа нет
        """
        key = self._normalize_key(key)
        entry = await self.memory_repo.get_by_key(key)
        if not entry:
            raise NotFoundError("Memory key", key)
        return entry

    async def get_value(self, key: str, default: str | None = None) -> str | None:
        entry = await self.memory_repo.get_by_key(self._normalize_key(key))
        return entry.value if entry else default

    async def get_all(self) -> dict[str, str]:
        return {entry.key: entry.value for entry in await self.memory_repo.get_all_sorted()}

    async def delete(self, key: str) -> None:
        key = self._normalize_key(key)
        if not await self.memory_repo.delete_by_key(key):
            raise NotFoundError("Memory key", key)
