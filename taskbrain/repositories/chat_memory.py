"""Chat memory (key-value) repository."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import ChatMemory
from .base import BaseRepository


class ChatMemoryRepository(BaseRepository[ChatMemory]):
    """Репозиторий плоского хранилища ключ-значение."""

    def __init__(self, db: AsyncSession):
        super().__init__(ChatMemory, db)

    async def get_by_key(self, key: str) -> ChatMemory | None:
        """
        SQL эквивалент:
            SELECT * FROM chat_memory WHERE key = {key};
        """
        result = await self.db.execute(select(ChatMemory).where(ChatMemory.key == key))
        return result.scalar_one_or_none()

    async def get_all_sorted(self) -> list[ChatMemory]:
        result = await self.db.execute(select(ChatMemory).order_by(ChatMemory.key))
        return list(result.scalars().all())

    async def upsert(self, key: str, value: str) -> ChatMemory:
        """
        Записать значение: создать ключ или перезаписать (last write wins).

        SQL эквивалент (PostgreSQL):
            INSERT INTO chat_memory (key, value) VALUES ({key}, {value})
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW();
        """
        entry = await self.get_by_key(key)
        if entry is None:
            return await self.create(ChatMemory(key=key, value=value))

        entry.value = value
        await self.db.flush()
        await self.db.refresh(entry)
        return entry

    async def insert_if_missing(self, key: str, value: str) -> bool:
        """
        Записать значение, только если ключа ещё нет (ON CONFLICT DO NOTHING).

        Returns:
            True если ключ создан
        """
        if await self.get_by_key(key) is not None:
            return False
        await self.create(ChatMemory(key=key, value=value))
        return True

    async def delete_by_key(self, key: str) -> bool:
        result = await self.db.execute(delete(ChatMemory).where(ChatMemory.key == key))
        return result.rowcount > 0
