"""
Скрипт для инициализации базы данных.

Создаёт все таблицы напрямую через SQLAlchemy (create_all идемпотентен).
"""

import asyncio

from taskbrain.core.config import settings
from taskbrain.core.database import init_db


async def main():
    """Создать все таблицы."""
    print(f"Creating tables in {settings.DATABASE_URL} ...")
    await init_db()
    print("✓ Tables created")


if __name__ == "__main__":
    asyncio.run(main())
