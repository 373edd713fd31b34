#!/usr/bin/env python3
"""
Seed script: default tag vocabulary, assistant memory and the sample goal tree.

Запуск (после pip install -e .):
    python scripts/seed_data.py               # всё
    python scripts/seed_data.py --no-sample   # без примера дерева задач
    python scripts/seed_data.py --reset       # удалить все таблицы и загрузить заново

Повторный запуск безопасен: существующие данные не дублируются.
"""

import argparse
import asyncio

from taskbrain.core.database import AsyncSessionLocal, drop_db, init_db
from taskbrain.core.logging import setup_logging
from taskbrain.seed import seed_database


async def main(with_sample_tree: bool, reset: bool) -> None:
    if reset:
        await drop_db()
        print("✓ Tables dropped")
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            stats = await seed_database(db, with_sample_tree=with_sample_tree)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    print(f"✓ Tags created:       {stats['tags']}")
    print(f"✓ Memory keys set:    {stats['memory']}")
    print(f"✓ Task trees created: {stats['tasks']}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--no-sample", action="store_true", help="skip the sample goal tree")
    parser.add_argument("--reset", action="store_true", help="drop all tables before seeding")
    args = parser.parse_args()

    setup_logging(log_format="simple")
    asyncio.run(main(with_sample_tree=not args.no_sample, reset=args.reset))
