"""
Начальные данные: словарь тегов, память ассистента и пример дерева целей.

Загрузка идемпотентна: повторный запуск ничего не дублирует.
Существующие теги и ключи памяти не перезаписываются.

Использование:
    async with AsyncSessionLocal() as db:
        stats = await seed_database(db)
        await db.commit()
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from .core.logging import get_logger
from .services import MemoryService, TagService, TaskService

logger = get_logger(__name__)

# (name, type, color, sort_order)
DEFAULT_TAGS: list[tuple[str, str, str, int]] = [
    # Subjects
    ("AI", "subject", "#e74c3c", 0),
    ("Japanese", "subject", "#3498db", 0),
    ("SQL", "subject", "#2ecc71", 0),
    ("Burmese", "subject", "#9b59b6", 0),
    ("Language", "subject", "#1abc9c", 0),
    ("Mechanical", "subject", "#f39c12", 6),
    # Categories
    ("Coding", "category", "#f39c12", 0),
    ("Documentation", "category", "#8e44ad", 0),
    ("Paper study", "category", "#2980b9", 0),
    ("App generation", "category", "#27ae60", 0),
    ("Quick study", "category", "#e67e22", 0),
    ("Reading", "category", "#16a085", 6),
    ("Exercise", "category", "#c0392b", 7),
    ("Errands", "category", "#7f8c8d", 8),
    # Moods
    ("Energetic", "mood", "#2ecc71", 0),
    ("Bit tired", "mood", "#f1c40f", 0),
    ("Tired", "mood", "#e67e22", 0),
    ("Sleepy", "mood", "#95a5a6", 0),
    # Locations
    ("Train", "location", "#3498db", 0),
    ("Room", "location", "#9b59b6", 0),
    ("Company", "location", "#34495e", 0),
    ("Share house", "location", "#16a085", 0),
    ("Park", "location", "#27ae60", 0),
    ("Cafe", "location", "#e74c3c", 0),
    ("Anywhere", "location", "#7f8c8d", 7),
    # Durations
    ("5min", "duration", "#1abc9c", 0),
    ("15min", "duration", "#3498db", 0),
    ("30min", "duration", "#9b59b6", 0),
    ("1hour", "duration", "#e74c3c", 0),
    ("2hours+", "duration", "#c0392b", 5),
    # Priorities
    ("Critical", "priority", "#c0392b", 0),
    ("High", "priority", "#e74c3c", 0),
    ("Medium", "priority", "#f39c12", 0),
    ("Low", "priority", "#95a5a6", 0),
    ("Someday", "priority", "#bdc3c7", 4),
    # Time slots
    ("Morning", "time_slot", "#f39c12", 1),
    ("Afternoon", "time_slot", "#e67e22", 2),
    ("Evening", "time_slot", "#9b59b6", 3),
    ("Night", "time_slot", "#34495e", 4),
    ("Commute", "time_slot", "#3498db", 5),
    # Energy
    ("High energy", "energy", "#27ae60", 1),
    ("Medium energy", "energy", "#f1c40f", 2),
    ("Low energy", "energy", "#95a5a6", 3),
]

DEFAULT_MEMORY: dict[str, str] = {
    "user_name": "Aniket",
    "default_location": "Room",
    "work_hours": "9-18",
    "commute_hours": "7-9,18-20",
    "sleep_time": "23",
    "wake_time": "6",
    "current_mood": "Energetic",
    "current_location": "Room",
}


def _tags(*pairs: tuple[str, str]) -> list[dict[str, str]]:
    return [{"name": name, "type": type} for name, type in pairs]


DOCUMENTATION = ("Documentation", "category")
PAPER_STUDY = ("Paper study", "category")
APP_GENERATION = ("App generation", "category")
CODING = ("Coding", "category")
ROOM = ("Room", "location")
SHARE_HOUSE = ("Share house", "location")

SAMPLE_TREE: list[dict[str, Any]] = [
    {
        "name": "Life goals",
        "children": [
            {
                "name": "Language expert",
                "status": "in_progress",
                "tags": _tags(("Language", "subject")),
                "children": [
                    {
                        "name": "Japanese self study",
                        "status": "done",
                        "tags": _tags(("Japanese", "subject")),
                        "children": [
                            {
                                "name": "Japanese study app",
                                "children": [
                                    {
                                        "name": "Design the UI to match with excel",
                                        "tags": _tags(APP_GENERATION, ROOM, SHARE_HOUSE),
                                    },
                                    {
                                        "name": "The story page linking in interactive way",
                                        "tags": _tags(APP_GENERATION, ROOM, SHARE_HOUSE),
                                    },
                                    {
                                        "name": "10 min quick study",
                                        "tags": _tags(
                                            ("Quick study", "category"),
                                            ("Energetic", "mood"),
                                            ("Train", "location"),
                                            ("Company", "location"),
                                        ),
                                    },
                                ],
                            }
                        ],
                    }
                ],
            },
            {
                "name": "AI expert",
                "status": "done",
                "tags": _tags(("AI", "subject")),
                "children": [
                    {"name": "Homework given by Amy Bhai", "tags": _tags(CODING)},
                    {
                        "name": "Document generation from the data given by Amy bhai",
                        "tags": _tags(DOCUMENTATION),
                    },
                    {"name": "Mechanical revision", "tags": _tags(DOCUMENTATION)},
                    {
                        "name": "Mechanical practice problems",
                        "tags": _tags(PAPER_STUDY),
                        "children": [
                            {
                                "name": "Generate the SFD BMD app",
                                "status": "blocked",
                                "tags": _tags(APP_GENERATION),
                                "children": [{"name": "Add different cases for the SFD BMD"}],
                            },
                            {"name": "TOM book concepts", "tags": _tags(APP_GENERATION)},
                        ],
                    },
                    {
                        "name": "Statistics",
                        "tags": _tags(PAPER_STUDY, CODING),
                        "children": [
                            {
                                "name": "Generate the MS word files for hand calculations",
                                "status": "in_progress",
                                "tags": _tags(PAPER_STUDY),
                                "children": [
                                    {
                                        "name": "Mean-median, mode",
                                        "status": "in_progress",
                                        "tags": _tags(PAPER_STUDY, ROOM),
                                    },
                                    {
                                        "name": "ANOVA 3 types",
                                        "status": "in_progress",
                                        "tags": _tags(PAPER_STUDY, ROOM),
                                    },
                                ],
                            }
                        ],
                    },
                    {
                        "name": "Colab links",
                        "tags": _tags(CODING),
                        "children": [{"name": "Python study"}],
                    },
                ],
            },
            {
                "name": "Job change",
                "status": "done",
                "children": [
                    {
                        "name": "Interview Q and A review with AI",
                        "status": "done",
                        "tags": _tags(DOCUMENTATION),
                        "children": [
                            {
                                "name": "Feed the data to AI version wise",
                                "status": "done",
                                "tags": _tags(DOCUMENTATION),
                            },
                            {
                                "name": "Problems covering the different concepts of AI",
                                "tags": _tags(DOCUMENTATION),
                            },
                        ],
                    },
                    {"name": "Mechanical practice problems (Job)"},
                    {"name": "Generate the assembly tree app"},
                ],
            },
        ],
    }
]


async def seed_database(db: AsyncSession, with_sample_tree: bool = True) -> dict[str, int]:
    """
    Загрузить начальные данные в текущую транзакцию (commit делает вызывающий).

    Returns:
        {"tags": созданных тегов, "memory": записанных ключей, "tasks": импортированных корней}
    """
    tag_service = TagService(db)
    memory_service = MemoryService(db)
    task_service = TaskService(db)

    stats = {"tags": 0, "memory": 0, "tasks": 0}

    for name, type, color, sort_order in DEFAULT_TAGS:
        _tag, created = await tag_service.tag_repo.get_or_create(
            name, type, color=color, sort_order=sort_order
        )
        stats["tags"] += int(created)

    for key, value in DEFAULT_MEMORY.items():
        stats["memory"] += int(await memory_service.set_default(key, value))

    if with_sample_tree:
        for root in SAMPLE_TREE:
            if await task_service.task_repo.find_child_by_name(None, root["name"]) is None:
                await task_service.import_tree([root])
                stats["tasks"] += 1

    logger.info("Database seeded", extra=stats)
    return stats
