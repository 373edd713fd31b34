"""
Тесты для Service Layer (Бизнес-логика).

Проверяем:
- Предков, потомков и наследование тегов на реальной БД
- Защиту от циклов и каскадное удаление поддерева
- Обнаружение цикла, уже сохранённого в данных
- Привязку тегов, выполнение/пропуск, импорт дерева
- Теги, журнал активности и память ассистента
"""

import uuid

import pytest

from taskbrain.models import ActivityAction, TaskStatus
from taskbrain.repositories import ActivityLogRepository, TaskRepository, TaskTagRepository
from taskbrain.services import (
    ActivityService,
    CorruptionBoundError,
    CycleViolationError,
    MemoryService,
    NotFoundError,
    TagService,
    TaskService,
    UniquenessViolationError,
    ValidationError,
)


@pytest.fixture
def task_service(test_db):
    return TaskService(test_db)


@pytest.fixture
def tag_service(test_db):
    return TagService(test_db)


async def _goals_tree(task_service: TaskService, tag_service: TagService) -> dict:
    """
    Goals [Growth]
      └─ Learn X
           └─ Practice daily [Routine]
    """
    growth = await tag_service.create_tag("Growth", "category")
    routine = await tag_service.create_tag("Routine", "category")

    goals = await task_service.create_task("Goals", tag_ids=[growth.id])
    learn = await task_service.create_task("Learn X", parent_id=goals.id)
    practice = await task_service.create_task(
        "Practice daily", parent_id=learn.id, tag_ids=[routine.id]
    )
    return {
        "goals": goals,
        "learn": learn,
        "practice": practice,
        "growth": growth,
        "routine": routine,
    }


# ============================================================================
# CREATE / UPDATE
# ============================================================================


@pytest.mark.asyncio
async def test_create_task_validation_empty_name(task_service):
    """Test: валидация - пустое название задачи."""
    with pytest.raises(ValidationError, match="name cannot be empty"):
        await task_service.create_task(name="   ")


@pytest.mark.asyncio
async def test_create_task_parent_not_found(task_service):
    with pytest.raises(NotFoundError, match="Parent task"):
        await task_service.create_task(name="Orphan", parent_id=uuid.uuid4())


@pytest.mark.asyncio
async def test_create_task_unknown_tag_writes_nothing(task_service, test_db):
    """Test: неизвестный тег отклоняется до создания задачи."""
    with pytest.raises(NotFoundError, match="Tag"):
        await task_service.create_task(name="Goals", tag_ids=[uuid.uuid4()])

    assert await TaskRepository(test_db).count() == 0


@pytest.mark.asyncio
async def test_create_task_with_tags(task_service, tag_service):
    coding = await tag_service.create_tag("Coding", "category")

    task = await task_service.create_task("Statistics", tag_ids=[coding.id, coding.id])

    assert task.name == "Statistics"
    assert [t.name for t in task.tags] == ["Coding"]
    assert task.is_root


@pytest.mark.asyncio
async def test_update_task_partial(task_service):
    task = await task_service.create_task("Old", notes="keep me")

    updated = await task_service.update_task(task.id, name="  New  ", estimated_minutes=25)

    assert updated.name == "New"
    assert updated.notes == "keep me"
    assert updated.estimated_minutes == 25


@pytest.mark.asyncio
async def test_update_task_counters_cannot_decrease(task_service):
    task = await task_service.create_task("Practice")
    await task_service.complete_task(task.id)

    with pytest.raises(ValidationError, match="times_completed cannot decrease"):
        await task_service.update_task(task.id, times_completed=0)


@pytest.mark.asyncio
async def test_update_task_auto_priority_range(task_service):
    task = await task_service.create_task("Practice")

    updated = await task_service.update_task(task.id, auto_priority=80)
    assert updated.auto_priority == 80

    with pytest.raises(ValidationError, match="between 0 and 100"):
        await task_service.update_task(task.id, auto_priority=101)


@pytest.mark.asyncio
async def test_update_task_status_done_counts_as_completion(task_service, test_db):
    """Test: переход в DONE через update засчитывается как выполнение."""
    task = await task_service.create_task("Practice")

    updated = await task_service.update_task(task.id, status=TaskStatus.DONE)

    assert updated.status == TaskStatus.DONE
    assert updated.times_completed == 1
    assert updated.last_completed_at is not None
    entries = await ActivityLogRepository(test_db).get_by_task(task.id)
    assert [e.action for e in entries] == [ActivityAction.COMPLETED]


@pytest.mark.asyncio
async def test_update_task_status_change_is_logged(task_service, test_db):
    task = await task_service.create_task("Practice")

    await task_service.update_task(task.id, status="in_progress")
    await task_service.update_task(task.id, status=TaskStatus.BLOCKED)

    actions = {e.action for e in await ActivityLogRepository(test_db).get_by_task(task.id)}
    assert actions == {ActivityAction.STARTED, ActivityAction.STATUS_CHANGED}


@pytest.mark.asyncio
async def test_update_task_unknown_status(task_service):
    task = await task_service.create_task("Practice")

    with pytest.raises(ValidationError, match="Unknown task status"):
        await task_service.update_task(task.id, status="cancelled")


# ============================================================================
# ANCESTORS / DESCENDANTS / INHERITED TAGS
# ============================================================================


@pytest.mark.asyncio
async def test_ancestors_nearest_first(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)

    ancestor_ids = await task_service.get_ancestor_ids(tree["practice"].id)
    ancestors = await task_service.get_ancestors(tree["practice"].id)

    assert ancestor_ids == [tree["learn"].id, tree["goals"].id]
    assert [a.name for a in ancestors] == ["Learn X", "Goals"]


@pytest.mark.asyncio
async def test_ancestors_of_root_and_unknown_are_empty(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)

    assert await task_service.get_ancestor_ids(tree["goals"].id) == []
    assert await task_service.get_ancestor_ids(uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_descendants(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)

    assert await task_service.get_descendant_ids(tree["goals"].id) == [
        tree["learn"].id,
        tree["practice"].id,
    ]
    assert await task_service.get_descendant_ids(tree["practice"].id) == []
    assert await task_service.get_descendant_ids(uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_ancestors_and_descendants_agree(task_service, tag_service):
    """Test: A предок B тогда и только тогда, когда B потомок A."""
    tree = await _goals_tree(task_service, tag_service)
    await task_service.create_task("Unrelated")

    for key in ("goals", "learn", "practice"):
        task_id = tree[key].id
        for ancestor_id in await task_service.get_ancestor_ids(task_id):
            assert task_id in await task_service.get_descendant_ids(ancestor_id)
        for descendant_id in await task_service.get_descendant_ids(task_id):
            assert task_id in await task_service.get_ancestor_ids(descendant_id)


@pytest.mark.asyncio
async def test_inherited_tags_own_and_inherited(task_service, tag_service):
    """Test: Practice daily видит Routine (свой) и Growth (от Goals)."""
    tree = await _goals_tree(task_service, tag_service)

    effective = await task_service.get_inherited_tags(tree["practice"].id)

    assert [(item.tag.name, item.is_own) for item in effective] == [
        ("Routine", True),
        ("Growth", False),
    ]


@pytest.mark.asyncio
async def test_inherited_tags_own_takes_precedence(task_service, tag_service):
    """Test: тег и у задачи, и у предка - один раз, is_own=True."""
    tree = await _goals_tree(task_service, tag_service)
    await task_service.attach_tags(tree["learn"].id, [tree["growth"].id])

    effective = await task_service.get_inherited_tags(tree["learn"].id)

    assert [(item.tag.name, item.is_own) for item in effective] == [("Growth", True)]


@pytest.mark.asyncio
async def test_inherited_tags_unknown_task_is_empty(task_service):
    assert await task_service.get_inherited_tags(uuid.uuid4()) == []


@pytest.mark.asyncio
async def test_get_tasks_by_tag_with_inheritance(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)
    await task_service.create_task("Unrelated")

    direct = await task_service.get_tasks_by_tag(tree["growth"].id)
    inherited = await task_service.get_tasks_by_tag(tree["growth"].id, include_inherited=True)

    assert [t.name for t in direct] == ["Goals"]
    assert {t.name for t in inherited} == {"Goals", "Learn X", "Practice daily"}


@pytest.mark.asyncio
async def test_get_subtree(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)

    subtree = await task_service.get_subtree(tree["goals"].id)

    assert subtree["task"].name == "Goals"
    [learn_node] = subtree["children"]
    assert learn_node["task"].name == "Learn X"
    assert [c["task"].name for c in learn_node["children"]] == ["Practice daily"]
    assert learn_node["children"][0]["children"] == []


# ============================================================================
# CYCLE GUARD
# ============================================================================


@pytest.mark.asyncio
async def test_move_under_descendant_rejected(task_service, tag_service):
    """Test: Goals нельзя перенести под Practice daily (свой потомок)."""
    tree = await _goals_tree(task_service, tag_service)

    with pytest.raises(CycleViolationError):
        await task_service.move_task(tree["goals"].id, tree["practice"].id)

    goals = await task_service.get_task(tree["goals"].id)
    assert goals.parent_id is None


@pytest.mark.asyncio
async def test_move_under_itself_rejected(task_service):
    task = await task_service.create_task("Goals")

    with pytest.raises(CycleViolationError):
        await task_service.update_task(task.id, parent_id=task.id)


@pytest.mark.asyncio
async def test_move_rejected_leaves_other_fields_untouched(task_service, tag_service):
    """Test: при отказе в переносе не записывается ничего, даже имя."""
    tree = await _goals_tree(task_service, tag_service)

    with pytest.raises(CycleViolationError):
        await task_service.update_task(
            tree["goals"].id, name="Renamed", parent_id=tree["learn"].id
        )

    goals = await task_service.get_task(tree["goals"].id)
    assert goals.name == "Goals"


@pytest.mark.asyncio
async def test_move_to_sibling_and_to_root(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)
    travel = await task_service.create_task("Travel", parent_id=tree["goals"].id)

    moved = await task_service.move_task(tree["practice"].id, travel.id)
    assert moved.parent_id == travel.id
    assert await task_service.get_ancestor_ids(moved.id) == [travel.id, tree["goals"].id]

    detached = await task_service.update_task(tree["learn"].id, parent_id=None)
    assert detached.parent_id is None


@pytest.mark.asyncio
async def test_move_to_missing_parent(task_service):
    task = await task_service.create_task("Goals")

    with pytest.raises(NotFoundError, match="Parent task"):
        await task_service.move_task(task.id, uuid.uuid4())


# ============================================================================
# CORRUPTION BOUND
# ============================================================================


async def _corrupt_into_cycle(test_db, task_service: TaskService) -> tuple:
    """a -> b -> a, записанное в обход сервиса."""
    a = await task_service.create_task("A")
    b = await task_service.create_task("B", parent_id=a.id)
    await TaskRepository(test_db).update(a.id, parent_id=b.id)
    return a, b


@pytest.mark.asyncio
async def test_stored_cycle_reported_by_ancestor_walk(task_service, test_db):
    a, _b = await _corrupt_into_cycle(test_db, task_service)

    with pytest.raises(CorruptionBoundError):
        await task_service.get_ancestor_ids(a.id)

    with pytest.raises(CorruptionBoundError):
        await task_service.get_inherited_tags(a.id)


@pytest.mark.asyncio
async def test_stored_cycle_reported_on_move(task_service, test_db):
    a, _b = await _corrupt_into_cycle(test_db, task_service)
    c = await task_service.create_task("C")

    with pytest.raises(CorruptionBoundError):
        await task_service.move_task(c.id, a.id)


@pytest.mark.asyncio
async def test_stored_cycle_descendants_terminate(task_service, test_db):
    a, b = await _corrupt_into_cycle(test_db, task_service)

    assert await task_service.get_descendant_ids(a.id) == [b.id]


@pytest.mark.asyncio
async def test_stored_cycle_reported_by_subtree(task_service, test_db):
    """Test: поддерево внутри цикла - CorruptionBoundError, а не RecursionError."""
    a, b = await _corrupt_into_cycle(test_db, task_service)
    c = await task_service.create_task("C", parent_id=b.id)
    healthy = await task_service.create_task("Healthy")

    with pytest.raises(CorruptionBoundError):
        await task_service.get_subtree(a.id)

    with pytest.raises(CorruptionBoundError):
        await task_service.get_subtree(c.id)

    subtree = await task_service.get_subtree(healthy.id)
    assert subtree["task"].name == "Healthy"
    assert subtree["children"] == []


# ============================================================================
# CASCADE DELETE
# ============================================================================


@pytest.mark.asyncio
async def test_delete_subtree_returns_count(task_service, tag_service, test_db):
    """Test: удаление Goals убирает 3 задачи и все их связи с тегами."""
    tree = await _goals_tree(task_service, tag_service)
    await task_service.create_task("Unrelated")

    removed = await task_service.delete_task(tree["goals"].id)

    assert removed == 3
    task_repo = TaskRepository(test_db)
    assert await task_repo.count() == 1
    for key in ("goals", "learn", "practice"):
        assert await task_repo.get_by_id(tree[key].id) is None
    link_repo = TaskTagRepository(test_db)
    assert await link_repo.get_task_ids(tree["routine"].id) == []
    assert await link_repo.get_task_ids(tree["growth"].id) == []
    # Теги остаются
    assert (await tag_service.get_tag(tree["routine"].id)).name == "Routine"


@pytest.mark.asyncio
async def test_delete_leaf_returns_one(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)

    assert await task_service.delete_task(tree["practice"].id) == 1
    assert await task_service.get_descendant_ids(tree["goals"].id) == [tree["learn"].id]


@pytest.mark.asyncio
async def test_delete_middle_node(task_service, tag_service, test_db):
    """Test: удаление Learn X забирает Practice daily, Goals и его тег остаются."""
    tree = await _goals_tree(task_service, tag_service)

    removed = await task_service.delete_task(tree["learn"].id)

    assert removed == 2
    task_repo = TaskRepository(test_db)
    assert (await task_repo.get_by_id(tree["goals"].id)).name == "Goals"
    assert await task_repo.get_by_id(tree["learn"].id) is None
    assert await task_repo.get_by_id(tree["practice"].id) is None

    link_repo = TaskTagRepository(test_db)
    assert await link_repo.get_task_ids(tree["growth"].id) == [tree["goals"].id]
    assert await link_repo.get_task_ids(tree["routine"].id) == []

    assert await task_service.get_descendant_ids(tree["goals"].id) == []
    assert await task_service.get_ancestor_ids(tree["practice"].id) == []
    assert await task_service.get_inherited_tags(tree["practice"].id) == []


@pytest.mark.asyncio
async def test_delete_keeps_activity_log(task_service, tag_service, test_db):
    tree = await _goals_tree(task_service, tag_service)
    await task_service.complete_task(tree["practice"].id)

    await task_service.delete_task(tree["goals"].id)

    [entry] = await ActivityLogRepository(test_db).get_recent()
    assert entry.task_id is None
    assert entry.task_name == "Practice daily"


@pytest.mark.asyncio
async def test_delete_missing_task(task_service):
    with pytest.raises(NotFoundError):
        await task_service.delete_task(uuid.uuid4())


# ============================================================================
# TAG ASSOCIATIONS
# ============================================================================


@pytest.mark.asyncio
async def test_attach_tags_idempotent(task_service, tag_service, test_db):
    tree = await _goals_tree(task_service, tag_service)
    focus = await tag_service.create_tag("Focus", "mood")

    await task_service.attach_tags(tree["learn"].id, [focus.id, tree["growth"].id])
    task = await task_service.attach_tags(tree["learn"].id, [focus.id])

    assert [t.name for t in task.tags] == ["Focus", "Growth"]
    assert len(await TaskTagRepository(test_db).get_task_ids(focus.id)) == 1


@pytest.mark.asyncio
async def test_attach_tags_link_created_concurrently(
    task_service, tag_service, test_db, monkeypatch
):
    """Test: связь, записанная между проверкой и вставкой, не даёт дубликат."""
    tree = await _goals_tree(task_service, tag_service)

    async def no_linked_tags(task_id):
        return set()

    monkeypatch.setattr(task_service.task_tag_repo, "get_tag_ids", no_linked_tags)

    task = await task_service.attach_tags(tree["goals"].id, [tree["growth"].id])

    assert [t.name for t in task.tags] == ["Growth"]
    assert await TaskTagRepository(test_db).get_task_ids(tree["growth"].id) == [tree["goals"].id]


@pytest.mark.asyncio
async def test_attach_tags_unknown_tag_attaches_nothing(task_service, tag_service):
    """Test: все теги проверяются до первой записи."""
    tree = await _goals_tree(task_service, tag_service)
    focus = await tag_service.create_tag("Focus", "mood")

    with pytest.raises(NotFoundError):
        await task_service.attach_tags(tree["learn"].id, [focus.id, uuid.uuid4()])

    learn = await task_service.get_task(tree["learn"].id)
    assert learn.tags == []


@pytest.mark.asyncio
async def test_detach_tag(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)

    task = await task_service.detach_tag(tree["practice"].id, tree["routine"].id)
    assert task.tags == []

    with pytest.raises(NotFoundError, match="Task tag"):
        await task_service.detach_tag(tree["practice"].id, tree["routine"].id)


@pytest.mark.asyncio
async def test_detach_inherited_tag_not_allowed(task_service, tag_service):
    """Test: унаследованный тег снимается только у предка."""
    tree = await _goals_tree(task_service, tag_service)

    with pytest.raises(NotFoundError):
        await task_service.detach_tag(tree["practice"].id, tree["growth"].id)


# ============================================================================
# COMPLETE / SKIP
# ============================================================================


@pytest.mark.asyncio
async def test_complete_task_twice(task_service, tag_service, test_db):
    park = await tag_service.create_tag("Park", "location")
    task = await task_service.create_task("Practice daily", is_recurring=True)

    await task_service.complete_task(task.id, location_tag_id=park.id, duration_minutes=20)
    done = await task_service.complete_task(task.id)

    assert done.status == TaskStatus.DONE
    assert done.times_completed == 2
    assert done.last_completed_at is not None

    entries = await ActivityLogRepository(test_db).get_by_task(task.id)
    assert len(entries) == 2
    assert {e.location_tag_id for e in entries} == {park.id, None}


@pytest.mark.asyncio
async def test_skip_task(task_service, test_db):
    task = await task_service.create_task("Practice daily")

    skipped = await task_service.skip_task(task.id, notes="rainy")

    assert skipped.times_skipped == 1
    assert skipped.status == TaskStatus.NOT_STARTED
    [entry] = await ActivityLogRepository(test_db).get_by_task(task.id)
    assert entry.action == ActivityAction.SKIPPED
    assert entry.notes == "rainy"


# ============================================================================
# IMPORT & PATH LOOKUP
# ============================================================================


@pytest.mark.asyncio
async def test_import_tree_and_find_by_path(task_service, tag_service):
    existing = await tag_service.create_tag("AI", "subject")

    [root] = await task_service.import_tree(
        [
            {
                "name": "Life goals",
                "children": [
                    {
                        "name": "AI expert",
                        "status": "done",
                        "tags": [{"name": "AI", "type": "subject"}],
                        "children": [
                            {"name": "Statistics", "tags": [{"name": "Coding", "type": "Category"}]},
                            {"name": "Colab links"},
                        ],
                    }
                ],
            }
        ]
    )

    assert root.name == "Life goals"
    statistics = await task_service.find_by_path(["Life goals", "AI expert", "Statistics"])
    ai_expert = await task_service.find_by_path(["Life goals", "AI expert"])

    assert ai_expert.status == TaskStatus.DONE
    assert [t.id for t in ai_expert.tags] == [existing.id]
    assert [t.type for t in statistics.tags] == ["category"]
    assert len(await task_service.get_descendant_ids(root.id)) == 3

    effective = await task_service.get_inherited_tags(statistics.id)
    assert {(i.tag.name, i.is_own) for i in effective} == {("Coding", True), ("AI", False)}


@pytest.mark.asyncio
async def test_import_tree_under_parent(task_service):
    parent = await task_service.create_task("Inbox")

    roots = await task_service.import_tree([{"name": "A"}, {"name": "B"}], parent_id=parent.id)

    assert [r.parent_id for r in roots] == [parent.id, parent.id]


@pytest.mark.asyncio
async def test_find_by_path_missing(task_service):
    await task_service.create_task("Life goals")

    with pytest.raises(NotFoundError, match="Life goals / Nope"):
        await task_service.find_by_path(["Life goals", "Nope"])

    with pytest.raises(ValidationError):
        await task_service.find_by_path([])


# ============================================================================
# TAG SERVICE
# ============================================================================


@pytest.mark.asyncio
async def test_create_tag_duplicate(tag_service):
    await tag_service.create_tag("Room", "location")

    with pytest.raises(UniquenessViolationError, match="already exists"):
        await tag_service.create_tag(" Room ", "LOCATION")


@pytest.mark.asyncio
async def test_create_tag_duplicate_inserted_concurrently(tag_service, monkeypatch):
    """Test: дубликат, не замеченный проверкой, - 409, а не IntegrityError."""
    room = await tag_service.create_tag("Room", "location")

    async def no_existing_tag(name, type):
        return None

    monkeypatch.setattr(tag_service.tag_repo, "get_by_name_and_type", no_existing_tag)

    with pytest.raises(UniquenessViolationError, match="already exists"):
        await tag_service.create_tag("Room", "location")

    monkeypatch.undo()
    assert [t.id for t in await tag_service.list_tags(type="location")] == [room.id]


@pytest.mark.asyncio
async def test_create_tag_same_name_other_type(tag_service):
    room_location = await tag_service.create_tag("Room", "location")
    room_project = await tag_service.create_tag("Room", "project")

    assert room_location.id != room_project.id


@pytest.mark.asyncio
async def test_create_tag_invalid_color(tag_service):
    with pytest.raises(ValidationError, match="Invalid color format"):
        await tag_service.create_tag("Park", "location", color="green")


@pytest.mark.asyncio
async def test_create_tag_defaults(tag_service):
    tag = await tag_service.create_tag("Park", " Location ")

    assert tag.type == "location"
    assert tag.color == "#667eea"
    assert tag.is_focused is False


@pytest.mark.asyncio
async def test_update_tag_uniqueness(tag_service):
    await tag_service.create_tag("Room", "location")
    cafe = await tag_service.create_tag("Cafe", "location")

    with pytest.raises(UniquenessViolationError):
        await tag_service.update_tag(cafe.id, name="Room")

    renamed = await tag_service.update_tag(cafe.id, name="Coffee shop", color="#e74c3c")
    assert renamed.name == "Coffee shop"
    assert renamed.color == "#e74c3c"


@pytest.mark.asyncio
async def test_set_focus_and_list(tag_service):
    park = await tag_service.create_tag("Park", "location")
    await tag_service.create_tag("Tired", "mood")

    await tag_service.set_focus(park.id, True)

    assert [t.name for t in await tag_service.list_tags(focused_only=True)] == ["Park"]
    assert [t.name for t in await tag_service.list_tags(type="MOOD")] == ["Tired"]


@pytest.mark.asyncio
async def test_delete_tag_removes_links(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)

    removed = await tag_service.delete_tag(tree["growth"].id)

    assert removed == 1
    goals = await task_service.get_task(tree["goals"].id)
    assert goals.tags == []
    effective = await task_service.get_inherited_tags(tree["practice"].id)
    assert [i.tag.name for i in effective] == ["Routine"]


@pytest.mark.asyncio
async def test_tag_usage(task_service, tag_service):
    tree = await _goals_tree(task_service, tag_service)
    await task_service.attach_tags(tree["learn"].id, [tree["growth"].id])

    usage = {tag.name: count for tag, count in await tag_service.get_tag_usage()}

    assert usage == {"Growth": 2, "Routine": 1}


# ============================================================================
# ACTIVITY & MEMORY
# ============================================================================


@pytest.mark.asyncio
async def test_activity_record_explicit_buckets(task_service, test_db):
    task = await task_service.create_task("Practice daily")
    service = ActivityService(test_db)

    entry = await service.record(task.id, "completed", day_of_week=0, hour_of_day=7)

    assert entry.day_of_week == 0
    assert entry.hour_of_day == 7
    assert entry.task_name == "Practice daily"
    assert await service.summarize_by_hour() == {7: 1}


@pytest.mark.asyncio
async def test_activity_record_validation(task_service, test_db):
    task = await task_service.create_task("Practice daily")
    service = ActivityService(test_db)

    with pytest.raises(ValidationError, match="hour_of_day"):
        await service.record(task.id, "completed", hour_of_day=24)

    with pytest.raises(ValidationError, match="action"):
        await service.record(task.id, "  ")

    with pytest.raises(NotFoundError):
        await service.record(uuid.uuid4(), "completed")

    with pytest.raises(NotFoundError):
        await service.record(task.id, "completed", mood_tag_id=uuid.uuid4())


@pytest.mark.asyncio
async def test_memory_service(test_db):
    service = MemoryService(test_db)

    await service.set("current_mood", "Energetic")
    await service.set("current_mood", "Tired")
    assert await service.set_default("current_mood", "Sleepy") is False

    assert (await service.get("current_mood")).value == "Tired"
    assert await service.get_value("missing", "fallback") == "fallback"
    assert await service.get_all() == {"current_mood": "Tired"}

    await service.delete("current_mood")
    with pytest.raises(NotFoundError):
        await service.get("current_mood")
    with pytest.raises(NotFoundError):
        await service.delete("current_mood")
    with pytest.raises(ValidationError):
        await service.set(" ", "value")
