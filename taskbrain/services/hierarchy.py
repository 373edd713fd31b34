"""
Обход дерева задач и наследование тегов.

Чистые функции без доступа к БД. Дерево передаётся как "parent index":
словарь {task_id: parent_id | None}, построенный одним запросом
(TaskRepository.get_parent_index). Так логику можно проверять на
in-memory фейке, а любое хранилище - подставить вместо SQL.

Пример дерева:
    Goals                 parent_index = {
      └─ Learn X              goals: None,
           └─ Practice        learn: goals,
                              practice: learn,
                          }
"""

from collections import deque
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import CorruptionBoundError

NodeId = TypeVar("NodeId", bound=Hashable)
TagT = TypeVar("TagT")


@dataclass(frozen=True)
class InheritedTag(Generic[TagT]):
    """Tag visible on a task: directly owned (is_own=True) or inherited."""

    tag: TagT
    is_own: bool


def build_children_index(
    parent_index: Mapping[NodeId, NodeId | None],
) -> dict[NodeId, list[NodeId]]:
    """Invert the parent index: {parent_id: [child_id, ...]}."""
    children: dict[NodeId, list[NodeId]] = {}
    for node_id, parent_id in parent_index.items():
        if parent_id is not None:
            children.setdefault(parent_id, []).append(node_id)
    return children


def walk_ancestors(parent_index: Mapping[NodeId, NodeId | None], task_id: NodeId) -> list[NodeId]:
    """
    Предки задачи от ближайшего родителя до корня.

    Args:
        parent_index: {task_id: parent_id}
        task_id: ID задачи

    Returns:
        [parent, grandparent, ..., root]; пустой список для корня
        и для неизвестного ID.

    Raises:
        CorruptionBoundError: обход длиннее числа задач (в данных цикл)

    SQL эквивалент (WITH RECURSIVE):
        WITH RECURSIVE ancestors AS (
          SELECT parent_id FROM tasks WHERE id = :task_id AND parent_id IS NOT NULL
          UNION ALL
          SELECT t.parent_id FROM tasks t JOIN ancestors a ON t.id = a.parent_id
          WHERE t.parent_id IS NOT NULL
        )
        SELECT parent_id FROM ancestors;
    """
    bound = len(parent_index)
    ancestors: list[NodeId] = []
    seen: set[NodeId] = {task_id}

    current = parent_index.get(task_id)
    while current is not None:
        if current in seen or len(ancestors) >= bound:
            raise CorruptionBoundError(task_id, bound)
        ancestors.append(current)
        seen.add(current)
        current = parent_index.get(current)

    return ancestors


def collect_descendants(
    parent_index: Mapping[NodeId, NodeId | None],
    task_id: NodeId,
    children_index: Mapping[NodeId, Sequence[NodeId]] | None = None,
) -> list[NodeId]:
    """
    Все потомки задачи (дети, внуки, ...) обходом в ширину.

    Сама задача в результат не входит. Для листа и неизвестного ID -
    пустой список. Посещённые узлы запоминаются, поэтому обход
    завершается даже при повреждённых данных.
    """
    if children_index is None:
        children_index = build_children_index(parent_index)

    descendants: list[NodeId] = []
    visited: set[NodeId] = {task_id}
    queue: deque[NodeId] = deque(children_index.get(task_id, ()))

    while queue:
        node_id = queue.popleft()
        if node_id in visited:
            continue
        visited.add(node_id)
        descendants.append(node_id)
        queue.extend(children_index.get(node_id, ()))

    return descendants


def would_create_cycle(
    parent_index: Mapping[NodeId, NodeId | None], task_id: NodeId, new_parent_id: NodeId | None
) -> bool:
    """True if putting task_id under new_parent_id makes the task its own ancestor."""
    if new_parent_id is None:
        return False
    if new_parent_id == task_id:
        return True
    return task_id in walk_ancestors(parent_index, new_parent_id)


def merge_inherited_tags(
    own_tags: Iterable[TagT],
    ancestor_tags: Iterable[Iterable[TagT]],
    key=lambda tag: tag.id,
) -> list[InheritedTag[TagT]]:
    """
    Объединить собственные теги задачи с тегами предков.

    Args:
        own_tags: теги, привязанные к самой задаче
        ancestor_tags: теги каждого предка, от ближайшего к корню
        key: идентичность тега (по умолчанию tag.id)

    Returns:
        Каждый тег ровно один раз. Собственный тег имеет приоритет:
        если он есть и у предка, он всё равно помечен is_own=True.
    """
    result: list[InheritedTag[TagT]] = []
    seen: set = set()

    for tag in own_tags:
        tag_key = key(tag)
        if tag_key not in seen:
            seen.add(tag_key)
            result.append(InheritedTag(tag=tag, is_own=True))

    for tags in ancestor_tags:
        for tag in tags:
            tag_key = key(tag)
            if tag_key not in seen:
                seen.add(tag_key)
                result.append(InheritedTag(tag=tag, is_own=False))

    return result
