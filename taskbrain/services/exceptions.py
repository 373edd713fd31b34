"""Domain errors raised by the service layer.

All of them reach the caller; the API layer turns them into the unified
error envelope (see api/errors.py).
"""


class TaskBrainError(Exception):
    """Base class for domain errors."""

    code = "TASKBRAIN_ERROR"


class NotFoundError(TaskBrainError, ValueError):
    """A task, tag, association or memory key does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: object):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with id {resource_id} not found")


class ValidationError(TaskBrainError, ValueError):
    """A business rule rejected the input (blank name, bad colour, ...)."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class CycleViolationError(TaskBrainError, ValueError):
    """The requested parent would make a task its own ancestor."""

    code = "CYCLE_VIOLATION"

    def __init__(self, task_id: object, parent_id: object):
        self.task_id = task_id
        self.parent_id = parent_id
        super().__init__(
            f"Task {task_id} cannot be moved under {parent_id}: "
            "the new parent is the task itself or one of its descendants"
        )


class UniquenessViolationError(TaskBrainError, ValueError):
    """Duplicate (name, type) tag or duplicate (task, tag) association."""

    code = "ALREADY_EXISTS"

    def __init__(self, resource: str, field: str, value: object):
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class CorruptionBoundError(TaskBrainError, RuntimeError):
    """
    A parent walk ran past the total number of tasks.

    Means a cycle is already stored (the cycle guard was bypassed), so the
    tree must be repaired before traversal results can be trusted.
    """

    code = "DATA_CORRUPTION"

    def __init__(self, task_id: object, bound: int):
        self.task_id = task_id
        self.bound = bound
        super().__init__(
            f"Ancestor walk from task {task_id} exceeded {bound} steps: "
            "parent references contain a cycle"
        )
