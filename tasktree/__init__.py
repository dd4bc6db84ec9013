"""tasktree - hierarchical, taggable tasks with named lists and soft deletion."""

from tasktree.models import Priority, Task, TaskList
from tasktree.services.task_manager import (
    ListContainsTaskError,
    ListNotFoundError,
    SameTaskError,
    TaskManager,
    TaskManagerError,
    TaskNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "Priority",
    "Task",
    "TaskList",
    "TaskManager",
    "TaskManagerError",
    "TaskNotFoundError",
    "ListNotFoundError",
    "SameTaskError",
    "ListContainsTaskError",
]
