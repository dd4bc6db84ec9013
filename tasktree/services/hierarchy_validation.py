"""
Ancestry checks for reparenting tasks.

Keeps the parent relation a forest: a task may never become a descendant of
itself, either directly (parent into its own child) or through a longer chain
(grandparent into grandchild).
"""

from typing import TYPE_CHECKING

from tasktree.logging_config import get_logger
from tasktree.models import Task

if TYPE_CHECKING:
    from tasktree.services.task_manager import TaskManager

logger = get_logger(__name__)


class HierarchyCycleError(Exception):
    """Raised when a reparent would make a task its own ancestor."""

    def __init__(self, task_id: int, new_parent_id: int) -> None:
        self.task_id = task_id
        self.new_parent_id = new_parent_id
        super().__init__(
            f"Task {task_id} cannot be assigned to task {new_parent_id}: "
            f"{new_parent_id} is below {task_id}"
        )


def would_create_cycle(task: Task, new_parent: Task) -> bool:
    """
    Check whether making new_parent the parent of task would close a cycle.

    Args:
        task: Task being moved
        new_parent: Proposed parent

    Returns:
        True if new_parent is the task itself or one of its descendants
    """
    return task.id == new_parent.id or task.contains(new_parent.id)


def validate_reparent(
    manager: "TaskManager",
    task: Task,
    new_parent: Task,
) -> None:
    """
    Validate that task can be moved under new_parent.

    The direct case (new_parent is currently a child of task) is checked
    first since it is the common mistake; deeper chains are caught by a full
    subtree search.

    Args:
        manager: Manager owning both tasks
        task: Task being moved
        new_parent: Proposed parent

    Raises:
        HierarchyCycleError: If the move would make task its own ancestor
    """
    current_parent = manager.get_parent(new_parent.id)
    if current_parent is not None and current_parent.id == task.id:
        logger.warning(
            f"Cycle rejected: task {new_parent.id} is a direct child of task {task.id}"
        )
        raise HierarchyCycleError(task.id, new_parent.id)

    if would_create_cycle(task, new_parent):
        logger.warning(
            f"Cycle rejected: task {new_parent.id} is a descendant of task {task.id}"
        )
        raise HierarchyCycleError(task.id, new_parent.id)
