"""
Read-only task queries for tasktree.

Selects tasks for display views (search by name, by tag, by due date or
deadline, duplicate detection and the to-do view). Queries that back a
display first sort the forest, so results come out in priority order.
"""

from collections import deque
from datetime import date, timedelta
from typing import List, Optional, Set

from tasktree.logging_config import get_logger
from tasktree.models import Task, priority_sort_key
from tasktree.services.task_manager import TaskManager

logger = get_logger(__name__)


def find_by_name(manager: TaskManager, text: str) -> List[Task]:
    """
    Find live tasks whose name contains a substring.

    Args:
        manager: Manager to search
        text: Substring to look for (case-sensitive)

    Returns:
        Matching tasks in pre-order of the sorted forest
    """
    manager.sort()
    matches = [task for task in manager.iter_tasks() if text in task.name]
    logger.debug(f"find_by_name('{text}'): {len(matches)} matches")
    return matches


def tagged_with(manager: TaskManager, tag: str) -> List[Task]:
    """
    Find the topmost tasks carrying a tag.

    The forest is searched breadth-first; once a task matches, its subtree
    is not searched further. Results are ordered by priority. When the
    matches do not all share one parent, ties are broken by id.

    Args:
        manager: Manager to search
        tag: Tag to look for

    Returns:
        Matching tasks
    """
    queue = deque(manager.roots)
    matches: List[Task] = []
    while queue:
        task = queue.popleft()
        if task.deleted:
            continue
        if tag in task.tags:
            matches.append(task)
        else:
            queue.extend(task.children)

    if _share_parent(manager, matches):
        matches.sort(key=priority_sort_key)
    else:
        matches.sort(key=lambda task: (priority_sort_key(task), task.id))
    return matches


def _share_parent(manager: TaskManager, tasks: List[Task]) -> bool:
    if not tasks:
        return False
    parent = manager.get_parent(tasks[0].id)
    if parent is None:
        return False
    child_ids = {child.id for child in parent.children}
    return all(task.id in child_ids for task in tasks)


def upcoming(manager: TaskManager, start: date, days: Optional[int] = None) -> List[Task]:
    """
    Find live tasks due within a window starting at a date.

    Args:
        manager: Manager to search
        start: First day of the window
        days: Window length, defaults to the configured upcoming_days

    Returns:
        Tasks due between start and start + days, both inclusive
    """
    if days is None:
        days = manager.config.upcoming_days
    return between(manager, start, start + timedelta(days=days))


def between(manager: TaskManager, first: date, second: date) -> List[Task]:
    """
    Find live tasks due in an inclusive date range.

    The bounds may be given in either order.

    Args:
        manager: Manager to search
        first: One bound of the range
        second: The other bound

    Returns:
        Tasks due in the range, in pre-order of the sorted forest
    """
    if second < first:
        first, second = second, first

    manager.sort()
    return [
        task for task in manager.iter_tasks()
        if task.due_date is not None and first <= task.due_date <= second
    ]


def before(manager: TaskManager, day: date) -> List[Task]:
    """
    Find live tasks due on or before a date.

    Args:
        manager: Manager to search
        day: Last due date to include

    Returns:
        Tasks due no later than day, in pre-order of the sorted forest
    """
    manager.sort()
    return [
        task for task in manager.iter_tasks()
        if task.due_date is not None and task.due_date <= day
    ]


def _are_duplicates(first: Task, second: Task) -> bool:
    if first.id == second.id or first.name != second.name:
        return False
    # A missing date on either side still counts as a duplicate
    if first.due_date is None or second.due_date is None:
        return True
    return first.due_date == second.due_date


def duplicates(manager: TaskManager) -> List[int]:
    """
    Find ids of tasks that look like duplicates of one another.

    Two tasks are duplicates when their names are equal and their due dates
    are equal or at least one of them has no due date.

    Args:
        manager: Manager to search

    Returns:
        Sorted ids of every task involved in a duplicate pair
    """
    # Subtrees of live roots are scanned whole, as in the display view
    candidates: List[Task] = []
    for root in manager.roots:
        if not root.deleted:
            candidates.append(root)
            candidates.extend(root.iter_descendants())

    found: Set[int] = set()
    for index, task in enumerate(candidates):
        for other in candidates[index + 1:]:
            if _are_duplicates(task, other):
                found.update((task.id, other.id))

    logger.debug(f"duplicates: {len(found)} tasks")
    return sorted(found)


def _is_finished(task: Task) -> bool:
    return all(child.done and _is_finished(child) for child in task.children)


def todo(manager: TaskManager) -> List[Task]:
    """
    Select root tasks for the to-do view.

    A root is skipped when it is deleted, or when it is done and every task
    below it is done as well.

    Args:
        manager: Manager to query

    Returns:
        Root tasks still needing attention, in sorted order
    """
    manager.sort()
    return [
        task for task in manager.roots
        if not task.deleted and not (task.done and _is_finished(task))
    ]
