"""
Task manager for tasktree.

Owns the forest of root tasks and the named task lists, allocates task ids,
and implements the structural operations: adding, reparenting ("assign"),
soft deletion and restoration. All tree-shape changes go through this class.
"""

import re
from datetime import date
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError

from tasktree.config import TaskTreeConfig
from tasktree.logging_config import get_logger, setup_logging
from tasktree.models import Priority, Task, TaskList, priority_sort_key
from tasktree.services.hierarchy_validation import HierarchyCycleError, validate_reparent

logger = get_logger(__name__)

# Parent ids are plain decimal integers with an optional sign
TASK_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


class TaskManagerError(Exception):
    """Base exception for task manager errors."""
    pass


class TaskNotFoundError(TaskManagerError):
    """Raised when a task id does not resolve to a live task."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task with id {task_id} not found")


class ListNotFoundError(TaskManagerError):
    """Raised when a task list name does not resolve to a list."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"List with name '{name}' not found")


class SameTaskError(TaskManagerError):
    """Raised when a task is assigned to itself."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id} cannot be assigned as its own subtask")


class ListContainsTaskError(TaskManagerError):
    """Raised when a list already holds a task, directly or through a member's subtree."""

    def __init__(self, task_id: int, list_name: str) -> None:
        self.task_id = task_id
        self.list_name = list_name
        super().__init__(f"List '{list_name}' already contains task {task_id}")


class TaskManager:
    """
    In-memory owner of the task forest and the named task lists.

    Tasks are never physically removed: deletion only flags the subtree, so
    id lookups keep working for deleted tasks and callers must check
    ``Task.deleted``. Lists store task ids and are resolved through the
    manager.
    """

    def __init__(self, config: Optional[TaskTreeConfig] = None) -> None:
        """
        Initialize an empty manager.

        Args:
            config: Optional configuration, defaults to TaskTreeConfig()
        """
        self.config = config or TaskTreeConfig()
        self._roots: List[Task] = []
        self._lists: Dict[str, TaskList] = {}
        self._index: Dict[int, Task] = {}
        self._next_id = 1

    @classmethod
    def from_config(cls, path: Optional[Path] = None) -> "TaskManager":
        """
        Create a manager configured from a TOML file.

        Application entry point: logging is set up at the configured level
        before the manager is created.

        Args:
            path: Config file path, defaults to ~/.tasktree/config.toml

        Returns:
            Empty TaskManager using the loaded configuration
        """
        config = TaskTreeConfig.from_toml_file(path)
        setup_logging(config.log_level)
        return cls(config)

    # ==============================================================================
    # READ-ONLY VIEWS
    # ==============================================================================

    @property
    def roots(self) -> Tuple[Task, ...]:
        """Top-level tasks in display order."""
        return tuple(self._roots)

    @property
    def lists(self) -> Tuple[TaskList, ...]:
        """Task lists in creation order."""
        return tuple(self._lists.values())

    def iter_tasks(self, include_deleted: bool = False) -> Iterator[Task]:
        """
        Walk the forest in depth-first pre-order.

        Args:
            include_deleted: Also yield deleted tasks and their subtrees

        Yields:
            Tasks, roots first, each followed by its subtree
        """
        for root in self._roots:
            if root.deleted and not include_deleted:
                continue
            yield root
            for descendant in root.iter_descendants():
                if include_deleted or not descendant.deleted:
                    yield descendant

    # ==============================================================================
    # LOOKUPS
    # ==============================================================================

    def get_task(self, task_id: int) -> Optional[Task]:
        """
        Look up a task by id, deleted or not.

        Args:
            task_id: Id of the task

        Returns:
            The task, or None if no task was ever created with this id
        """
        return self._index.get(task_id)

    def get_list(self, name: str) -> Optional[TaskList]:
        """Look up a task list by name."""
        return self._lists.get(name)

    def get_parent(self, task_id: int) -> Optional[Task]:
        """
        Find the structural parent of a task, ignoring deletion flags.

        Args:
            task_id: Id of the child task

        Returns:
            The parent task, or None for root tasks and unknown ids
        """
        for root in self._roots:
            parent = root.find_parent(task_id)
            if parent is not None:
                return parent
        return None

    def get_list_tasks(self, name: str) -> List[Task]:
        """
        Resolve the members of a list in list order.

        Args:
            name: Name of the list

        Returns:
            Member tasks, deleted ones included

        Raises:
            ListNotFoundError: If no list has this name
        """
        return self._members(self._get_list_or_raise(name))

    # ==============================================================================
    # CREATE OPERATIONS
    # ==============================================================================

    def add(
        self,
        name: str,
        priority: Optional[Priority] = None,
        due_date: Optional[date] = None,
    ) -> Task:
        """
        Create a new root task with the next free id.

        Args:
            name: Task name
            priority: Optional priority
            due_date: Optional due date

        Returns:
            Created Task instance

        Raises:
            pydantic.ValidationError: If the name is empty or malformed
        """
        task = Task(id=self._next_id, name=name, priority=priority, due_date=due_date)
        self._next_id += 1
        self._roots.append(task)
        self._index[task.id] = task
        logger.info(f"Added task: id={task.id}, name='{name}', priority={priority}, due_date={due_date}")
        return task

    def add_list(self, name: str) -> bool:
        """
        Create a new empty task list.

        Args:
            name: Unique, non-empty list name

        Returns:
            True if the list was created, False if the name is taken or empty
        """
        if name in self._lists:
            logger.warning(f"List creation failed - name already exists: '{name}'")
            return False
        try:
            task_list = TaskList(name=name)
        except ValidationError:
            logger.warning(f"List creation failed - invalid name: '{name}'")
            return False
        self._lists[name] = task_list
        logger.info(f"Created list: name='{name}'")
        return True

    def tag_list(self, name: str, tag: str) -> bool:
        """
        Tag a task list.

        Returns:
            True if the tag was added, False if the list already had it

        Raises:
            ListNotFoundError: If no list has this name
            ValueError: If the tag is not alphanumeric
        """
        return self._get_list_or_raise(name).set_tag(tag)

    # ==============================================================================
    # ASSIGN OPERATIONS
    # ==============================================================================

    def assign(self, first_id: int, second: Union[int, str]) -> Optional[str]:
        """
        Assign a task to a list or to a new parent task.

        If ``second`` names an existing list the task is added to that list;
        otherwise ``second`` is read as a task id and the task is moved under
        that task. A list name that looks like a number still resolves to the
        list.

        Args:
            first_id: Id of the task to assign
            second: List name or parent task id

        Returns:
            Name of the list or new parent, or None if the reparent was
            rejected without error (cycle, or already assigned there)

        Raises:
            TaskNotFoundError: If either task is missing or deleted
            ListNotFoundError: If second is neither a list nor an integer
            SameTaskError: If a task is assigned to itself
            ListContainsTaskError: If the list already holds the task
        """
        task = self._get_live_task_or_raise(first_id)

        task_list = self._lists.get(str(second))
        if task_list is not None:
            return self._assign_to_list(task, task_list)
        return self._assign_to_task(task, second)

    def _assign_to_list(self, task: Task, task_list: TaskList) -> str:
        if self._list_contains(task_list, task.id):
            logger.warning(f"Assign rejected: list '{task_list.name}' already contains task {task.id}")
            raise ListContainsTaskError(task.id, task_list.name)

        # The assigned task supersedes its own descendants in this list
        for member_id in list(task_list.task_ids):
            if task.contains(member_id):
                task_list.remove_task(member_id)
        task_list.add_task(task.id)

        logger.info(f"Assigned task {task.id} to list '{task_list.name}'")
        return task_list.name

    def _assign_to_task(self, task: Task, second: Union[int, str]) -> Optional[str]:
        parent_id = self._parse_task_id(second)
        new_parent = self._get_live_task_or_raise(parent_id)
        if task.id == new_parent.id:
            logger.warning(f"Assign rejected: task {task.id} assigned to itself")
            raise SameTaskError(task.id)

        try:
            validate_reparent(self, task, new_parent)
        except HierarchyCycleError:
            return None

        current_parent = self.get_parent(task.id)
        if current_parent is not None and current_parent.id == new_parent.id:
            logger.warning(f"Task {task.id} is already assigned to task {new_parent.id}")
            return None

        self._detach(task)
        new_parent.add_child(task)
        logger.info(f"Moved task {task.id} under task {new_parent.id}")
        return new_parent.name

    # ==============================================================================
    # DELETE / RESTORE OPERATIONS
    # ==============================================================================

    def delete(self, task_id: int) -> None:
        """
        Soft-delete a task and its subtree.

        The task keeps its place in the forest and in every list.

        Args:
            task_id: Id of the task

        Raises:
            TaskNotFoundError: If no task was ever created with this id
        """
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        descendant_count = task.count_all_subtasks()
        task.delete()
        logger.info(f"Deleted task: id={task_id}, name='{task.name}', descendants={descendant_count}")

    def restore(self, task_id: int) -> Task:
        """
        Restore a deleted task together with its whole subtree.

        The task moves to the end of every list that holds it and descendants
        listed separately are dropped from those lists. If its parent is
        still deleted the task becomes a root and inherits the parent's list
        memberships; otherwise it moves to the end of its siblings.

        Args:
            task_id: Id of the deleted task

        Returns:
            The restored task

        Raises:
            TaskNotFoundError: If the id does not resolve to a deleted task
        """
        task = self.get_task(task_id)
        if task is None or not task.deleted:
            logger.warning(f"Restore rejected: task {task_id} is not deleted")
            raise TaskNotFoundError(task_id)

        self._restore_in_lists(task)

        parent = self.get_parent(task_id)
        if parent is not None and parent.deleted:
            for task_list in self._lists.values():
                if self._list_contains(task_list, parent.id):
                    task_list.add_task(task.id)
            parent.remove_child(task.id)
            self._roots.append(task)
            logger.debug(f"Task {task_id} detached from deleted parent {parent.id}")
        elif parent is not None:
            parent.remove_child(task.id)
            parent.add_child(task)
        else:
            self._remove_root(task.id)
            self._roots.append(task)

        task.restore()
        logger.info(f"Restored task: id={task_id}, name='{task.name}'")
        return task

    def _restore_in_lists(self, task: Task) -> None:
        for task_list in self._lists.values():
            if task.id in task_list:
                task_list.move_to_end(task.id)
            for member_id in list(task_list.task_ids):
                if task.contains(member_id):
                    task_list.remove_task(member_id)

    # ==============================================================================
    # SORTING
    # ==============================================================================

    def sort(self) -> None:
        """Sort root tasks and every subtree by priority; lists are untouched."""
        self._roots.sort(key=priority_sort_key)
        for root in self._roots:
            root.sort()

    def sort_list(self, name: str) -> None:
        """
        Sort a list's members by priority, then each member's subtree.

        Raises:
            ListNotFoundError: If no list has this name
        """
        task_list = self._get_list_or_raise(name)
        members = self._members(task_list)
        members.sort(key=priority_sort_key)
        task_list.task_ids[:] = [member.id for member in members]
        for member in members:
            member.sort()

    # ==============================================================================
    # HELPERS
    # ==============================================================================

    def _get_live_task_or_raise(self, task_id: int) -> Task:
        task = self.get_task(task_id)
        if task is None or task.deleted:
            logger.warning(f"Task {task_id} not found or deleted")
            raise TaskNotFoundError(task_id)
        return task

    def _parse_task_id(self, value: Union[int, str]) -> int:
        """Read an assign target as a task id; anything else is an unknown list."""
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str) and TASK_ID_PATTERN.fullmatch(value):
            return int(value)
        logger.warning(f"Assign rejected: '{value}' is neither a list nor a task id")
        raise ListNotFoundError(str(value))

    def _get_list_or_raise(self, name: str) -> TaskList:
        task_list = self.get_list(name)
        if task_list is None:
            raise ListNotFoundError(name)
        return task_list

    def _members(self, task_list: TaskList) -> List[Task]:
        return [self._index[task_id] for task_id in task_list.task_ids]

    def _list_contains(self, task_list: TaskList, task_id: int) -> bool:
        """Check whether a list holds a task directly or below one of its members."""
        return any(
            member.id == task_id or member.contains(task_id)
            for member in self._members(task_list)
        )

    def _remove_root(self, task_id: int) -> None:
        self._roots[:] = [root for root in self._roots if root.id != task_id]

    def _detach(self, task: Task) -> None:
        parent = self.get_parent(task.id)
        if parent is not None:
            parent.remove_child(task.id)
        else:
            self._remove_root(task.id)
