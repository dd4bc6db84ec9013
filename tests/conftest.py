"""
Pytest configuration and fixtures for tasktree tests.

Provides manager fixtures, a prebuilt task hierarchy and model factories.
"""

from datetime import date

import pytest

from tasktree.models import Priority, Task, TaskList
from tasktree.services.task_manager import TaskManager


@pytest.fixture
def manager():
    """
    Provide an empty TaskManager.

    Example:
        def test_something(manager):
            task = manager.add("Buy milk")
    """
    return TaskManager()


@pytest.fixture
def task_hierarchy(manager):
    """
    Create a multi-level task hierarchy for testing nesting.

    Creates:
        - Parent Task (id 1)
          - Child Task 1 (id 2)
            - Grandchild Task (id 4)
          - Child Task 2 (id 3)
        - Other Task (id 5)

    Args:
        manager: Manager fixture

    Returns:
        Dictionary with task IDs at each level
    """
    parent = manager.add("Parent Task")
    child1 = manager.add("Child Task 1")
    child2 = manager.add("Child Task 2")
    grandchild = manager.add("Grandchild Task")
    other = manager.add("Other Task")

    manager.assign(child1.id, str(parent.id))
    manager.assign(child2.id, str(parent.id))
    manager.assign(grandchild.id, str(child1.id))

    return {
        "parent_id": parent.id,
        "child1_id": child1.id,
        "child2_id": child2.id,
        "grandchild_id": grandchild.id,
        "other_id": other.id,
    }


@pytest.fixture
def make_task():
    """
    Factory fixture for creating standalone Task models.

    Returns:
        Function that creates Task instances

    Example:
        def test_something(make_task):
            task = make_task(name="Custom Task", priority=Priority.HIGH)
    """
    counter = {"next_id": 100}

    def _make_task(
        id: int = None,
        name: str = "Test Task",
        priority: Priority = None,
        due_date: date = None,
        children: list = None,
    ) -> Task:
        if id is None:
            id = counter["next_id"]
            counter["next_id"] += 1
        task = Task(id=id, name=name, priority=priority, due_date=due_date)
        for child in children or []:
            task.add_child(child)
        return task
    return _make_task


@pytest.fixture
def make_task_list():
    """Factory fixture for creating TaskList models."""
    def _make_task_list(name: str = "Test List", task_ids: list = None) -> TaskList:
        return TaskList(name=name, task_ids=list(task_ids or []))
    return _make_task_list


@pytest.fixture
def check_forest():
    """
    Provide an assertion helper for the forest invariants.

    Checks that ids are reachable once, that roots are exactly the tasks
    without a parent, and that no task sits below one of its own descendants.
    """
    def _check_forest(manager: TaskManager) -> None:
        seen = set()
        for task in manager.iter_tasks(include_deleted=True):
            assert task.id not in seen, f"task {task.id} reachable twice"
            seen.add(task.id)

        root_ids = {root.id for root in manager.roots}
        for task_id in seen:
            parent = manager.get_parent(task_id)
            assert (parent is None) == (task_id in root_ids)
            if parent is not None:
                assert not manager.get_task(task_id).contains(parent.id)
    return _check_forest
