"""
Pydantic models for tasktree.

Defines the core data structures for prioritized, taggable tasks arranged in
a forest, and for named task lists that reference tasks without owning them.
"""

import re
from datetime import date
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TAG_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


class Priority(Enum):
    """Task priority, ordered HIGH < MEDIUM < LOW by rank."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort rank of this priority (lower sorts first)."""
        return _PRIORITY_RANKS[self]

    @classmethod
    def from_name(cls, text: str) -> Optional["Priority"]:
        """
        Look up a priority by name.

        Accepts member names ("HIGH"), values ("high") and the short codes
        "HI", "MD" and "LO".

        Args:
            text: Name to resolve

        Returns:
            Matching Priority, or None if the text is not recognized
        """
        if text in cls.__members__:
            return cls[text]
        for priority in cls:
            if priority.value == text:
                return priority
        return _PRIORITY_CODES.get(text)


_PRIORITY_RANKS = {Priority.HIGH: 1, Priority.MEDIUM: 2, Priority.LOW: 3}
_PRIORITY_CODES = {"HI": Priority.HIGH, "MD": Priority.MEDIUM, "LO": Priority.LOW}

# Missing priority sorts after every rank
NO_PRIORITY_RANK = len(_PRIORITY_RANKS) + 1


def priority_sort_key(task: "Task") -> int:
    """Sort key placing tasks by priority rank, unprioritized tasks last."""
    if task.priority is None:
        return NO_PRIORITY_RANK
    return task.priority.rank


def _validate_tag(tag: str) -> str:
    if not TAG_PATTERN.match(tag):
        raise ValueError(f"Invalid tag '{tag}': tags must be alphanumeric")
    return tag


class Task(BaseModel):
    """
    Represents a single task node in the task forest.

    A task owns its children exclusively; every task has at most one parent.
    Completion and deletion cascade down the subtree. Structural moves
    (reparenting, restoring under a new parent) are performed by TaskManager.
    """

    id: int = Field(..., ge=1, frozen=True, description="Unique task identifier")
    name: str = Field(..., min_length=1, frozen=True, description="Task name")
    priority: Optional[Priority] = Field(default=None, description="Optional priority")
    due_date: Optional[date] = Field(default=None, description="Optional due date")

    # Status flags
    done: bool = Field(default=False, description="Whether the task is completed")
    deleted: bool = Field(default=False, description="Whether the task is soft-deleted")

    tags: List[str] = Field(default_factory=list, description="Tags in insertion order")
    children: List["Task"] = Field(default_factory=list, description="Owned subtasks, in order")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Complete project documentation",
                "priority": "high",
                "due_date": "2025-01-14",
                "done": False,
                "deleted": False,
                "tags": ["docs"],
                "children": [],
            }
        }
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """
        Reject names that contain a semicolon or a line break.

        Args:
            v: The name value to validate

        Returns:
            The validated name

        Raises:
            ValueError: If the name contains a forbidden character
        """
        if any(char in v for char in ";\r\n"):
            raise ValueError("Task name must not contain ';' or line breaks")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        """Validate tag format and uniqueness."""
        for tag in v:
            _validate_tag(tag)
        if len(set(v)) != len(v):
            raise ValueError("Tags must be unique")
        return v

    # ==============================================================================
    # STATE CHANGES
    # ==============================================================================

    def change_date(self, due_date: Optional[date]) -> None:
        """Set or clear the due date."""
        self.due_date = due_date

    def change_priority(self, priority: Optional[Priority]) -> None:
        """Set or clear the priority."""
        self.priority = priority

    def set_tag(self, tag: str) -> bool:
        """
        Add a tag to the task.

        Args:
            tag: Alphanumeric tag to add

        Returns:
            True if the tag was added, False if the task already had it

        Raises:
            ValueError: If the tag is not alphanumeric
        """
        _validate_tag(tag)
        if tag in self.tags:
            return False
        self.tags.append(tag)
        return True

    def toggle(self) -> bool:
        """
        Flip the completion flag and cascade it to non-deleted descendants.

        Descendants take the new value regardless of their previous state.

        Returns:
            The new completion state
        """
        self._set_done(not self.done)
        return self.done

    def _set_done(self, done: bool) -> None:
        self.done = done
        for child in self.children:
            if not child.deleted:
                child._set_done(done)

    def delete(self) -> None:
        """Soft-delete this task and its entire subtree."""
        if not self.deleted:
            self._set_deleted(True)

    def restore(self) -> None:
        """
        Undelete this task and its entire subtree.

        Every descendant is resurrected, including descendants that had been
        deleted on their own before this task was deleted.
        """
        if self.deleted:
            self._set_deleted(False)

    def _set_deleted(self, deleted: bool) -> None:
        self.deleted = deleted
        for child in self.children:
            child._set_deleted(deleted)

    def sort(self) -> None:
        """Sort children by priority, recursively at every level."""
        self.children.sort(key=priority_sort_key)
        for child in self.children:
            child.sort()

    # ==============================================================================
    # SUBTREE QUERIES
    # ==============================================================================

    def count_all_subtasks(self) -> int:
        """
        Count non-deleted descendants at any depth, excluding this task.

        Returns:
            Number of live descendants
        """
        count = 0
        for child in self.children:
            if not child.deleted:
                count += 1 + child.count_all_subtasks()
        return count

    def iter_descendants(self) -> Iterator["Task"]:
        """Yield every descendant in depth-first pre-order."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def find(self, task_id: int) -> Optional["Task"]:
        """Find this task or a descendant by id."""
        if self.id == task_id:
            return self
        return self.find_child(task_id)

    def find_child(self, task_id: int) -> Optional["Task"]:
        """Find a descendant (excluding this task) by id."""
        for child in self.children:
            found = child.find(task_id)
            if found is not None:
                return found
        return None

    def contains(self, task_id: int) -> bool:
        """Check whether a task with this id lives anywhere below this task."""
        return self.find_child(task_id) is not None

    def find_parent(self, task_id: int) -> Optional["Task"]:
        """
        Find the parent of a descendant.

        Direct children are checked before deeper levels.

        Args:
            task_id: Id of the descendant

        Returns:
            The descendant's parent, or None if it is not below this task
        """
        for child in self.children:
            if child.id == task_id:
                return self
        for child in self.children:
            parent = child.find_parent(task_id)
            if parent is not None:
                return parent
        return None

    def add_child(self, task: "Task") -> None:
        """Append a task to the end of this task's children."""
        self.children.append(task)

    def remove_child(self, task_id: int) -> Optional["Task"]:
        """
        Detach a descendant from wherever it sits in this subtree.

        Args:
            task_id: Id of the descendant to detach

        Returns:
            The task it was detached from, or None if it was not found
        """
        for index, child in enumerate(self.children):
            if child.id == task_id:
                del self.children[index]
                return self
            parent = child.remove_child(task_id)
            if parent is not None:
                return parent
        return None


class TaskList(BaseModel):
    """
    Represents a named list of tasks (e.g., Work, Home, Personal).

    A list holds task ids, not tasks: membership does not imply ownership or
    tree position, and a listed task may be deleted or moved freely. Two
    lists are equal when their names are equal.
    """

    name: str = Field(..., min_length=1, frozen=True, description="List name")
    task_ids: List[int] = Field(default_factory=list, description="Member task ids, in order")
    tags: List[str] = Field(default_factory=list, description="Tags in insertion order")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Work",
                "task_ids": [1, 4],
                "tags": ["office"],
            }
        }
    )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TaskList):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self.task_ids

    def __len__(self) -> int:
        return len(self.task_ids)

    def add_task(self, task_id: int) -> bool:
        """
        Append a task id unless it is already a member.

        Returns:
            True if the id was appended, False if it was already present
        """
        if task_id in self.task_ids:
            return False
        self.task_ids.append(task_id)
        return True

    def remove_task(self, task_id: int) -> bool:
        """Remove a task id. Returns False if it was not a member."""
        if task_id not in self.task_ids:
            return False
        self.task_ids.remove(task_id)
        return True

    def move_to_end(self, task_id: int) -> None:
        """Move a member id to the end of the list order."""
        self.task_ids.remove(task_id)
        self.task_ids.append(task_id)

    def set_tag(self, tag: str) -> bool:
        """
        Add a tag to the list.

        Returns:
            True if the tag was added, False if the list already had it

        Raises:
            ValueError: If the tag is not alphanumeric
        """
        _validate_tag(tag)
        if tag in self.tags:
            return False
        self.tags.append(tag)
        return True


Task.model_rebuild()
