"""Core models for todolist.

This module defines the core data structures for the task list:
- Task: A dataclass representing a single to-do item
- ViewFilter: Enum selecting which subset of tasks is shown
- EditSession: The transient in-progress edit of one task
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def generate_id() -> str:
    """Return a fresh opaque task identifier."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Return the current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class Task:
    """Task model representing a single to-do item.

    Attributes:
        text: Task description, trimmed and non-empty
        completed: Whether the task has been completed
        id: Unique identifier for the task (auto-generated)
        created_at: Instant when the task was created (UTC)
    """

    text: str
    completed: bool = False
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=utcnow)


class ViewFilter(Enum):
    """Subset of tasks shown to the user."""

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"

    def matches(self, task: Task) -> bool:
        """Check whether a task belongs to this filter's subset.

        Args:
            task: Task to check

        Returns:
            True if the task should be shown under this filter
        """
        if self is ViewFilter.ACTIVE:
            return not task.completed
        if self is ViewFilter.COMPLETED:
            return task.completed
        return True


@dataclass
class EditSession:
    """An open edit of one task: its id plus the draft text buffer."""

    task_id: str
    draft: str = ""
