"""In-memory task store.

This module provides TodoStore, the process-scoped state object that owns the
ordered task collection, the active view filter and the edit session. Every
successful mutation is written through a TaskPersistence adapter before the
operation returns.
"""

import logging
from typing import Iterator, List, Optional, Tuple, Union

from todolist.models import EditSession, Task, ViewFilter
from todolist.persistence import TaskPersistence

logger = logging.getLogger(__name__)


class TaskView:
    """Lazy, restartable view over the tasks matching a filter.

    Each iteration reads the store's live collection in insertion order.
    """

    def __init__(self, tasks: List[Task], view_filter: ViewFilter):
        self._tasks = tasks
        self.view_filter = view_filter

    def __iter__(self) -> Iterator[Task]:
        return (task for task in self._tasks if self.view_filter.matches(task))

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __bool__(self) -> bool:
        return any(True for _ in self)

    def __repr__(self) -> str:
        return f"TaskView(filter={self.view_filter.value!r}, tasks={list(self)!r})"


class TodoStore:
    """Owner of the task list state for one running process.

    Anticipated edge cases (empty text, unknown ids, editing a completed
    task) are no-ops rather than errors. Return values report whether
    anything happened.

    Attributes:
        persistence: Adapter used to load the collection once and to write it
            after every mutation
    """

    def __init__(self, persistence: Optional[TaskPersistence] = None):
        """Initialize TodoStore and load the stored collection.

        Args:
            persistence: Persistence adapter to use. If None, uses
                        TaskPersistence with default slot storage.
        """
        self.persistence = persistence or TaskPersistence()
        self._tasks: List[Task] = self.persistence.load()
        self._filter = ViewFilter.ALL
        self._edit: Optional[EditSession] = None

    # ---- read accessors ----

    @property
    def tasks(self) -> Tuple[Task, ...]:
        """Snapshot of the collection in insertion order."""
        return tuple(self._tasks)

    @property
    def view_filter(self) -> ViewFilter:
        return self._filter

    @property
    def edit_session(self) -> Optional[EditSession]:
        return self._edit

    def get(self, task_id: str) -> Optional[Task]:
        """Get a specific task by ID.

        Args:
            task_id: ID of the task to retrieve

        Returns:
            Task object if found, None otherwise
        """
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def visible_tasks(self) -> TaskView:
        """Tasks matching the active filter, in insertion order."""
        return TaskView(self._tasks, self._filter)

    def remaining_count(self) -> int:
        """Number of tasks not yet completed."""
        return sum(1 for task in self._tasks if not task.completed)

    def has_completed(self) -> bool:
        """Whether clear_completed would remove anything."""
        return any(task.completed for task in self._tasks)

    # ---- task lifecycle ----

    def create(self, text: str) -> Optional[Task]:
        """Append a new task.

        Args:
            text: Task text; surrounding whitespace is trimmed

        Returns:
            The created Task, or None if the trimmed text was empty
        """
        text = text.strip()
        if not text:
            return None

        task = Task(text=text)
        self._tasks.append(task)
        logger.debug("Task created id=%s", task.id)
        self._persist()
        return task

    def delete(self, task_id: str) -> bool:
        """Delete a task by ID.

        Cancels the edit session if it was editing this task.

        Args:
            task_id: ID of the task to delete

        Returns:
            True if task was deleted, False if task didn't exist
        """
        task = self.get(task_id)
        if task is None:
            return False

        self._tasks.remove(task)
        if self._edit is not None and self._edit.task_id == task_id:
            self._edit = None
        logger.debug("Task deleted id=%s", task_id)
        self._persist()
        return True

    def toggle_complete(self, task_id: str) -> Optional[Task]:
        """Flip the completed flag of a task.

        Args:
            task_id: ID of the task to toggle

        Returns:
            Updated Task object if found, None if task doesn't exist
        """
        task = self.get(task_id)
        if task is None:
            return None

        task.completed = not task.completed
        logger.debug("Task toggled id=%s completed=%s", task_id, task.completed)
        self._persist()
        return task

    def clear_completed(self) -> int:
        """Remove all completed tasks in one batch.

        Returns:
            Number of tasks removed
        """
        remaining = [task for task in self._tasks if not task.completed]
        removed = len(self._tasks) - len(remaining)
        if not removed:
            return 0

        self._tasks[:] = remaining
        if self._edit is not None and self.get(self._edit.task_id) is None:
            self._edit = None
        logger.debug("Cleared %d completed task(s)", removed)
        self._persist()
        return removed

    # ---- edit session ----

    def start_edit(self, task_id: str, current_text: str) -> bool:
        """Open an edit session, replacing any session already open.

        Completed tasks are not editable.

        Args:
            task_id: ID of the task to edit
            current_text: Initial draft text

        Returns:
            True if the session was opened
        """
        task = self.get(task_id)
        if task is None or task.completed:
            return False

        self._edit = EditSession(task_id=task_id, draft=current_text)
        return True

    def update_edit_buffer(self, text: str) -> None:
        """Replace the draft text of the active edit session.

        Does nothing when no edit is in progress. Nothing is persisted.

        Args:
            text: New draft text, stored as given
        """
        if self._edit is not None:
            self._edit.draft = text

    def save_edit(self) -> Optional[Task]:
        """Commit the draft text of the active edit session.

        An empty (or whitespace-only) draft is refused and the session stays
        open.

        Returns:
            The updated Task, or None if nothing was committed
        """
        if self._edit is None:
            return None

        text = self._edit.draft.strip()
        if not text:
            return None

        task = self.get(self._edit.task_id)
        self._edit = None
        if task is None:
            return None

        task.text = text
        logger.debug("Task edited id=%s", task.id)
        self._persist()
        return task

    def cancel_edit(self) -> None:
        """Close the active edit session without changing the task."""
        self._edit = None

    # ---- view filter ----

    def set_filter(self, view_filter: Union[ViewFilter, str]) -> None:
        """Change the active view filter. The filter is never persisted.

        Args:
            view_filter: A ViewFilter or its value ("all", "active", "completed")
        """
        self._filter = ViewFilter(view_filter)

    def _persist(self) -> None:
        # In-memory state stays authoritative if the write fails.
        self.persistence.save(self._tasks)
