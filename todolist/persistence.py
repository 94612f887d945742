"""Persistence adapter between the task list and durable slot storage.

The task collection is stored in a single slot as a JSON array of records:

    [{"id": "...", "text": "...", "completed": false,
      "createdAt": "2024-01-01T12:00:00Z"}, ...]

Records are validated against that schema on load. Anything that does not
match is treated as a corrupt slot: the failure is logged and the caller gets
an empty collection.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from todolist.config import DEFAULT_STORAGE_KEY
from todolist.models import Task
from todolist.storage import JsonFileStorage, SlotStorage, StorageError

logger = logging.getLogger(__name__)

RECORD_FIELDS = {
    "id": str,
    "text": str,
    "completed": bool,
    "createdAt": str,
}


class DeserializationError(ValueError):
    """Raised when a stored value does not match the task record schema."""


def format_timestamp(value: datetime) -> str:
    """Render an instant as UTC ISO 8601 with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO 8601 timestamp into a timezone-aware UTC datetime.

    Accepts a ``Z`` suffix or an explicit offset. Naive values are read as UTC.

    Raises:
        DeserializationError: If the value is not a valid timestamp
    """
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        value = datetime.fromisoformat(text)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        # Offsets near year 1 or 9999 fall outside the datetime range in UTC
        return value.astimezone(timezone.utc)
    except (ValueError, OverflowError) as e:
        raise DeserializationError(f"Invalid createdAt timestamp: {raw!r}") from e


def task_to_record(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "text": task.text,
        "completed": task.completed,
        "createdAt": format_timestamp(task.created_at),
    }


def task_from_record(record: Any) -> Task:
    """Build a Task from one stored record.

    Args:
        record: Decoded JSON value for a single task

    Returns:
        The reconstructed Task

    Raises:
        DeserializationError: If a field is missing or has the wrong type
    """
    if not isinstance(record, dict):
        raise DeserializationError(f"Task record must be an object, got {type(record).__name__}")

    for name, expected in RECORD_FIELDS.items():
        if name not in record:
            raise DeserializationError(f"Task record is missing field {name!r}")
        if not isinstance(record[name], expected):
            raise DeserializationError(
                f"Task field {name!r} must be {expected.__name__}, got {type(record[name]).__name__}"
            )

    return Task(
        id=record["id"],
        text=record["text"],
        completed=record["completed"],
        created_at=parse_timestamp(record["createdAt"]),
    )


def serialize_tasks(tasks: Iterable[Task]) -> str:
    """Serialize a task collection into the stored JSON text."""
    return json.dumps([task_to_record(task) for task in tasks], ensure_ascii=False)


def deserialize_tasks(raw: str) -> List[Task]:
    """Parse stored JSON text back into a task collection.

    Args:
        raw: Slot content as written by serialize_tasks

    Returns:
        Tasks in stored order

    Raises:
        DeserializationError: If the text is not JSON, is not a list of
            valid task records, or repeats an id
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, RecursionError) as e:
        raise DeserializationError(f"Stored tasks are not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise DeserializationError(f"Stored tasks must be a list, got {type(data).__name__}")

    tasks = [task_from_record(record) for record in data]

    seen = set()
    for task in tasks:
        if task.id in seen:
            raise DeserializationError(f"Duplicate task id {task.id!r}")
        seen.add(task.id)

    return tasks


class TaskPersistence:
    """Durable round-trip of the task collection through one storage slot.

    Only the tasks are persisted. The view filter and edit session are
    ephemeral UI state.

    Attributes:
        storage: Slot storage backend
        key: Name of the slot holding the serialized tasks
    """

    def __init__(self, storage: Optional[SlotStorage] = None, key: str = DEFAULT_STORAGE_KEY):
        """Initialize TaskPersistence with a storage backend.

        Args:
            storage: Storage implementation to use. If None, uses
                    JsonFileStorage with the configured file path.
            key: Slot name (default: "todos")
        """
        self.storage = storage or JsonFileStorage()
        self.key = key

    def load(self) -> List[Task]:
        """Load the stored task collection.

        Never raises: an absent slot yields an empty list, and a corrupt or
        unreadable slot is logged and also yields an empty list.

        Returns:
            Tasks in stored order
        """
        try:
            raw = self.storage.get_item(self.key)
            if raw is None:
                return []
            tasks = deserialize_tasks(raw)
        except (DeserializationError, StorageError, OSError):
            logger.exception("Failed to load tasks from slot %r; starting empty", self.key)
            return []

        logger.info("Loaded %d task(s) from slot %r", len(tasks), self.key)
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        """Write the full task collection, replacing the slot's content.

        Args:
            tasks: Collection to persist, in display order
        """
        self.storage.set_item(self.key, serialize_tasks(tasks))

    def clear(self) -> None:
        """Remove the stored task collection."""
        self.storage.remove_item(self.key)
