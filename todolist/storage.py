"""Durable key-value storage for todolist.

This module provides an abstract slot storage interface and concrete
implementations. Each slot is a named string value, in the manner of a
browser's local storage. The JsonFileStorage implementation keeps all slots
in a single JSON file and uses fcntl-based file locking so that concurrent
processes never observe a half-written file.
"""

import contextlib
import fcntl
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterator, Optional

from todolist.config import Settings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the storage backend holds content that cannot be read."""


class SlotStorage(ABC):
    """Abstract base class for key-value slot storage."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Read a slot.

        Args:
            key: Slot name

        Returns:
            The stored string, or None if the slot is absent
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Write a slot, overwriting any prior content.

        Args:
            key: Slot name
            value: String to store
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a slot. Does nothing if the slot is absent."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every slot."""
        pass


class MemoryStorage(SlotStorage):
    """In-process slot storage backed by a dict. Nothing survives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._slots: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._slots[key] = value

    def remove_item(self, key: str) -> None:
        self._slots.pop(key, None)

    def clear(self) -> None:
        self._slots.clear()


class JsonFileStorage(SlotStorage):
    """JSON file-based slot storage with file locking.

    The file holds one JSON object mapping slot names to string values.
    Reads take a shared lock and writes an exclusive one, both held on a
    sidecar ".lock" file. Writes replace the storage file atomically.

    Attributes:
        file_path: Path to the JSON storage file
    """

    def __init__(self, file_path: Optional[str] = None):
        """Initialize JsonFileStorage with a file path.

        Args:
            file_path: Path to the JSON file for storage. If None, uses the
                      TODO_STORAGE_PATH (or legacy TASK_DB_PATH) environment
                      variable, or defaults to todos.json
        """
        if file_path is None:
            file_path = Settings.from_env().storage_path
        self.file_path = Path(file_path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read_slots().get(key)

    def set_item(self, key: str, value: str) -> None:
        self._update(key, value)

    def remove_item(self, key: str) -> None:
        if not self.file_path.exists():
            return
        self._update(key, None)

    def clear(self) -> None:
        """Delete the JSON storage file.

        If the file doesn't exist, this method does nothing.
        """
        if not self.file_path.exists():
            return
        with self._lock(fcntl.LOCK_EX):
            if self.file_path.exists():
                self.file_path.unlink()

    @property
    def lock_path(self) -> Path:
        """Sidecar file that carries the fcntl lock across atomic replaces."""
        return self.file_path.with_name(self.file_path.name + ".lock")

    @contextlib.contextmanager
    def _lock(self, operation: int) -> Iterator[None]:
        with open(self.lock_path, "a") as lock:
            fcntl.flock(lock.fileno(), operation)
            try:
                yield
            finally:
                fcntl.flock(lock.fileno(), fcntl.LOCK_UN)

    def _read_slots(self) -> Dict[str, str]:
        """Load every slot from the file under a shared lock.

        Returns:
            Mapping of slot names to values. Empty if the file doesn't exist
            or is empty.

        Raises:
            StorageError: If the file content is not a JSON object of strings
        """
        if not self.file_path.exists():
            return {}

        with self._lock(fcntl.LOCK_SH):
            return self._read_unlocked()

    def _read_unlocked(self) -> Dict[str, str]:
        try:
            raw = self.file_path.read_bytes()
        except FileNotFoundError:
            return {}

        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageError(f"{self.file_path} is not valid UTF-8: {e}") from e
        return self._decode(content)

    def _decode(self, content: str) -> Dict[str, str]:
        if not content.strip():
            return {}
        try:
            data = json.loads(content)
        except (json.JSONDecodeError, RecursionError) as e:
            raise StorageError(f"{self.file_path} is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not all(isinstance(v, str) for v in data.values()):
            raise StorageError(f"{self.file_path} does not hold a mapping of string slots")
        return data

    def _update(self, key: str, value: Optional[str]) -> None:
        """Read-modify-write a single slot under an exclusive lock.

        The new content goes to a temporary file that then replaces the
        storage file, so a failed write leaves the previous content intact.

        Args:
            key: Slot name
            value: New value, or None to remove the slot
        """
        # Ensure parent directory exists
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        with self._lock(fcntl.LOCK_EX):
            try:
                slots = self._read_unlocked()
            except StorageError:
                logger.warning("Discarding unreadable storage file %s", self.file_path)
                slots = {}

            if value is None:
                slots.pop(key, None)
            else:
                slots[key] = value

            # ASCII output cannot fail to encode, even for lone surrogates
            payload = json.dumps(slots, indent=2, ensure_ascii=True)
            self._replace(payload)

        logger.debug("Wrote slot %r to %s", key, self.file_path)

    def _replace(self, payload: str) -> None:
        tmp = tempfile.NamedTemporaryFile(
            mode="w",
            encoding="ascii",
            dir=str(self.file_path.parent),
            prefix=self.file_path.name + ".",
            suffix=".tmp",
            delete=False,
        )
        try:
            with tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp.name, str(self.file_path))
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp.name)
            raise
