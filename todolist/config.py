"""Settings for todolist, loaded from environment variables.

All variables use the ``TODO_`` prefix. ``TASK_DB_PATH`` is still honoured
as a fallback for the storage file location.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "TODO"

DEFAULT_STORAGE_PATH = "todos.json"
DEFAULT_STORAGE_KEY = "todos"
DEFAULT_LOG_LEVEL = "WARNING"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _first_env(*names: str, default: Optional[str] = None) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value is not None and value.strip() != "":
            return value
    return default


def _env_path(*names: str) -> Optional[Path]:
    raw = _first_env(*names)
    if raw is None:
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration.

    Attributes:
        storage_path: JSON file backing the durable key-value slots
        storage_key: Name of the slot holding the serialized task list
        log_level: Root logging level name (e.g. "INFO")
        log_file: Optional file receiving full debug logs
    """

    storage_path: Path
    storage_key: str = DEFAULT_STORAGE_KEY
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[Path] = None

    @staticmethod
    def from_env() -> "Settings":
        storage_path = _env_path(_k("STORAGE_PATH"), "TASK_DB_PATH") or Path(DEFAULT_STORAGE_PATH)
        storage_key = (_first_env(_k("STORAGE_KEY"), default=DEFAULT_STORAGE_KEY) or DEFAULT_STORAGE_KEY).strip()
        log_level = (_first_env(_k("LOG_LEVEL"), default=DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).strip().upper()

        return Settings(
            storage_path=storage_path,
            storage_key=storage_key,
            log_level=log_level,
            log_file=_env_path(_k("LOG_FILE")),
        )
