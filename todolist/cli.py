"""Command-line interface for todolist.

This module provides the CLI interface for managing tasks using argparse.
It supports the following commands:
- add: Create a new task
- list: List tasks, optionally filtered (all/active/completed)
- toggle: Flip a task between active and completed
- edit: Replace a task's text
- delete: Delete a task
- clear-completed: Delete all completed tasks
- shell: Start an interactive session
"""

import argparse
import logging
import sys
from typing import List, Optional

from todolist.config import Settings
from todolist.logging_setup import setup_logging
from todolist.models import ViewFilter
from todolist.persistence import TaskPersistence
from todolist.shell import format_task, resolve_id, run_shell, short_id
from todolist.storage import JsonFileStorage
from todolist.store import TodoStore

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="todo",
        description="Local task list manager"
    )
    parser.add_argument(
        "--storage",
        help="Path to the storage file (default: $TODO_STORAGE_PATH or todos.json)"
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: $TODO_LOG_LEVEL or WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Add command
    add_parser = subparsers.add_parser("add", help="Add a new task")
    add_parser.add_argument("text", help="Task text")

    # List command
    list_parser = subparsers.add_parser("list", help="List tasks")
    list_parser.add_argument(
        "--filter",
        choices=[f.value for f in ViewFilter],
        default=ViewFilter.ALL.value,
        help="Which tasks to show (default: all)"
    )

    # Toggle command
    toggle_parser = subparsers.add_parser("toggle", help="Mark a task completed or active")
    toggle_parser.add_argument("id", help="Task ID or unique prefix")

    # Edit command
    edit_parser = subparsers.add_parser("edit", help="Change a task's text")
    edit_parser.add_argument("id", help="Task ID or unique prefix")
    edit_parser.add_argument("text", help="New task text")

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("id", help="Task ID or unique prefix")

    subparsers.add_parser("clear-completed", help="Delete all completed tasks")
    subparsers.add_parser("shell", help="Start an interactive session")

    return parser


def _not_found(token: str) -> int:
    print(f"Error: Task '{token}' not found.", file=sys.stderr)
    return 1


def cmd_add(args: argparse.Namespace, store: TodoStore) -> int:
    """Handle the 'add' command.

    Args:
        args: Parsed command-line arguments
        store: TodoStore instance

    Returns:
        Exit code (0 for success, 1 if the text was empty)
    """
    task = store.create(args.text)
    if task is None:
        print("Error: Task text cannot be empty.", file=sys.stderr)
        return 1

    print(f"Task added: {short_id(task)} {task.text}")
    return 0


def cmd_list(args: argparse.Namespace, store: TodoStore) -> int:
    """Handle the 'list' command.

    Args:
        args: Parsed command-line arguments
        store: TodoStore instance

    Returns:
        Exit code (0 for success)
    """
    store.set_filter(args.filter)
    tasks = list(store.visible_tasks())

    if not tasks:
        print("No tasks found.")
    for task in tasks:
        print(format_task(task, store))

    remaining = store.remaining_count()
    print(f"{remaining} item{'' if remaining == 1 else 's'} left")
    return 0


def cmd_toggle(args: argparse.Namespace, store: TodoStore) -> int:
    """Handle the 'toggle' command.

    Args:
        args: Parsed command-line arguments
        store: TodoStore instance

    Returns:
        Exit code (0 for success, 1 for error)
    """
    task_id = resolve_id(store, args.id)
    task = store.toggle_complete(task_id) if task_id else None
    if task is None:
        return _not_found(args.id)

    state = "completed" if task.completed else "active"
    print(f"Task {short_id(task)} marked as {state}: {task.text}")
    return 0


def cmd_edit(args: argparse.Namespace, store: TodoStore) -> int:
    """Handle the 'edit' command as one edit session: start, draft, save.

    Args:
        args: Parsed command-line arguments
        store: TodoStore instance

    Returns:
        Exit code (0 for success, 1 for error)
    """
    task_id = resolve_id(store, args.id)
    task = store.get(task_id) if task_id else None
    if task is None:
        return _not_found(args.id)

    if not store.start_edit(task.id, task.text):
        print(f"Error: Task {short_id(task)} is completed and cannot be edited.", file=sys.stderr)
        return 1

    store.update_edit_buffer(args.text)
    if store.save_edit() is None:
        store.cancel_edit()
        print("Error: Task text cannot be empty.", file=sys.stderr)
        return 1

    print(f"Task {short_id(task)} updated: {task.text}")
    return 0


def cmd_delete(args: argparse.Namespace, store: TodoStore) -> int:
    """Handle the 'delete' command.

    Args:
        args: Parsed command-line arguments
        store: TodoStore instance

    Returns:
        Exit code (0 for success, 1 for error)
    """
    task_id = resolve_id(store, args.id)
    task = store.get(task_id) if task_id else None
    if task is None or not store.delete(task.id):
        return _not_found(args.id)

    print(f"Task {short_id(task)} deleted: {task.text}")
    return 0


def cmd_clear_completed(args: argparse.Namespace, store: TodoStore) -> int:
    """Handle the 'clear-completed' command.

    Args:
        args: Parsed command-line arguments
        store: TodoStore instance

    Returns:
        Exit code (always 0)
    """
    removed = store.clear_completed()
    print(f"Cleared {removed} completed task(s).")
    return 0


def cmd_shell(args: argparse.Namespace, store: TodoStore) -> int:
    """Handle the 'shell' command by running the interactive loop.

    Args:
        args: Parsed command-line arguments
        store: TodoStore instance

    Returns:
        Exit code from the shell loop
    """
    return run_shell(store)


def build_store(settings: Settings, storage_path: Optional[str] = None) -> TodoStore:
    """Construct the process-wide store from settings.

    Args:
        settings: Loaded settings
        storage_path: Overrides settings.storage_path when given

    Returns:
        A TodoStore with the stored collection loaded
    """
    storage = JsonFileStorage(storage_path or str(settings.storage_path))
    return TodoStore(TaskPersistence(storage, key=settings.storage_key))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    settings = Settings.from_env()
    setup_logging(args.log_level or settings.log_level, settings.log_file)

    # Dispatch to command handlers
    commands = {
        "add": cmd_add,
        "list": cmd_list,
        "toggle": cmd_toggle,
        "edit": cmd_edit,
        "delete": cmd_delete,
        "clear-completed": cmd_clear_completed,
        "shell": cmd_shell,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return 1

    store = build_store(settings, args.storage)
    try:
        return handler(args, store)
    except OSError as e:
        logger.exception("Failed to write tasks")
        print(f"Error: could not save tasks: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
