"""Interactive shell for todolist.

Each input line is one user event. The first word names an action, which is
looked up in a dispatch table and applied to the TodoStore; the rest of the
line is the action's argument. After every event the current view is
rendered again.
"""

import logging
import sys
from typing import Callable, Dict, Optional, TextIO

from todolist.models import Task, ViewFilter
from todolist.store import TodoStore

logger = logging.getLogger(__name__)

PROMPT = "todo> "
SHORT_ID_LENGTH = 8
QUIT_WORDS = {"quit", "exit", "q"}

ActionHandler = Callable[[TodoStore, str], Optional[str]]


def short_id(task: Task) -> str:
    return task.id[:SHORT_ID_LENGTH]


def resolve_id(store: TodoStore, token: str) -> Optional[str]:
    """Resolve a full task id or a unique id prefix.

    Args:
        store: Store to search
        token: Full id or leading characters of one

    Returns:
        The matching task id, or None if nothing (or more than one task)
        matches
    """
    token = token.strip()
    if not token:
        return None
    if store.get(token) is not None:
        return token

    matches = [task.id for task in store.tasks if task.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    return None


def format_task(task: Task, store: TodoStore) -> str:
    """Format one task as a single display line."""
    session = store.edit_session
    if session is not None and session.task_id == task.id:
        return f"[~] {short_id(task)}  {task.text}  (editing: {session.draft!r})"
    icon = "x" if task.completed else " "
    return f"[{icon}] {short_id(task)}  {task.text}"


def render(store: TodoStore) -> str:
    """Render the visible tasks and the summary line."""
    lines = [f"Filter: {store.view_filter.value}"]

    visible = store.visible_tasks()
    if visible:
        lines.extend(f"  {format_task(task, store)}" for task in visible)
    else:
        lines.append("  No tasks found")

    remaining = store.remaining_count()
    summary = f"{remaining} item{'' if remaining == 1 else 's'} left"
    if store.has_completed():
        summary += " | 'clear' removes completed tasks"
    lines.append(summary)
    return "\n".join(lines)


# ---- action handlers ----


def _not_found(token: str) -> str:
    return f"Task '{token}' not found."


def act_add(store: TodoStore, arg: str) -> Optional[str]:
    task = store.create(arg)
    if task is None:
        return "Nothing added: task text is empty."
    return f"Added {short_id(task)}."


def act_toggle(store: TodoStore, arg: str) -> Optional[str]:
    task_id = resolve_id(store, arg)
    if task_id is None:
        return _not_found(arg)
    store.toggle_complete(task_id)
    return None


def act_edit(store: TodoStore, arg: str) -> Optional[str]:
    task_id = resolve_id(store, arg)
    task = store.get(task_id) if task_id else None
    if task is None:
        return _not_found(arg)
    if not store.start_edit(task.id, task.text):
        return "Completed tasks cannot be edited."
    return "Editing. Use 'draft TEXT', then 'save' or 'cancel'."


def act_draft(store: TodoStore, arg: str) -> Optional[str]:
    if store.edit_session is None:
        return "No edit in progress."
    store.update_edit_buffer(arg)
    return None


def act_save(store: TodoStore, arg: str) -> Optional[str]:
    if store.edit_session is None:
        return "No edit in progress."
    if store.save_edit() is None and store.edit_session is not None:
        return "Task text cannot be empty; still editing."
    return None


def act_cancel(store: TodoStore, arg: str) -> Optional[str]:
    store.cancel_edit()
    return None


def act_delete(store: TodoStore, arg: str) -> Optional[str]:
    task_id = resolve_id(store, arg)
    if task_id is None:
        return _not_found(arg)
    store.delete(task_id)
    return None


def act_clear(store: TodoStore, arg: str) -> Optional[str]:
    removed = store.clear_completed()
    if not removed:
        return "No completed tasks to clear."
    return f"Cleared {removed} completed task(s)."


def act_filter(store: TodoStore, arg: str) -> Optional[str]:
    try:
        store.set_filter(arg.strip().lower() or ViewFilter.ALL)
    except ValueError:
        choices = ", ".join(f.value for f in ViewFilter)
        return f"Unknown filter '{arg.strip()}'. Choose one of: {choices}."
    return None


def act_list(store: TodoStore, arg: str) -> Optional[str]:
    return None


def act_help(store: TodoStore, arg: str) -> Optional[str]:
    return HELP_TEXT


ACTIONS: Dict[str, ActionHandler] = {
    "add": act_add,
    "toggle": act_toggle,
    "edit": act_edit,
    "draft": act_draft,
    "save": act_save,
    "cancel": act_cancel,
    "delete": act_delete,
    "clear": act_clear,
    "filter": act_filter,
    "list": act_list,
    "help": act_help,
}

HELP_TEXT = """Actions:
  add TEXT        add a task
  toggle ID       mark a task completed / active
  edit ID         start editing a task
  draft TEXT      replace the draft text of the task being edited
  save            save the draft
  cancel          abandon the draft
  delete ID       delete a task
  clear           delete all completed tasks
  filter NAME     show all, active or completed tasks
  list            show the current view
  help            show this help
  quit            leave the shell
IDs may be shortened to any unique prefix."""


def dispatch(store: TodoStore, line: str) -> Optional[str]:
    """Apply one input line to the store.

    Args:
        store: Store to mutate
        line: Raw input line ("ACTION [ARG]")

    Returns:
        A message for the user, or None
    """
    name, _, arg = line.strip().partition(" ")
    handler = ACTIONS.get(name.lower())
    if handler is None:
        return f"Unknown action '{name}'. Type 'help' for a list of actions."
    return handler(store, arg.strip())


def run_shell(
    store: TodoStore,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    """Read events from stdin until EOF or 'quit', rendering after each one.

    A failed storage write is reported and the loop keeps running; the
    in-memory state stays as it is.

    Returns:
        Exit code (always 0)
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    print(render(store), file=stdout)
    while True:
        stdout.write(PROMPT)
        stdout.flush()
        line = stdin.readline()
        if not line:
            stdout.write("\n")
            break

        line = line.strip()
        if not line:
            continue
        if line.lower() in QUIT_WORDS:
            break

        try:
            message = dispatch(store, line)
        except OSError as e:
            logger.exception("Failed to write tasks")
            message = f"Error: could not save tasks: {e}"

        if message:
            print(message, file=stdout)
        print(render(store), file=stdout)

    return 0
