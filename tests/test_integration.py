"""End-to-end integration tests for todolist.

This module tests the complete workflow using subprocess to run the CLI
as a real user would, ensuring all components work together correctly.
"""

import json
import os
import subprocess
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestIntegration:
    """E2E integration tests for the complete todolist workflow."""

    @pytest.fixture
    def temp_db(self):
        """Create a temporary storage file path for testing."""
        with tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.json') as f:
            temp_path = f.name
        # Delete the file - CLI will create it
        Path(temp_path).unlink()
        yield temp_path
        # Cleanup
        for path in (Path(temp_path), Path(temp_path + ".lock")):
            if path.exists():
                path.unlink()

    def run_cli(self, args, db_path, check=True, stdin=None):
        """Run the CLI with given arguments.

        Args:
            args: List of command arguments
            db_path: Path to the storage file
            check: Whether to check for non-zero exit codes
            stdin: Optional text fed to the process

        Returns:
            subprocess.CompletedProcess instance
        """
        env = {
            k: v for k, v in os.environ.items()
            if not k.startswith("TODO_") and k != "TASK_DB_PATH"
        }
        env["TODO_STORAGE_PATH"] = db_path
        env["PYTHONIOENCODING"] = "utf-8"
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(PROJECT_ROOT), env.get("PYTHONPATH")]))

        result = subprocess.run(
            [sys.executable, "-m", "todolist"] + args,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=False,
            env=env,
            input=stdin,
            cwd=str(PROJECT_ROOT),
        )
        if check and result.returncode != 0:
            raise subprocess.CalledProcessError(
                result.returncode, result.args, result.stdout, result.stderr
            )
        return result

    def stored_records(self, db_path):
        """Read the task records straight from the storage file."""
        slots = json.loads(Path(db_path).read_text(encoding="utf-8"))
        return json.loads(slots["todos"])

    def test_complete_workflow_add_list_toggle_delete(self, temp_db):
        """Test the complete workflow: add -> list -> toggle -> edit -> delete."""
        # Step 1: Add a task
        result = self.run_cli(["add", "Buy groceries"], temp_db)
        assert "Task added:" in result.stdout
        assert "Buy groceries" in result.stdout

        [record] = self.stored_records(temp_db)
        task_id = record["id"]
        assert record["completed"] is False
        assert record["createdAt"].endswith("Z")

        # Step 2: List tasks
        result = self.run_cli(["list"], temp_db)
        assert f"[ ] {task_id[:8]}  Buy groceries" in result.stdout
        assert "1 item left" in result.stdout

        # Step 3: Edit the task using a short id
        result = self.run_cli(["edit", task_id[:8], "Buy groceries and bread"], temp_db)
        assert "updated: Buy groceries and bread" in result.stdout

        # Step 4: Mark task as completed
        result = self.run_cli(["toggle", task_id[:8]], temp_db)
        assert "marked as completed" in result.stdout

        # Step 5: Completed tasks cannot be edited
        result = self.run_cli(["edit", task_id, "Nope"], temp_db, check=False)
        assert result.returncode == 1
        assert "cannot be edited" in result.stderr

        result = self.run_cli(["list"], temp_db)
        assert f"[x] {task_id[:8]}  Buy groceries and bread" in result.stdout
        assert "0 items left" in result.stdout

        # Step 6: Delete the task
        result = self.run_cli(["delete", task_id], temp_db)
        assert "deleted" in result.stdout

        result = self.run_cli(["list"], temp_db)
        assert "No tasks found." in result.stdout
        assert self.stored_records(temp_db) == []

    def test_list_filters(self, temp_db):
        """Test filtering tasks by completion."""
        for text in ("Task 1", "Task 2", "Task 3"):
            self.run_cli(["add", text], temp_db)
        second = self.stored_records(temp_db)[1]["id"]
        self.run_cli(["toggle", second], temp_db)

        result = self.run_cli(["list", "--filter", "active"], temp_db)
        assert "Task 1" in result.stdout
        assert "Task 2" not in result.stdout
        assert "Task 3" in result.stdout

        result = self.run_cli(["list", "--filter", "completed"], temp_db)
        assert "Task 1" not in result.stdout
        assert "Task 2" in result.stdout
        assert "Task 3" not in result.stdout

    def test_clear_completed(self, temp_db):
        for text in ("Keep", "Drop"):
            self.run_cli(["add", text], temp_db)
        drop = self.stored_records(temp_db)[1]["id"]
        self.run_cli(["toggle", drop], temp_db)

        result = self.run_cli(["clear-completed"], temp_db)
        assert "Cleared 1 completed task(s)." in result.stdout
        assert [r["text"] for r in self.stored_records(temp_db)] == ["Keep"]

    def test_error_blank_text(self, temp_db):
        result = self.run_cli(["add", "   "], temp_db, check=False)
        assert result.returncode == 1
        assert "Error:" in result.stderr
        assert not Path(temp_db).exists()

    def test_error_toggle_nonexistent_task(self, temp_db):
        """Test error handling when toggling a nonexistent task."""
        result = self.run_cli(["toggle", "deadbeef"], temp_db, check=False)
        assert result.returncode == 1
        assert "Task 'deadbeef' not found" in result.stderr

    def test_error_delete_nonexistent_task(self, temp_db):
        """Test error handling when deleting a nonexistent task."""
        result = self.run_cli(["delete", "deadbeef"], temp_db, check=False)
        assert result.returncode == 1
        assert "Error:" in result.stderr

    def test_corrupt_storage_starts_empty(self, temp_db):
        """Test that a malformed stored value never blocks startup."""
        Path(temp_db).write_text(json.dumps({"todos": "{not a list"}))

        result = self.run_cli(["list"], temp_db)
        assert "No tasks found." in result.stdout
        assert "Failed to load tasks" in result.stderr

        self.run_cli(["add", "Fresh start"], temp_db)
        assert [r["text"] for r in self.stored_records(temp_db)] == ["Fresh start"]

    def test_browser_storage_layout(self, temp_db):
        """Test reading tasks written in the browser's record layout."""
        records = [
            {"id": "a1b2c3d4-0000-4000-8000-000000000001", "text": "From the browser",
             "completed": False, "createdAt": "2025-05-04T10:11:12.345Z"},
        ]
        Path(temp_db).write_text(json.dumps({"todos": json.dumps(records)}))

        result = self.run_cli(["list"], temp_db)
        assert "a1b2c3d4  From the browser" in result.stdout

    def test_shell_session(self, temp_db):
        """Test an interactive session fed through stdin."""
        script = "\n".join([
            "add Write report",
            "add Send email",
            "filter active",
            "quit",
        ]) + "\n"

        result = self.run_cli(["shell"], temp_db, stdin=script)

        assert "2 items left" in result.stdout
        assert "Filter: active" in result.stdout
        assert [r["text"] for r in self.stored_records(temp_db)] == ["Write report", "Send email"]

    def test_special_characters(self, temp_db):
        """Test adding task with special characters."""
        text = 'Task: with "quotes" and ünïcødé ✓ @#$%'
        result = self.run_cli(["add", text], temp_db)
        assert text in result.stdout
        assert self.stored_records(temp_db)[0]["text"] == text
