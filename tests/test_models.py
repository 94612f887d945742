"""Tests for core models."""

import uuid
from datetime import datetime, timezone

from todolist.models import EditSession, Task, ViewFilter


class TestViewFilter:
    """Tests for ViewFilter enum."""

    def test_filter_values(self):
        """Test that ViewFilter enum has correct values."""
        assert ViewFilter.ALL.value == "all"
        assert ViewFilter.ACTIVE.value == "active"
        assert ViewFilter.COMPLETED.value == "completed"

    def test_filter_members(self):
        """Test that exactly the three filters exist."""
        assert [f.name for f in ViewFilter] == ["ALL", "ACTIVE", "COMPLETED"]

    def test_filter_from_string(self):
        """Test that filters can be looked up by value."""
        assert ViewFilter("active") is ViewFilter.ACTIVE

    def test_all_matches_everything(self):
        assert ViewFilter.ALL.matches(Task(text="a"))
        assert ViewFilter.ALL.matches(Task(text="b", completed=True))

    def test_active_matches_incomplete_only(self):
        assert ViewFilter.ACTIVE.matches(Task(text="a"))
        assert not ViewFilter.ACTIVE.matches(Task(text="b", completed=True))

    def test_completed_matches_complete_only(self):
        assert not ViewFilter.COMPLETED.matches(Task(text="a"))
        assert ViewFilter.COMPLETED.matches(Task(text="b", completed=True))


class TestTask:
    """Tests for Task dataclass."""

    def test_task_creation_with_text_only(self):
        """Test creating a task with only text."""
        task = Task(text="Test task")

        assert task.text == "Test task"
        assert task.completed is False
        assert isinstance(task.id, str)
        assert isinstance(task.created_at, datetime)

    def test_task_id_is_uuid(self):
        """Test that the generated id parses as a UUID."""
        task = Task(text="Test task")
        assert str(uuid.UUID(task.id)) == task.id

    def test_task_ids_are_unique(self):
        ids = {Task(text=f"Task {i}").id for i in range(100)}
        assert len(ids) == 100

    def test_task_created_at_is_utc(self):
        """Test that created_at is a timezone-aware UTC instant near now."""
        before = datetime.now(timezone.utc)
        task = Task(text="New task")
        after = datetime.now(timezone.utc)

        assert task.created_at.tzinfo is not None
        assert task.created_at.utcoffset().total_seconds() == 0
        assert before <= task.created_at <= after

    def test_task_creation_with_all_fields(self):
        """Test creating a task with all fields specified."""
        created_time = datetime(2026, 2, 1, 12, 0, 0, tzinfo=timezone.utc)
        task = Task(id="abc", text="Complete task", completed=True, created_at=created_time)

        assert task.id == "abc"
        assert task.text == "Complete task"
        assert task.completed is True
        assert task.created_at == created_time

    def test_task_equality(self):
        """Test that tasks with same values are equal."""
        created_time = datetime(2026, 2, 1, 12, 0, 0, tzinfo=timezone.utc)
        task1 = Task(id="1", text="Same task", created_at=created_time)
        task2 = Task(id="1", text="Same task", created_at=created_time)

        assert task1 == task2

    def test_task_inequality(self):
        """Test that tasks with different ids are not equal."""
        assert Task(text="Task") != Task(text="Task")

    def test_task_repr(self):
        """Test task string representation."""
        task = Task(id="1", text="Test task")

        repr_str = repr(task)
        assert "Task" in repr_str
        assert "text='Test task'" in repr_str
        assert "id='1'" in repr_str


class TestEditSession:
    def test_default_draft_is_empty(self):
        session = EditSession(task_id="1")
        assert session.task_id == "1"
        assert session.draft == ""

    def test_draft_is_mutable(self):
        session = EditSession(task_id="1", draft="old")
        session.draft = "new"
        assert session.draft == "new"
