"""Tests for core models."""

import dataclasses
from datetime import date, datetime

import pytest

from taskkeeper.errors import MalformedRecordError
from taskkeeper.models import Priority, Status, Task, parse_due_date


def make_task(**overrides):
    fields = dict(
        id=1,
        title="Buy milk",
        description="2% fat",
        due_date=date(2025, 7, 20),
        priority=Priority.HIGH,
        status=Status.NOT_DONE,
        created_at=datetime(2025, 7, 1, 9, 30, 0, 123456),
        last_updated_at=datetime(2025, 7, 1, 9, 30, 0, 123456),
    )
    fields.update(overrides)
    return Task(**fields)


class TestPriority:
    """Tests for Priority enum."""

    def test_priority_values(self):
        """Test that Priority enum has correct values."""
        assert Priority.LOW.value == "low"
        assert Priority.MEDIUM.value == "medium"
        assert Priority.HIGH.value == "high"

    def test_priority_members(self):
        """Test that exactly three priority levels exist."""
        assert [p.name for p in Priority] == ["LOW", "MEDIUM", "HIGH"]

    @pytest.mark.parametrize("label", ["High", "high", "HIGH", "  high  "])
    def test_parse_is_case_insensitive(self, label):
        assert Priority.parse(label) is Priority.HIGH

    def test_parse_accepts_member(self):
        assert Priority.parse(Priority.LOW) is Priority.LOW

    @pytest.mark.parametrize("label", ["urgent", "", None, "Cao"])
    def test_parse_rejects_unknown(self, label):
        with pytest.raises(ValueError):
            Priority.parse(label)


class TestStatus:
    """Tests for Status enum."""

    def test_status_values(self):
        """Test that Status enum has correct values."""
        assert Status.NOT_DONE.value == "not_done"
        assert Status.DONE.value == "done"
        assert len(list(Status)) == 2


class TestParseDueDate:
    """Tests for due date parsing."""

    def test_valid_date(self):
        assert parse_due_date("2025-07-20") == date(2025, 7, 20)

    def test_surrounding_whitespace_ignored(self):
        assert parse_due_date(" 2025-07-20 ") == date(2025, 7, 20)

    @pytest.mark.parametrize(
        "text",
        ["", "   ", None, "2025-7-20", "20250720", "20/07/2025", "2025-02-30", "2025-13-01"],
    )
    def test_invalid_dates_rejected(self, text):
        with pytest.raises(ValueError):
            parse_due_date(text)


class TestTask:
    """Tests for Task dataclass."""

    def test_task_is_immutable(self):
        """Test that task fields cannot be reassigned."""
        task = make_task()
        with pytest.raises(dataclasses.FrozenInstanceError):
            task.title = "Other"

    def test_recurrence_defaults(self):
        task = make_task()
        assert task.is_recurring is False
        assert task.recurrence_pattern is None

    def test_duplicate_key_ignores_case_and_whitespace(self):
        a = make_task(title="Buy milk")
        b = make_task(id=2, title="  BUY MILK ")
        assert a.duplicate_key == b.duplicate_key

    def test_duplicate_key_includes_due_date(self):
        a = make_task()
        b = make_task(id=2, due_date=date(2025, 7, 21))
        assert a.duplicate_key != b.duplicate_key


class TestSerialization:
    """Tests for Task.to_dict / Task.from_dict."""

    def test_to_dict_format(self):
        """Test that dates and timestamps use the fixed formats."""
        data = make_task().to_dict()

        assert data == {
            "id": 1,
            "title": "Buy milk",
            "description": "2% fat",
            "due_date": "2025-07-20",
            "priority": "high",
            "status": "not_done",
            "created_at": "2025-07-01T09:30:00.123456",
            "last_updated_at": "2025-07-01T09:30:00.123456",
            "is_recurring": False,
            "recurrence_pattern": None,
        }

    def test_roundtrip(self):
        task = make_task(
            status=Status.DONE,
            last_updated_at=datetime(2025, 7, 2, 18, 0, 0),
            is_recurring=True,
            recurrence_pattern="every Monday",
        )
        assert Task.from_dict(task.to_dict()) == task

    def test_roundtrip_whole_seconds(self):
        task = make_task(created_at=datetime(2025, 1, 1), last_updated_at=datetime(2025, 1, 1))
        assert Task.from_dict(task.to_dict()) == task

    def test_optional_fields_default(self):
        """Test that absent optional fields get their documented defaults."""
        data = make_task().to_dict()
        for key in ("description", "status", "is_recurring", "recurrence_pattern"):
            del data[key]

        task = Task.from_dict(data)
        assert task.description == ""
        assert task.status == Status.NOT_DONE
        assert task.is_recurring is False
        assert task.recurrence_pattern is None

    def test_pattern_dropped_when_not_recurring(self):
        data = make_task().to_dict()
        data["recurrence_pattern"] = "daily"
        assert Task.from_dict(data).recurrence_pattern is None

    @pytest.mark.parametrize(
        "key", ["id", "title", "due_date", "priority", "created_at", "last_updated_at"]
    )
    def test_missing_required_field(self, key):
        data = make_task().to_dict()
        del data[key]
        with pytest.raises(MalformedRecordError):
            Task.from_dict(data)

    @pytest.mark.parametrize(
        "key,value",
        [
            ("id", "1"),
            ("id", True),
            ("id", 0),
            ("title", "   "),
            ("title", 5),
            ("due_date", "20-07-2025"),
            ("priority", "urgent"),
            ("status", "archived"),
            ("created_at", "yesterday"),
            ("created_at", "2025-07-01T09:30:00+02:00"),
            ("created_at", "2025-07-01T09:30:00.123"),
            ("last_updated_at", "2025-07-01"),
            ("is_recurring", "yes"),
        ],
    )
    def test_bad_field_values(self, key, value):
        data = make_task().to_dict()
        data[key] = value
        with pytest.raises(MalformedRecordError):
            Task.from_dict(data)

    @pytest.mark.parametrize("record", [[], "task", 42, None])
    def test_non_object_record(self, record):
        with pytest.raises(MalformedRecordError):
            Task.from_dict(record)
