"""Core models for taskkeeper.

This module defines the core data structures for task management:
- Task: An immutable dataclass representing a task and its persisted form
- Priority: Enum for task priority levels
- Status: Enum for task completion status
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from taskkeeper.errors import MalformedRecordError

DATE_FORMAT = "%Y-%m-%d"
TIMESTAMP_SPEC = "microseconds"

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d{6})?$")


class Priority(Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Union["Priority", str, None]) -> "Priority":
        """Resolve a priority from an enum member or a label like ``"High"``.

        Raises:
            ValueError: If the value is not one of the three levels
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            label = value.strip().lower()
            for member in cls:
                if member.value == label:
                    return member
        raise ValueError(f"Invalid priority: {value!r}")


class Status(Enum):
    """Task completion status."""

    NOT_DONE = "not_done"
    DONE = "done"


def parse_due_date(text: Optional[str]) -> date:
    """Parse a ``YYYY-MM-DD`` due date.

    Raises:
        ValueError: If the text is empty, not in the fixed format, or not a
                    real calendar date
    """
    if text is None or not text.strip():
        raise ValueError("Due date is required")
    text = text.strip()
    if not _DATE_RE.match(text):
        raise ValueError(f"Due date must be YYYY-MM-DD, got {text!r}")
    return datetime.strptime(text, DATE_FORMAT).date()


def format_timestamp(value: datetime) -> str:
    return value.isoformat(timespec=TIMESTAMP_SPEC)


def parse_timestamp(text: str) -> datetime:
    """Parse an offset-free ISO-8601 timestamp written by ``format_timestamp``."""
    if not _TIMESTAMP_RE.match(text):
        raise ValueError(f"Timestamp must be YYYY-MM-DDTHH:MM:SS[.ffffff], got {text!r}")
    return datetime.fromisoformat(text)


@dataclass(frozen=True)
class Task:
    """Task model representing a single task item.

    Records are never changed in place; use ``dataclasses.replace`` to derive
    an updated copy.

    Attributes:
        id: Unique, monotonically assigned identifier (starts at 1)
        title: Trimmed, non-empty title
        description: Free text, may be empty
        due_date: Calendar date the task is due
        priority: Priority level of the task
        status: Current status of the task (NOT_DONE or DONE)
        created_at: Local timestamp when the task was created
        last_updated_at: Local timestamp of the last change
        is_recurring: Whether the task repeats
        recurrence_pattern: Free-text pattern, only set for recurring tasks
    """

    id: int
    title: str
    description: str
    due_date: date
    priority: Priority
    status: Status
    created_at: datetime
    last_updated_at: datetime
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None

    @property
    def duplicate_key(self) -> Tuple[str, date]:
        """Key used to reject a second task with the same title and date."""
        return duplicate_key(self.title, self.due_date)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the task to its persisted JSON-compatible form."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date.strftime(DATE_FORMAT),
            "priority": self.priority.value,
            "status": self.status.value,
            "created_at": format_timestamp(self.created_at),
            "last_updated_at": format_timestamp(self.last_updated_at),
            "is_recurring": self.is_recurring,
            "recurrence_pattern": self.recurrence_pattern,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Task":
        """Build a task from its persisted form.

        Args:
            data: Mapping produced by ``to_dict``

        Returns:
            The reconstructed Task

        Raises:
            MalformedRecordError: If a required field is missing or has the
                                  wrong shape, or a date cannot be parsed
        """
        if not isinstance(data, Mapping):
            raise MalformedRecordError(f"Record must be an object, got {type(data).__name__}")

        task_id = _require(data, "id", int)
        if isinstance(task_id, bool) or task_id < 1:
            raise MalformedRecordError(f"Invalid id: {task_id!r}")

        title = _require(data, "title", str).strip()
        if not title:
            raise MalformedRecordError(f"Record {task_id} has an empty title")

        description = _optional(data, "description", str, "")

        try:
            due_date = parse_due_date(_require(data, "due_date", str))
            priority = Priority.parse(_require(data, "priority", str))
            status = Status(_optional(data, "status", str, Status.NOT_DONE.value))
            created_at = parse_timestamp(_require(data, "created_at", str))
            last_updated_at = parse_timestamp(_require(data, "last_updated_at", str))
        except ValueError as e:
            raise MalformedRecordError(f"Record {task_id}: {e}") from e

        is_recurring = _optional(data, "is_recurring", bool, False)
        recurrence_pattern = _optional(data, "recurrence_pattern", str, None)

        return cls(
            id=task_id,
            title=title,
            description=description,
            due_date=due_date,
            priority=priority,
            status=status,
            created_at=created_at,
            last_updated_at=last_updated_at,
            is_recurring=is_recurring,
            recurrence_pattern=recurrence_pattern if is_recurring else None,
        )


def duplicate_key(title: str, due_date: date) -> Tuple[str, date]:
    return title.strip().casefold(), due_date


def _require(data: Mapping[str, Any], key: str, kind: type) -> Any:
    if key not in data or data[key] is None:
        raise MalformedRecordError(f"Missing required field {key!r}")
    value = data[key]
    if not isinstance(value, kind):
        raise MalformedRecordError(
            f"Field {key!r} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _optional(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    if data.get(key) is None:
        return default
    return _require(data, key, kind)
