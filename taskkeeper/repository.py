"""Task repository for managing task operations.

This module provides the TaskRepository class, which owns the in-memory task
set and mirrors it to a storage backend. It handles validation, duplicate
detection, id assignment and persistence of every change.

Validation and persistence failures are reported through ``Result`` values
instead of exceptions, so callers can tell why an operation failed. If a save
fails, the change is rolled back in memory and the result carries the
PersistenceError.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple, Union

from taskkeeper.errors import (
    PersistenceError,
    TaskError,
    ValidationError,
    ValidationReason,
)
from taskkeeper.models import Priority, Status, Task, duplicate_key, parse_due_date
from taskkeeper.storage import JsonStorage, Storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Result:
    """Outcome of a repository operation.

    Attributes:
        task: The task that was created, changed or removed (None on failure)
        error: Why the operation failed (None on success)
    """

    task: Optional[Task] = None
    error: Optional[TaskError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Task:
        """Return the task, or raise the error if the operation failed."""
        if self.error is not None:
            raise self.error
        if self.task is None:
            raise RuntimeError("Result holds neither a task nor an error")
        return self.task


def _failure(reason: ValidationReason, message: str) -> Result:
    logger.debug("Rejected: %s", message)
    return Result(error=ValidationError(reason, message))


class TaskRepository:
    """Repository for managing tasks with storage backend.

    Tasks are loaded once at construction and served from memory afterwards.
    Every mutating call writes the full set back to storage before returning.

    Attributes:
        storage: Storage backend for persisting tasks
    """

    def __init__(
        self,
        storage: Union[Storage, str, "os.PathLike[str]", None] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize TaskRepository and load existing tasks.

        Args:
            storage: Storage implementation or path of a JSON store. If None,
                    uses JsonStorage with default file path.
            clock: Returns the current local time for timestamps

        Raises:
            StoreCorruptError: If the existing store cannot be read
        """
        if not isinstance(storage, Storage):
            storage = JsonStorage(storage)
        self.storage = storage
        self._clock = clock
        self._tasks: List[Task] = []
        self._next_id = 1
        self.load()

    def load(self) -> None:
        """Replace the in-memory set with the stored tasks."""
        self._tasks = self.storage.load()
        self._next_id = max((task.id for task in self._tasks), default=0) + 1
        logger.info("Loaded %d task(s), next id %d", len(self._tasks), self._next_id)

    def save(self) -> None:
        """Persist the full task set.

        Raises:
            PersistenceError: If the write failed
        """
        self.storage.save(self._tasks)

    def list_all(self) -> Tuple[Task, ...]:
        """Get all tasks in insertion order.

        Returns:
            A snapshot of the task set; later changes don't affect it
        """
        return tuple(self._tasks)

    def get_task(self, task_id: int) -> Optional[Task]:
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

    def add_task(
        self,
        title: Optional[str],
        description: Optional[str],
        due_date: Optional[str],
        priority: Union[Priority, str, None],
        is_recurring: bool = False,
        recurrence_pattern: Optional[str] = None,
    ) -> Result:
        """Create a new task.

        Checks run in order and the first failure is reported: empty title,
        missing or malformed due date, invalid priority, duplicate.

        Args:
            title: Task title, trimmed before use
            description: Free text, trimmed; None is stored as ""
            due_date: Due date as YYYY-MM-DD
            priority: Priority member or label (low/medium/high, any case)
            is_recurring: Whether the task repeats
            recurrence_pattern: Free-text pattern, kept only if recurring

        Returns:
            Result holding the created Task with its assigned ID
        """
        checked = self._validate(title, due_date, priority)
        if isinstance(checked, Result):
            return checked
        clean_title, parsed_due, parsed_priority = checked

        if self._find_duplicate(clean_title, parsed_due) is not None:
            return _failure(
                ValidationReason.DUPLICATE,
                f"Task '{clean_title}' already exists for {parsed_due.isoformat()}",
            )

        now = self._clock()
        task = Task(
            id=self._next_id,
            title=clean_title,
            description=(description or "").strip(),
            due_date=parsed_due,
            priority=parsed_priority,
            status=Status.NOT_DONE,
            created_at=now,
            last_updated_at=now,
            is_recurring=is_recurring,
            recurrence_pattern=_pattern(is_recurring, recurrence_pattern),
        )

        def apply() -> None:
            self._tasks.append(task)
            self._next_id += 1

        return self._commit(apply, task, "Added task %d")

    def update_task(
        self,
        task_id: int,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        due_date: Optional[str] = None,
        priority: Union[Priority, str, None] = None,
        is_recurring: Optional[bool] = None,
        recurrence_pattern: Optional[str] = None,
    ) -> Result:
        """Change fields of an existing task.

        Only the fields that are passed change. The new values go through the
        same checks as ``add_task``, and the duplicate check ignores the task
        being edited.

        Args:
            task_id: ID of the task to change

        Returns:
            Result holding the updated Task
        """
        index = self._index_of(task_id)
        if index is None:
            return _failure(ValidationReason.NOT_FOUND, f"Task #{task_id} not found")
        current = self._tasks[index]

        checked = self._validate(
            current.title if title is None else title,
            current.due_date.isoformat() if due_date is None else due_date,
            current.priority if priority is None else priority,
        )
        if isinstance(checked, Result):
            return checked
        clean_title, parsed_due, parsed_priority = checked

        clash = self._find_duplicate(clean_title, parsed_due)
        if clash is not None and clash.id != task_id:
            return _failure(
                ValidationReason.DUPLICATE,
                f"Task '{clean_title}' already exists for {parsed_due.isoformat()}",
            )

        recurring = current.is_recurring if is_recurring is None else is_recurring
        pattern = current.recurrence_pattern if recurrence_pattern is None else recurrence_pattern
        updated = dataclasses.replace(
            current,
            title=clean_title,
            description=current.description if description is None else description.strip(),
            due_date=parsed_due,
            priority=parsed_priority,
            is_recurring=recurring,
            recurrence_pattern=_pattern(recurring, pattern),
            last_updated_at=self._clock(),
        )
        return self._replace(index, updated, "Updated task %d")

    def mark_done(self, task_id: int) -> Result:
        """Mark a task as done.

        Args:
            task_id: ID of the task to mark as done

        Returns:
            Result holding the updated Task
        """
        index = self._index_of(task_id)
        if index is None:
            return _failure(ValidationReason.NOT_FOUND, f"Task #{task_id} not found")

        updated = dataclasses.replace(
            self._tasks[index], status=Status.DONE, last_updated_at=self._clock()
        )
        return self._replace(index, updated, "Marked task %d done")

    def delete_task(self, task_id: int) -> Result:
        """Delete a task by ID.

        Args:
            task_id: ID of the task to delete

        Returns:
            Result holding the removed Task
        """
        index = self._index_of(task_id)
        if index is None:
            return _failure(ValidationReason.NOT_FOUND, f"Task #{task_id} not found")
        removed = self._tasks[index]

        def apply() -> None:
            del self._tasks[index]

        return self._commit(apply, removed, "Deleted task %d")

    def _validate(
        self,
        title: Optional[str],
        due_date: Optional[str],
        priority: Union[Priority, str, None],
    ) -> Union[Tuple[str, date, Priority], Result]:
        clean_title = (title or "").strip()
        if not clean_title:
            return _failure(ValidationReason.EMPTY_TITLE, "Title cannot be empty")

        try:
            parsed_due = parse_due_date(due_date)
        except ValueError as e:
            return _failure(ValidationReason.INVALID_DUE_DATE, f"Missing or malformed due date: {e}")

        try:
            parsed_priority = Priority.parse(priority)
        except ValueError:
            return _failure(
                ValidationReason.INVALID_PRIORITY,
                f"Invalid priority {priority!r}; choose low, medium or high",
            )

        return clean_title, parsed_due, parsed_priority

    def _find_duplicate(self, title: str, due: date) -> Optional[Task]:
        key = duplicate_key(title, due)
        for task in self._tasks:
            if task.duplicate_key == key:
                return task
        return None

    def _index_of(self, task_id: int) -> Optional[int]:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                return index
        return None

    def _replace(self, index: int, updated: Task, message: str) -> Result:
        def apply() -> None:
            self._tasks[index] = updated

        return self._commit(apply, updated, message)

    def _commit(self, apply: Callable[[], None], task: Task, message: str) -> Result:
        # Restore memory if the write fails so it always matches the file.
        snapshot = list(self._tasks)
        next_id = self._next_id
        try:
            apply()
            self.save()
        except PersistenceError as e:
            self._rollback(snapshot, next_id)
            logger.warning("Rolled back change to task %d: %s", task.id, e)
            return Result(error=e)
        except Exception:
            self._rollback(snapshot, next_id)
            raise
        logger.info(message, task.id)
        return Result(task=task)

    def _rollback(self, snapshot: List[Task], next_id: int) -> None:
        self._tasks = snapshot
        self._next_id = next_id


def _pattern(is_recurring: bool, pattern: Optional[str]) -> Optional[str]:
    if not is_recurring or pattern is None:
        return None
    return pattern.strip() or None
