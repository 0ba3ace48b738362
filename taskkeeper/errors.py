"""Error types for taskkeeper.

Validation and persistence failures are returned to callers inside a
``Result`` (see ``taskkeeper.repository``) rather than raised, so every
error here carries enough detail for a front-end to report it.
"""

from enum import Enum


class TaskError(Exception):
    """Base class for all taskkeeper errors."""


class ValidationReason(Enum):
    """Which input rule a rejected request violated."""

    EMPTY_TITLE = "empty_title"
    INVALID_DUE_DATE = "invalid_due_date"
    INVALID_PRIORITY = "invalid_priority"
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"


class ValidationError(TaskError):
    """Bad caller input. Always recoverable.

    Attributes:
        reason: The rule that was violated
    """

    def __init__(self, reason: ValidationReason, message: str):
        super().__init__(message)
        self.reason = reason


class MalformedRecordError(TaskError):
    """A single persisted record could not be parsed."""


class StoreCorruptError(TaskError):
    """The persisted container as a whole could not be read."""


class PersistenceError(TaskError):
    """Writing the task set to storage failed."""
