"""Storage layer for taskkeeper.

This module provides an abstract storage interface and a JSON file
implementation. The file holds a JSON array with one object per task, in
insertion order. Writes go to a temporary file that atomically replaces the
store, so an interrupted save never leaves a half-written file behind.
"""

import contextlib
import json
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Union

from taskkeeper.errors import MalformedRecordError, PersistenceError, StoreCorruptError
from taskkeeper.models import Task

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "tasks.json"
DB_PATH_ENV = "TASK_DB_PATH"


class Storage(ABC):
    """Abstract base class for task storage implementations."""

    @abstractmethod
    def save(self, tasks: Sequence[Task]) -> None:
        """Replace the stored task set.

        Args:
            tasks: Tasks to persist, in order

        Raises:
            PersistenceError: If the tasks could not be written
        """
        pass

    @abstractmethod
    def load(self) -> List[Task]:
        """Load tasks from storage.

        Returns:
            Tasks in stored order

        Raises:
            StoreCorruptError: If the stored data cannot be read at all
        """
        pass

    @abstractmethod
    def delete(self) -> None:
        """Delete all data from storage."""
        pass


class JsonStorage(Storage):
    """JSON file-based storage implementation.

    Attributes:
        file_path: Path to the JSON storage file
    """

    def __init__(self, file_path: Union[str, "os.PathLike[str]", None] = None):
        """Initialize JsonStorage with a file path.

        Args:
            file_path: Path to the JSON file for storage. If None, uses
                      TASK_DB_PATH environment variable or defaults to tasks.json
        """
        if file_path is None:
            file_path = os.environ.get(DB_PATH_ENV, DEFAULT_DB_PATH)
        self.file_path = Path(file_path)

    def save(self, tasks: Sequence[Task]) -> None:
        """Write all tasks to a temporary file, then swap it into place.

        Args:
            tasks: Tasks to persist, in order

        Raises:
            PersistenceError: If the directory or file cannot be written
        """
        tmp_path = None
        try:
            payload = json.dumps(
                [task.to_dict() for task in tasks], indent=2, ensure_ascii=False
            ).encode("utf-8")
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.file_path.name}.", suffix=".tmp", dir=self.file_path.parent
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            if self.file_path.exists():
                shutil.copymode(self.file_path, tmp_path)
            os.replace(tmp_path, self.file_path)
            tmp_path = None
        except (OSError, ValueError) as e:
            logger.error("Failed to write %s: %s", self.file_path, e)
            raise PersistenceError(f"Could not save tasks to {self.file_path}: {e}") from e
        finally:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)

        logger.debug("Saved %d task(s) to %s", len(tasks), self.file_path)

    def load(self) -> List[Task]:
        """Load tasks from the JSON file.

        Records that cannot be parsed, or that reuse an id already seen, are
        skipped with a warning; the rest are returned.

        Returns:
            Tasks in file order. Empty if the file doesn't exist or is empty.

        Raises:
            StoreCorruptError: If the file cannot be read or is not a JSON array
        """
        if not self.file_path.exists():
            logger.debug("No store at %s, starting empty", self.file_path)
            return []

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                content = f.read().strip()
        except (OSError, UnicodeDecodeError) as e:
            raise StoreCorruptError(f"Could not read {self.file_path}: {e}") from e

        if not content:
            return []

        try:
            data = json.loads(content)
        except (ValueError, RecursionError) as e:
            raise StoreCorruptError(f"{self.file_path} is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise StoreCorruptError(
                f"{self.file_path} must contain a JSON array, got {type(data).__name__}"
            )

        tasks = []
        seen_ids = set()
        for index, record in enumerate(data):
            try:
                task = Task.from_dict(record)
            except MalformedRecordError as e:
                logger.warning("Skipping malformed record #%d in %s: %s", index, self.file_path, e)
                continue
            if task.id in seen_ids:
                logger.warning(
                    "Skipping record #%d in %s: duplicate id %d", index, self.file_path, task.id
                )
                continue
            seen_ids.add(task.id)
            tasks.append(task)

        return tasks

    def delete(self) -> None:
        """Delete the JSON storage file.

        If the file doesn't exist, this method does nothing.
        """
        if self.file_path.exists():
            self.file_path.unlink()
