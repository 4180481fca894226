from __future__ import annotations
import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Union

from pydantic import TypeAdapter, ValidationError

from tasklist.domain.errors import StorageError, TaskNotFoundError
from tasklist.domain.task_models import Task, TaskFilter, TaskStats
from tasklist.infra.db.task_query import apply_filter, compute_stats

logger = logging.getLogger("tasklist.storage")

TASKS_FILENAME = "tasks.json"
TASKS_FILE_MODE = 0o644

_task_list = TypeAdapter(List[Task])


class JsonTaskRepo:
    """
    Whole task set kept as one pretty-printed JSON array.

    Every mutation is a full load-modify-save. Saves go through a temp file
    plus os.replace, so a failed save leaves the previous document in place.
    There is no file locking: two processes mutating the same file can lose
    an update (last save wins). File I/O runs inline on the event loop; the
    document is small and the app has a single caller.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / TASKS_FILENAME

    def _load(self) -> List[Task]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_bytes()
            return _task_list.validate_json(raw)
        except (OSError, ValidationError) as exc:
            logger.exception(
                "storage.load_failed",
                extra={"category": "storage", "event": "storage.load_failed", "path": str(self.path)},
            )
            raise StorageError(f"failed to load tasks from {self.path}") from exc

    def _save(self, tasks: List[Task]) -> None:
        tmp_path = None
        try:
            # serialize fully before touching the disk
            payload = _task_list.dump_json(tasks, indent=2, exclude_none=True)
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".tasks-", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, TASKS_FILE_MODE)  # mkstemp creates 0600
            os.replace(tmp_path, self.path)
        except (OSError, ValueError) as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            logger.exception(
                "storage.save_failed",
                extra={"category": "storage", "event": "storage.save_failed", "path": str(self.path)},
            )
            raise StorageError(f"failed to save tasks to {self.path}") from exc

    async def list(self, filter: TaskFilter) -> List[Task]:
        return apply_filter(self._load(), filter)

    async def get(self, task_id: str) -> Task:
        for task in self._load():
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    async def create(self, task: Task) -> None:
        tasks = self._load()
        if any(t.id == task.id for t in tasks):
            raise StorageError(f"task with ID {task.id} already exists")
        tasks.append(task)
        self._save(tasks)

    async def update(self, task: Task) -> None:
        tasks = self._load()
        for i, current in enumerate(tasks):
            if current.id == task.id:
                tasks[i] = task.model_copy(update={"created_at": current.created_at})
                self._save(tasks)
                return
        raise TaskNotFoundError(task.id)

    async def delete(self, task_id: str) -> None:
        tasks = self._load()
        remaining = [t for t in tasks if t.id != task_id]
        if len(remaining) == len(tasks):
            raise TaskNotFoundError(task_id)
        self._save(remaining)

    async def stats(self) -> TaskStats:
        return compute_stats(self._load())

    async def close(self) -> None:
        return None
