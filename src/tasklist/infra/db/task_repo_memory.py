from __future__ import annotations
from typing import Dict, List

from tasklist.domain.errors import StorageError, TaskNotFoundError
from tasklist.domain.task_models import Task, TaskFilter, TaskStats
from tasklist.infra.db.task_query import apply_filter, compute_stats

class InMemoryTaskRepo:
    """
    Volatile store; nothing survives the process.
    Handy for tests and for trying the app without touching disk.
    """
    def __init__(self):
        self._tasks: Dict[str, Task] = {}

    async def list(self, filter: TaskFilter) -> List[Task]:
        return [t.model_copy() for t in apply_filter(self._tasks.values(), filter)]

    async def get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task.model_copy()

    async def create(self, task: Task) -> None:
        if task.id in self._tasks:
            raise StorageError(f"task with ID {task.id} already exists")
        self._tasks[task.id] = task.model_copy()

    async def update(self, task: Task) -> None:
        current = self._tasks.get(task.id)
        if current is None:
            raise TaskNotFoundError(task.id)
        self._tasks[task.id] = task.model_copy(update={"created_at": current.created_at})

    async def delete(self, task_id: str) -> None:
        if self._tasks.pop(task_id, None) is None:
            raise TaskNotFoundError(task_id)

    async def stats(self) -> TaskStats:
        return compute_stats(self._tasks.values())

    async def close(self) -> None:
        return None
