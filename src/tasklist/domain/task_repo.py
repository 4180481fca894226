from __future__ import annotations
from typing import List, Protocol, runtime_checkable

from tasklist.domain.task_models import Task, TaskFilter, TaskStats


@runtime_checkable
class TaskRepo(Protocol):
    """
    Storage contract shared by every backend.

    get/update/delete raise TaskNotFoundError for an unknown id.
    create raises StorageError on a storage fault, including a duplicate id.
    """

    async def list(self, filter: TaskFilter) -> List[Task]: ...

    async def get(self, task_id: str) -> Task: ...

    async def create(self, task: Task) -> None: ...

    async def update(self, task: Task) -> None: ...

    async def delete(self, task_id: str) -> None: ...

    async def stats(self) -> TaskStats: ...

    async def close(self) -> None: ...
