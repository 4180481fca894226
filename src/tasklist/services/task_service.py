import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from tasklist.domain.errors import InvalidArgumentError
from tasklist.domain.task_models import Task, TaskFilter, TaskPriority, TaskStats, new_task_id
from tasklist.domain.task_repo import TaskRepo

logger = logging.getLogger("tasklist.tasks")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TaskService:
    """Validates input, stamps id/created_at, and is the only caller of the repo."""

    def __init__(
        self,
        repo: TaskRepo,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_task_id,
    ):
        self.repo = repo
        self.clock = clock
        self.id_factory = id_factory

    async def add_task(
        self,
        title: str,
        priority: Union[TaskPriority, int] = TaskPriority.medium,
        due_date: Optional[datetime] = None,
    ) -> Task:
        title = (title or "").strip()
        if not title:
            raise InvalidArgumentError("task title cannot be empty")
        try:
            priority = TaskPriority(priority)
        except ValueError as exc:
            raise InvalidArgumentError(f"unknown priority: {priority!r}") from exc

        task = Task(
            id=self.id_factory(),
            title=title,
            done=False,
            created_at=self.clock(),
            priority=priority,
            due_date=due_date,
        )
        await self.repo.create(task)
        logger.info(
            "task.create",
            extra={"category": "tasks", "event": "task.create", "task_id": task.id, "title": task.title},
        )
        return task

    async def get_task(self, task_id: str) -> Task:
        _require_id(task_id)
        return await self.repo.get(task_id)

    async def delete_task(self, task_id: str) -> None:
        _require_id(task_id)
        await self.repo.delete(task_id)
        logger.info("task.delete", extra={"category": "tasks", "event": "task.delete", "task_id": task_id})

    async def toggle_task(self, task_id: str) -> Task:
        _require_id(task_id)
        task = await self.repo.get(task_id)
        toggled = task.model_copy(update={"done": not task.done})
        await self.repo.update(toggled)
        logger.info(
            "task.toggle",
            extra={"category": "tasks", "event": "task.toggle", "task_id": task_id, "done": toggled.done},
        )
        return toggled

    async def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> List[Task]:
        return await self.repo.list(task_filter or TaskFilter())

    async def get_task_stats(self) -> TaskStats:
        return await self.repo.stats()

    async def close(self) -> None:
        await self.repo.close()


def _require_id(task_id: str) -> None:
    if not task_id:
        raise InvalidArgumentError("task ID cannot be empty")
