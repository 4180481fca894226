import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from tasklist.config import Settings, load_settings
from tasklist.domain.task_models import Task, TaskFilter, TaskStats
from tasklist.domain.task_repo import TaskRepo
from tasklist.infra.db.engine import make_engine
from tasklist.infra.db.task_repo_json import JsonTaskRepo
from tasklist.infra.db.task_repo_memory import InMemoryTaskRepo
from tasklist.infra.db.task_repo_sql import SQLTaskRepo
from tasklist.observability.logging import setup_logging
from tasklist.services.task_service import TaskService

logger = logging.getLogger("tasklist.system")

DUE_DATE_FORMAT = "%Y-%m-%d"


def parse_due_date(value: Optional[str]) -> Optional[datetime]:
    """'YYYY-MM-DD' -> UTC midnight. Empty or malformed input means no due date."""
    if not value:
        return None
    try:
        parsed = datetime.strptime(value.strip(), DUE_DATE_FORMAT)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def make_repo(settings: Settings) -> TaskRepo:
    if settings.backend == "json":
        return JsonTaskRepo(Path(settings.data_dir))
    if settings.backend == "memory":
        return InMemoryTaskRepo()
    engine = make_engine(
        settings.database_url(),
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
    return SQLTaskRepo(engine)


class TaskApp:
    """In-process entry point a UI binds to; takes raw UI values."""

    def __init__(self, service: TaskService, repo: TaskRepo, settings: Settings):
        self.service = service
        self.repo = repo
        self.settings = settings

    async def startup(self) -> None:
        if isinstance(self.repo, SQLTaskRepo):
            await self.repo.create_schema()
        logger.info(
            "db.ready",
            extra={"category": "system", "event": "db.ready", "backend": self.settings.backend},
        )

    async def shutdown(self) -> None:
        await self.service.close()
        logger.info("system.stop", extra={"category": "system", "event": "system.stop"})

    async def add_task(self, title: str, priority: int, due_date: str = "") -> Task:
        return await self.service.add_task(title, priority, parse_due_date(due_date))

    async def delete_task(self, task_id: str) -> None:
        await self.service.delete_task(task_id)

    async def toggle_task(self, task_id: str) -> Task:
        return await self.service.toggle_task(task_id)

    async def get_tasks(self, status: str = "", sort_by: str = "") -> List[Task]:
        return await self.service.list_tasks(TaskFilter(status=status, sort_by=sort_by))

    async def get_task_stats(self) -> TaskStats:
        return await self.service.get_task_stats()


def create_app(settings: Optional[Settings] = None) -> TaskApp:
    settings = settings or load_settings()
    setup_logging(settings.log_level, settings.log_dir)
    logger.info(
        "system.start",
        extra={"category": "system", "event": "system.start", "backend": settings.backend},
    )

    repo = make_repo(settings)
    svc = TaskService(repo)
    return TaskApp(svc, repo, settings)
