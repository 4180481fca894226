# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

import pytest
import pytest_asyncio

from tasklist.domain.task_models import Task, TaskPriority
from tasklist.infra.db.engine import make_engine, make_sqlite_url
from tasklist.infra.db.task_repo_json import JsonTaskRepo
from tasklist.infra.db.task_repo_memory import InMemoryTaskRepo
from tasklist.infra.db.task_repo_sql import SQLTaskRepo

BASE_TIME = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture()
async def sql_repo(tmp_path: Path):
    repo = SQLTaskRepo(make_engine(make_sqlite_url(str(tmp_path / "tasks.db"))))
    await repo.create_schema()
    yield repo
    await repo.close()


@pytest.fixture()
def json_repo(tmp_path: Path) -> JsonTaskRepo:
    return JsonTaskRepo(tmp_path / "data")


@pytest_asyncio.fixture(params=["sql", "json", "memory"])
async def repo(request, tmp_path: Path):
    """
    Every backend behind the same contract.

    Contract tests use this fixture so each assertion runs once per backend.
    """
    if request.param == "sql":
        r = SQLTaskRepo(make_engine(make_sqlite_url(str(tmp_path / "tasks.db"))))
        await r.create_schema()
    elif request.param == "json":
        r = JsonTaskRepo(tmp_path / "data")
    else:
        r = InMemoryTaskRepo()
    yield r
    await r.close()


@pytest.fixture()
def make_task() -> Callable[..., Task]:
    """
    Task factory with deterministic, strictly increasing created_at values.
    """
    counter = {"n": 0}

    def _make(
        title: str = "task",
        *,
        id: Optional[str] = None,
        done: bool = False,
        priority: TaskPriority = TaskPriority.medium,
        due_date: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> Task:
        counter["n"] += 1
        n = counter["n"]
        return Task(
            id=id or f"task-{n}",
            title=title,
            done=done,
            created_at=created_at or BASE_TIME + timedelta(minutes=n),
            priority=priority,
            due_date=due_date,
        )

    return _make


class StepClock:
    """Clock for TaskService that advances one second per call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()
