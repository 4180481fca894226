from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import Boolean, DateTime, Integer, String, Text, and_, case, delete, func, literal, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from tasklist.domain.errors import StorageError, TaskNotFoundError
from tasklist.domain.task_models import Task, TaskFilter, TaskPriority, TaskSortKey, TaskStats, TaskStatusFilter
from tasklist.infra.db.engine import make_sessionmaker

logger = logging.getLogger("tasklist.storage")


class UTCDateTime(TypeDecorator):
    """Stores UTC, hands back tz-aware UTC (SQLite drops tzinfo on its own)."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    pass


class TaskRow(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    @classmethod
    def from_domain(cls, task: Task) -> "TaskRow":
        return cls(
            id=task.id,
            title=task.title,
            done=task.done,
            created_at=task.created_at,
            priority=int(task.priority),
            due_date=task.due_date,
        )

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            done=self.done,
            created_at=self.created_at,
            priority=TaskPriority(self.priority),
            due_date=self.due_date,
        )


def _status_clause(status: str):
    # One predicate for every status value; unknown values match all rows.
    selected = literal(status, String)
    return or_(
        selected.not_in([TaskStatusFilter.active.value, TaskStatusFilter.completed.value]),
        and_(selected == TaskStatusFilter.active.value, TaskRow.done.is_(False)),
        and_(selected == TaskStatusFilter.completed.value, TaskRow.done.is_(True)),
    )


def _order_clauses(sort_by: str):
    # Each CASE is NULL (a no-op) unless its key is selected;
    # created_at DESC always breaks ties.
    selected = literal(sort_by, String)
    return (
        case((selected == TaskSortKey.priority.value, TaskRow.priority)).desc(),
        case((selected == TaskSortKey.due_date.value, TaskRow.due_date)).asc().nulls_last(),
        TaskRow.created_at.desc(),
    )


class SQLTaskRepo:
    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.sessionmaker = make_sessionmaker(engine)

    def _fault(self, event: str, exc: SQLAlchemyError, **fields) -> StorageError:
        logger.exception(event, extra={"category": "storage", "event": event, **fields})
        return StorageError(f"{event}: {exc.__class__.__name__}")

    async def create_schema(self) -> None:
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise self._fault("storage.schema_failed", exc) from exc

    async def list(self, filter: TaskFilter) -> List[Task]:
        stmt = select(TaskRow).where(_status_clause(filter.status)).order_by(*_order_clauses(filter.sort_by))
        try:
            async with self.sessionmaker() as session:
                res = await session.execute(stmt)
                rows = res.scalars().all()
                return [r.to_domain() for r in rows]
        except SQLAlchemyError as exc:
            raise self._fault("storage.list_failed", exc) from exc

    async def get(self, task_id: str) -> Task:
        try:
            async with self.sessionmaker() as session:
                row = await session.get(TaskRow, task_id)
        except SQLAlchemyError as exc:
            raise self._fault("storage.get_failed", exc, task_id=task_id) from exc
        if row is None:
            raise TaskNotFoundError(task_id)
        return row.to_domain()

    async def create(self, task: Task) -> None:
        try:
            async with self.sessionmaker() as session:
                session.add(TaskRow.from_domain(task))
                await session.commit()
        except SQLAlchemyError as exc:
            # duplicate ids land here as IntegrityError
            raise self._fault("storage.create_failed", exc, task_id=task.id) from exc

    async def update(self, task: Task) -> None:
        stmt = (
            update(TaskRow)
            .where(TaskRow.id == task.id)
            .values(title=task.title, done=task.done, priority=int(task.priority), due_date=task.due_date)
            .execution_options(synchronize_session=False)
        )
        try:
            async with self.sessionmaker() as session:
                affected = (await session.execute(stmt)).rowcount
                await session.commit()
        except SQLAlchemyError as exc:
            raise self._fault("storage.update_failed", exc, task_id=task.id) from exc
        if affected == 0:
            raise TaskNotFoundError(task.id)

    async def delete(self, task_id: str) -> None:
        stmt = delete(TaskRow).where(TaskRow.id == task_id).execution_options(synchronize_session=False)
        try:
            async with self.sessionmaker() as session:
                affected = (await session.execute(stmt)).rowcount
                await session.commit()
        except SQLAlchemyError as exc:
            raise self._fault("storage.delete_failed", exc, task_id=task_id) from exc
        if affected == 0:
            raise TaskNotFoundError(task_id)

    async def stats(self) -> TaskStats:
        stmt = select(
            func.count(TaskRow.id),
            func.count(case((TaskRow.done.is_(False), 1))),
            func.count(case((TaskRow.done.is_(True), 1))),
        )
        try:
            async with self.sessionmaker() as session:
                total, active, completed = (await session.execute(stmt)).one()
        except SQLAlchemyError as exc:
            raise self._fault("storage.stats_failed", exc) from exc
        return TaskStats(total=total, active=active, completed=completed)

    async def close(self) -> None:
        await self.engine.dispose()
