from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from enum import Enum, IntEnum
from datetime import datetime, timezone
from typing import Optional
import uuid

class TaskPriority(IntEnum):
    low = 0
    medium = 1
    high = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()

class TaskStatusFilter(str, Enum):
    all = "all"
    active = "active"
    completed = "completed"

class TaskSortKey(str, Enum):
    created_at = "created_at"
    priority = "priority"
    due_date = "due_date"

class Task(BaseModel):
    id: str
    title: str = Field(min_length=1)
    done: bool = False
    created_at: datetime
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[datetime] = None

    @field_validator("created_at", "due_date")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # naive values are taken as UTC; every backend hands back aware UTC
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

class TaskFilter(BaseModel):
    # Plain strings: anything unrecognized means "no filter" / "newest first".
    status: str = ""
    sort_by: str = ""

class TaskStats(BaseModel):
    total: int = 0
    active: int = 0
    completed: int = 0

def new_task_id() -> str:
    return str(uuid.uuid4())
