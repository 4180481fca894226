from __future__ import annotations
import os
from typing import Literal, Optional

from pydantic import BaseModel, Field

from tasklist.infra.db.engine import make_sqlite_url

Backend = Literal["sql", "json", "memory"]


class Settings(BaseModel):
    backend: Backend = "sql"
    db_url: Optional[str] = None
    db_path: str = "./data/tasks.db"
    data_dir: str = "./data"
    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=20, ge=0)
    log_level: str = "INFO"
    log_dir: Optional[str] = "./logs"

    def database_url(self) -> str:
        return self.db_url or make_sqlite_url(self.db_path)


def load_settings() -> Settings:
    values = {
        "backend": os.getenv("TASKS_BACKEND"),
        "db_url": os.getenv("DB_URL"),
        "db_path": os.getenv("DB_PATH"),
        "data_dir": os.getenv("DATA_DIR"),
        "db_pool_size": os.getenv("DB_POOL_SIZE"),
        "db_max_overflow": os.getenv("DB_MAX_OVERFLOW"),
        "log_level": os.getenv("LOG_LEVEL"),
        "log_dir": os.getenv("LOG_DIR"),
    }
    # unset (or empty) variables keep the model defaults
    return Settings(**{k: v for k, v in values.items() if v})
