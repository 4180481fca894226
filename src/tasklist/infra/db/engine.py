from __future__ import annotations
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, async_sessionmaker, AsyncSession
from pathlib import Path

def make_sqlite_url(db_path: str) -> str:
    # db_path like "./data/tasks.db"
    p = Path(db_path).resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{p.as_posix()}"

def make_engine(db_url: str, pool_size: int = 5, max_overflow: int = 20) -> AsyncEngine:
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        # in-memory SQLite runs on a StaticPool, which takes no sizing
        return create_async_engine(url)
    # at most pool_size + max_overflow open connections, pool_size kept idle
    return create_async_engine(url, pool_size=pool_size, max_overflow=max_overflow, pool_pre_ping=True)

def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
