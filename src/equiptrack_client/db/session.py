"""
equiptrack_client.db.session

Async SQLAlchemy engine + session factory for the local cache.

Responsibilities:
- Create the async engine from settings, making sure a file-backed SQLite cache has a directory.
- Create the async sessionmaker used by every service.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from equiptrack_client.settings import Settings

# Seconds a writer waits on SQLite's database lock before failing.
SQLITE_BUSY_TIMEOUT = 15


def create_engine(settings: Settings) -> AsyncEngine:
    url = make_url(settings.database_url)
    connect_args: dict[str, object] = {}
    if url.get_backend_name() == "sqlite":
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT
        if url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(url, connect_args=connect_args)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: services return pydantic copies built after commit.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


# --- Module Notes -----------------------------------------------------------
# Services open one session per operation from the sessionmaker built here.
