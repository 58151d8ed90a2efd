"""
equiptrack_client.db.init_db

Cache initialization helpers.

Responsibilities:
- Create cache tables on startup (the cache carries no migrations).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from equiptrack_client.db import models  # noqa: F401  # registers tables on Base.metadata
from equiptrack_client.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Create tables if they don't exist.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Module Notes -----------------------------------------------------------
# create_all never alters existing tables; a schema change means deleting the cache file.
