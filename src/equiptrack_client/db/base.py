"""
equiptrack_client.db.base

SQLAlchemy declarative base and shared column types.

Responsibilities:
- Provide a shared DeclarativeBase for all cache tables.
- Store timestamps as naive UTC and hand them back as UTC-aware datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class UtcDateTime(TypeDecorator):
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC).replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Base(DeclarativeBase):
    type_annotation_map = {datetime: UtcDateTime}


# --- Module Notes -----------------------------------------------------------
# SQLite has no timezone-aware column type; comparing aware and naive datetimes raises,
# so every datetime column goes through `UtcDateTime` via `type_annotation_map`.
