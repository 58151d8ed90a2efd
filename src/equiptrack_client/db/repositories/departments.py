"""
equiptrack_client.db.repositories.departments

Repository for cached `Department` rows.

Responsibilities:
- Flat, name-ordered listing; tree shape is derived in `services.hierarchy`.
- Upsert/delete for server-first writes and their offline fallbacks.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import DepartmentRow
from equiptrack_client.schemas import Department


class DepartmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[Department]:
        stmt = select(DepartmentRow).order_by(DepartmentRow.name)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [Department.model_validate(r) for r in rows]

    async def get(self, department_id: str) -> Department | None:
        row = await self._session.get(DepartmentRow, department_id)
        return Department.model_validate(row) if row is not None else None

    async def upsert(self, department: Department) -> None:
        await self._session.merge(DepartmentRow(**department.model_dump()))
        await self._session.flush()

    async def upsert_many(self, departments: Iterable[Department]) -> None:
        for department in departments:
            await self._session.merge(DepartmentRow(**department.model_dump()))
        await self._session.flush()

    async def delete(self, department_id: str) -> None:
        await self._session.execute(delete(DepartmentRow).where(DepartmentRow.id == department_id))

    async def delete_all(self) -> None:
        await self._session.execute(delete(DepartmentRow))

    async def replace_all(self, departments: Iterable[Department]) -> None:
        await self.delete_all()
        await self.upsert_many(departments)


# --- Module Notes -----------------------------------------------------------
# Parent references are stored as-is; cycle handling lives with the tree walkers.
