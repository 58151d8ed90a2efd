"""
equiptrack_client.services.departments

Department management (server first, cache fallback).

Responsibilities:
- Sync the department list into the cache.
- Create/update/delete departments, applying changes locally when the server fails.
- Reorder/reparent departments via structure updates.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.repositories.departments import DepartmentRepo
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.result import Error, NetworkResult, Success, safe_api_call
from equiptrack_client.schemas import Department, DepartmentStructureUpdate
from equiptrack_client.services import hierarchy
from equiptrack_client.services.runtime_settings import RuntimeSettings

log = get_logger(__name__)


class DepartmentService:
    def __init__(
        self,
        *,
        sessionmaker: async_sessionmaker[AsyncSession],
        api: EquipTrackApi,
        runtime: RuntimeSettings,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._api = api
        self._runtime = runtime

    async def list_all(self) -> list[Department]:
        async with self._sessionmaker() as session:
            return await DepartmentRepo(session).list_all()

    async def get(self, department_id: str) -> Department | None:
        async with self._sessionmaker() as session:
            return await DepartmentRepo(session).get(department_id)

    async def sync(self) -> NetworkResult[list[Department]]:
        if self._runtime.local_debug:
            return Success(await self.list_all())

        result = await safe_api_call(self._api.get_departments)
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await DepartmentRepo(session).replace_all(result.data)
            await session.commit()
        log.info("departments.synced", count=len(result.data))
        return result

    async def create(
        self,
        name: str,
        *,
        requires_approval: bool = True,
        parent_id: str | None = None,
    ) -> NetworkResult[Department]:
        # New departments go to the end of their sibling list.
        siblings = hierarchy.sorted_siblings(await self.list_all(), parent_id)
        order = max((d.order for d in siblings), default=0) + 1
        department = Department(
            id=str(uuid.uuid4()),
            name=name.strip(),
            requires_approval=requires_approval,
            parent_id=parent_id,
            order=order,
        )

        result = await safe_api_call(lambda: self._api.create_department(department))
        created = result.data if isinstance(result, Success) else department
        if isinstance(result, Error):
            log.warning("departments.create_offline", department_id=department.id, error=result.message)
        await self._upsert(created)
        return Success(created)

    async def update(self, department: Department) -> NetworkResult[Department]:
        result = await safe_api_call(lambda: self._api.update_department(department.id, department))
        updated = result.data if isinstance(result, Success) else department
        if isinstance(result, Error):
            log.warning("departments.update_offline", department_id=department.id, error=result.message)
        await self._upsert(updated)
        return Success(updated)

    async def delete(self, department_id: str) -> NetworkResult[str]:
        result = await safe_api_call(lambda: self._api.delete_department(department_id))
        if isinstance(result, Error):
            log.warning("departments.delete_offline", department_id=department_id, error=result.message)
        async with self._sessionmaker() as session:
            await DepartmentRepo(session).delete(department_id)
            await session.commit()
        return Success(department_id)

    async def update_structure(
        self, updates: list[DepartmentStructureUpdate]
    ) -> NetworkResult[list[Department]]:
        result = await safe_api_call(lambda: self._api.update_department_structure(updates))
        if isinstance(result, Success):
            if result.data:
                async with self._sessionmaker() as session:
                    await DepartmentRepo(session).replace_all(result.data)
                    await session.commit()
            return result

        if not self._runtime.local_debug:
            return result

        # Local-debug mode: apply the new parents/orders to the cache directly.
        changes = {u.id: u for u in updates}
        departments = [
            d.model_copy(update={"parent_id": changes[d.id].parent_id, "order": changes[d.id].order})
            if d.id in changes
            else d
            for d in await self.list_all()
        ]
        async with self._sessionmaker() as session:
            await DepartmentRepo(session).replace_all(departments)
            await session.commit()
        return Success(departments)

    async def name_exists(self, name: str, exclude_id: str | None = None) -> bool:
        wanted = name.strip().casefold()
        return any(d.name.casefold() == wanted and d.id != exclude_id for d in await self.list_all())

    async def department_path(self, department_id: str) -> str:
        return hierarchy.department_path(await self.list_all(), department_id)

    async def _upsert(self, department: Department) -> None:
        async with self._sessionmaker() as session:
            await DepartmentRepo(session).upsert(department)
            await session.commit()
