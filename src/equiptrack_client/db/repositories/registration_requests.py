"""
equiptrack_client.db.repositories.registration_requests

Repository for cached `RegistrationRequest` rows.

Responsibilities:
- Newest-first approval queues by department, inviter, and status.
- Pending count used by the approval worker.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import RegistrationRequestRow
from equiptrack_client.schemas import RegistrationRequest


class RegistrationRequestRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _select(self, *criteria) -> list[RegistrationRequest]:
        # Newest first for approval queues.
        stmt = (
            select(RegistrationRequestRow)
            .where(*criteria)
            .order_by(desc(RegistrationRequestRow.request_date))
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [RegistrationRequest.model_validate(r) for r in rows]

    async def list_all(self) -> list[RegistrationRequest]:
        return await self._select()

    async def list_by_department(self, department_id: str) -> list[RegistrationRequest]:
        return await self._select(RegistrationRequestRow.department_id == department_id)

    async def list_by_inviter(self, user_id: str) -> list[RegistrationRequest]:
        return await self._select(RegistrationRequestRow.invited_by == user_id)

    async def list_by_status(self, status: str) -> list[RegistrationRequest]:
        return await self._select(RegistrationRequestRow.status == status)

    async def get(self, request_id: str) -> RegistrationRequest | None:
        row = await self._session.get(RegistrationRequestRow, request_id)
        return RegistrationRequest.model_validate(row) if row is not None else None

    async def get_by_contact(self, contact: str) -> RegistrationRequest | None:
        stmt = select(RegistrationRequestRow).where(RegistrationRequestRow.contact == contact).limit(1)
        row = (await self._session.execute(stmt)).scalars().first()
        return RegistrationRequest.model_validate(row) if row is not None else None

    async def count(self) -> int:
        stmt = select(func.count()).select_from(RegistrationRequestRow)
        return (await self._session.execute(stmt)).scalar_one()

    async def upsert(self, request: RegistrationRequest) -> None:
        await self._session.merge(RegistrationRequestRow(**request.model_dump()))
        await self._session.flush()

    async def upsert_many(self, requests: Iterable[RegistrationRequest]) -> None:
        for request in requests:
            await self._session.merge(RegistrationRequestRow(**request.model_dump()))
        await self._session.flush()

    async def delete(self, request_id: str) -> None:
        await self._session.execute(
            delete(RegistrationRequestRow).where(RegistrationRequestRow.id == request_id)
        )

    async def delete_all(self) -> None:
        await self._session.execute(delete(RegistrationRequestRow))

    async def replace_all(self, requests: Iterable[RegistrationRequest]) -> None:
        await self.delete_all()
        await self.upsert_many(requests)


# --- Module Notes -----------------------------------------------------------
# The whole table is replaced on each sync; the server decides which requests a reviewer sees.
