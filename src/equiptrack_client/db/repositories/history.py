"""
equiptrack_client.db.repositories.history

Repository for cached `BorrowHistoryEntry` rows.

Responsibilities:
- History queries (department, item, status, borrower, active, overdue).
- Scoped replace used by history sync.
- Return bookkeeping and the overdue sweep.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import BorrowHistoryRow
from equiptrack_client.schemas import BorrowHistoryEntry, BorrowStatus

ACTIVE_STATUSES = (BorrowStatus.borrowing, BorrowStatus.overdue_not_returned)


class BorrowHistoryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _select(self, *criteria) -> list[BorrowHistoryEntry]:
        stmt = select(BorrowHistoryRow).where(*criteria).order_by(desc(BorrowHistoryRow.borrow_date))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [BorrowHistoryEntry.model_validate(r) for r in rows]

    async def list_all(self) -> list[BorrowHistoryEntry]:
        return await self._select()

    async def list_by_department(self, department_id: str) -> list[BorrowHistoryEntry]:
        return await self._select(BorrowHistoryRow.department_id == department_id)

    async def list_by_item(self, item_id: str) -> list[BorrowHistoryEntry]:
        return await self._select(BorrowHistoryRow.item_id == item_id)

    async def list_by_status(self, status: BorrowStatus) -> list[BorrowHistoryEntry]:
        return await self._select(BorrowHistoryRow.status == status)

    async def list_by_borrower(self, contact: str) -> list[BorrowHistoryEntry]:
        return await self._select(BorrowHistoryRow.borrower_contact == contact)

    async def list_active(self) -> list[BorrowHistoryEntry]:
        return await self._select(BorrowHistoryRow.status.in_(ACTIVE_STATUSES))

    async def list_overdue(self, now: datetime) -> list[BorrowHistoryEntry]:
        return await self._select(
            BorrowHistoryRow.status.in_(ACTIVE_STATUSES),
            BorrowHistoryRow.expected_return_date < now,
        )

    async def get(self, entry_id: str) -> BorrowHistoryEntry | None:
        row = await self._session.get(BorrowHistoryRow, entry_id)
        return BorrowHistoryEntry.model_validate(row) if row is not None else None

    async def upsert(self, entry: BorrowHistoryEntry) -> None:
        await self._session.merge(BorrowHistoryRow(**entry.model_dump()))
        await self._session.flush()

    async def upsert_many(self, entries: Iterable[BorrowHistoryEntry]) -> None:
        for entry in entries:
            await self._session.merge(BorrowHistoryRow(**entry.model_dump()))
        await self._session.flush()

    async def delete(self, entry_id: str) -> None:
        await self._session.execute(delete(BorrowHistoryRow).where(BorrowHistoryRow.id == entry_id))

    async def delete_all(self) -> None:
        await self._session.execute(delete(BorrowHistoryRow))

    async def replace(self, entries: Iterable[BorrowHistoryEntry], department_id: str | None) -> None:
        if department_id is not None:
            await self._session.execute(
                delete(BorrowHistoryRow).where(BorrowHistoryRow.department_id == department_id)
            )
        else:
            await self.delete_all()
        await self.upsert_many(entries)

    async def mark_overdue(self, now: datetime) -> int:
        # Active borrows past their expected return date become overdue.
        stmt = (
            update(BorrowHistoryRow)
            .where(
                BorrowHistoryRow.status == BorrowStatus.borrowing,
                BorrowHistoryRow.expected_return_date < now,
            )
            .values(status=BorrowStatus.overdue_not_returned)
        )
        return (await self._session.execute(stmt)).rowcount


# --- Module Notes -----------------------------------------------------------
# `replace` is the "last sync wins" rule: the server list overwrites the cached scope.
