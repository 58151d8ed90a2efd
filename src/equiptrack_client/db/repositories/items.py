"""
equiptrack_client.db.repositories.items

Repository for cached `EquipmentItem` rows.

Responsibilities:
- Browse/search queries backing the equipment list.
- Scoped replace used by sync (one department or everything).
- Local stock adjustments for local-debug and offline return paths.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import EquipmentItemRow
from equiptrack_client.schemas import EquipmentItem


class EquipmentItemRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _select(self, *criteria) -> list[EquipmentItem]:
        stmt = select(EquipmentItemRow).where(*criteria).order_by(EquipmentItemRow.name)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [EquipmentItem.model_validate(r) for r in rows]

    async def list_all(self) -> list[EquipmentItem]:
        return await self._select()

    async def list_by_department(self, department_id: str) -> list[EquipmentItem]:
        return await self._select(EquipmentItemRow.department_id == department_id)

    async def list_available(self) -> list[EquipmentItem]:
        return await self._select(EquipmentItemRow.available_quantity > 0)

    async def list_by_category(self, category_id: str) -> list[EquipmentItem]:
        return await self._select(EquipmentItemRow.category_id == category_id)

    async def search(self, query: str) -> list[EquipmentItem]:
        pattern = f"%{query}%"
        return await self._select(
            or_(EquipmentItemRow.name.like(pattern), EquipmentItemRow.description.like(pattern))
        )

    async def get(self, item_id: str) -> EquipmentItem | None:
        row = await self._session.get(EquipmentItemRow, item_id)
        return EquipmentItem.model_validate(row) if row is not None else None

    async def upsert(self, item: EquipmentItem) -> None:
        await self._session.merge(EquipmentItemRow(**item.model_dump()))
        await self._session.flush()

    async def upsert_many(self, items: Iterable[EquipmentItem]) -> None:
        for item in items:
            await self._session.merge(EquipmentItemRow(**item.model_dump()))
        await self._session.flush()

    async def delete(self, item_id: str) -> None:
        await self._session.execute(delete(EquipmentItemRow).where(EquipmentItemRow.id == item_id))

    async def delete_all(self) -> None:
        await self._session.execute(delete(EquipmentItemRow))

    async def delete_by_department(self, department_id: str) -> None:
        await self._session.execute(
            delete(EquipmentItemRow).where(EquipmentItemRow.department_id == department_id)
        )

    async def replace(self, items: Iterable[EquipmentItem], department_id: str | None) -> None:
        # Sync scope: a department sync only clears that department's rows.
        if department_id is not None:
            await self.delete_by_department(department_id)
        else:
            await self.delete_all()
        await self.upsert_many(items)

    async def decrease_available(self, item_id: str, amount: int = 1) -> int:
        stmt = (
            update(EquipmentItemRow)
            .where(
                EquipmentItemRow.id == item_id,
                EquipmentItemRow.available_quantity >= amount,
            )
            .values(available_quantity=EquipmentItemRow.available_quantity - amount)
        )
        return (await self._session.execute(stmt)).rowcount

    async def increase_available(self, item_id: str, amount: int = 1) -> int:
        # Never exceed the item's total quantity.
        stmt = (
            update(EquipmentItemRow)
            .where(
                EquipmentItemRow.id == item_id,
                EquipmentItemRow.available_quantity + amount <= EquipmentItemRow.quantity,
            )
            .values(available_quantity=EquipmentItemRow.available_quantity + amount)
        )
        return (await self._session.execute(stmt)).rowcount


# --- Module Notes -----------------------------------------------------------
# Stock adjustments are conditional UPDATEs; a rowcount of 0 means the bound was hit.
