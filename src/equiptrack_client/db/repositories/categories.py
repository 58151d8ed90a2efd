"""
equiptrack_client.db.repositories.categories

Repository for cached `Category` rows.

Responsibilities:
- Name-ordered listing and lookups by id.
- Whole-table replace used by category sync.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import CategoryRow
from equiptrack_client.schemas import Category


class CategoryRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[Category]:
        stmt = select(CategoryRow).order_by(CategoryRow.name)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [Category.model_validate(r) for r in rows]

    async def get(self, category_id: str) -> Category | None:
        row = await self._session.get(CategoryRow, category_id)
        return Category.model_validate(row) if row is not None else None

    async def upsert(self, category: Category) -> None:
        await self._session.merge(CategoryRow(**category.model_dump()))
        await self._session.flush()

    async def upsert_many(self, categories: Iterable[Category]) -> None:
        for category in categories:
            await self._session.merge(CategoryRow(**category.model_dump()))
        await self._session.flush()

    async def delete(self, category_id: str) -> None:
        await self._session.execute(delete(CategoryRow).where(CategoryRow.id == category_id))

    async def delete_all(self) -> None:
        await self._session.execute(delete(CategoryRow))

    async def replace_all(self, categories: Iterable[Category]) -> None:
        await self.delete_all()
        await self.upsert_many(categories)


# --- Module Notes -----------------------------------------------------------
# Categories are never department-scoped, so sync always replaces the full table.
