"""
equiptrack_client.services.equipment

Equipment items and categories.

Responsibilities:
- Sync items (optionally per department) and categories into the cache.
- Item CRUD through the server only; category changes fall back to the cache.
- Image upload for item photos.
"""

from __future__ import annotations

import uuid
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.repositories.categories import CategoryRepo
from equiptrack_client.db.repositories.items import EquipmentItemRepo
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.result import Error, NetworkResult, Success, safe_api_call
from equiptrack_client.schemas import Category, EquipmentItem, UserRole
from equiptrack_client.services.runtime_settings import RuntimeSettings

log = get_logger(__name__)


class EquipmentService:
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

    # --- item reads ---------------------------------------------------------

    async def list_items(self) -> list[EquipmentItem]:
        async with self._sessionmaker() as session:
            return await EquipmentItemRepo(session).list_all()

    async def list_by_department(self, department_id: str) -> list[EquipmentItem]:
        async with self._sessionmaker() as session:
            return await EquipmentItemRepo(session).list_by_department(department_id)

    async def list_available(self) -> list[EquipmentItem]:
        async with self._sessionmaker() as session:
            return await EquipmentItemRepo(session).list_available()

    async def list_by_category(self, category_id: str) -> list[EquipmentItem]:
        async with self._sessionmaker() as session:
            return await EquipmentItemRepo(session).list_by_category(category_id)

    async def search(self, query: str) -> list[EquipmentItem]:
        async with self._sessionmaker() as session:
            return await EquipmentItemRepo(session).search(query)

    async def get_item(self, item_id: str) -> EquipmentItem | None:
        async with self._sessionmaker() as session:
            return await EquipmentItemRepo(session).get(item_id)

    # --- sync ---------------------------------------------------------------

    async def sync_items(
        self, user_role: UserRole, department_id: str | None = None
    ) -> NetworkResult[list[EquipmentItem]]:
        if self._runtime.local_debug:
            if department_id is not None:
                return Success(await self.list_by_department(department_id))
            return Success(await self.list_items())

        result = await safe_api_call(
            lambda: self._api.get_items(user_role=user_role, department_id=department_id)
        )
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await EquipmentItemRepo(session).replace(result.data, department_id)
            await session.commit()
        log.info("items.synced", count=len(result.data), department_id=department_id)
        return result

    async def sync_categories(self) -> NetworkResult[list[Category]]:
        if self._runtime.local_debug:
            return Success(await self.list_categories())

        result = await safe_api_call(self._api.get_categories)
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await CategoryRepo(session).replace_all(result.data)
            await session.commit()
        return result

    # --- item writes (server only) ------------------------------------------

    async def create_item(self, item: EquipmentItem) -> NetworkResult[EquipmentItem]:
        result = await safe_api_call(lambda: self._api.create_item(item))
        if isinstance(result, Success):
            await self._cache_item(result.data)
        return result

    async def update_item(self, item: EquipmentItem) -> NetworkResult[EquipmentItem]:
        result = await safe_api_call(lambda: self._api.update_item(item.id, item))
        if isinstance(result, Success):
            await self._cache_item(result.data)
        return result

    async def delete_item(self, item_id: str) -> NetworkResult[str]:
        result = await safe_api_call(lambda: self._api.delete_item(item_id))
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await EquipmentItemRepo(session).delete(item_id)
            await session.commit()
        return Success(item_id)

    async def upload_image(self, path: Path, upload_type: str = "item") -> NetworkResult[str]:
        result = await safe_api_call(lambda: self._api.upload_image(path, upload_type=upload_type))
        if isinstance(result, Error) and result.message == "Empty response body":
            return Error("No file URL received")
        return result

    # --- categories ---------------------------------------------------------

    async def list_categories(self) -> list[Category]:
        async with self._sessionmaker() as session:
            return await CategoryRepo(session).list_all()

    async def create_category(self, category: Category) -> NetworkResult[Category]:
        if not category.id:
            category = category.model_copy(update={"id": str(uuid.uuid4())})

        result = await safe_api_call(lambda: self._api.create_category(category))
        created = result.data if isinstance(result, Success) else category
        if isinstance(result, Error):
            log.warning("categories.create_offline", category_id=category.id, error=result.message)
        async with self._sessionmaker() as session:
            await CategoryRepo(session).upsert(created)
            await session.commit()
        return Success(created)

    async def delete_category(self, category_id: str) -> NetworkResult[str]:
        # A category already gone on the server (404) is still removed locally.
        result = await safe_api_call(lambda: self._api.delete_category(category_id))
        if isinstance(result, Error):
            log.warning("categories.delete_offline", category_id=category_id, error=result.message)
        async with self._sessionmaker() as session:
            await CategoryRepo(session).delete(category_id)
            await session.commit()
        return Success(category_id)

    async def _cache_item(self, item: EquipmentItem) -> None:
        async with self._sessionmaker() as session:
            await EquipmentItemRepo(session).upsert(item)
            await session.commit()
