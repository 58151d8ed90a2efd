"""
equiptrack_client.services.users

User management.

Responsibilities:
- Sync users (optionally per department) into the cache.
- Create/update users with a cache fallback; delete through the server only.
- Contact uniqueness checks and invitation code generation.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.repositories.users import UserRepo
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.result import Error, NetworkResult, Success, safe_api_call
from equiptrack_client.schemas import User, UserRole, UserStatus

log = get_logger(__name__)

INVITATION_CODE_LENGTH = 8


class UserService:
    def __init__(self, *, sessionmaker: async_sessionmaker[AsyncSession], api: EquipTrackApi) -> None:
        self._sessionmaker = sessionmaker
        self._api = api

    async def list_all(self) -> list[User]:
        async with self._sessionmaker() as session:
            return await UserRepo(session).list_all()

    async def list_by_department(self, department_id: str) -> list[User]:
        async with self._sessionmaker() as session:
            return await UserRepo(session).list_by_department(department_id)

    async def list_by_role(self, role: UserRole) -> list[User]:
        async with self._sessionmaker() as session:
            return await UserRepo(session).list_by_role(role)

    async def list_by_status(self, status: UserStatus) -> list[User]:
        async with self._sessionmaker() as session:
            return await UserRepo(session).list_by_status(status)

    async def get(self, user_id: str) -> User | None:
        async with self._sessionmaker() as session:
            return await UserRepo(session).get(user_id)

    async def sync(self, user_role: UserRole, department_id: str | None = None) -> NetworkResult[list[User]]:
        result = await safe_api_call(
            lambda: self._api.get_users(user_role=user_role, department_id=department_id)
        )
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await UserRepo(session).replace(result.data, department_id)
            await session.commit()
        log.info("users.synced", count=len(result.data), department_id=department_id)
        return result

    async def create(self, user: User) -> NetworkResult[User]:
        new_user = user.model_copy(update={"id": str(uuid.uuid4()), "status": UserStatus.normal})
        result = await safe_api_call(lambda: self._api.create_user(new_user))
        created = result.data if isinstance(result, Success) else new_user
        if isinstance(result, Error):
            log.warning("users.create_offline", user_id=new_user.id, error=result.message)
        await self._cache(created)
        return Success(created)

    async def update(self, user: User) -> NetworkResult[User]:
        result = await safe_api_call(lambda: self._api.update_user(user.id, user))
        updated = result.data if isinstance(result, Success) else user
        if isinstance(result, Error):
            log.warning("users.update_offline", user_id=user.id, error=result.message)
        await self._cache(updated)
        return Success(updated)

    async def update_status(self, user_id: str, status: UserStatus) -> NetworkResult[User]:
        user = await self.get(user_id)
        if user is None:
            return Error("User not found")
        return await self.update(user.model_copy(update={"status": status}))

    async def update_password(self, user_id: str, new_password: str) -> NetworkResult[User]:
        user = await self.get(user_id)
        if user is None:
            return Error("User not found")
        return await self.update(user.model_copy(update={"password": new_password}))

    async def delete(self, user_id: str) -> NetworkResult[str]:
        # No local fallback: deleting only locally would resurrect on the next sync.
        result = await safe_api_call(lambda: self._api.delete_user(user_id))
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await UserRepo(session).delete(user_id)
            await session.commit()
        return Success(user_id)

    async def contact_exists(self, contact: str, exclude_id: str | None = None) -> bool:
        async with self._sessionmaker() as session:
            user = await UserRepo(session).get_by_contact(contact)
        return user is not None and user.id != exclude_id

    async def generate_invitation_code(self) -> str:
        async with self._sessionmaker() as session:
            repo = UserRepo(session)
            while True:
                code = uuid.uuid4().hex[:INVITATION_CODE_LENGTH].upper()
                if await repo.get_by_invitation_code(code) is None:
                    return code

    async def _cache(self, user: User) -> None:
        async with self._sessionmaker() as session:
            await UserRepo(session).upsert(user)
            await session.commit()
