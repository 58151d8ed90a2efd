"""
equiptrack_client.db.repositories.users

Repository for cached `User` rows.

Responsibilities:
- Lookups by department, role, status, contact, and invitation code.
- Contact + password authentication for offline and local-debug login.
- Scoped replace used by user sync.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from equiptrack_client.db.models import UserRow
from equiptrack_client.schemas import User, UserRole, UserStatus


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _select(self, *criteria) -> list[User]:
        stmt = select(UserRow).where(*criteria).order_by(UserRow.name)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [User.model_validate(r) for r in rows]

    async def _first(self, *criteria) -> User | None:
        stmt = select(UserRow).where(*criteria).limit(1)
        row = (await self._session.execute(stmt)).scalars().first()
        return User.model_validate(row) if row is not None else None

    async def list_all(self) -> list[User]:
        return await self._select()

    async def list_by_department(self, department_id: str) -> list[User]:
        return await self._select(UserRow.department_id == department_id)

    async def list_by_role(self, role: UserRole) -> list[User]:
        return await self._select(UserRow.role == role)

    async def list_by_status(self, status: UserStatus) -> list[User]:
        return await self._select(UserRow.status == status)

    async def get(self, user_id: str) -> User | None:
        row = await self._session.get(UserRow, user_id)
        return User.model_validate(row) if row is not None else None

    async def authenticate(self, contact: str, password: str) -> User | None:
        # Offline login against credentials cached from earlier syncs.
        return await self._first(UserRow.contact == contact, UserRow.password == password)

    async def get_by_contact(self, contact: str) -> User | None:
        return await self._first(UserRow.contact == contact)

    async def get_by_invitation_code(self, code: str) -> User | None:
        return await self._first(UserRow.invitation_code == code)

    async def upsert(self, user: User) -> None:
        await self._session.merge(UserRow(**user.model_dump()))
        await self._session.flush()

    async def upsert_many(self, users: Iterable[User]) -> None:
        for user in users:
            await self._session.merge(UserRow(**user.model_dump()))
        await self._session.flush()

    async def delete(self, user_id: str) -> None:
        await self._session.execute(delete(UserRow).where(UserRow.id == user_id))

    async def delete_all(self) -> None:
        await self._session.execute(delete(UserRow))

    async def replace(self, users: Iterable[User], department_id: str | None) -> None:
        if department_id is not None:
            await self._session.execute(delete(UserRow).where(UserRow.department_id == department_id))
        else:
            await self.delete_all()
        await self.upsert_many(users)



# --- Module Notes -----------------------------------------------------------
# The cached password column is filled from login and the local-debug seed; `authenticate` matches it as plain text.
