"""
equiptrack_client.services.approvals

Registration request approvals.

Responsibilities:
- Sync pending registration requests visible to the reviewer.
- Approve (creating the user) or reject requests, with a cache fallback.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.repositories.registration_requests import RegistrationRequestRepo
from equiptrack_client.db.repositories.users import UserRepo
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.result import Error, NetworkResult, Success, safe_api_call
from equiptrack_client.schemas import RegistrationRequest, User, UserRole, UserStatus

log = get_logger(__name__)


class ApprovalService:
    def __init__(self, *, sessionmaker: async_sessionmaker[AsyncSession], api: EquipTrackApi) -> None:
        self._sessionmaker = sessionmaker
        self._api = api

    async def list_all(self) -> list[RegistrationRequest]:
        async with self._sessionmaker() as session:
            return await RegistrationRequestRepo(session).list_all()

    async def list_by_department(self, department_id: str) -> list[RegistrationRequest]:
        async with self._sessionmaker() as session:
            return await RegistrationRequestRepo(session).list_by_department(department_id)

    async def list_by_inviter(self, user_id: str) -> list[RegistrationRequest]:
        async with self._sessionmaker() as session:
            return await RegistrationRequestRepo(session).list_by_inviter(user_id)

    async def get(self, request_id: str) -> RegistrationRequest | None:
        async with self._sessionmaker() as session:
            return await RegistrationRequestRepo(session).get(request_id)

    async def count(self) -> int:
        async with self._sessionmaker() as session:
            return await RegistrationRequestRepo(session).count()

    async def sync(
        self, *, user_id: str, user_role: UserRole, department_id: str
    ) -> NetworkResult[list[RegistrationRequest]]:
        result = await safe_api_call(
            lambda: self._api.get_registration_requests(
                user_id=user_id, user_role=user_role, department_id=department_id
            )
        )
        if isinstance(result, Error):
            return result
        async with self._sessionmaker() as session:
            await RegistrationRequestRepo(session).replace_all(result.data)
            await session.commit()
        return result

    async def approve(self, request_id: str) -> NetworkResult[User]:
        result = await safe_api_call(lambda: self._api.approve_registration(request_id))
        async with self._sessionmaker() as session:
            requests = RegistrationRequestRepo(session)
            if isinstance(result, Success):
                user = result.data
            else:
                request = await requests.get(request_id)
                if request is None:
                    return Error("Request not found")
                log.warning("approvals.approve_offline", request_id=request_id, error=result.message)
                user = _user_from_request(request)
            await UserRepo(session).upsert(user)
            await requests.delete(request_id)
            await session.commit()
        return Success(user)

    async def reject(self, request_id: str) -> NetworkResult[str]:
        result = await safe_api_call(lambda: self._api.reject_registration(request_id))
        if isinstance(result, Error):
            log.warning("approvals.reject_offline", request_id=request_id, error=result.message)
        async with self._sessionmaker() as session:
            await RegistrationRequestRepo(session).delete(request_id)
            await session.commit()
        return Success(request_id)


def _user_from_request(request: RegistrationRequest) -> User:
    return User(
        id=str(uuid.uuid4()),
        name=request.name,
        contact=request.contact,
        department_id=request.department_id or "",
        department_name=request.department_name,
        role=UserRole.normal_user,
        status=UserStatus.normal,
        password=request.password,
    )
