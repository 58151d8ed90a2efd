"""
equiptrack_client.services.auth_service

Login, signup, and the persisted login session.

Responsibilities:
- Authenticate remotely, falling back to cached credentials when the server fails.
- Persist the session (user snapshot + token) under the `equiptrack_prefs` namespace.
- Provide the current user and token to the rest of the client.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.repositories.preferences import PreferenceRepo
from equiptrack_client.db.repositories.users import UserRepo
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.result import Error, NetworkResult, Success, safe_api_call
from equiptrack_client.schemas import LoginRequest, SignupRequest, User, UserRole, UserStatus
from equiptrack_client.services.runtime_settings import RuntimeSettings

log = get_logger(__name__)

NAMESPACE = "equiptrack_prefs"
KEY_USER = "user"
KEY_AUTH_TOKEN = "auth_token"
KEY_IS_LOGGED_IN = "is_logged_in"

# Remote session parked while local-debug mode is on.
BACKUP_NAMESPACE = "equiptrack_backup"
KEY_BACKUP_USER = "backup_user"
KEY_BACKUP_TOKEN = "backup_auth_token"

# Snapshot fields; the password never leaves the users table.
_SESSION_FIELDS = ("id", "name", "contact", "department_id", "department_name", "invitation_code")


class AuthService:
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

        self._snapshot: dict[str, Any] | None = None
        self._token: str | None = None
        self._logged_in = False

    async def restore(self) -> None:
        """
        Load the persisted session into memory (called once at startup).
        """

        async with self._sessionmaker() as session:
            prefs = PreferenceRepo(session, NAMESPACE)
            self._snapshot = await prefs.get(KEY_USER)
            self._token = await prefs.get(KEY_AUTH_TOKEN)
            self._logged_in = bool(await prefs.get(KEY_IS_LOGGED_IN, False))
        log.info("auth.session_restored", logged_in=self._logged_in, has_token=self._token is not None)

    async def login(self, contact: str, password: str) -> NetworkResult[User]:
        if self._runtime.local_debug:
            local = await self._authenticate_locally(contact, password)
            if local is not None:
                await self._save_session(local)
                return Success(local)

        result = await safe_api_call(lambda: self._api.login(LoginRequest(contact=contact, password=password)))
        if isinstance(result, Success):
            async with self._sessionmaker() as session:
                # Cache the typed password so a later offline login can succeed.
                cached = result.data.user
                if cached.password is None:
                    cached = cached.model_copy(update={"password": password})
                await UserRepo(session).upsert(cached)
                await session.commit()
            await self._save_session(result.data.user, result.data.token)
            log.info("auth.login", user_id=result.data.user.id, token_present=result.data.token is not None)
            return Success(result.data.user)

        local = await self._authenticate_locally(contact, password)
        if local is not None:
            log.warning("auth.login_offline", user_id=local.id, error=result.message)
            await self._save_session(local)
            return Success(local)
        return result

    async def signup(self, request: SignupRequest) -> NetworkResult[str]:
        result = await safe_api_call(lambda: self._api.signup(request))
        if isinstance(result, Error):
            return result
        return Success(result.data.message or "Registration request submitted")

    async def logout(self) -> None:
        async with self._sessionmaker() as session:
            await PreferenceRepo(session, NAMESPACE).clear()
            await session.commit()
        self._snapshot = None
        self._token = None
        self._logged_in = False
        log.info("auth.logout")

    async def backup_session(self) -> None:
        """
        Park the current remote session so it survives a trip through local-debug mode.
        """

        if not self._logged_in or self._snapshot is None:
            return
        async with self._sessionmaker() as session:
            backup = PreferenceRepo(session, BACKUP_NAMESPACE)
            await backup.set(KEY_BACKUP_USER, self._snapshot)
            if self._token is not None:
                await backup.set(KEY_BACKUP_TOKEN, self._token)
            await session.commit()

    async def restore_backup_session(self) -> bool:
        async with self._sessionmaker() as session:
            backup = PreferenceRepo(session, BACKUP_NAMESPACE)
            snapshot = await backup.get(KEY_BACKUP_USER)
            token = await backup.get(KEY_BACKUP_TOKEN)
            await backup.clear()
            if snapshot:
                prefs = PreferenceRepo(session, NAMESPACE)
                await prefs.set(KEY_USER, snapshot)
                await prefs.set(KEY_IS_LOGGED_IN, True)
                if token is not None:
                    await prefs.set(KEY_AUTH_TOKEN, token)
            await session.commit()
        if not snapshot:
            return False
        self._snapshot = snapshot
        self._token = token
        self._logged_in = True
        log.info("auth.session_restored_from_backup", user_id=snapshot.get("id"))
        return True

    async def clear_backup_session(self) -> None:
        async with self._sessionmaker() as session:
            await PreferenceRepo(session, BACKUP_NAMESPACE).clear()
            await session.commit()

    async def refresh_user_profile(self, user_id: str) -> NetworkResult[User]:
        result = await safe_api_call(lambda: self._api.get_user(user_id))
        if isinstance(result, Success):
            await self._save_session(result.data, self._token)
        return result

    async def register_device_token(self, token: str) -> NetworkResult[bool]:
        result = await safe_api_call(lambda: self._api.register_device_token(token))
        if isinstance(result, Error):
            return result
        return Success(bool(result.data.data if result.data.data is not None else result.data.success))

    # --- session accessors --------------------------------------------------

    @property
    def is_logged_in(self) -> bool:
        return self._logged_in

    @property
    def auth_token(self) -> str | None:
        return self._token

    @property
    def current_user(self) -> User | None:
        if not self._logged_in or not self._snapshot:
            return None
        data = self._snapshot
        if not all(data.get(k) for k in ("id", "name", "contact", "department_id", "role")):
            return None
        return User(
            id=data["id"],
            name=data["name"],
            contact=data["contact"],
            department_id=data["department_id"],
            department_name=data.get("department_name") or "",
            role=UserRole.from_display(data["role"]),
            status=UserStatus.normal,
            invitation_code=data.get("invitation_code"),
        )

    # --- internals ----------------------------------------------------------

    async def _authenticate_locally(self, contact: str, password: str) -> User | None:
        async with self._sessionmaker() as session:
            return await UserRepo(session).authenticate(contact, password)

    async def _save_session(self, user: User, token: str | None = None) -> None:
        snapshot = {name: getattr(user, name) for name in _SESSION_FIELDS}
        snapshot["role"] = user.role.value
        async with self._sessionmaker() as session:
            prefs = PreferenceRepo(session, NAMESPACE)
            await prefs.set(KEY_USER, snapshot)
            await prefs.set(KEY_IS_LOGGED_IN, True)
            # A local login keeps whatever token the last remote login stored.
            if token is not None:
                await prefs.set(KEY_AUTH_TOKEN, token)
            await session.commit()
        self._snapshot = snapshot
        self._logged_in = True
        if token is not None:
            self._token = token


# --- Module Notes -----------------------------------------------------------
# `auth_token` is read synchronously by `AuthInterceptor` on every request.
