"""
equiptrack_client.services.server_config

Switching the client's data source.

Responsibilities:
- Change the server URL, discarding the previous server's cache and session.
- Enter/leave local-debug mode with seeded sample data and a parked remote session.
- Re-seed the local-debug dataset on demand.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.seed import ADMIN_CONTACT, ADMIN_PASSWORD, clear_all_data, seed_local_debug
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.interceptors import SessionExpiredListener
from equiptrack_client.remote.result import Error, NetworkResult, Success
from equiptrack_client.schemas import User
from equiptrack_client.services.auth_service import AuthService
from equiptrack_client.services.runtime_settings import RuntimeSettings

log = get_logger(__name__)


class ServerConfigService:
    def __init__(
        self,
        *,
        sessionmaker: async_sessionmaker[AsyncSession],
        runtime: RuntimeSettings,
        auth: AuthService,
        session_listener: SessionExpiredListener,
    ) -> None:
        self._sessionmaker = sessionmaker
        self._runtime = runtime
        self._auth = auth
        self._session_listener = session_listener

    async def save_server_url(self, url: str | None) -> None:
        """
        Store a new server URL. Switching to a different server clears the cache and
        both the active and parked login sessions.
        """

        old_url = self._runtime.server_url
        await self._runtime.set_server_url(url)
        new_url = self._runtime.server_url

        if old_url and old_url.strip() != (new_url or "").strip():
            log.info("server.switched", old_url=old_url, new_url=new_url)
            await self._auth.clear_backup_session()
            await self.clear_all_data()
            await self._auth.logout()
            self._session_listener.on_session_expired()

        await self._runtime.set_setup_completed(True)
        await self.seed_if_local_debug()

    async def set_local_debug(self, enabled: bool) -> NetworkResult[User | None]:
        """
        Enabling logs in as the seeded admin; disabling restores the parked remote
        session (Success(None) when there was none).
        """

        if enabled == self._runtime.local_debug:
            return Success(self._auth.current_user)

        if enabled:
            await self._auth.backup_session()
            await self._auth.logout()
            await self.clear_all_data()
            await self._runtime.set_local_debug(True)
            await self.seed_if_local_debug()
            result = await self._auth.login(ADMIN_CONTACT, ADMIN_PASSWORD)
            if isinstance(result, Error):
                log.error("local_debug.auto_login_failed", error=result.message)
            return result

        await self._auth.logout()
        await self.clear_all_data()
        await self._runtime.set_local_debug(False)
        restored = await self._auth.restore_backup_session()
        return Success(self._auth.current_user if restored else None)

    async def seed_if_local_debug(self) -> bool:
        if not self._runtime.local_debug:
            return False
        async with self._sessionmaker() as session:
            await seed_local_debug(session)
            await session.commit()
        log.info("local_debug.seeded")
        return True

    async def reset_local_seed(self) -> None:
        await self.clear_all_data()
        await self.seed_if_local_debug()

    async def clear_all_data(self) -> None:
        async with self._sessionmaker() as session:
            await clear_all_data(session)
            await session.commit()
        log.info("cache.cleared")


# --- Module Notes -----------------------------------------------------------
# The expiry event mirrors what a 401 would raise; the app watcher finds the session
# already closed.
