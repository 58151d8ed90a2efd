"""
equiptrack_client.services.runtime_settings

User-adjustable settings persisted in the local cache.

Responsibilities:
- Server URL override, local-debug flag, HTTP trace level, setup/onboarding flags.
- Persist changes under the `equiptrack_settings` preference namespace.
- Expose synchronous getters for the transport chain.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.db.repositories.preferences import PreferenceRepo
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.urls import normalize_base_url
from equiptrack_client.settings import HttpLogLevel, Settings

log = get_logger(__name__)

NAMESPACE = "equiptrack_settings"
KEY_SERVER_URL = "server_url"
KEY_LOCAL_DEBUG = "local_debug"
KEY_HTTP_LOG_LEVEL = "http_log_level"
KEY_SETUP_COMPLETED = "setup_completed"
KEY_ONBOARDING_COMPLETED = "onboarding_completed"


class RuntimeSettings:
    def __init__(self, *, settings: Settings, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._settings = settings
        self._sessionmaker = sessionmaker
        self._values: dict[str, object] = {}

    async def load(self) -> None:
        async with self._sessionmaker() as session:
            self._values = await PreferenceRepo(session, NAMESPACE).all()
        log.info("settings.loaded", keys=sorted(self._values))

    async def _store(self, key: str, value: object | None) -> None:
        async with self._sessionmaker() as session:
            prefs = PreferenceRepo(session, NAMESPACE)
            if value is None:
                await prefs.remove(key)
            else:
                await prefs.set(key, value)
            await session.commit()
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = value

    # --- server -------------------------------------------------------------

    @property
    def server_url(self) -> str | None:
        stored = self._values.get(KEY_SERVER_URL)
        return str(stored) if stored else self._settings.server_url

    @property
    def base_url(self) -> str:
        return normalize_base_url(
            self.server_url,
            default_port=self._settings.default_port,
            rewrite_loopback=self._settings.rewrite_loopback,
        )

    async def set_server_url(self, url: str | None) -> None:
        await self._store(KEY_SERVER_URL, url.strip() if url and url.strip() else None)

    # --- local debug --------------------------------------------------------

    @property
    def local_debug(self) -> bool:
        stored = self._values.get(KEY_LOCAL_DEBUG)
        return bool(stored) if stored is not None else self._settings.local_debug

    async def set_local_debug(self, enabled: bool) -> None:
        await self._store(KEY_LOCAL_DEBUG, enabled)

    @property
    def request_timeout(self) -> float:
        if self.local_debug:
            return self._settings.local_debug_timeout_seconds
        return self._settings.request_timeout_seconds

    # --- HTTP trace level ---------------------------------------------------

    @property
    def http_log_level(self) -> HttpLogLevel:
        stored = self._values.get(KEY_HTTP_LOG_LEVEL)
        if stored in {level.value for level in HttpLogLevel}:
            return HttpLogLevel(stored)
        if self._settings.http_log_level is not None:
            return self._settings.http_log_level
        # Unset: silent in local-debug mode, full bodies otherwise.
        return HttpLogLevel.none if self.local_debug else HttpLogLevel.body

    async def set_http_log_level(self, level: HttpLogLevel) -> None:
        await self._store(KEY_HTTP_LOG_LEVEL, level.value)

    # --- first-run flags ----------------------------------------------------

    @property
    def setup_completed(self) -> bool:
        return bool(self._values.get(KEY_SETUP_COMPLETED, False))

    async def set_setup_completed(self, completed: bool) -> None:
        await self._store(KEY_SETUP_COMPLETED, completed)

    @property
    def onboarding_completed(self) -> bool:
        return bool(self._values.get(KEY_ONBOARDING_COMPLETED, False))

    async def set_onboarding_completed(self, completed: bool) -> None:
        await self._store(KEY_ONBOARDING_COMPLETED, completed)


# --- Module Notes -----------------------------------------------------------
# Values are cached in memory after `load()`; the interceptors read them on every request.
