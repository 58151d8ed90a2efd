"""
equiptrack_client.app

Composition root for the EquipTrack client.

Responsibilities:
- Build shared infrastructure (DB engine/session factory, HTTP client).
- Wire services, the poller, and the session-expiry handler.
- Start and dispose everything in a fixed order.
"""

from __future__ import annotations

import asyncio
import contextlib

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from equiptrack_client.db.init_db import init_db
from equiptrack_client.db.session import create_engine, create_sessionmaker
from equiptrack_client.notifications.notifier import LogNotifier, Notifier
from equiptrack_client.notifications.polling import ApprovalCheckWorker, PollingService
from equiptrack_client.observability.logging import configure_logging, get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.http import build_http_client
from equiptrack_client.services.approvals import ApprovalService
from equiptrack_client.services.auth_service import AuthService
from equiptrack_client.services.borrow import BorrowService
from equiptrack_client.services.departments import DepartmentService
from equiptrack_client.services.equipment import EquipmentService
from equiptrack_client.services.runtime_settings import RuntimeSettings
from equiptrack_client.services.server_config import ServerConfigService
from equiptrack_client.services.session import SessionManager
from equiptrack_client.services.updates import UpdateService
from equiptrack_client.services.users import UserService
from equiptrack_client.settings import Settings

log = get_logger(__name__)


class EquipTrackApp:
    """
    Holds the wired client. Attributes other than `settings` exist after `startup()`.
    """

    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]
    http: httpx.AsyncClient
    download_http: httpx.AsyncClient
    api: EquipTrackApi
    runtime: RuntimeSettings
    auth: AuthService
    server_config: ServerConfigService
    departments: DepartmentService
    equipment: EquipmentService
    users: UserService
    approvals: ApprovalService
    borrow: BorrowService
    updates: UpdateService
    polling: PollingService
    approval_worker: ApprovalCheckWorker

    def __init__(
        self,
        *,
        settings: Settings,
        notifier: Notifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        download_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.notifier: Notifier = notifier or LogNotifier()
        self.session_manager = SessionManager()
        self._transport = transport
        self._download_transport = download_transport
        self._expiry_task: asyncio.Task[None] | None = None
        self._started = False

    async def startup(self) -> None:
        try:
            await self._startup()
        except BaseException:
            # A half-built app still owns an engine and possibly HTTP clients.
            await self._close_resources()
            raise
        self._started = True

    async def _startup(self) -> None:
        settings = self.settings
        log.info("startup", env=settings.env, local_debug=settings.local_debug)

        # Cache first: runtime settings and the login session are read from it.
        self.engine = create_engine(settings)
        self.sessionmaker = create_sessionmaker(self.engine)
        await init_db(self.engine)

        self.runtime = RuntimeSettings(settings=settings, sessionmaker=self.sessionmaker)
        await self.runtime.load()

        # The token provider reads `self.auth`, which is assigned right after the client.
        self.http = build_http_client(
            runtime=self.runtime,
            token_provider=lambda: self.auth.auth_token,
            session_listener=self.session_manager,
            transport=self._transport,
        )
        self.download_http = httpx.AsyncClient(
            transport=self._download_transport,
            timeout=httpx.Timeout(settings.request_timeout_seconds),
            follow_redirects=True,
        )
        self.api = EquipTrackApi(http=self.http)

        deps = {"sessionmaker": self.sessionmaker, "api": self.api}
        self.auth = AuthService(runtime=self.runtime, **deps)
        await self.auth.restore()
        self.server_config = ServerConfigService(
            sessionmaker=self.sessionmaker,
            runtime=self.runtime,
            auth=self.auth,
            session_listener=self.session_manager,
        )
        await self.server_config.seed_if_local_debug()
        self.departments = DepartmentService(runtime=self.runtime, **deps)
        self.equipment = EquipmentService(runtime=self.runtime, **deps)
        self.users = UserService(**deps)
        self.approvals = ApprovalService(**deps)
        self.borrow = BorrowService(runtime=self.runtime, auth=self.auth, **deps)
        self.updates = UpdateService(
            api=self.api,
            runtime=self.runtime,
            download_http=self.download_http,
            download_dir=settings.download_dir,
            current_version_code=settings.app_version_code,
        )
        self.polling = PollingService(
            auth=self.auth,
            borrow=self.borrow,
            notifier=self.notifier,
            sessionmaker=self.sessionmaker,
            interval_seconds=settings.poll_interval_seconds,
        )
        self.approval_worker = ApprovalCheckWorker(
            auth=self.auth,
            borrow=self.borrow,
            approvals=self.approvals,
            notifier=self.notifier,
            sessionmaker=self.sessionmaker,
        )

        self._expiry_task = asyncio.create_task(self._watch_session_expiry(), name="equiptrack-session")

    async def _watch_session_expiry(self) -> None:
        async for _ in self.session_manager.expired_events():
            if self.auth.is_logged_in:
                log.warning("session.expired", user_id=getattr(self.auth.current_user, "id", None))
                await self.auth.logout()

    async def shutdown(self) -> None:
        if not self._started:
            return
        await self._close_resources()
        self._started = False
        log.info("shutdown")

    async def _close_resources(self) -> None:
        # Only what `_startup` got as far as building is present on the instance.
        built = vars(self)
        if "polling" in built:
            await self.polling.stop()
        if self._expiry_task is not None:
            self._expiry_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._expiry_task
            self._expiry_task = None
        if "http" in built:
            await self.http.aclose()
        if "download_http" in built:
            await self.download_http.aclose()
        if "engine" in built:
            # Dispose the engine to close pools/FDs gracefully.
            await self.engine.dispose()

    async def __aenter__(self) -> EquipTrackApp:
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()


def create_app(
    *,
    settings: Settings,
    notifier: Notifier | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    download_transport: httpx.AsyncBaseTransport | None = None,
) -> EquipTrackApp:
    # Configure structured logging once at process startup.
    configure_logging(service_name=settings.service_name, level=settings.log_level, log_dir=settings.log_dir)
    return EquipTrackApp(
        settings=settings,
        notifier=notifier,
        transport=transport,
        download_transport=download_transport,
    )


# --- Module Notes -----------------------------------------------------------
# This file stays small: composition lives here; behaviour lives in services/notifications.
