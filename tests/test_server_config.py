"""
tests.test_server_config

Server switching, local-debug mode with seeded data, and startup robustness.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from conftest import FakeServer, RecordingNotifier, item_json, login_as
from sqlalchemy.ext.asyncio import AsyncEngine

from equiptrack_client import app as app_module
from equiptrack_client.app import EquipTrackApp, create_app
from equiptrack_client.db.repositories.preferences import PreferenceRepo
from equiptrack_client.db.repositories.users import UserRepo
from equiptrack_client.db.seed import ADMIN_CONTACT, ADMIN_PASSWORD, USER_CONTACT, USER_PASSWORD
from equiptrack_client.remote.result import Success
from equiptrack_client.remote.urls import DEFAULT_BASE_URL
from equiptrack_client.schemas import Borrower, BorrowRequest, BorrowStatus, UserRole
from equiptrack_client.services.auth_service import KEY_USER
from equiptrack_client.services.auth_service import NAMESPACE as AUTH_NAMESPACE
from equiptrack_client.settings import Settings


@pytest_asyncio.fixture
async def local_app(
    settings: Settings, server: FakeServer, notifier: RecordingNotifier
) -> AsyncIterator[EquipTrackApp]:
    client = create_app(
        settings=settings.model_copy(update={"local_debug": True}),
        notifier=notifier,
        transport=httpx.MockTransport(server),
    )
    async with client:
        yield client


# --- invalid server URL -----------------------------------------------------


@pytest.mark.asyncio
async def test_unparseable_server_url_does_not_break_startup(
    app: EquipTrackApp, settings: Settings, server: FakeServer
) -> None:
    await app.runtime.set_server_url("host:abc")
    await app.shutdown()

    restarted = create_app(settings=settings, transport=httpx.MockTransport(server))
    async with restarted:
        assert restarted.runtime.base_url == "http://host:abc/"
        server.on("GET", "/api/categories", json_body=[])
        assert isinstance(await restarted.equipment.sync_categories(), Success)

    request = server.last("GET", "/api/categories")
    assert request.url.host == httpx.URL(DEFAULT_BASE_URL).host


@pytest.mark.asyncio
async def test_failed_startup_disposes_engine(settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    disposed: list[AsyncEngine] = []
    dispose = AsyncEngine.dispose

    async def recording_dispose(self: AsyncEngine, *args, **kwargs) -> None:
        disposed.append(self)
        await dispose(self, *args, **kwargs)

    def broken_client(**_: object) -> httpx.AsyncClient:
        raise RuntimeError("client construction failed")

    monkeypatch.setattr(AsyncEngine, "dispose", recording_dispose)
    monkeypatch.setattr(app_module, "build_http_client", broken_client)

    client = create_app(settings=settings)
    with pytest.raises(RuntimeError):
        await client.startup()

    assert len(disposed) == 1
    await client.shutdown()
    assert len(disposed) == 1


# --- server switch ----------------------------------------------------------


@pytest.mark.asyncio
async def test_switching_server_drops_cache_and_session(app: EquipTrackApp, server: FakeServer) -> None:
    await login_as(app, server)
    server.on("GET", "/api/items", json_body=[item_json("i1")])
    await app.equipment.sync_items(UserRole.admin)

    await app.server_config.save_server_url("http://other.test:4000")

    assert not app.auth.is_logged_in
    assert app.auth.auth_token is None
    assert await app.equipment.list_items() == []
    assert await app.users.list_all() == []
    assert app.runtime.base_url == "http://other.test:4000/"
    assert app.runtime.setup_completed

    server.on("GET", "/api/categories", json_body=[])
    await app.equipment.sync_categories()
    request = server.last("GET", "/api/categories")
    assert request.url.host == "other.test"
    assert request.url.port == 4000
    assert "Authorization" not in request.headers


@pytest.mark.asyncio
async def test_saving_same_server_keeps_cache_and_session(app: EquipTrackApp, server: FakeServer) -> None:
    await login_as(app, server)
    server.on("GET", "/api/items", json_body=[item_json("i1")])
    await app.equipment.sync_items(UserRole.admin)

    await app.server_config.save_server_url(app.runtime.server_url)

    assert app.auth.is_logged_in
    assert [i.id for i in await app.equipment.list_items()] == ["i1"]


# --- local-debug seeding ----------------------------------------------------


@pytest.mark.asyncio
async def test_local_debug_startup_seeds_usable_data(local_app: EquipTrackApp, server: FakeServer) -> None:
    admin = await local_app.auth.login(ADMIN_CONTACT, ADMIN_PASSWORD)
    assert isinstance(admin, Success)
    assert admin.data.role is UserRole.super_admin

    assert len(await local_app.equipment.list_items()) == 3
    assert len(await local_app.equipment.list_categories()) == 3
    assert len(await local_app.departments.list_all()) == 1
    (active,) = await local_app.borrow.active_borrows()
    assert active.status is BorrowStatus.borrowing

    request = BorrowRequest(
        borrower=Borrower(name="Bob", phone="555"),
        expected_return_date=datetime.now(tz=UTC) + timedelta(days=2),
        quantity=1,
    )
    assert isinstance(await local_app.borrow.borrow_item("item-tool-001", request), Success)
    assert (await local_app.equipment.get_item("item-tool-001")).available_quantity == 11
    assert not server.requests


@pytest.mark.asyncio
async def test_seeding_is_idempotent_and_resets_passwords(local_app: EquipTrackApp) -> None:
    async with local_app.sessionmaker() as session:
        users = UserRepo(session)
        user = await users.get_by_contact(USER_CONTACT)
        await users.upsert(user.model_copy(update={"password": "changed"}))
        await session.commit()

    assert await local_app.server_config.seed_if_local_debug()

    assert len(await local_app.users.list_all()) == 2
    assert len(await local_app.equipment.list_items()) == 3
    assert isinstance(await local_app.auth.login(USER_CONTACT, USER_PASSWORD), Success)


@pytest.mark.asyncio
async def test_reset_local_seed_discards_local_changes(local_app: EquipTrackApp) -> None:
    await local_app.equipment.delete_category("cat-tools")
    await local_app.server_config.reset_local_seed()
    assert {c.id for c in await local_app.equipment.list_categories()} == {"cat-laptop", "cat-camera", "cat-tools"}


@pytest.mark.asyncio
async def test_seeding_skipped_outside_local_debug(app: EquipTrackApp) -> None:
    assert not await app.server_config.seed_if_local_debug()
    assert await app.equipment.list_items() == []


@pytest.mark.asyncio
async def test_local_debug_round_trip_restores_remote_session(app: EquipTrackApp, server: FakeServer) -> None:
    await login_as(app, server, token="remote-token")
    server.on("GET", "/api/items", json_body=[item_json("remote-item")])
    await app.equipment.sync_items(UserRole.admin)

    entered = await app.server_config.set_local_debug(True)

    assert isinstance(entered, Success)
    assert entered.data.contact == ADMIN_CONTACT
    assert app.runtime.local_debug
    assert "remote-item" not in {i.id for i in await app.equipment.list_items()}

    left = await app.server_config.set_local_debug(False)

    assert isinstance(left, Success)
    assert left.data.id == "u1"
    assert app.auth.auth_token == "remote-token"
    assert not app.runtime.local_debug
    assert await app.equipment.list_items() == []


@pytest.mark.asyncio
async def test_leaving_local_debug_without_parked_session(local_app: EquipTrackApp) -> None:
    result = await local_app.server_config.set_local_debug(False)
    assert result == Success(None)
    assert not local_app.auth.is_logged_in


# --- stored session ---------------------------------------------------------


@pytest.mark.asyncio
async def test_session_without_role_has_no_current_user(app: EquipTrackApp, server: FakeServer) -> None:
    await login_as(app, server)
    async with app.sessionmaker() as session:
        prefs = PreferenceRepo(session, AUTH_NAMESPACE)
        snapshot = await prefs.get(KEY_USER)
        snapshot.pop("role")
        await prefs.set(KEY_USER, snapshot)
        await session.commit()

    await app.auth.restore()

    assert app.auth.is_logged_in
    assert app.auth.current_user is None
