"""
tests.test_smoke

Minimal smoke tests to validate the client can boot against a fake server.

Responsibilities:
- Ensure the app starts, creates its cache, and reaches the server through the transport chain.
"""

from __future__ import annotations

import importlib
import pkgutil

import httpx
import pytest
from conftest import SERVER_URL, FakeServer

import equiptrack_client
from equiptrack_client.app import create_app
from equiptrack_client.remote.result import Success
from equiptrack_client.settings import Settings


@pytest.mark.asyncio
async def test_app_boots_and_syncs(settings: Settings, server: FakeServer) -> None:
    app = create_app(settings=settings, transport=httpx.MockTransport(server))
    server.on("GET", "/api/categories", json_body=[{"id": "c1", "name": "Tools", "color": "#00ff00"}])

    async with app:
        assert app.runtime.base_url == SERVER_URL
        assert not app.auth.is_logged_in

        result = await app.equipment.sync_categories()
        assert isinstance(result, Success)
        assert [c.id for c in await app.equipment.list_categories()] == ["c1"]

    assert str(server.last("GET", "/api/categories").url) == f"{SERVER_URL}api/categories"


@pytest.mark.asyncio
async def test_shutdown_without_startup_is_noop(settings: Settings) -> None:
    app = create_app(settings=settings)
    await app.shutdown()


@pytest.mark.parametrize(
    "name",
    sorted(
        info.name
        for info in pkgutil.walk_packages(equiptrack_client.__path__, prefix="equiptrack_client.")
        if not info.name.endswith("__main__")
    ),
)
def test_modules_are_documented(name: str) -> None:
    module = importlib.import_module(name)
    assert module.__doc__ and module.__doc__.strip().startswith(name)


# --- Module Notes -----------------------------------------------------------
# Service-level behaviour is covered in test_services.py; this file only proves the wiring.
