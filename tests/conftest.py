"""
tests.conftest

Shared fixtures: settings on a temporary SQLite cache, a scriptable fake server
plugged in under the interceptor chain, and a started client app.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from equiptrack_client.app import EquipTrackApp, create_app
from equiptrack_client.db.init_db import init_db
from equiptrack_client.db.session import create_engine, create_sessionmaker
from equiptrack_client.settings import HttpLogLevel, Settings

SERVER_URL = "http://server.test:3000/"

Handler = Callable[[httpx.Request], httpx.Response]


class FakeServer:
    """
    Route table keyed by (method, path); unknown routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Handler] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, *, status: int = 200, json_body: Any = None, text: str | None = None) -> None:
        def handler(_: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status, text=text)
            if json_body is None:
                return httpx.Response(status)
            return httpx.Response(status, json=json_body)

        self.routes[(method, path)] = handler

    def handle(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def fail(self, method: str, path: str, exc: Exception) -> None:
        def handler(_: httpx.Request) -> httpx.Response:
            raise exc

        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "Not found"})
        return handler(request)

    def last(self, method: str, path: str) -> httpx.Request:
        for request in reversed(self.requests):
            if request.method == method and request.url.path == path:
                return request
        raise AssertionError(f"no {method} {path} request recorded")

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, str | None]] = []

    def borrow_approval_pending(self) -> None:
        self.events.append(("borrow_approval_pending", None))

    def registration_approval_pending(self) -> None:
        self.events.append(("registration_approval_pending", None))

    def borrow_approved(self, item_name: str) -> None:
        self.events.append(("borrow_approved", item_name))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}",
        server_url=SERVER_URL,
        http_log_level=HttpLogLevel.basic,
        download_dir=tmp_path / "downloads",
        poll_interval_seconds=0.01,
    )


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def sessionmaker(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def app(settings: Settings, server: FakeServer, notifier: RecordingNotifier) -> AsyncIterator[EquipTrackApp]:
    client = create_app(
        settings=settings,
        notifier=notifier,
        transport=httpx.MockTransport(server),
        download_transport=httpx.MockTransport(server),
    )
    await client.startup()
    try:
        yield client
    finally:
        await client.shutdown()


def user_json(
    user_id: str = "u1",
    *,
    role: str = "管理员",
    department_id: str = "d1",
    contact: str = "alice@example.com",
    **extra: Any,
) -> dict[str, Any]:
    return {
        "id": user_id,
        "name": "Alice",
        "contact": contact,
        "departmentId": department_id,
        "departmentName": "Lab",
        "role": role,
        "status": "active",
        **extra,
    }


def item_json(item_id: str = "i1", *, available: int = 2, quantity: int = 2, department_id: str = "d1") -> dict[str, Any]:
    return {
        "id": item_id,
        "name": f"Item {item_id}",
        "categoryId": "c1",
        "departmentId": department_id,
        "description": "",
        "quantity": quantity,
        "availableQuantity": available,
    }


async def login_as(app: EquipTrackApp, server: FakeServer, *, role: str = "管理员", token: str | None = "tok-1") -> None:
    server.on("POST", "/api/login", json_body={"user": user_json(role=role), "token": token})
    await app.auth.login("alice@example.com", "secret")
