"""
tests.test_http

Interceptor chain behaviour and error classification in `safe_api_call`.
"""

from __future__ import annotations

import socket

import httpx
import pytest
import pytest_asyncio
from conftest import SERVER_URL, FakeServer

from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.http import build_http_client
from equiptrack_client.remote.result import (
    CONNECT_FAILED,
    EMPTY_BODY,
    SESSION_EXPIRED,
    TIMED_OUT,
    UNKNOWN_HOST,
    Error,
    Success,
    safe_api_call,
)
from equiptrack_client.schemas import UserRole
from equiptrack_client.services.runtime_settings import RuntimeSettings
from equiptrack_client.services.session import SessionManager


@pytest.fixture
def session_manager() -> SessionManager:
    return SessionManager()


@pytest_asyncio.fixture
async def runtime(settings, sessionmaker) -> RuntimeSettings:
    rt = RuntimeSettings(settings=settings, sessionmaker=sessionmaker)
    await rt.load()
    return rt


def make_api(runtime: RuntimeSettings, server: FakeServer, session_manager: SessionManager, token: str | None = "tok"):
    http = build_http_client(
        runtime=runtime,
        token_provider=lambda: token,
        session_listener=session_manager,
        transport=httpx.MockTransport(server),
    )
    return http, EquipTrackApi(http=http)


@pytest.mark.asyncio
async def test_bearer_token_and_base_url(runtime, server, session_manager) -> None:
    server.on("GET", "/api/departments", json_body=[{"id": "d1", "name": "Lab"}])
    http, api = make_api(runtime, server, session_manager)
    async with http:
        departments = await api.get_departments()

    assert [d.name for d in departments] == ["Lab"]
    request = server.last("GET", "/api/departments")
    assert request.headers["Authorization"] == "Bearer tok"
    assert str(request.url).startswith(SERVER_URL)


@pytest.mark.asyncio
async def test_server_change_applies_without_rebuilding_client(runtime, server, session_manager) -> None:
    server.on("GET", "/api/categories", json_body=[])
    http, api = make_api(runtime, server, session_manager)
    async with http:
        await runtime.set_server_url("10.1.1.1:9000")
        await api.get_categories()

    request = server.last("GET", "/api/categories")
    assert request.url.host == "10.1.1.1"
    assert request.url.port == 9000
    assert request.headers["Host"] == "10.1.1.1:9000"


@pytest.mark.asyncio
async def test_no_token_no_header(runtime, server, session_manager) -> None:
    server.on("GET", "/api/categories", json_body=[])
    http, api = make_api(runtime, server, session_manager, token=None)
    async with http:
        await api.get_categories()
    assert "Authorization" not in server.last("GET", "/api/categories").headers


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 431])
async def test_expired_session_is_reported(runtime, server, session_manager, status: int) -> None:
    server.on("GET", "/api/users/u1", status=status, json_body={"message": "expired"})
    http, api = make_api(runtime, server, session_manager)
    async with http:
        result = await safe_api_call(lambda: api.get_user("u1"))

    assert isinstance(result, Error)
    assert session_manager.pending == 1
    if status == 401:
        assert result.message == SESSION_EXPIRED
    else:
        assert result.message == "expired"


@pytest.mark.asyncio
async def test_status_error_messages(runtime, server, session_manager) -> None:
    server.on("GET", "/api/items/a", status=500, text="<html>oops</html>")
    server.on("GET", "/api/items/b", status=409, json_body={"message": "Item is borrowed"})
    http, api = make_api(runtime, server, session_manager)
    async with http:
        plain = await safe_api_call(lambda: api.get_item("a"))
        with_message = await safe_api_call(lambda: api.get_item("b"))

    assert plain == Error("Request failed: 500 Internal Server Error")
    assert with_message == Error("Item is borrowed")


@pytest.mark.asyncio
async def test_empty_body_is_an_error(runtime, server, session_manager) -> None:
    server.on("GET", "/api/system/android-version", status=200)
    http, api = make_api(runtime, server, session_manager)
    async with http:
        result = await safe_api_call(api.get_app_version)
    assert result == Error(EMPTY_BODY)


@pytest.mark.asyncio
async def test_success_wraps_data(runtime, server, session_manager) -> None:
    server.on("GET", "/api/system/android-version", json_body={"versionCode": 7, "versionName": "1.7"})
    http, api = make_api(runtime, server, session_manager)
    async with http:
        result = await safe_api_call(api.get_app_version)
    assert isinstance(result, Success)
    assert result.data.version_code == 7


@pytest.mark.asyncio
async def test_transport_failures_are_classified(runtime, server, session_manager) -> None:
    unresolved = httpx.ConnectError("connect failed")
    unresolved.__cause__ = socket.gaierror(-2, "Name or service not known")
    server.fail("GET", "/api/items/timeout", httpx.ReadTimeout("slow"))
    server.fail("GET", "/api/items/refused", httpx.ConnectError("Connection refused"))
    server.fail("GET", "/api/items/dns", unresolved)
    server.fail("GET", "/api/items/proto", httpx.RemoteProtocolError("bad frame"))
    http, api = make_api(runtime, server, session_manager)
    async with http:
        timeout = await safe_api_call(lambda: api.get_item("timeout"))
        refused = await safe_api_call(lambda: api.get_item("refused"))
        dns = await safe_api_call(lambda: api.get_item("dns"))
        proto = await safe_api_call(lambda: api.get_item("proto"))

    assert timeout == Error(TIMED_OUT)
    assert refused == Error(CONNECT_FAILED)
    assert dns == Error(UNKNOWN_HOST)
    assert proto == Error("Network error: bad frame")


@pytest.mark.asyncio
async def test_runtime_error_becomes_network_error(runtime, server, session_manager) -> None:
    server.fail("GET", "/api/items/x", RuntimeError("state: 0"))
    http, api = make_api(runtime, server, session_manager)
    async with http:
        with pytest.raises(httpx.NetworkError, match="Network internal error: state: 0"):
            await api.get_item("x")
        result = await safe_api_call(lambda: api.get_item("x"))
    assert result == Error("Network error: Network internal error: state: 0")


@pytest.mark.asyncio
async def test_malformed_payload_is_a_network_error(runtime, server, session_manager) -> None:
    server.on("GET", "/api/items/x", json_body={"id": "x"})
    http, api = make_api(runtime, server, session_manager)
    async with http:
        result = await safe_api_call(lambda: api.get_item("x"))
    assert isinstance(result, Error)
    assert result.message.startswith("Network error:")


@pytest.mark.asyncio
async def test_role_query_uses_wire_value(runtime, server, session_manager) -> None:
    server.on("GET", "/api/items", json_body=[])
    http, api = make_api(runtime, server, session_manager)
    async with http:
        await api.get_items(user_role=UserRole.admin, department_id="d1", all_available=True)

    params = server.last("GET", "/api/items").url.params
    assert params["userRole"] == "管理员"
    assert params["departmentId"] == "d1"
    assert params["allAvailable"] == "true"
