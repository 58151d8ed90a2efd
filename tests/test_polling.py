"""
tests.test_polling

Approval notifications: id-diffed polling and the count-based worker.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from conftest import FakeServer, RecordingNotifier, login_as

from equiptrack_client.app import EquipTrackApp
from equiptrack_client.db.repositories.preferences import PreferenceRepo
from equiptrack_client.notifications.polling import (
    KEY_LAST_BORROW_COUNT,
    KEY_NOTIFIED_APPROVED,
    POLLING_NAMESPACE,
    WORKER_NAMESPACE,
)


def review_queue(*ids: str) -> list[dict[str, str]]:
    return [{"id": request_id, "itemName": "Drill", "status": "pending"} for request_id in ids]


def pending_handler(ids: list[str]):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["status"] == "pending"
        return httpx.Response(200, json=review_queue(*ids))

    return handler


@pytest.mark.asyncio
async def test_approved_requests_notify_once(app: EquipTrackApp, server: FakeServer, notifier: RecordingNotifier) -> None:
    await login_as(app, server, role="普通用户")
    server.on(
        "GET",
        "/api/borrow-requests/mine",
        json_body=[
            {"id": "a", "itemName": "Drill", "status": "approved"},
            {"id": "b", "itemName": "Saw", "status": "pending"},
        ],
    )

    await app.polling.check_messages()
    await app.polling.check_messages()

    assert notifier.events == [("borrow_approved", "Drill")]
    async with app.sessionmaker() as session:
        assert await PreferenceRepo(session, POLLING_NAMESPACE).get(KEY_NOTIFIED_APPROVED) == ["a"]


@pytest.mark.asyncio
async def test_pending_requests_notify_once_per_poll(
    app: EquipTrackApp, server: FakeServer, notifier: RecordingNotifier
) -> None:
    await login_as(app, server)
    server.on("GET", "/api/borrow-requests/mine", json_body=[])
    ids = ["p1", "p2"]
    server.handle("GET", "/api/borrow-requests/review", pending_handler(ids))

    await app.polling.check_messages()
    await app.polling.check_messages()
    ids.append("p3")
    await app.polling.check_messages()

    assert notifier.events == [("borrow_approval_pending", None), ("borrow_approval_pending", None)]


@pytest.mark.asyncio
async def test_polling_skipped_when_logged_out(app: EquipTrackApp, server: FakeServer, notifier: RecordingNotifier) -> None:
    await app.polling.check_messages()
    assert not server.requests
    assert notifier.events == []


@pytest.mark.asyncio
async def test_polling_loop_survives_failures(app: EquipTrackApp, server: FakeServer) -> None:
    await login_as(app, server)
    server.fail("GET", "/api/borrow-requests/mine", httpx.ConnectError("down"))
    server.fail("GET", "/api/borrow-requests/review", httpx.ConnectError("down"))

    app.polling.start()
    assert app.polling.running
    await asyncio.sleep(0.05)
    assert app.polling.running
    await app.polling.stop()

    assert not app.polling.running
    assert len([r for r in server.requests if r.url.path == "/api/borrow-requests/mine"]) >= 2


@pytest.mark.asyncio
async def test_worker_records_baseline_then_notifies_on_increase(
    app: EquipTrackApp, server: FakeServer, notifier: RecordingNotifier
) -> None:
    await login_as(app, server)
    server.on("GET", "/api/borrow-requests/mine", json_body=[])
    server.on("GET", "/api/approvals", json_body=[])
    ids = ["p1"]
    server.handle("GET", "/api/borrow-requests/review", pending_handler(ids))

    await app.approval_worker.do_work()
    assert notifier.events == []

    ids.append("p2")
    await app.approval_worker.do_work()
    assert notifier.events == [("borrow_approval_pending", None)]

    ids.clear()
    await app.approval_worker.do_work()
    assert notifier.events == [("borrow_approval_pending", None)]


@pytest.mark.asyncio
async def test_worker_keeps_counter_when_fetch_fails(
    app: EquipTrackApp, server: FakeServer, notifier: RecordingNotifier
) -> None:
    await login_as(app, server)
    server.on("GET", "/api/borrow-requests/mine", json_body=[])
    server.on("GET", "/api/approvals", json_body=[])
    server.handle("GET", "/api/borrow-requests/review", pending_handler(["p1", "p2"]))
    await app.approval_worker.do_work()

    server.fail("GET", "/api/borrow-requests/review", httpx.ConnectError("down"))
    await app.approval_worker.do_work()

    async with app.sessionmaker() as session:
        assert await PreferenceRepo(session, WORKER_NAMESPACE).get(KEY_LAST_BORROW_COUNT) == 2
    assert notifier.events == []


@pytest.mark.asyncio
async def test_worker_notifies_new_registrations(
    app: EquipTrackApp, server: FakeServer, notifier: RecordingNotifier
) -> None:
    await login_as(app, server, role="超级管理员")
    server.on("GET", "/api/borrow-requests/mine", json_body=[])
    server.handle("GET", "/api/borrow-requests/review", pending_handler([]))
    registrations: list[dict[str, str]] = []

    def approvals(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=registrations)

    server.handle("GET", "/api/approvals", approvals)
    await app.approval_worker.do_work()
    registrations.append(
        {
            "id": "r1",
            "name": "Newbie",
            "contact": "newbie",
            "invitationCode": "CODE",
            "createdAt": "2024-01-01T00:00:00.000Z",
            "invitedByUserId": "u1",
        }
    )
    await app.approval_worker.do_work()

    assert notifier.events == [("registration_approval_pending", None)]
    assert await app.approvals.count() == 1


@pytest.mark.asyncio
async def test_worker_clears_counters_without_permission(app: EquipTrackApp, server: FakeServer) -> None:
    await login_as(app, server, role="普通用户")
    server.on("GET", "/api/borrow-requests/mine", json_body=[])
    async with app.sessionmaker() as session:
        await PreferenceRepo(session, WORKER_NAMESPACE).set(KEY_LAST_BORROW_COUNT, 5)
        await session.commit()

    await app.approval_worker.do_work()

    async with app.sessionmaker() as session:
        assert await PreferenceRepo(session, WORKER_NAMESPACE).get(KEY_LAST_BORROW_COUNT) is None
    assert all(r.url.path != "/api/borrow-requests/review" for r in server.requests)
