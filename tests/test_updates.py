"""
tests.test_updates

Update check and package download.
"""

from __future__ import annotations

import httpx
import pytest
from conftest import FakeServer

from equiptrack_client.app import EquipTrackApp
from equiptrack_client.services.updates import Available, Downloaded, Downloading, Idle, NoUpdate, UpdateError

PACKAGE = b"x" * 200_000


@pytest.mark.asyncio
async def test_newer_version_is_available(app: EquipTrackApp, server: FakeServer) -> None:
    server.on(
        "GET",
        "/api/system/android-version",
        json_body={"versionCode": 7, "versionName": "1.7", "downloadUrl": "/files/app.apk"},
    )
    status = await app.updates.check_for_update()
    assert isinstance(status, Available)
    assert status.version.download_url == "/files/app.apk"
    assert app.updates.status == status


@pytest.mark.asyncio
async def test_same_version_is_no_update(app: EquipTrackApp, server: FakeServer) -> None:
    server.on("GET", "/api/system/android-version", json_body={"versionCode": 1})
    assert await app.updates.check_for_update() == NoUpdate()


@pytest.mark.asyncio
async def test_check_failure_is_reported(app: EquipTrackApp, server: FakeServer) -> None:
    server.on("GET", "/api/system/android-version", status=503)
    status = await app.updates.check_for_update()
    assert isinstance(status, UpdateError)
    app.updates.reset()
    assert app.updates.status == Idle()


@pytest.mark.asyncio
async def test_download_reports_progress(app: EquipTrackApp, server: FakeServer) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "http://server.test:3000/files/app.apk"
        return httpx.Response(200, content=PACKAGE)

    server.handle("GET", "/files/app.apk", handler)
    seen: list[object] = []

    status = await app.updates.download("/files/app.apk", on_progress=seen.append)

    assert isinstance(status, Downloaded)
    assert status.path.read_bytes() == PACKAGE
    assert status.path.name == "app-release.apk"
    progress = [s.progress for s in seen if isinstance(s, Downloading)]
    assert progress[0] == 0
    assert progress[-1] == 100
    assert progress == sorted(progress)
    assert not list(status.path.parent.glob("*.part"))


@pytest.mark.asyncio
async def test_download_failure_leaves_no_partial_file(app: EquipTrackApp, server: FakeServer) -> None:
    server.on("GET", "/files/app.apk", status=404)
    status = await app.updates.download("/files/app.apk", file_name="broken.apk")
    assert isinstance(status, UpdateError)
    assert not (app.settings.download_dir / "broken.apk").exists()
    assert not (app.settings.download_dir / "broken.apk.part").exists()
