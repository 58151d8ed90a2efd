"""
equiptrack_client.services.updates

Application update check and package download.

Responsibilities:
- Compare the server's published version with the running version code.
- Stream the update package to disk while reporting progress.
- Track the latest `UpdateStatus` for callers that poll it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urljoin

import httpx

from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.api import EquipTrackApi
from equiptrack_client.remote.result import Error, safe_api_call
from equiptrack_client.schemas import AppVersion
from equiptrack_client.services.runtime_settings import RuntimeSettings

log = get_logger(__name__)

DEFAULT_PACKAGE_NAME = "app-release.apk"
CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Checking:
    pass


@dataclass(frozen=True, slots=True)
class Available:
    version: AppVersion


@dataclass(frozen=True, slots=True)
class NoUpdate:
    pass


@dataclass(frozen=True, slots=True)
class Downloading:
    progress: int  # percent, 0-100


@dataclass(frozen=True, slots=True)
class Downloaded:
    path: Path


@dataclass(frozen=True, slots=True)
class UpdateError:
    message: str


UpdateStatus = Idle | Checking | Available | NoUpdate | Downloading | Downloaded | UpdateError


class UpdateService:
    """
    Downloads use `download_http`, a client without the server interceptor chain,
    because update packages may be hosted off the API server.
    """

    def __init__(
        self,
        *,
        api: EquipTrackApi,
        runtime: RuntimeSettings,
        download_http: httpx.AsyncClient,
        download_dir: Path,
        current_version_code: int,
    ) -> None:
        self._api = api
        self._runtime = runtime
        self._download_http = download_http
        self._download_dir = Path(download_dir)
        self._current_version_code = current_version_code
        self.status: UpdateStatus = Idle()

    async def check_for_update(self) -> UpdateStatus:
        self.status = Checking()
        result = await safe_api_call(self._api.get_app_version)
        if isinstance(result, Error):
            # Update checks fail quietly; the app keeps running on the current version.
            log.warning("update.check_failed", error=result.message)
            self.status = UpdateError(result.message)
        elif result.data.version_code > self._current_version_code:
            self.status = Available(result.data)
        else:
            self.status = NoUpdate()
        return self.status

    async def download(
        self,
        url: str,
        *,
        file_name: str = DEFAULT_PACKAGE_NAME,
        on_progress: Callable[[UpdateStatus], None] | None = None,
    ) -> UpdateStatus:
        target = self._download_dir / file_name
        partial = target.with_name(f"{target.name}.part")
        source = urljoin(self._runtime.base_url, url)

        def report(status: UpdateStatus) -> None:
            self.status = status
            if on_progress is not None:
                on_progress(status)

        report(Downloading(0))
        try:
            self._download_dir.mkdir(parents=True, exist_ok=True)
            async with self._download_http.stream("GET", source) as response:
                response.raise_for_status()
                total = int(response.headers.get("content-length") or 0)
                received = 0
                last_percent = 0
                with partial.open("wb") as fh:
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        fh.write(chunk)
                        received += len(chunk)
                        percent = min(100, received * 100 // total) if total else 0
                        if percent > last_percent:
                            last_percent = percent
                            report(Downloading(percent))
            partial.replace(target)
        except (httpx.HTTPError, OSError) as e:
            partial.unlink(missing_ok=True)
            log.error("update.download_failed", url=source, error=str(e))
            report(UpdateError(f"Download failed: {e}"))
            return self.status

        log.info("update.downloaded", path=str(target), size=received)
        report(Downloaded(target))
        return self.status

    def reset(self) -> None:
        self.status = Idle()


# --- Module Notes -----------------------------------------------------------
# Installing the downloaded package is platform specific and left to the caller.
