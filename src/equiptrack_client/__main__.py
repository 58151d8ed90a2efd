"""
equiptrack_client.__main__

Entrypoint for `python -m equiptrack_client`.

Responsibilities:
- Load settings and build the client.
- Run approval polling until interrupted.
"""

from __future__ import annotations

import asyncio
import contextlib

from equiptrack_client.app import create_app
from equiptrack_client.observability.logging import get_logger
from equiptrack_client.settings import get_settings

log = get_logger(__name__)


async def run() -> None:
    settings = get_settings()
    async with create_app(settings=settings) as app:
        if not app.auth.is_logged_in:
            log.warning("polling.no_session", hint="log in once so the poller has a user to act for")
        await app.borrow.update_overdue_status()
        app.polling.start()
        # Park until cancelled (Ctrl+C).
        await asyncio.Event().wait()


def main() -> None:
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run())


if __name__ == "__main__":
    main()


# --- Module Notes -----------------------------------------------------------
# SIGINT cancels the run; `EquipTrackApp.shutdown` then disposes the HTTP clients and DB engine.
