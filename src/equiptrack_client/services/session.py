"""
equiptrack_client.services.session

Session-expiry signalling.

Responsibilities:
- Let the transport chain report an expired session without knowing who listens.
- Deliver each report to the consumer as an async event stream.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from equiptrack_client.observability.logging import get_logger

log = get_logger(__name__)

# Bounded like a buffered channel; extra reports while one is pending are dropped.
DEFAULT_BUFFER = 64


class SessionManager:
    def __init__(self, *, buffer_size: int = DEFAULT_BUFFER) -> None:
        self._events: asyncio.Queue[None] = asyncio.Queue(maxsize=buffer_size)

    def on_session_expired(self) -> None:
        try:
            self._events.put_nowait(None)
        except asyncio.QueueFull:
            log.debug("session.expired_dropped")

    @property
    def pending(self) -> int:
        return self._events.qsize()

    async def wait_expired(self) -> None:
        await self._events.get()

    async def expired_events(self) -> AsyncIterator[None]:
        while True:
            yield await self._events.get()


# --- Module Notes -----------------------------------------------------------
# Called synchronously from `AuthInterceptor`, so `on_session_expired` must never block.
