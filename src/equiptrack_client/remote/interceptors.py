"""
equiptrack_client.remote.interceptors

httpx transport chain applied to every server request.

Responsibilities:
- Rewrite scheme/host/port to the currently configured server.
- Attach the bearer token and report expired sessions.
- Log failed requests and optional request/response traces.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol

import httpx

from equiptrack_client.observability.logging import get_logger
from equiptrack_client.settings import HttpLogLevel

log = get_logger(__name__)

CallNext = Callable[[httpx.Request], Awaitable[httpx.Response]]

# Status codes the server uses for an expired or oversized (stale) token.
SESSION_EXPIRED_CODES = frozenset({401, 431})


class Interceptor(Protocol):
    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response: ...


class SessionExpiredListener(Protocol):
    def on_session_expired(self) -> None: ...


class InterceptingTransport(httpx.AsyncBaseTransport):
    """
    Runs `interceptors` in order (first is outermost) before the wrapped transport.
    """

    def __init__(self, inner: httpx.AsyncBaseTransport, interceptors: Sequence[Interceptor]) -> None:
        self._inner = inner
        self._interceptors = tuple(interceptors)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self._dispatch(0, request)

    async def _dispatch(self, index: int, request: httpx.Request) -> httpx.Response:
        if index == len(self._interceptors):
            return await self._inner.handle_async_request(request)

        async def call_next(req: httpx.Request) -> httpx.Response:
            return await self._dispatch(index + 1, req)

        return await self._interceptors[index].intercept(request, call_next)

    async def aclose(self) -> None:
        await self._inner.aclose()


class BaseUrlInterceptor:
    def __init__(self, base_url_provider: Callable[[], str]) -> None:
        self._base_url_provider = base_url_provider

    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response:
        try:
            target = httpx.URL(self._base_url_provider())
        except httpx.InvalidURL:
            return await call_next(request)
        if not target.host:
            return await call_next(request)

        request.url = request.url.copy_with(scheme=target.scheme, host=target.host, port=target.port)
        request.headers["Host"] = request.url.netloc.decode("ascii")
        return await call_next(request)


class AuthInterceptor:
    def __init__(
        self,
        token_provider: Callable[[], str | None],
        session_listener: SessionExpiredListener,
    ) -> None:
        self._token_provider = token_provider
        self._session_listener = session_listener

    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response:
        token = self._token_provider()
        if not token:
            return await call_next(request)

        request.headers["Authorization"] = f"Bearer {token}"
        response = await call_next(request)
        if response.status_code in SESSION_EXPIRED_CODES:
            log.warning("http.session_expired", status_code=response.status_code, url=str(request.url))
            self._session_listener.on_session_expired()
        return response


class LoggingInterceptor:
    def __init__(self, level_provider: Callable[[], HttpLogLevel]) -> None:
        self._level_provider = level_provider

    async def intercept(self, request: httpx.Request, call_next: CallNext) -> httpx.Response:
        level = self._level_provider()
        method, url = request.method, str(request.url)
        if level is not HttpLogLevel.none:
            log.info("http.request", method=method, url=url, body=_request_body(request, level))

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except httpx.HTTPError as e:
            log.error("http.request_error", method=method, url=url, error=str(e), exc_info=True)
            raise
        except RuntimeError as e:
            # Surface HTTP-stack state errors as ordinary network failures.
            log.error("http.request_error", method=method, url=url, error=str(e), exc_info=True)
            raise httpx.NetworkError(f"Network internal error: {e}", request=request) from e

        if not response.is_success:
            log.error(
                "http.request_failed",
                method=method,
                url=url,
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
        if level is not HttpLogLevel.none:
            body = None
            if level is HttpLogLevel.body and _is_textual(response):
                await response.aread()
                body = response.text
            log.info(
                "http.response",
                method=method,
                url=url,
                status_code=response.status_code,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
                body=body,
            )
        return response


def _request_body(request: httpx.Request, level: HttpLogLevel) -> str | None:
    if level is not HttpLogLevel.body:
        return None
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("application/json"):
        return None
    try:
        return request.content.decode("utf-8", errors="replace")
    except httpx.RequestNotRead:
        return None


def _is_textual(response: httpx.Response) -> bool:
    content_type = response.headers.get("content-type", "")
    return content_type.startswith(("application/json", "text/"))


# --- Module Notes -----------------------------------------------------------
# Installed order is base URL -> auth -> logging, so the logger sees the final request
# (rewritten host, bearer header) exactly as it goes on the wire.
