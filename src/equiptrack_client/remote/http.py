"""
equiptrack_client.remote.http

Factory for the shared `httpx.AsyncClient`.

Responsibilities:
- Wrap the network transport in the interceptor chain.
- Apply the base URL and request timeout from runtime settings.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx

from equiptrack_client.observability.logging import get_logger
from equiptrack_client.remote.interceptors import (
    AuthInterceptor,
    BaseUrlInterceptor,
    InterceptingTransport,
    LoggingInterceptor,
    SessionExpiredListener,
)
from equiptrack_client.remote.urls import DEFAULT_BASE_URL
from equiptrack_client.services.runtime_settings import RuntimeSettings

log = get_logger(__name__)


def build_http_client(
    *,
    runtime: RuntimeSettings,
    token_provider: Callable[[], str | None],
    session_listener: SessionExpiredListener,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    `transport` replaces the network layer (tests pass `httpx.MockTransport`);
    the interceptors are always installed on top of it.
    """

    inner = transport or httpx.AsyncHTTPTransport()
    chain = InterceptingTransport(
        inner,
        [
            BaseUrlInterceptor(lambda: runtime.base_url),
            AuthInterceptor(token_provider, session_listener),
            LoggingInterceptor(lambda: runtime.http_log_level),
        ],
    )
    return httpx.AsyncClient(
        base_url=_client_base_url(runtime),
        transport=chain,
        timeout=httpx.Timeout(runtime.request_timeout),
    )


def _client_base_url(runtime: RuntimeSettings) -> str:
    # A stored URL httpx cannot parse must not break startup; requests keep going to the
    # default host until the user fixes the setting.
    base_url = runtime.base_url
    try:
        httpx.URL(base_url)
    except httpx.InvalidURL:
        log.warning("http.invalid_base_url", base_url=base_url, fallback=DEFAULT_BASE_URL)
        return DEFAULT_BASE_URL
    return base_url


# --- Module Notes -----------------------------------------------------------
# The timeout is fixed when the client is built; toggling local-debug mode takes
# effect for timeouts on the next `build_http_client` call.
