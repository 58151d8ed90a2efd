"""
equiptrack_client.remote.result

Result type for remote calls.

Responsibilities:
- Represent the outcome of a server call as `Success(data)` or `Error(message)`.
- Classify HTTP and transport failures into user-facing messages.
"""

from __future__ import annotations

import socket
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

import httpx
import pydantic

T = TypeVar("T")

EMPTY_BODY = "Empty response body"
SESSION_EXPIRED = "Session expired, please log in again"
CONNECT_FAILED = "Unable to connect to the server, check the network or server settings"
TIMED_OUT = "Connection timed out, check the network or server settings"
UNKNOWN_HOST = "Unable to resolve the server address, check the server settings"


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    data: T


@dataclass(frozen=True, slots=True)
class Error:
    message: str


NetworkResult = Success[T] | Error


async def safe_api_call(call: Callable[[], Awaitable[T | None]]) -> NetworkResult[T]:
    """
    Run one API call and fold every expected failure into `Error`.

    Programming errors (anything outside httpx/pydantic/value errors) propagate.
    """

    try:
        data = await call()
    except httpx.HTTPStatusError as e:
        return Error(http_error_message(e.response))
    except httpx.TimeoutException:
        return Error(TIMED_OUT)
    except httpx.ConnectError as e:
        return Error(UNKNOWN_HOST if _is_unresolved_host(e) else CONNECT_FAILED)
    except (httpx.HTTPError, pydantic.ValidationError, ValueError) as e:
        return Error(f"Network error: {e}")
    if data is None:
        return Error(EMPTY_BODY)
    return Success(data)


def http_error_message(response: httpx.Response) -> str:
    if response.status_code == 401:
        return SESSION_EXPIRED
    message = f"Request failed: {response.status_code} {response.reason_phrase}"
    try:
        body = response.json()
    except ValueError:
        # HTML error pages from proxies are not worth surfacing.
        return message
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return message


def _is_unresolved_host(exc: BaseException) -> bool:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        text = str(current).lower()
        if "name or service not known" in text or "getaddrinfo" in text or "nodename nor servname" in text:
            return True
        current = current.__cause__ or current.__context__
    return False


# --- Module Notes -----------------------------------------------------------
# There is no retry layer: each call succeeds or yields exactly one `Error`.
