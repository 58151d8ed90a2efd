"""
equiptrack_client.remote.urls

Server and image URL normalization.

Responsibilities:
- Turn whatever the user typed as a server address into a usable base URL.
- Resolve image references returned by the server into fetchable URLs.
"""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

EMULATOR_LOOPBACK = "10.0.2.2"
DEFAULT_PORT = 3000
DEFAULT_BASE_URL = f"http://{EMULATOR_LOOPBACK}:{DEFAULT_PORT}/"

_PASSTHROUGH_PREFIXES = ("content://", "file://", "http://", "https://")


def normalize_base_url(
    raw: str | None,
    *,
    default_port: int = DEFAULT_PORT,
    rewrite_loopback: bool = True,
) -> str:
    """
    Normalize a server address:
    - empty -> default emulator address
    - 127.0.0.1 -> emulator loopback (optional)
    - scheme defaults to http, port defaults to `default_port`
    - always ends with "/"
    """

    value = (raw or "").strip()
    if not value:
        return DEFAULT_BASE_URL

    if rewrite_loopback:
        value = value.replace("127.0.0.1", EMULATOR_LOOPBACK)
    if not value.startswith(("http://", "https://")):
        value = f"http://{value}"

    value = _ensure_port(value, default_port)
    if not value.endswith("/"):
        value = f"{value}/"
    return value


def _ensure_port(url: str, default_port: int) -> str:
    try:
        parts = urlsplit(url)
        if parts.port is not None or not parts.hostname:
            return url
    except ValueError:
        return _ensure_port_fallback(url, default_port)

    netloc = parts.netloc
    host = f"[{parts.hostname}]" if ":" in parts.hostname else parts.hostname
    userinfo, _, _ = netloc.rpartition("@")
    netloc = f"{userinfo}@{host}:{default_port}" if userinfo else f"{host}:{default_port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def _ensure_port_fallback(url: str, default_port: int) -> str:
    # Plain string surgery for inputs urlsplit rejects (e.g. a non-numeric port).
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    authority, slash, path = rest.partition("/")
    if ":" in authority.rpartition("@")[2]:
        return url
    return f"{scheme}://{authority}:{default_port}{slash}{path}"


def resolve_image_url(base_url: str, path: str | None) -> str | None:
    if not path:
        return None
    value = path.strip()
    if value.startswith(_PASSTHROUGH_PREFIXES):
        return value
    if value.startswith("data:image"):
        # Base64 payloads sometimes arrive wrapped across lines.
        return value.replace("\r", "").replace("\n", "")
    base = base_url if base_url.endswith("/") else f"{base_url}/"
    return urljoin(base, value.lstrip("/"))


# --- Module Notes -----------------------------------------------------------
# The same normalization runs on every request in `BaseUrlInterceptor`, so a changed
# server address applies without rebuilding the HTTP client.
