"""
tests.test_urls

Server URL normalization and image URL resolution.
"""

from __future__ import annotations

import pytest

from equiptrack_client.remote.urls import DEFAULT_BASE_URL, normalize_base_url, resolve_image_url


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, DEFAULT_BASE_URL),
        ("   ", "http://10.0.2.2:3000/"),
        ("127.0.0.1", "http://10.0.2.2:3000/"),
        ("192.168.1.5", "http://192.168.1.5:3000/"),
        ("https://example.com", "https://example.com:3000/"),
        ("http://example.com:8080", "http://example.com:8080/"),
        ("example.com:8080/base", "http://example.com:8080/base/"),
        (" http://host/ ", "http://host:3000/"),
    ],
)
def test_normalize_base_url(raw: str | None, expected: str) -> None:
    assert normalize_base_url(raw) == expected


def test_loopback_rewrite_can_be_disabled() -> None:
    assert normalize_base_url("127.0.0.1:4000", rewrite_loopback=False) == "http://127.0.0.1:4000/"


def test_unparseable_port_is_left_alone() -> None:
    assert normalize_base_url("http://host:abc") == "http://host:abc/"


def test_resolve_image_url() -> None:
    base = "http://host:3000/"
    assert resolve_image_url(base, None) is None
    assert resolve_image_url(base, "https://cdn/x.png") == "https://cdn/x.png"
    assert resolve_image_url(base, "file:///tmp/x.png") == "file:///tmp/x.png"
    assert resolve_image_url(base, "content://media/1") == "content://media/1"
    assert resolve_image_url(base, "data:image/png;base64,AA\nBB") == "data:image/png;base64,AABB"
    assert resolve_image_url(base, "/uploads/a.png") == "http://host:3000/uploads/a.png"
    assert resolve_image_url("http://host:3000", "uploads/a.png") == "http://host:3000/uploads/a.png"
