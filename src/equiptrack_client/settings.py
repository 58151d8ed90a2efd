"""
equiptrack_client.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Supply defaults for values the user can later override at runtime
  (server URL, local debug mode, HTTP trace level).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

import enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class HttpLogLevel(enum.StrEnum):
    # Mirrors the classic HTTP trace levels: nothing, request/response lines, full bodies.
    none = "NONE"
    basic = "BASIC"
    body = "BODY"


class Settings(BaseSettings):
    """
    - Env-driven configuration (prefix EQUIPTRACK_)
    - Defaults match the stock server deployment (port 3000, emulator loopback)
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="EQUIPTRACK_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "equiptrack-client"
    log_level: str = "INFO"
    # When set, logs are also appended to app_log_YYYY-MM-DD.txt in this directory.
    log_dir: Path | None = None

    # Server
    server_url: str | None = None
    default_port: int = 3000
    rewrite_loopback: bool = True

    # Local debug mode serves reads from the cache and applies borrow/return locally.
    local_debug: bool = False
    http_log_level: HttpLogLevel | None = None
    request_timeout_seconds: float = 30.0
    local_debug_timeout_seconds: float = 5.0

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./equiptrack.db"

    # Background polling
    poll_interval_seconds: float = 60.0

    # App updates
    app_version_code: int = 1
    download_dir: Path = Path("./downloads")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each consumer.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Values the user changes while the client runs live in `services.runtime_settings`;
# this module only supplies their initial defaults.
