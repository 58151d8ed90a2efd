"""
equiptrack_client.observability.logging

Structured logging configuration for the client.

Responsibilities:
- Configure `structlog` for JSON logs on stdout.
- Optionally mirror every log line into a per-day file (`app_log_YYYY-MM-DD.txt`)
  so users can hand logs to support.
- Provide a small wrapper for obtaining bound loggers.
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any

import structlog

LOG_FILE_PREFIX = "app_log_"
LOG_FILE_SUFFIX = ".txt"


def configure_logging(*, service_name: str, level: str, log_dir: Path | None = None) -> None:
    """
    Structured JSON logs; file mirroring is enabled when `log_dir` is given.
    """

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    root = logging.getLogger()
    # basicConfig is a no-op once handlers exist, so the level is applied explicitly.
    root.setLevel(log_level)
    for handler in list(root.handlers):
        if isinstance(handler, DailyFileHandler):
            root.removeHandler(handler)
            handler.close()
    if log_dir is not None:
        file_handler = DailyFileHandler(log_dir)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        file_handler.setLevel(log_level)
        root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def log_file_name(day: date) -> str:
    return f"{LOG_FILE_PREFIX}{day.isoformat()}{LOG_FILE_SUFFIX}"


class DailyFileHandler(logging.FileHandler):
    """
    Appends to `app_log_<today>.txt`, switching files when the date changes.
    """

    def __init__(self, log_dir: Path) -> None:
        self._log_dir = Path(log_dir)
        self._log_dir.mkdir(parents=True, exist_ok=True)
        self._day = date.today()
        super().__init__(self._log_dir / log_file_name(self._day), mode="a", encoding="utf-8", delay=True)

    def emit(self, record: logging.LogRecord) -> None:
        today = date.today()
        if today != self._day:
            self.acquire()
            try:
                self.close()
                self._day = today
                self.baseFilename = str((self._log_dir / log_file_name(today)).resolve())
            finally:
                self.release()
        super().emit(record)


def list_log_files(log_dir: Path) -> list[Path]:
    # Newest first, matching what a "share logs" action would offer.
    directory = Path(log_dir)
    if not directory.is_dir():
        return []
    files = [p for p in directory.iterdir() if p.is_file()]
    return sorted(files, key=lambda p: p.stat().st_mtime, reverse=True)


def latest_log_file(log_dir: Path) -> Path | None:
    files = list_log_files(log_dir)
    return files[0] if files else None


# --- Module Notes -----------------------------------------------------------
# The interceptor chain in `remote.interceptors` logs failed requests through this
# configuration, so network failures end up in the daily file as well.
