"""Centralized logging helpers shared by every module.

Modules obtain their logger with ``logging.getLogger(__name__)`` and attach
structured fields through ``extra=extra_context(...)``. DEBUG traces are
guarded with ``is_debug_enabled`` so building the context costs nothing when
DEBUG is off.
"""
from __future__ import annotations

import json
import logging
import os
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

LOG_LEVEL_ENV = "DEPBUMP_LOG_LEVEL"
LOG_FORMAT_ENV = "DEPBUMP_LOG_FORMAT"

# Attribute names present on every LogRecord; anything else came from `extra`.
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_HANDLER_MARK = "_depbump_handler"


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects including extra context."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging() -> None:
    """Install the root handler once, honoring DEPBUMP_LOG_LEVEL/FORMAT."""
    root = logging.getLogger()
    level_name = os.environ.get(LOG_LEVEL_ENV, "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if any(getattr(h, _HANDLER_MARK, False) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    if os.environ.get(LOG_FORMAT_ENV, "").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    setattr(handler, _HANDLER_MARK, True)
    root.addHandler(handler)


def add_file_handler(path: str) -> None:
    """Mirror log output to a file."""
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logging.getLogger().addHandler(file_handler)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from this logger would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping, dropping empty values."""
    return {key: value for key, value in fields.items() if value is not None}


def safe_url(url: Optional[str]) -> Optional[str]:
    """Strip credentials, query and fragment from a URL before logging it."""
    if not url:
        return url
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return "<invalid-url>"
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, host, parts.path, "", ""))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed time so far (or total, once exited)."""
        if self._start is None:
            return 0
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
