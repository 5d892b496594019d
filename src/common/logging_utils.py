"""Logging helpers shared by the catalog client and the decision engine.

Provides a one-call ``configure_logging`` for hosts, structured ``extra``
payloads for log records, URL/secret redaction, and a small timer used to
attach durations to HTTP traces.
"""
from __future__ import annotations

import logging
import os
import sys
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_QUERY_KEYS = {"token", "access_token", "api_key", "apikey", "key", "secret", "password"}
_REDACTED = "[REDACTED]"


def configure_logging(level: Optional[str] = None, stream=None) -> None:
    """Configure the root logger once for the host process.

    Level precedence: explicit ``level`` argument, then the
    ``RELNOTIFY_LOG_LEVEL`` environment variable, then INFO.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    numeric = getattr(logging, level_name, None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    if not any(getattr(h, "_relnotify", False) for h in root.handlers):
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        handler._relnotify = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(numeric)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` mapping for structured log records.

    ``None`` values are dropped so formatters only see populated fields.
    """
    return {k: v for k, v in fields.items() if v is not None}


def redact(value: Optional[str]) -> Optional[str]:
    """Mask a secret, keeping at most the last four characters."""
    if not value:
        return value
    if len(value) <= 4:
        return _REDACTED
    return f"{_REDACTED}{value[-4:]}"


def safe_url(url: str) -> str:
    """Return ``url`` without userinfo and with sensitive query values masked."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return url
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    cleaned = [
        (k, _REDACTED if k.lower() in _SENSITIVE_QUERY_KEYS else v)
        for k, v in query
    ]
    return urllib.parse.urlunsplit(
        (parts.scheme, netloc, parts.path, urllib.parse.urlencode(cleaned, safe="[]"), "")
    )


class Timer:
    """Context manager measuring wall time for a block."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds; reads the running time while inside the block."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
