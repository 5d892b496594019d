"""Unit tests for shared logging helpers."""

import io
import logging

from common.logging_utils import (
    Timer,
    configure_logging,
    extra_context,
    is_debug_enabled,
    redact,
    safe_url,
)


def test_extra_context_drops_none():
    assert extra_context(event="x", outcome=None, status_code=200) == {"event": "x", "status_code": 200}


def test_safe_url_strips_credentials_and_secrets():
    url = "https://user:pw@catalog.example:8443/lookup?id=1&token=abc"
    assert safe_url(url) == "https://catalog.example:8443/lookup?id=1&token=[REDACTED]"


def test_safe_url_keeps_plain_query():
    assert safe_url("https://itunes.apple.com/lookup?id=1&country=us") == (
        "https://itunes.apple.com/lookup?id=1&country=us"
    )


def test_redact():
    assert redact("supersecret") == "[REDACTED]cret"
    assert redact("abc") == "[REDACTED]"
    assert redact(None) is None


def test_timer_measures():
    with Timer() as t:
        pass
    assert t.duration_ms() >= 0


def test_configure_logging_respects_env(monkeypatch):
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        monkeypatch.setenv("RELNOTIFY_LOG_LEVEL", "debug")
        stream = io.StringIO()
        configure_logging(stream=stream)
        configure_logging(stream=stream)

        assert is_debug_enabled(logging.getLogger("relnotify.test"))
        assert len([h for h in root.handlers if getattr(h, "_relnotify", False)]) == 1

        logging.getLogger("relnotify.test").warning("hello")
        assert "[WARNING] hello" in stream.getvalue()
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
