"""Shared HTTP helpers used by the catalog client.

Encapsulates request/timeout error handling so callers get a plain
``(status, headers, text)`` tuple instead of handling transport exceptions.
A status of ``0`` means the request never produced a response.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Tuple

import aiohttp

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


async def get_text(
    url: str,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = Constants.REQUEST_TIMEOUT,
) -> Tuple[int, Dict[str, str], str]:
    """Perform a single GET request with DEBUG traces.

    No retries and no caching: exactly one request per call. When ``session``
    is omitted a short-lived session is opened and closed around the request.
    ``timeout`` applies per request, also on an injected session.

    Returns:
        Tuple of (status_code, headers_dict, body_text). On transport failure
        the status is 0 and the text carries the failure detail.
    """
    safe_target = safe_url(url)
    headers = {"Accept": "application/json", "User-Agent": Constants.USER_AGENT}
    client_timeout = aiohttp.ClientTimeout(total=timeout)

    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                ),
            )
        try:
            if session is None:
                async with aiohttp.ClientSession(timeout=client_timeout) as owned:
                    return await _read(owned, url, headers, client_timeout, t, safe_target)
            return await _read(session, url, headers, client_timeout, t, safe_target)
        except asyncio.TimeoutError:
            logger.debug(
                "HTTP timeout",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="timeout",
                    target=safe_target,
                ),
            )
            return 0, {}, f"request timed out after {timeout} seconds"
        except aiohttp.ClientError as exc:
            logger.debug(
                "HTTP request exception",
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    action="GET",
                    outcome="request_exception",
                    target=safe_target,
                ),
            )
            return 0, {}, f"connection error: {exc}"


async def _read(
    session: aiohttp.ClientSession,
    url: str,
    headers: Dict[str, str],
    timeout: aiohttp.ClientTimeout,
    timer: Timer,
    safe_target: str,
) -> Tuple[int, Dict[str, str], str]:
    async with session.get(url, headers=headers, timeout=timeout) as response:
        # Catalog responses are sometimes served as text/javascript; decode regardless.
        text = await response.text(errors="replace")
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=response.status,
                    duration_ms=timer.duration_ms(),
                    target=safe_target,
                ),
            )
        return response.status, dict(response.headers), text
