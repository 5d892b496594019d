"""Catalog lookup client: fetch the currently published version of an app."""
from __future__ import annotations

import json
import logging
import urllib.parse
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import aiohttp

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

import catalog as catalog_pkg

logger = logging.getLogger(__name__)


class FetchErrorKind(Enum):
    """Why a catalog lookup produced no version."""
    TRANSPORT = "transport"
    MALFORMED = "malformed"
    NO_RESULTS = "no_results"


@dataclass(frozen=True)
class FetchError:
    """Non-fatal lookup failure, returned as a value rather than raised."""
    kind: FetchErrorKind
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


# Either the published version string or the reason there is none.
FetchOutcome = Union[str, FetchError]


class CatalogClient:
    """Single-request client for the catalog ``lookup`` endpoint."""

    def __init__(
        self,
        lookup_url: str = Constants.CATALOG_LOOKUP_URL,
        timeout: float = Constants.REQUEST_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client.

        Args:
            lookup_url: Base URL of the lookup endpoint.
            timeout: Total request timeout in seconds.
            session: Optional shared session; owned and closed by the caller.
        """
        self._lookup_url = lookup_url
        self._timeout = timeout
        self._session = session

    @property
    def lookup_url(self) -> str:
        return self._lookup_url

    def build_lookup_url(self, app_identifier: str, country_code: Optional[str] = None) -> str:
        """Return the full lookup URL for an app, with optional country filter.

        Query parameters already present on the configured lookup URL are
        kept; ``id`` and ``country`` replace any existing values.
        """
        parts = urllib.parse.urlsplit(self._lookup_url)
        query = [
            (k, v)
            for k, v in urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
            if k not in ("id", "country")
        ]
        query.append(("id", app_identifier))
        if country_code:
            query.append(("country", country_code))
        return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))

    async def fetch_latest_version(
        self, app_identifier: str, country_code: Optional[str] = None
    ) -> FetchOutcome:
        """Fetch the published version string for ``app_identifier``.

        Performs exactly one GET with no retry. Returns the value of
        ``results[0].version`` or a ``FetchError`` describing why not.
        """
        url = self.build_lookup_url(app_identifier, country_code)
        with Timer() as timer:
            status, _, text = await catalog_pkg.get_text(
                url, session=self._session, timeout=self._timeout
            )

        if status == 0:
            return self._fail(FetchErrorKind.TRANSPORT, text, url)
        if not 200 <= status < 300:
            return self._fail(FetchErrorKind.TRANSPORT, f"HTTP status {status}", url)

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            return self._fail(FetchErrorKind.MALFORMED, str(exc), url)
        if not isinstance(payload, dict):
            return self._fail(FetchErrorKind.MALFORMED, "top-level JSON value is not an object", url)

        if is_debug_enabled(logger):
            logger.debug(
                "Catalog lookup results: %s",
                payload,
                extra=extra_context(
                    event="parse",
                    component="catalog_client",
                    outcome="success",
                    status_code=status,
                    duration_ms=timer.duration_ms(),
                    target=safe_url(url),
                ),
            )

        version = _first_result_version(payload)
        if version is None:
            return self._fail(FetchErrorKind.NO_RESULTS, f"no published version for {app_identifier}", url)
        return version

    def _fail(self, kind: FetchErrorKind, detail: str, url: str) -> FetchError:
        logger.debug(
            "Catalog lookup failed: %s",
            detail,
            extra=extra_context(
                event="catalog_lookup",
                component="catalog_client",
                outcome=kind.value,
                target=safe_url(url),
            ),
        )
        return FetchError(kind, detail)


def _first_result_version(payload: dict) -> Optional[str]:
    """Return ``results[0].version`` when present and a non-empty string."""
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    if not isinstance(first, dict):
        return None
    version = first.get("version")
    if not isinstance(version, str) or not version.strip():
        return None
    return version.strip()
