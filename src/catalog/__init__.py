"""Remote catalog lookup package.

- client.py: single-GET lookup of the published version of an app

The HTTP helper is exposed here as a patch point for tests.
"""

# Patch points exposed for tests (e.g., monkeypatch in tests)
from common.http_client import get_text  # noqa: F401

from .client import CatalogClient, FetchError, FetchErrorKind, FetchOutcome  # noqa: F401

__all__ = [
    "CatalogClient",
    "FetchError",
    "FetchErrorKind",
    "FetchOutcome",
    # Patch points for tests
    "get_text",
]
