"""Persistence of the last-check date and the user's skipped version."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from constants import Constants
from common.logging_utils import extra_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckState:
    """Snapshot of persisted check state."""
    last_check_date: Optional[datetime] = None
    skipped_version: Optional[str] = None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SkipStore(ABC):
    """Narrow key-value interface the decision engine persists through."""

    @abstractmethod
    def get_state(self) -> CheckState:
        """Return the current persisted state."""

    @abstractmethod
    def set_last_check_date(self, when: datetime) -> None:
        """Record when the last remote check completed."""

    @abstractmethod
    def set_skipped_version(self, version: str) -> None:
        """Record the version the user chose to skip."""

    @abstractmethod
    def clear(self) -> None:
        """Forget both the last-check date and the skipped version."""


class MemorySkipStore(SkipStore):
    """Process-local store; state is lost when the process exits."""

    def __init__(self, state: Optional[CheckState] = None):
        state = state or CheckState()
        if state.last_check_date is not None:
            state = CheckState(_as_utc(state.last_check_date), state.skipped_version)
        self._state = state

    def get_state(self) -> CheckState:
        return self._state

    def set_last_check_date(self, when: datetime) -> None:
        self._state = CheckState(_as_utc(when), self._state.skipped_version)

    def set_skipped_version(self, version: str) -> None:
        self._state = CheckState(self._state.last_check_date, version)

    def clear(self) -> None:
        self._state = CheckState()


class JsonFileSkipStore(SkipStore):
    """Durable store backed by a small JSON document.

    Keys are ``lastCheckDate`` (ISO-8601, UTC) and ``skippedVersion``. Other
    keys found in the file are kept untouched on write. A missing or corrupt
    file reads as empty state.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        if path is None:
            state_dir = os.environ.get(Constants.ENV_STATE_DIR) or Constants.STATE_DIR
            path = Path(state_dir) / Constants.STATE_FILE
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_state(self) -> CheckState:
        data = self._load()
        return CheckState(
            last_check_date=_parse_timestamp(data.get(Constants.KEY_LAST_CHECK_DATE)),
            skipped_version=_parse_version_value(data.get(Constants.KEY_SKIPPED_VERSION)),
        )

    def set_last_check_date(self, when: datetime) -> None:
        data = self._load()
        data[Constants.KEY_LAST_CHECK_DATE] = _as_utc(when).isoformat()
        self._save(data)

    def set_skipped_version(self, version: str) -> None:
        data = self._load()
        data[Constants.KEY_SKIPPED_VERSION] = version
        self._save(data)

    def clear(self) -> None:
        data = self._load()
        data.pop(Constants.KEY_LAST_CHECK_DATE, None)
        data.pop(Constants.KEY_SKIPPED_VERSION, None)
        self._save(data)

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning(
                "Ignoring unreadable state file %s: %s",
                self._path,
                exc,
                extra=extra_context(event="state_load", component="skip_store", outcome="corrupt"),
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(
                "Ignoring state file %s: expected a JSON object",
                self._path,
                extra=extra_context(event="state_load", component="skip_store", outcome="corrupt"),
            )
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        """Atomically replace the state file with ``data``."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmppath = tempfile.mkstemp(
            prefix=self._path.name + ".", suffix=".tmp", dir=str(self._path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmppath, self._path)
        except BaseException:
            try:
                os.unlink(tmppath)
            except OSError:
                pass
            raise


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring invalid %s value: %r", Constants.KEY_LAST_CHECK_DATE, value)
        return None
    return _as_utc(parsed)


def _parse_version_value(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None
