"""Check cadence gating: decides whether a remote version check is due."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


class CheckCadence(Enum):
    """Minimum number of whole days between remote checks."""
    IMMEDIATELY = 0
    DAILY = 1
    WEEKLY = 7

    @property
    def days(self) -> int:
        return self.value

    @classmethod
    def from_value(cls, value: Union["CheckCadence", str, int]) -> "CheckCadence":
        """Parse a cadence from config input such as ``"daily"`` or ``7``."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            for member in cls:
                if member.value == value:
                    return member
        elif isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise ValueError(f"Unknown check cadence: {value!r}")


def days_since(last_check_date: datetime, now: datetime) -> int:
    """Whole days elapsed from ``last_check_date`` to ``now`` (floored).

    Negative when the last check lies in the future, e.g. after a clock change.
    Naive datetimes are taken to be UTC.
    """
    return (_as_utc(now) - _as_utc(last_check_date)).days


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_due(cadence: CheckCadence, last_check_date: Optional[datetime], now: datetime) -> bool:
    """Return True when a new remote check is allowed at ``now``."""
    if cadence is CheckCadence.IMMEDIATELY:
        return True
    if last_check_date is None:
        return True
    return days_since(last_check_date, now) >= cadence.days
