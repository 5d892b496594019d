"""Update-check decision engine package.

- scheduler.py: cadence gating (is a remote check due?)
- decision.py: the check flow and the host feedback entry point
"""

from .scheduler import CheckCadence, days_since, is_due
from .decision import (
    CheckResult,
    DecisionEngine,
    DecisionKind,
    UpdateDecision,
    UserChoice,
    utc_now,
)

__all__ = [
    "CheckCadence",
    "CheckResult",
    "DecisionEngine",
    "DecisionKind",
    "UpdateDecision",
    "UserChoice",
    "days_since",
    "is_due",
    "utc_now",
]
