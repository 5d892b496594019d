"""Decision engine: orchestrates gating, lookup, comparison and alert policy.

One ``check_for_update`` call walks Gating -> Fetching -> Comparing ->
SkipFiltering -> Resolving and stops at the first terminal outcome:

- NOT_DUE: cadence says it is too early to ask the catalog again
- FETCH_FAILED: the lookup produced no version (transport/malformed/no results)
- NO_UPDATE: installed is current, the version was skipped, or policy says NONE
- RESOLVED: the host should present the carried ``UpdateDecision``

The host renders RESOLVED decisions and calls ``report_user_choice`` with the
user's answer; only a skip is persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from catalog.client import CatalogClient, FetchError
from policy.alert import AlertBehavior, AlertConfig, resolve_behavior
from state.store import SkipStore
from versioning.models import UpdateMagnitude
from versioning.parser import classify_update

from .scheduler import CheckCadence, is_due

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: aware wall-clock time in UTC."""
    return datetime.now(timezone.utc)


class DecisionKind(Enum):
    """Terminal outcome of a single update check."""
    NOT_DUE = "not_due"
    FETCH_FAILED = "fetch_failed"
    NO_UPDATE = "no_update"
    RESOLVED = "resolved"


class UserChoice(Enum):
    """Answer the host reports back after presenting an alert."""
    LAUNCH_STORE = "launch_store"
    DEFER = "defer"
    SKIP = "skip"
    CANCEL = "cancel"


@dataclass(frozen=True)
class UpdateDecision:
    """An update the host should present to the user."""
    magnitude: UpdateMagnitude
    behavior: AlertBehavior
    remote_version: str
    app_identifier: str

    @property
    def store_url(self) -> str:
        """Catalog page to open when the user chooses to update."""
        return Constants.STORE_URL_TEMPLATE.format(app_id=self.app_identifier)


@dataclass(frozen=True)
class CheckResult:
    """Tagged result of ``DecisionEngine.check_for_update``."""
    kind: DecisionKind
    decision: Optional[UpdateDecision] = None
    error: Optional[FetchError] = None
    remote_version: Optional[str] = None

    @property
    def should_prompt(self) -> bool:
        return self.kind is DecisionKind.RESOLVED


NOT_DUE = CheckResult(DecisionKind.NOT_DUE)


class DecisionEngine:
    """Owns one application's update-check flow and its persisted state.

    The engine is the single writer of the store. Overlapping calls are not
    serialized here; hosts should not start a check while one is in flight.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        store: SkipStore,
        installed_version: str,
        clock: Clock = utc_now,
    ):
        """Initialize the engine.

        Args:
            catalog: Client used for the remote lookup.
            store: Persistence for last-check date and skipped version.
            installed_version: Version of the running application.
            clock: Returns the current time; injected for tests.
        """
        self._catalog = catalog
        self._store = store
        self._installed_version = installed_version
        self._clock = clock

    @property
    def installed_version(self) -> str:
        return self._installed_version

    @property
    def store(self) -> SkipStore:
        return self._store

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now

    async def check_for_update(
        self,
        app_identifier: str,
        country_code: Optional[str] = None,
        cadence: CheckCadence = CheckCadence.IMMEDIATELY,
        alert_config: Optional[AlertConfig] = None,
    ) -> CheckResult:
        """Run one update check and return its terminal outcome.

        Lookup failures come back as FETCH_FAILED results, never as
        exceptions. Raises ValueError when ``app_identifier`` is empty.
        """
        if not app_identifier or not str(app_identifier).strip():
            logger.error("An app identifier is required before checking for updates.")
            raise ValueError("app_identifier must be a non-empty string")
        app_identifier = str(app_identifier).strip()
        config = alert_config or AlertConfig()

        # Gating
        now = self._now()
        state = self._store.get_state()
        if not is_due(cadence, state.last_check_date, now):
            return self._finish(NOT_DUE, app_identifier, cadence=cadence.name.lower())

        # Fetching; the attempt is recorded whether or not it yields a version.
        outcome = await self._catalog.fetch_latest_version(app_identifier, country_code)
        self._store.set_last_check_date(now)
        if isinstance(outcome, FetchError):
            return self._finish(
                CheckResult(DecisionKind.FETCH_FAILED, error=outcome),
                app_identifier,
                reason=str(outcome),
            )
        remote_version = outcome

        # Comparing
        magnitude = classify_update(self._installed_version, remote_version)
        if magnitude is UpdateMagnitude.NONE:
            return self._finish(
                CheckResult(DecisionKind.NO_UPDATE, remote_version=remote_version),
                app_identifier,
                reason="installed version is current",
            )

        # Skip filtering; re-read so a skip recorded during the fetch is honored.
        if self._store.get_state().skipped_version == remote_version:
            return self._finish(
                CheckResult(DecisionKind.NO_UPDATE, remote_version=remote_version),
                app_identifier,
                reason="version skipped by user",
            )

        # Resolving
        behavior = resolve_behavior(magnitude, config)
        if behavior is AlertBehavior.NONE:
            return self._finish(
                CheckResult(DecisionKind.NO_UPDATE, remote_version=remote_version),
                app_identifier,
                reason=f"no alert configured for {magnitude.value} updates",
            )

        decision = UpdateDecision(
            magnitude=magnitude,
            behavior=behavior,
            remote_version=remote_version,
            app_identifier=app_identifier,
        )
        return self._finish(
            CheckResult(DecisionKind.RESOLVED, decision=decision, remote_version=remote_version),
            app_identifier,
        )

    def report_user_choice(self, decision: UpdateDecision, choice: UserChoice) -> None:
        """Record the user's answer to a presented alert.

        Only SKIP persists anything: the decision's remote version is
        remembered so the same version is not offered again.
        """
        if not isinstance(choice, UserChoice):
            raise ValueError(f"Unknown user choice: {choice!r}")
        if choice is UserChoice.SKIP:
            self._store.set_skipped_version(decision.remote_version)
        logger.info(
            "User chose %s for version %s",
            choice.value,
            decision.remote_version,
            extra=extra_context(
                event="user_choice",
                component="decision_engine",
                action=choice.value,
                app_identifier=decision.app_identifier,
                remote_version=decision.remote_version,
            ),
        )

    def _finish(self, result: CheckResult, app_identifier: str, **details) -> CheckResult:
        if result.kind is DecisionKind.RESOLVED:
            decision = result.decision
            logger.info(
                "Update %s available (%s update, %s alert)",
                decision.remote_version,
                decision.magnitude.value,
                decision.behavior.value,
                extra=extra_context(
                    event="update_check",
                    component="decision_engine",
                    outcome=result.kind.value,
                    app_identifier=app_identifier,
                    installed_version=self._installed_version,
                    remote_version=decision.remote_version,
                ),
            )
        elif is_debug_enabled(logger):
            logger.debug(
                "Update check finished: %s",
                result.kind.value,
                extra=extra_context(
                    event="update_check",
                    component="decision_engine",
                    outcome=result.kind.value,
                    app_identifier=app_identifier,
                    installed_version=self._installed_version,
                    remote_version=result.remote_version,
                    **details,
                ),
            )
        return result
