"""Alert policy: which alert to present for each update magnitude."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Union

from versioning.models import UpdateMagnitude


class AlertBehavior(Enum):
    """Alert presented to the user for an available update."""
    FORCE = "force"    # update now, no way to dismiss
    OPTION = "option"  # update now or at next launch
    SKIP = "skip"      # update now, at next launch, or skip this version
    NONE = "none"      # do not alert

    @classmethod
    def from_value(cls, value: Union["AlertBehavior", str]) -> "AlertBehavior":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in cls.__members__:
                return cls[key]
        raise ValueError(f"Unknown alert behavior: {value!r}")


@dataclass(frozen=True)
class AlertConfig:
    """Per-magnitude alert behavior, fixed once configured."""
    major: AlertBehavior = AlertBehavior.OPTION
    minor: AlertBehavior = AlertBehavior.OPTION
    patch: AlertBehavior = AlertBehavior.OPTION

    @classmethod
    def uniform(cls, behavior: Union[AlertBehavior, str]) -> "AlertConfig":
        """Use the same behavior for every magnitude."""
        resolved = AlertBehavior.from_value(behavior)
        return cls(major=resolved, minor=resolved, patch=resolved)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Union[AlertBehavior, str]]) -> "AlertConfig":
        """Build from config data such as ``{"major": "force", "patch": "none"}``.

        Magnitudes left out keep the default behavior.
        """
        values = {}
        for key, raw in data.items():
            name = str(key).strip().lower()
            if name not in ("major", "minor", "patch"):
                raise ValueError(f"Unknown update magnitude in alert config: {key!r}")
            values[name] = AlertBehavior.from_value(raw)
        return cls(**values)

    def behavior_for(self, magnitude: UpdateMagnitude) -> AlertBehavior:
        if magnitude is UpdateMagnitude.MAJOR:
            return self.major
        if magnitude is UpdateMagnitude.MINOR:
            return self.minor
        if magnitude is UpdateMagnitude.PATCH:
            return self.patch
        return AlertBehavior.NONE


def resolve_behavior(magnitude: UpdateMagnitude, config: AlertConfig) -> AlertBehavior:
    """Map an update magnitude to the configured alert behavior.

    No update never alerts, whatever the configuration says.
    """
    if magnitude is UpdateMagnitude.NONE:
        return AlertBehavior.NONE
    return config.behavior_for(magnitude)
