"""Data models for version parsing and update classification."""

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering

import semantic_version


class UpdateMagnitude(Enum):
    """Most significant component that differs between installed and remote."""
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    NONE = "none"


class VersionComparison(Enum):
    """Outcome of comparing two versions."""
    LESS = -1
    EQUAL = 0
    GREATER = 1


@total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """Immutable (major, minor, patch) triple of non-negative integers."""
    major: int = 0
    minor: int = 0
    patch: int = 0

    def __post_init__(self):
        for name in ("major", "minor", "patch"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")

    def as_tuple(self):
        """Return the components as a plain tuple."""
        return (self.major, self.minor, self.patch)

    def to_semver(self) -> semantic_version.Version:
        """Return the equivalent ``semantic_version.Version``."""
        return semantic_version.Version(major=self.major, minor=self.minor, patch=self.patch)

    def __lt__(self, other):
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self.to_semver() < other.to_semver()

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"
