"""Version parsing and update classification."""

from .models import SemanticVersion, UpdateMagnitude, VersionComparison
from .parser import classify_update, compare_versions, parse_version

__all__ = [
    "SemanticVersion",
    "UpdateMagnitude",
    "VersionComparison",
    "classify_update",
    "compare_versions",
    "parse_version",
]
