"""Lenient version parsing, ordering and update classification."""

from typing import Optional, Union

from .models import SemanticVersion, UpdateMagnitude, VersionComparison

VersionLike = Union[str, SemanticVersion, None]

_COMPONENTS = ("major", "minor", "patch")


def _segment_to_int(segment: str) -> int:
    """Convert a dotted segment to an int; anything non-numeric counts as 0."""
    segment = segment.strip()
    if not (segment.isascii() and segment.isdigit()):
        return 0
    return int(segment)


def parse_version(raw: Optional[str]) -> SemanticVersion:
    """Parse a dotted version string into a SemanticVersion.

    Never fails: missing or non-numeric segments become 0 and the result is
    padded or truncated to exactly three components, so ``"1.2"`` equals
    ``"1.2.0"`` and ``"abc"`` equals ``"0.0.0"``. A leading ``v`` is ignored.
    """
    if not raw:
        return SemanticVersion()
    text = raw.strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    segments = [_segment_to_int(s) for s in text.split(".")][:3]
    segments += [0] * (3 - len(segments))
    return SemanticVersion(*segments)


def _coerce(value: VersionLike) -> SemanticVersion:
    if isinstance(value, SemanticVersion):
        return value
    return parse_version(value)


def compare_versions(a: VersionLike, b: VersionLike) -> VersionComparison:
    """Compare two versions numerically, component by component."""
    left, right = _coerce(a), _coerce(b)
    for name in _COMPONENTS:
        lhs, rhs = getattr(left, name), getattr(right, name)
        if lhs != rhs:
            return VersionComparison.LESS if lhs < rhs else VersionComparison.GREATER
    return VersionComparison.EQUAL


def classify_update(installed: VersionLike, remote: VersionLike) -> UpdateMagnitude:
    """Classify how significant the step from ``installed`` to ``remote`` is.

    Returns ``UpdateMagnitude.NONE`` unless remote is strictly newer; otherwise
    the first differing component decides, major before minor before patch.
    """
    current, latest = _coerce(installed), _coerce(remote)
    if latest <= current:
        return UpdateMagnitude.NONE
    if latest.major != current.major:
        return UpdateMagnitude.MAJOR
    if latest.minor != current.minor:
        return UpdateMagnitude.MINOR
    return UpdateMagnitude.PATCH
