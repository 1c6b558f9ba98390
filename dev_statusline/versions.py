"""Version string parsing and comparison for dependency update checks."""

from __future__ import annotations

import re

from .models.versions import VersionComparison, VersionComparisonResult

_NUMERIC_RE = re.compile(r"^\d+(?:\.\d+){0,2}$")
_STRICT_TAG_RE = re.compile(r"^v?\d+\.\d+\.\d+$")


def clean_version(version: str) -> str:
    """Strip whitespace, quotes and a leading ``v`` from a version string."""
    v = (version or "").strip().strip('"').strip()
    return v[1:] if v[:1] in ("v", "V") else v


def parse_version(version: str) -> tuple[int, int, int] | None:
    """Parse ``major[.minor[.patch]]`` into an integer tuple.

    Anything else, including pre-release and build suffixes, returns None.

    Example:
        >>> parse_version("v5.8")
        (5, 8, 0)
        >>> parse_version("1.2.3-beta.1") is None
        True
    """
    v = clean_version(version)
    if not _NUMERIC_RE.match(v):
        return None
    parts = [int(p) for p in v.split(".")]
    while len(parts) < 3:
        parts.append(0)
    return parts[0], parts[1], parts[2]


def is_release_tag(name: str) -> bool:
    """True for strict three-component tags such as ``1.2.3`` or ``v1.2.3``."""
    return bool(_STRICT_TAG_RE.match(name or ""))


def highest_tag(names: list[str]) -> str | None:
    """Return the highest release tag (without ``v``), comparing numerically."""
    best: tuple[int, int, int] | None = None
    best_name = None
    for name in names:
        if not is_release_tag(name):
            continue
        parsed = parse_version(name)
        if parsed is not None and (best is None or parsed > best):
            best = parsed
            best_name = clean_version(name)
    return best_name


def compare_versions(current: str, latest: str) -> VersionComparisonResult:
    """Decide whether ``latest`` is an upgrade over ``current``.

    Identical strings are unchanged. Otherwise both must parse as numeric
    versions; a newer ``current`` (a downgrade) is reported as unchanged.
    """
    cur = clean_version(current)
    new = clean_version(latest)
    if cur == new:
        return VersionComparisonResult(VersionComparison.UNCHANGED, cur, new)
    cur_t = parse_version(cur)
    new_t = parse_version(new)
    if cur_t is None or new_t is None:
        return VersionComparisonResult(VersionComparison.INDETERMINATE, cur, new)
    if new_t > cur_t:
        return VersionComparisonResult(VersionComparison.UPGRADABLE, cur, new)
    return VersionComparisonResult(VersionComparison.UNCHANGED, cur, new)
