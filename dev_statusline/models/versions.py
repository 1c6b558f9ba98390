"""Dependency and version comparison dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class DependencyEntry:
    source_url: str
    pinned_version: str

    @property
    def name(self) -> str:
        tail = self.source_url.rstrip("/").rsplit("/", 1)[-1]
        tail = tail.rsplit(":", 1)[-1]
        return tail[:-4] if tail.endswith(".git") else tail


class VersionComparison(Enum):
    UNCHANGED = "unchanged"
    UPGRADABLE = "upgradable"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class VersionComparisonResult:
    outcome: VersionComparison
    current: str
    latest: str

    @property
    def upgradable(self) -> bool:
        return self.outcome is VersionComparison.UPGRADABLE
