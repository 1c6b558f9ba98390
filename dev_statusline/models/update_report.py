"""Dependency update report dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class UpdateReport:
    """Result of one dependency-update check.

    ``checked_at`` is set only when the block was served from cache.
    """

    block: str = ""
    checked_at: float | None = None
    rate_limited: bool = False

    @property
    def empty(self) -> bool:
        return not self.block.strip()
