"""Cache-related dataclasses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CacheRecord:
    """One persisted provider result.

    ``fingerprint`` is empty for records that only expire with time.
    """

    written_at: float
    fingerprint: str
    payload: str

    def age(self, now: float) -> float:
        return now - self.written_at


def is_fresh(
    record: CacheRecord | None, now: float, max_age: float, fingerprint: str = ""
) -> bool:
    """Return True if ``record`` can be served without a refresh."""
    if record is None:
        return False
    if record.age(now) >= max_age:
        return False
    return not record.fingerprint or record.fingerprint == fingerprint
