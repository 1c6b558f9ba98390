"""Shared test fixtures and dummy classes."""

from __future__ import annotations

import pytest

from dev_statusline.cache import MemoryCacheStore
from dev_statusline.lock import MemoryLock


class FakeClock:
    """Manually advanced clock for cache and lock ages."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingRunner:
    """Background runner that records jobs instead of starting processes."""

    def __init__(self, fail: bool = False) -> None:
        self.jobs: list[str] = []
        self.fail = fail

    def spawn(self, job: str) -> None:
        if self.fail:
            raise OSError("spawn failed")
        self.jobs.append(job)


class DummyResponse:
    """Dummy HTTP response for testing."""

    def __init__(
        self,
        data: object,
        status: int = 200,
        text: str = "",
        headers: dict[str, str] | None = None,
    ) -> None:
        self._data = data
        self.status_code = status
        self.text = text or str(data)
        self.headers = headers or {}
        self.ok = 200 <= status < 300

    def json(self) -> object:
        if isinstance(self._data, Exception):
            raise self._data
        return self._data


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def lock(clock: FakeClock) -> MemoryLock:
    return MemoryLock(clock)


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()
