"""Advisory, host-local locks that stop duplicate expensive refreshes.

A lock is a marker file holding its creation time. A marker older than the
caller's timeout is considered abandoned (its owner crashed or was killed)
and is replaced by the next caller.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Lock(Protocol):
    def try_acquire(self, key: str, timeout: float) -> bool: ...

    def release(self, key: str) -> None: ...


class FileLock:
    """Lock backed by ``O_EXCL`` marker files in ``directory``."""

    def __init__(self, directory: str, clock: Callable[[], float] = time.time) -> None:
        self.directory = directory
        self.clock = clock

    def path_for(self, key: str) -> str:
        return os.path.join(self.directory, f".statusline_{key}_lock")

    def _marker_age(self, path: str) -> float | None:
        try:
            with open(path, encoding="utf-8") as f:
                raw = f.read().strip()
            created_at = float(raw)
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            # Marker written by a process that died mid-write, or by hand.
            try:
                created_at = os.path.getmtime(path)
            except OSError:
                return None
        return self.clock() - created_at

    def age(self, key: str) -> float | None:
        """Seconds since the marker for ``key`` was created, None if absent."""
        return self._marker_age(self.path_for(key))

    def _create(self, path: str) -> bool:
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{int(self.clock())}\n")
        return True

    def _take_over(self, key: str, timeout: float) -> bool:
        """Replace a stale marker, unless another process already did.

        The marker is moved aside rather than deleted, so a marker that turns
        out to be fresh (another taker won the race) can be put back.
        """
        path = self.path_for(key)
        aside = f"{path}.{os.getpid()}.stale"
        try:
            os.rename(path, aside)
        except FileNotFoundError:
            return False
        try:
            age = self._marker_age(aside)
            if age is not None and age < timeout:
                try:
                    os.link(aside, path)
                except FileExistsError:
                    pass
                return False
            logger.info("Removed stale %s lock (age=%s)", key, age)
            return self._create(path)
        finally:
            try:
                os.unlink(aside)
            except FileNotFoundError:
                pass

    def try_acquire(self, key: str, timeout: float) -> bool:
        path = self.path_for(key)
        try:
            if self._create(path):
                return True
            age = self.age(key)
            if age is not None and age < timeout:
                return False
            return self._take_over(key, timeout)
        except OSError as e:
            logger.warning("Lock %s unavailable: %s", key, e)
            return False

    def release(self, key: str) -> None:
        try:
            os.unlink(self.path_for(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("Failed releasing lock %s: %s", key, e)


class MemoryLock:
    """In-process lock with the same contract, used by tests."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self.clock = clock
        self.markers: dict[str, float] = {}

    def age(self, key: str) -> float | None:
        created_at = self.markers.get(key)
        return None if created_at is None else self.clock() - created_at

    def try_acquire(self, key: str, timeout: float) -> bool:
        age = self.age(key)
        if age is not None and age < timeout:
            return False
        self.markers[key] = self.clock()
        return True

    def release(self, key: str) -> None:
        self.markers.pop(key, None)


__all__ = ["FileLock", "Lock", "MemoryLock"]
