"""Expiring cache store shared by the status line providers.

Each provider owns one key. Records are small line-oriented files::

    <written_at>
    <fingerprint>
    <payload line 1>
    ...

so several short-lived status line processes (and their detached workers) can
read and replace them concurrently. Writers replace whole files atomically;
readers treat anything unreadable as a cache miss.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Protocol

from .models.cache import CacheRecord

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    def read(self, key: str) -> CacheRecord | None: ...

    def write(self, key: str, record: CacheRecord) -> None: ...

    def clear(self, key: str) -> None: ...


def encode_record(record: CacheRecord) -> str:
    fingerprint = record.fingerprint.replace("\n", " ")
    return f"{int(record.written_at)}\n{fingerprint}\n{record.payload}"


def decode_record(text: str) -> CacheRecord | None:
    """Parse a serialized record, returning None for anything malformed."""
    lines = text.split("\n", 2)
    if len(lines) < 2:
        return None
    stamp = lines[0].strip()
    if not (stamp.isascii() and stamp.isdigit()):
        return None
    payload = lines[2] if len(lines) > 2 else ""
    return CacheRecord(
        written_at=float(stamp),
        fingerprint=lines[1].strip(),
        payload=payload.rstrip("\n"),
    )


class FileCacheStore:
    """Cache store backed by one file per key in ``directory``."""

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def path_for(self, key: str) -> str:
        return os.path.join(self.directory, f".statusline_{key}_cache")

    def read(self, key: str) -> CacheRecord | None:
        path = self.path_for(key)
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Unreadable cache %s: %s", path, e)
            return None
        record = decode_record(text)
        if record is None:
            logger.debug("Ignoring malformed cache %s", path)
        return record

    def write(self, key: str, record: CacheRecord) -> None:
        path = self.path_for(key)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self.directory, prefix=f".statusline_{key}_"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(encode_record(record))
                f.write("\n")
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            logger.warning("Failed writing cache %s: %s", path, e)
        finally:
            if tmp_path:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

    def clear(self, key: str) -> None:
        try:
            os.unlink(self.path_for(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug("Failed clearing cache %s: %s", key, e)


class MemoryCacheStore:
    """In-process cache store with the same contract, used by tests."""

    def __init__(self) -> None:
        self.records: dict[str, CacheRecord] = {}

    def read(self, key: str) -> CacheRecord | None:
        return self.records.get(key)

    def write(self, key: str, record: CacheRecord) -> None:
        self.records[key] = record

    def clear(self, key: str) -> None:
        self.records.pop(key, None)


__all__ = [
    "CacheStore",
    "FileCacheStore",
    "MemoryCacheStore",
    "decode_record",
    "encode_record",
]
