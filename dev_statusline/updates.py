"""Swift Package Manager update check for the nearest Xcode project.

The check hits the GitHub API once per package, so results are cached for
hours and invalidated when ``project.pbxproj`` changes. GitHub's anonymous
quota is small; when it runs out the last good result is shown instead and
the cache is left exactly as it was.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from typing import Callable

from . import github, pbxproj, versions
from .cache import CacheStore
from .github import GitHubClient, RateLimitedError
from .models.cache import CacheRecord, is_fresh
from .models.update_report import UpdateReport
from .models.versions import DependencyEntry

logger = logging.getLogger(__name__)

UPDATES_KEY = "spm"
SESSION_KEY = "session"
HEADER = "SPM Updates Available:"
MANIFEST_NAME = "project.pbxproj"


def find_manifest(
    start_dir: str, configured: str | None = None, max_depth: int = 5
) -> str | None:
    """Locate ``project.pbxproj`` for the Xcode project around ``start_dir``.

    A configured path wins when it exists. Otherwise ``start_dir`` and its
    ancestors (``max_depth`` directories in total, never the filesystem
    root) are searched for an ``*.xcodeproj`` bundle.
    """
    if configured and os.path.isfile(configured):
        return configured

    search = os.path.abspath(start_dir or os.getcwd())
    for _ in range(max_depth):
        parent = os.path.dirname(search)
        if parent == search:
            break
        try:
            names = sorted(os.listdir(search))
        except OSError:
            names = []
        for name in names:
            if not name.endswith(".xcodeproj"):
                continue
            candidate = os.path.join(search, name, MANIFEST_NAME)
            if os.path.isfile(candidate):
                return candidate
        search = parent
    return None


def format_update(entry: DependencyEntry, current: str, latest: str) -> str:
    return f"  {entry.name}: {current} → {latest} ({entry.source_url})"


class DependencyUpdateProvider:
    def __init__(
        self,
        store: CacheStore,
        client: GitHubClient,
        *,
        project: str | None = None,
        search_depth: int = 5,
        max_age: float = 14400.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.client = client
        self.project = project
        self.search_depth = search_depth
        self.max_age = max_age
        self.clock = clock

    def touch_session(self, now: float) -> bool:
        """Start a new session marker if none is current. True if one was started."""
        marker = self.store.read(SESSION_KEY)
        if marker is not None and marker.age(now) <= self.max_age:
            return False
        self.store.write(
            SESSION_KEY, CacheRecord(written_at=now, fingerprint="", payload="")
        )
        return True

    def _cached_report(self, rate_limited: bool = False) -> UpdateReport:
        record = self.store.read(UPDATES_KEY)
        if record is None:
            return UpdateReport(rate_limited=rate_limited)
        return UpdateReport(
            block=record.payload, checked_at=record.written_at, rate_limited=rate_limited
        )

    def check(self, working_dir: str) -> UpdateReport:
        """Run the update check. Blocking (network I/O)."""
        now = self.clock()
        if self.touch_session(now):
            logger.info("New session; update check marker reset")

        manifest = find_manifest(working_dir, self.project, self.search_depth)
        if manifest is None:
            return UpdateReport()
        try:
            mtime = str(int(os.path.getmtime(manifest)))
            with open(manifest, encoding="utf-8", errors="replace") as f:
                text = f.read()
        except OSError as e:
            logger.debug("Cannot read %s: %s", manifest, e)
            return UpdateReport()

        record = self.store.read(UPDATES_KEY)
        if is_fresh(record, now, self.max_age, mtime) and record.fingerprint == mtime:
            return UpdateReport(block=record.payload, checked_at=record.written_at)

        entries = [
            e for e in pbxproj.remote_packages(text) if github.is_github_url(e.source_url)
        ]
        try:
            updates = self._find_updates(entries)
        except RateLimitedError as e:
            logger.warning("%s; showing last cached update check", e)
            return self._cached_report(rate_limited=True)

        block = "\n".join([HEADER, *updates]) if updates else ""
        self.store.write(
            UPDATES_KEY, CacheRecord(written_at=now, fingerprint=mtime, payload=block)
        )
        return UpdateReport(block=block)

    def _find_updates(self, entries: list[DependencyEntry]) -> list[str]:
        lines: list[str] = []
        for entry in entries:
            repo = github.repo_path(entry.source_url)
            if repo is None:
                continue
            latest = self.client.latest_version(repo)
            if not latest:
                continue
            result = versions.compare_versions(entry.pinned_version, latest)
            if result.upgradable:
                lines.append(format_update(entry, result.current, result.latest))
        return lines

    async def render(self, working_dir: str) -> UpdateReport:
        return await asyncio.to_thread(self.check, working_dir)
