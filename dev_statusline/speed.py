"""Internet speed provider backed by ``speedtest-cli``.

A measurement takes 30-60 seconds, far too long for a status line, so the
foreground path only ever reads the cache and, when the cache is stale, hands
the measurement to a detached background job guarded by a lock. Results are
tied to the network they were measured on.
"""

from __future__ import annotations

import logging
import re
import shutil
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from . import cli, network, view
from .background import BackgroundRunner
from .cache import CacheStore
from .lock import Lock
from .models.cache import CacheRecord, is_fresh

logger = logging.getLogger(__name__)

SPEED_KEY = "speedtest"
JOB_SPEEDTEST = "speedtest"
JOB_INSTALL = "install"

TOOL_NAME = "speedtest-cli"
_INSTALLERS = ("pip3", "brew")
_INSTALL_TIMEOUT_S = 300

_LABEL_RE = re.compile(r"^[ \t]*(Download|Upload):[ \t]*(\S*)", re.MULTILINE)

TESTING = "(testing...)"
INSTALLING = "(installing...)"
UNAVAILABLE = "(unavailable)"


@dataclass(frozen=True)
class SpeedResult:
    download_mbps: float
    upload_mbps: float

    def display(self) -> str:
        return view.fmt_speed(self.download_mbps, self.upload_mbps)


def _to_float(raw: str) -> float:
    cleaned = re.sub(r"[^0-9.]", "", raw)
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_speedtest_output(out: str) -> SpeedResult | None:
    """Parse ``speedtest-cli --simple`` output.

    Returns None when either label is missing. A value that is present but
    not numeric counts as 0.

    Example:
        >>> parse_speedtest_output("Ping: 9 ms\\nDownload: 93.61 Mbit/s\\nUpload: 11.02 Mbit/s")
        SpeedResult(download_mbps=93.61, upload_mbps=11.02)
    """
    values: dict[str, float] = {}
    for label, raw in _LABEL_RE.findall(out or ""):
        values.setdefault(label, _to_float(raw))
    if "Download" not in values or "Upload" not in values:
        return None
    return SpeedResult(values["Download"], values["Upload"])


def find_installer() -> list[str] | None:
    """Return the install command for the first available package manager."""
    for manager in _INSTALLERS:
        path = shutil.which(manager)
        if path:
            return [path, "install", TOOL_NAME]
    return None


class SpeedProvider:
    def __init__(
        self,
        store: CacheStore,
        lock: Lock,
        runner: BackgroundRunner,
        *,
        max_age: float = 3600.0,
        lock_timeout: float = 120.0,
        test_timeout: int = 60,
        speedtest_bin: str | None = None,
        clock: Callable[[], float] = time.time,
        identity: Callable[[], Awaitable[str]] = network.current_identity,
    ) -> None:
        self.store = store
        self.lock = lock
        self.runner = runner
        self.max_age = max_age
        self.lock_timeout = lock_timeout
        self.test_timeout = test_timeout
        self.speedtest_bin = speedtest_bin
        self.clock = clock
        self.identity = identity

    def find_speedtest(self) -> str | None:
        return cli.find_tool(TOOL_NAME, self.speedtest_bin)

    def _cached_or_placeholder(self, record: CacheRecord | None, note: str = "") -> str:
        shown = record.payload if record and record.payload else view.SPEED_PLACEHOLDER
        return f"{shown} {note}" if note else shown

    async def render(self) -> str:
        """Return the speed text for the status line without waiting on a test."""
        fingerprint = await self.identity()
        record = self.store.read(SPEED_KEY)
        if is_fresh(record, self.clock(), self.max_age, fingerprint) and record.payload:
            return record.payload

        if not self.lock.try_acquire(SPEED_KEY, self.lock_timeout):
            return self._cached_or_placeholder(record, TESTING)

        if self.find_speedtest() is None:
            if find_installer() is None:
                self.lock.release(SPEED_KEY)
                logger.warning("%s missing and neither pip3 nor brew found", TOOL_NAME)
                return self._cached_or_placeholder(None, UNAVAILABLE)
            return self._spawn(JOB_INSTALL, view.SPEED_PLACEHOLDER + " " + INSTALLING)

        return self._spawn(JOB_SPEEDTEST, self._cached_or_placeholder(record))

    def _spawn(self, job: str, shown: str) -> str:
        # The lock now belongs to the job; it releases it when done.
        try:
            self.runner.spawn(job)
        except OSError as e:
            logger.warning("Failed to start %s job: %s", job, e)
            self.lock.release(SPEED_KEY)
            return view.SPEED_PLACEHOLDER
        return shown

    async def run_job(self, job: str) -> bool:
        """Body of a detached background job. Always releases the lock."""
        try:
            if job == JOB_SPEEDTEST:
                ok, _, _ = await self.measure()
                return ok
            if job == JOB_INSTALL:
                ok, _ = await self.install_tool()
                return ok
            logger.error("Unknown speed job %r", job)
            return False
        finally:
            self.lock.release(SPEED_KEY)

    async def measure(self) -> tuple[bool, str, SpeedResult | None]:
        """Run one measurement and cache it on success.

        Returns (success, raw tool output or error, parsed result).
        """
        tool = self.find_speedtest()
        if tool is None:
            return False, f"{TOOL_NAME} not found", None

        fingerprint = await self.identity()
        rc, out, err = await cli.run_cmd(
            [tool, "--simple", "--timeout", str(self.test_timeout)],
            timeout=self.test_timeout + 30,
        )
        if rc != 0 or not out:
            logger.info("Speed test failed (rc=%s): %s", rc, err or out)
            return False, err or out, None

        result = parse_speedtest_output(out)
        if result is None:
            logger.info("Speed test output not recognised: %s", out[:200])
            return False, out, None

        self.store.write(
            SPEED_KEY,
            CacheRecord(
                written_at=self.clock(), fingerprint=fingerprint, payload=result.display()
            ),
        )
        return True, out, result

    async def install_tool(self) -> tuple[bool, str]:
        cmd = find_installer()
        if cmd is None:
            return False, "neither pip3 nor brew found"
        logger.info("Installing %s via %s", TOOL_NAME, cmd[0])
        rc, out, err = await cli.run_cmd(cmd, timeout=_INSTALL_TIMEOUT_S)
        if rc != 0:
            logger.warning("Installing %s failed: %s", TOOL_NAME, err or out)
            return False, err or out
        return self.find_speedtest() is not None, out

    async def force_check(self) -> tuple[int, list[str]]:
        """Run a measurement now, ignoring cache and lock.

        Returns (exit code, lines to show the user).
        """
        lines: list[str] = []
        self.store.clear(SPEED_KEY)
        self.lock.release(SPEED_KEY)

        if self.find_speedtest() is None:
            cmd = find_installer()
            if cmd is None:
                lines += [
                    f"Error: {TOOL_NAME} not found and neither pip3 nor brew is available.",
                    f"Install it manually: pip3 install {TOOL_NAME}",
                ]
                return 1, lines
            lines.append(f"{TOOL_NAME} not found. Installing via {cmd[0]}...")
            ok, detail = await self.install_tool()
            if not ok:
                lines.append(f"Error: Failed to install {TOOL_NAME}")
                if detail:
                    lines.append(f"Error details: {detail}")
                return 1, lines

        self.lock.try_acquire(SPEED_KEY, self.lock_timeout)
        try:
            lines += ["", "Testing internet speed..."]
            ok, detail, result = await self.measure()
        finally:
            self.lock.release(SPEED_KEY)

        if not ok or result is None:
            lines += ["", "Error: Speed test failed"]
            if detail:
                lines.append(f"Error details: {detail}")
            return 1, lines

        lines += [
            "",
            "Speed test results:",
            "====================",
            detail,
            "",
            "Results cached for status line display.",
            f"Status line will show: {result.display()}",
        ]
        return 0, lines
