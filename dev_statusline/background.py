"""Background jobs (fire-and-forget, outliving the status line process)."""
from __future__ import annotations

import logging
import subprocess
import sys
from typing import Protocol

logger = logging.getLogger(__name__)

WORKER_MODULE = "dev_statusline.main"


class BackgroundRunner(Protocol):
    def spawn(self, job: str) -> None:
        """Start ``job`` without waiting for it. Raises OSError on failure."""
        ...


class DetachedProcessRunner:
    """Run jobs in a new session so they survive the invoking process.

    The child is ``python -m dev_statusline.main worker <job>`` with all
    standard streams on /dev/null; nothing is awaited.
    """

    def __init__(self, python: str | None = None) -> None:
        self.python = python or sys.executable

    def command_for(self, job: str) -> list[str]:
        return [self.python, "-m", WORKER_MODULE, "worker", job]

    def spawn(self, job: str) -> None:
        cmd = self.command_for(job)
        subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            close_fds=True,
        )
        logger.info("Spawned background job %s", job)
