"""Subprocess helpers shared by the probes and providers.

Every external tool (git, speedtest-cli, route, airport ...) goes through
`run_cmd`, which never raises: failures come back as exit codes.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import site
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


async def run_cmd(
    cmd: list[str], timeout: float = 10, cwd: str | None = None
) -> Tuple[int, str, str]:
    """Run a command asynchronously and return (returncode, stdout, stderr).

    Args:
        cmd: Program and arguments, e.g. ["git", "branch", "--show-current"]
        timeout: Seconds to wait before killing the process
        cwd: Directory to run in, or None for the current one

    Returns:
        Tuple of (return_code, stdout, stderr) where:
        - return_code: 0 for success, 124 for timeout, 127 for not found, 1 for other errors
        - stdout: Command standard output, decoded and stripped
        - stderr: Command standard error, decoded and stripped

    Example:
        >>> rc, branch, _ = await run_cmd(["git", "branch", "--show-current"], timeout=2)
        >>> branch if rc == 0 else "no-git"
        'main'
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
            return (
                process.returncode or 0,
                stdout.decode(errors="replace").strip(),
                stderr.decode(errors="replace").strip(),
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            logger.warning("Command timed out after %ss: %s", timeout, " ".join(cmd))
            return 124, "", "timeout"
    except FileNotFoundError:
        logger.debug("Command not found: %s", cmd[0] if cmd else "")
        return 127, "", "not found"
    except Exception as e:
        logger.debug(f"run_cmd failed: {e}")
        return 1, "", str(e)


def user_bin_dir() -> str | None:
    """Return the directory where ``pip install --user`` puts console scripts."""
    base = site.getuserbase()
    if not base:
        return None
    return os.path.join(base, "bin")


def find_tool(name: str, explicit: str | None = None) -> Optional[str]:
    """Return a path to the ``name`` executable or None if not found.

    Searches an explicitly configured path first, then PATH, then the Python
    user-base bin directory, which is often missing from PATH right after a
    ``pip3 install``.
    """
    if explicit and os.access(explicit, os.X_OK):
        return explicit
    which = shutil.which(name)
    if which:
        return which
    bin_dir = user_bin_dir()
    if bin_dir:
        candidate = os.path.join(bin_dir, name)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return None
