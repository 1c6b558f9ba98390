"""Command handlers.

Each handler takes a `CommandContext` and returns the process exit status.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import TextIO

from . import commands, statusline
from .services import Services

logger = logging.getLogger(__name__)


@dataclass
class CommandContext:
    services: Services
    args: list[str] = field(default_factory=list)
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)

    def echo(self, *lines: str) -> None:
        for line in lines:
            self.stdout.write(line + "\n")
        self.stdout.flush()


async def cmd_status(ctx: CommandContext) -> int:
    status = statusline.parse_input(ctx.stdin.read())
    text = await statusline.compose(status, ctx.services)
    ctx.stdout.write(text)
    ctx.stdout.flush()
    return 0


async def cmd_force_speedtest(ctx: CommandContext) -> int:
    ctx.echo("Running fresh speed test...", "This may take 30-60 seconds...")
    rc, lines = await ctx.services.speed.force_check()
    ctx.echo(*lines)
    return rc


def _read_request(ctx: CommandContext) -> str:
    if ctx.args:
        return " ".join(ctx.args)
    try:
        if not ctx.stdin.isatty():
            return ctx.stdin.read()
    except (OSError, ValueError):
        logger.debug("stdin unavailable for speed-check", exc_info=True)
    return ""


async def cmd_speed_check(ctx: CommandContext) -> int:
    request = _read_request(ctx).strip()
    if not request:
        return await cmd_force_speedtest(ctx)
    if commands.is_speed_request(request):
        ctx.echo(f"Detected speed test request: '{request}'")
        return await cmd_force_speedtest(ctx)
    ctx.echo(
        f"No speed test pattern detected in: '{request}'",
        "Try phrases like 'run speed test', 'check my speed', or 'test internet speed'",
    )
    return 1


async def cmd_worker(ctx: CommandContext) -> int:
    if not ctx.args:
        ctx.stderr.write("worker: missing job name\n")
        return 2
    ok = await ctx.services.speed.run_job(ctx.args[0])
    return 0 if ok else 1
