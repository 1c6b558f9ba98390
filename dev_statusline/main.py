"""Entrypoint for running the status line from the package.

This module wires up the services, dispatches the command line and runs the
selected handler. Detached background jobs re-enter through here as
``python -m dev_statusline.main worker <job>``.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from . import commands, config, handlers
from .logger import setup_logging
from .services import Services, build_services

logger = logging.getLogger(__name__)


def dispatch(argv: list[str], services: Services | None = None) -> int:
    name = argv[0] if argv else commands.STATUS_COMMAND
    spec = commands.find_command(name)
    if spec is None:
        sys.stderr.write(f"Unknown command: {name}\n{commands.usage()}\n")
        return 2

    ctx = handlers.CommandContext(
        services=services or build_services(), args=list(argv[1:])
    )
    fn = getattr(handlers, spec.handler)
    return asyncio.run(fn(ctx))


def run(argv: list[str] | None = None) -> int:
    setup_logging()
    config.validate_settings()
    args = sys.argv[1:] if argv is None else argv
    logger.debug("Starting dev_statusline %s", " ".join(args) or commands.STATUS_COMMAND)
    return dispatch(args)


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
