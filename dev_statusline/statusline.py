"""Status line composition.

Reads the JSON the development tool pipes in, runs the providers
concurrently and assembles the final text. Provider failures only ever
degrade their own segment.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any

from . import cli, view
from .models.status_input import StatusInput
from .models.update_report import UpdateReport
from .services import Services

logger = logging.getLogger(__name__)

NO_GIT = "no-git"


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def parse_input(text: str) -> StatusInput:
    """Extract the fields used by the status line; missing data stays empty."""
    try:
        data = json.loads(text) if text and text.strip() else {}
    except ValueError:
        logger.warning("Status line input is not valid JSON")
        data = {}

    def _str(value: Any) -> str:
        return "" if value is None else str(value)

    pct = _dig(data, "context_window", "used_percentage")
    try:
        percentage = float(pct) if pct is not None else None
    except (TypeError, ValueError):
        percentage = None

    return StatusInput(
        model_id=_str(_dig(data, "model", "id")),
        version=_str(_dig(data, "version")),
        current_dir=_str(_dig(data, "workspace", "current_dir")),
        context_used_percentage=percentage,
    )


async def git_branch(directory: str) -> str:
    cwd = directory if directory and os.path.isdir(directory) else None
    rc, out, _ = await cli.run_cmd(["git", "branch", "--show-current"], timeout=2, cwd=cwd)
    return out if rc == 0 and out else NO_GIT


async def _weather(services: Services) -> str | None:
    if services.weather is None:
        return None
    return await services.weather.render()


def _or_fallback(result: object, fallback: Any, label: str) -> Any:
    if isinstance(result, BaseException):
        logger.warning("%s provider failed: %r", label, result)
        return fallback
    return result


async def compose(status: StatusInput, services: Services) -> str:
    working_dir = status.current_dir or os.getcwd()
    branch, speed, weather, updates = await asyncio.gather(
        git_branch(working_dir),
        services.speed.render(),
        _weather(services),
        services.updates.render(working_dir),
        return_exceptions=True,
    )
    report = _or_fallback(updates, UpdateReport(), "updates")
    return view.render_status_line(
        branch=_or_fallback(branch, NO_GIT, "git"),
        model_id=status.model_id,
        version=status.version,
        speed=_or_fallback(speed, view.SPEED_PLACEHOLDER, "speed"),
        weather=_or_fallback(weather, view.WEATHER_FALLBACK, "weather"),
        bar=view.context_bar(status.context_used_percentage),
        updates=view.colorize_update_report(report, services.clock()),
    )
