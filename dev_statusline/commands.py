"""Command registry (single source of truth for usage text + wiring)."""

from __future__ import annotations

from .models.command_spec import CommandSpec

STATUS_COMMAND = "status"

COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec(
        STATUS_COMMAND,
        "Status",
        "dev-statusline < input.json",
        "print the status line for the JSON read from stdin",
        "cmd_status",
    ),
    CommandSpec(
        "force-speedtest",
        "Speed",
        "dev-statusline force-speedtest",
        "run a speed test now and cache the result",
        "cmd_force_speedtest",
        aliases=("speedtest",),
    ),
    CommandSpec(
        "speed-check",
        "Speed",
        "dev-statusline speed-check [text...]",
        "run a speed test if the text (or stdin) asks for one",
        "cmd_speed_check",
    ),
    CommandSpec(
        "worker",
        "Internal",
        "dev-statusline worker <job>",
        "run a background job (used by the status line itself)",
        "cmd_worker",
        hidden=True,
    ),
)

# Phrases that count as asking for a speed test (case-insensitive substrings)
SPEED_TEST_PHRASES: tuple[str, ...] = (
    "run speed test",
    "speed test",
    "check speed",
    "test internet speed",
    "internet speed test",
    "test my speed",
    "check internet speed",
    "run speedtest",
    "speedtest please",
    "test speed",
    "speed check",
    "check my speed",
    "what's my speed",
    "how fast is my internet",
)


def find_command(name: str) -> CommandSpec | None:
    for spec in COMMANDS:
        if name == spec.name or name in spec.aliases:
            return spec
    return None


def is_speed_request(text: str) -> bool:
    lowered = (text or "").lower()
    return any(phrase in lowered for phrase in SPEED_TEST_PHRASES)


def usage() -> str:
    lines = ["Usage:"]
    group = None
    for spec in COMMANDS:
        if spec.hidden:
            continue
        if spec.group != group:
            group = spec.group
            lines.append(f"{group}:")
        lines.append(f"  {spec.usage}")
        lines.append(f"      {spec.description}")
    return "\n".join(lines)
