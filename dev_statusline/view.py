"""View layer for formatting the status line (ANSI terminal text)."""

from __future__ import annotations

from .models.update_report import UpdateReport

RESET = "\033[0m"
RED = "\033[31m"
YELLOW = "\033[33m"
GREY = "\033[90m"

BAR_FILLED = "█"
BAR_EMPTY = "░"
BAR_WIDTH = 20
BAR_WIDTH_HIGH = 16
HIGH_USAGE_PCT = 80

SPEED_PLACEHOLDER = "↓ --Mbps ↑ --Mbps"
WEATHER_FALLBACK = "weather unavailable"


def fmt_speed(download_mbps: float, upload_mbps: float) -> str:
    return f"↓ {round(download_mbps)}Mbps ↑ {round(upload_mbps)}Mbps"


def fmt_age(seconds: float) -> str:
    """Format an age with minute, hour or day resolution.

    Example:
        >>> fmt_age(59)
        '0m'
        >>> fmt_age(7200)
        '2h'
        >>> fmt_age(-90000)
        '1d'
    """
    secs = int(abs(seconds))
    if secs < 3600:
        return f"{secs // 60}m"
    if secs < 86400:
        return f"{secs // 3600}h"
    return f"{secs // 86400}d"


def render_update_report(report: UpdateReport, now: float) -> str:
    """Plain-text update block with its "checked ... ago" annotation."""
    if report.empty:
        return ""
    if report.checked_at is None:
        return report.block
    age = fmt_age(now - report.checked_at)
    if report.rate_limited:
        return f"{report.block} (cached {age} ago, rate limited)"
    return f"{report.block} (checked {age} ago)"


def colorize_update_report(report: UpdateReport, now: float) -> str:
    if report.empty:
        return ""
    if report.checked_at is None:
        return f"{YELLOW}{report.block}{RESET}"
    plain = render_update_report(report, now)
    suffix = plain[len(report.block) :]
    return f"{YELLOW}{report.block}{GREY}{suffix}{RESET}"


def context_bar(used_percentage: float | None) -> str | None:
    """Render the context window usage bar, or None when usage is unknown.

    Usage at or above 80% gets a shorter red bar followed by the percentage.
    """
    if used_percentage is None:
        return None
    percent = int(round(used_percentage))
    high = percent >= HIGH_USAGE_PCT
    width = BAR_WIDTH_HIGH if high else BAR_WIDTH
    filled = max(0, min(width, percent * width // 100))
    bar = BAR_FILLED * filled + BAR_EMPTY * (width - filled)
    if high:
        return f"{RED}[{bar}] {percent}%{RESET}"
    return f"[{bar}]"


def render_status_line(
    branch: str,
    model_id: str,
    version: str,
    speed: str,
    weather: str | None,
    bar: str | None,
    updates: str,
) -> str:
    parts = [f"⎇ {branch}", model_id, f"v{version}", speed]
    if weather:
        parts.append(weather)
    lines = [" | ".join(parts)]
    if bar:
        lines.append(bar)
    if updates:
        lines.append(updates)
    return "\n".join(lines)
