"""Status line input dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StatusInput:
    model_id: str = ""
    version: str = ""
    current_dir: str = ""
    context_used_percentage: float | None = None
