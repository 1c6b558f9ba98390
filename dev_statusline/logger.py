"""Logging helpers for dev_statusline

stdout carries the status line itself, so records go to stderr (or to
``STATUSLINE_LOG_FILE`` when set, which is the only way to see output from
detached workers).
"""
import logging
import os


def setup_logging() -> None:
    level_name = os.environ.get("LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)

    root = logging.getLogger()
    if not root.handlers:
        log_file = os.environ.get("STATUSLINE_LOG_FILE")
        if log_file:
            handler: logging.Handler = logging.FileHandler(log_file)
        else:
            handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(level)

    # Suppress verbose HTTP connection logs from requests
    logging.getLogger("urllib3").setLevel(logging.WARNING)


__all__ = ["setup_logging"]
