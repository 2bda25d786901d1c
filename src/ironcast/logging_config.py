# Copyright (c) Syntropy Systems
"""Logging setup for the ironcast command line."""
from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVEL_ENV = "IRONCAST_LOG_LEVEL"


def resolve_level(level: str | int | None, fallback: str = DEFAULT_LOG_LEVEL) -> int:
    """Turn a level name or number into a logging level.

    An unset level falls back to IRONCAST_LOG_LEVEL, then to fallback.
    Unknown names resolve to INFO.
    """
    if isinstance(level, int):
        return level
    candidate = (level or os.getenv(LOG_LEVEL_ENV) or fallback).upper()
    resolved = logging.getLevelName(candidate)
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def configure_logging(
    level: str | int | None = None,
    *,
    fallback: str = DEFAULT_LOG_LEVEL,
    force: bool = False,
) -> None:
    """Send log records to stderr through rich."""
    root = logging.getLogger()
    resolved_level = resolve_level(level, fallback)
    root.setLevel(resolved_level)

    if root.handlers and not force:
        for handler in root.handlers:
            handler.setLevel(resolved_level)
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        log_time_format="[%Y-%m-%dT%H:%M:%S]",
    )
    handler.setLevel(resolved_level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.handlers.clear()
    root.addHandler(handler)
