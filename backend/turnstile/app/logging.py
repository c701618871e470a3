"""Logging configuration helpers for the Turnstile gateway."""
from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def _resolve_log_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return logging.INFO


def setup_logging(*, level: str | int | None = None) -> None:
    """Configure stdlib logging and structlog to emit JSON lines on stdout."""

    env_level = os.getenv("LOG_LEVEL")
    resolved = _resolve_log_level(level or env_level)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=resolved)
    root = logging.getLogger()
    root.setLevel(resolved)
    for handler in root.handlers:
        handler.setLevel(resolved)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.JSONRenderer(),
    ]
    structlog.configure(
        processors=processors,
        context_class=dict,
        cache_logger_on_first_use=True,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(resolved),
    )


def get_logger(name: str | None = None) -> Any:
    return structlog.get_logger(name)


__all__ = ["get_logger", "setup_logging"]
