"""Logging utilities for the rubric assessor."""

import logging
import sys
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# HTTP client libraries log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "anthropic")


def resolve_level(level: int | str) -> int:
    """Turn a level name such as ``"debug"`` into its numeric value.

    Args:
        level: Numeric level or level name

    Returns:
        Numeric logging level

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level

    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    level: int | str = logging.INFO,
    log_file: Path | None = None,
    format_string: str | None = None,
) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (e.g., logging.INFO or "debug")
        log_file: Optional path to log file
        format_string: Custom format string for log messages
    """
    numeric_level = resolve_level(level)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=numeric_level,
        format=format_string or DEFAULT_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically ``__name__``)."""
    return logging.getLogger(name)
