"""Logging setup for the unweb CLI and API server."""

import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# aiohttp loggers that share unweb's handlers when serving the API
AIOHTTP_LOGGERS = ("aiohttp.access", "aiohttp.server", "aiohttp.web")


def _configure_logger(
    name: str,
    level: int,
    handlers: list[logging.Handler],
    force: bool,
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Only clear and reconfigure if forced or no handlers exist
    if force or not logger.handlers:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for handler in handlers:
            logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False
    return logger


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Set up logging for unweb and the aiohttp server loggers.

    Log records go to stderr so that converted Markdown written to stdout
    stays clean, and optionally to a file.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for logging output
        format_string: Optional custom format string for log messages
        force: If True, reconfigure even if handlers exist

    Returns:
        The configured ``unweb`` logger
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        # delay: the file is only created once something is logged
        handlers.append(logging.FileHandler(log_file, delay=True))
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)

    for name in AIOHTTP_LOGGERS:
        _configure_logger(name, numeric_level, handlers, force)
    return _configure_logger("unweb", numeric_level, handlers, force)
