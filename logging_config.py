"""
Logging Configuration

Centralized logging setup for the orbit tracker. Library modules obtain their
logger with ``logging.getLogger(__name__)``; entry points (the Flask service,
scripts) call ``configure_logging`` once at start-up.

Usage:
    from logging_config import configure_logging, get_logger

    configure_logging()
    logger = get_logger(__name__)
    logger.info("TLE cache warmed for %d objects", 14)
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("urllib3", "werkzeug")


def _level_from_env(default: int) -> int:
    name = os.getenv("ORBIT_TRACKER_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


def configure_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the whole application.

    Parameters
    ----------
    level : int
        Logging level used unless ``ORBIT_TRACKER_LOG_LEVEL`` overrides it.
    log_file : str, optional
        Path to a log file. If None, logs only to stdout.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=_level_from_env(level),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``)."""
    return logging.getLogger(name)
