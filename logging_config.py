"""
Logging Configuration

Centralized logging configuration for the orbit propagator.
Library modules only create loggers; handlers are installed here.

Usage:
    from logging_config import get_logger, configure_logging

    configure_logging(logging.DEBUG)
    logger = get_logger(__name__)
    logger.info("Trajectory computed")

Environment variables:
    ORBIT_LOG_LEVEL    DEBUG | INFO | WARNING | ERROR (default: INFO)
"""

import logging
import os
import sys
from typing import Optional, Union

# Default logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def level_from_env(default: int = logging.INFO) -> int:
    """
    Read the logging level from ORBIT_LOG_LEVEL.

    Parameters
    ----------
    default : int
        Level used when the variable is unset or not a known level name

    Returns
    -------
    int
        Logging level
    """
    name = os.getenv("ORBIT_LOG_LEVEL", "").strip().upper()
    level = logging.getLevelName(name) if name else default
    return level if isinstance(level, int) else default


def configure_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the entire application.

    Parameters
    ----------
    level : int or str, optional
        Logging level (e.g., logging.DEBUG or "DEBUG"). Defaults to ORBIT_LOG_LEVEL.
    log_file : str, optional
        Path to log file. If None, logs only to console.
    """
    if level is None:
        level = level_from_env()

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Parameters
    ----------
    name : str
        Name of the logger (typically __name__)

    Returns
    -------
    logging.Logger
    """
    return logging.getLogger(name)
