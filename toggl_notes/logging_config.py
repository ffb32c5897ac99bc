"""
Logging configuration for toggl_notes.

Call configure_logging() once at startup. Library modules only import
``logger`` from loguru and never add sinks themselves.
"""

import os
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .config import get_cli_setting, get_log_file_path


CONSOLE_FORMAT = "<level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def resolve_log_level(level: Optional[str] = None) -> str:
    """Explicit level, then TOGGL_NOTES_LOG_LEVEL, then the config file."""
    if level:
        return level.upper()
    env_level = os.environ.get("TOGGL_NOTES_LOG_LEVEL")
    if env_level:
        return env_level.upper()
    return str(get_cli_setting("logging", "log_level", "INFO")).upper()


def configure_logging(level: Optional[str] = None,
                      log_file: Optional[Union[str, Path]] = None,
                      console: bool = True) -> str:
    """
    Configure loguru sinks.

    Args:
        level: Minimum level for every sink
        log_file: File sink path. When omitted, a file sink is only added if
            ``[logging].log_to_file`` is enabled.
        console: Whether to log to stderr

    Returns:
        The effective log level
    """
    effective_level = resolve_log_level(level)
    logger.remove()  # Remove default handler

    if console:
        logger.add(
            sink=sys.stderr,
            level=effective_level,
            format=CONSOLE_FORMAT,
            colorize=True
        )

    if log_file is None and get_cli_setting("logging", "log_to_file", False):
        log_file = get_log_file_path()

    if log_file is not None:
        logger.add(
            sink=str(log_file),
            level=effective_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="7 days"
        )

    logger.debug(f"Logging configured: level={effective_level}, file={log_file}")
    return effective_level
