"""
Logging configuration using loguru.

Every module logs through ``from loguru import logger``; entry text is never
logged, only days, ids and field names. Call setup_logging() once at start-up
to pick the level and an optional rotating log file.
"""

import os
import sys

from loguru import logger

_CONSOLE_FORMAT = "<level>[{level.name}]</level> {message}"
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"
_DEFAULT_LOG_NAME = "tabby.log"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Replace loguru's default sink with a stderr sink and an optional file sink.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Path to log file. If None, only logs to stderr.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT)

    if log_file:
        logger.add(log_file, level=level, format=_FILE_FORMAT, rotation=rotation, retention=retention)


def setup_logging_from_config(config) -> None:
    """Configure logging from the ``logging.*`` section of a Config.

    ``logging.file: true`` writes ``tabby.log`` inside ``paths.log_dir``;
    a string is used as the file path.
    """
    log_file = config.get("logging.file")
    if log_file is True:
        log_file = os.path.join(os.path.expanduser(config.get("paths.log_dir")), _DEFAULT_LOG_NAME)
    setup_logging(level=str(config.get("logging.level", "WARNING")), log_file=log_file or None)
