"""Loguru logging configuration.

Logs go to stderr as text, or as one JSON object per line when ``json_logs``
is set. A rotating file sink is added when a ``log_dir`` is given. Chatty
third-party loggers that use the standard library are capped at WARNING.
"""

import logging
import sys
from pathlib import Path

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"
LOG_FILE_NAME = "dataset-export.log"

_QUIET_LIBRARIES = ("aiokafka", "botocore", "boto3", "s3transfer", "httpx")


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Configure Loguru sinks for the process.

    Args:
        log_level: Minimum log level to emit, case-insensitive.
        log_dir: Optional directory for a log file rotated every 24 hours
            and kept for 7 days.
        json_logs: Emit serialized JSON records on stderr instead of text.
    """
    level = log_level.upper()
    logger.remove()
    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_LOG_FORMAT)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / LOG_FILE_NAME,
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
