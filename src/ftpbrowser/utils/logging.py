"""Application logging with credential redaction.

Everything under the "ftpbrowser" logger passes through
PIIRedactingFormatter, so a password that slips into a message (an FTP
PASS line at debug level, a URL with user info) is masked before it is
written to the console or the log file.
"""

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "ftpbrowser"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log file rotation
MAX_LOG_BYTES = 1024 * 1024
LOG_BACKUPS = 3

# (pattern, replacement) applied in order
PII_PATTERNS = [
    (re.compile(r"((?:password|passwd)[\"\s:=]+)[^\s,}\]]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(PASS\s+)\S+"), r"\1[REDACTED]"),
    (re.compile(r"ftps?://[^:/\s]+:[^@\s]+@"), "ftp://[REDACTED]@"),
    # Keep the network part of IPv4 addresses only
    (re.compile(r"(\d+\.\d+\.)\d+\.\d+"), r"\1*.*"),
]

# Event sink level names
LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def redact(message: str) -> str:
    for pattern, replacement in PII_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


class PIIRedactingFormatter(logging.Formatter):
    """Formatter that masks credentials in the final formatted line."""

    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record))


def _add_handler(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(PIIRedactingFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """
    Route the application logger to stdout and/or a rotating file.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        level: Threshold for the logger and its handlers
        log_file: File to append to, its directory is created if needed
        console: Also write to stdout

    Returns:
        The "ftpbrowser" logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        _add_handler(logger, logging.StreamHandler(sys.stdout), level)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        _add_handler(
            logger,
            RotatingFileHandler(
                log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
            ),
            level
        )

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    return logging.getLogger(name)


def level_for(name: str) -> int:
    """Logging level for an event sink level name, INFO when unknown."""
    return LEVELS.get(name.lower(), logging.INFO)
