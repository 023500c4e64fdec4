#!/usr/bin/env python
# logging_config.py - Where the tenminmail loggers write

import logging
import os
import sys
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "tenminmail"

LOG_FORMAT = "%(asctime)s - %(name)s - %(funcName)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Set on handlers we add, so a second setup_logging() call can swap them out
_OWNED = "_tenminmail_owned"


def setup_logging(
    level: Optional[str] = None, log_file: Optional[str] = None, console: bool = False
) -> logging.Logger:
    """
    Send the package's log records to the console and/or a file.

    Only the ``tenminmail`` logger is configured; the application's root
    logger is left alone and records still propagate to it. Calling this
    again replaces the handlers added by the previous call.

    Args:
        level: Level name; defaults to TENMINMAIL_LOG_LEVEL, then WARNING
        log_file: Append records to this file, creating parent directories
        console: Also write records to stderr

    Returns:
        The package logger
    """
    level_name = (level or os.getenv("TENMINMAIL_LOG_LEVEL") or "WARNING").upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(log_level)

    for handler in list(package_logger.handlers):
        if getattr(handler, _OWNED, False):
            package_logger.removeHandler(handler)
            handler.close()

    handlers = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        setattr(handler, _OWNED, True)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    # aiohttp reports every dropped connection below WARNING
    logging.getLogger("aiohttp").setLevel(logging.WARNING)

    package_logger.debug(f"Logging at {level_name}, file: {log_file or 'none'}")
    return package_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
