"""
Logging for the media extractor.

All pipeline modules log under the "media_extractor" logger. Output goes to
stderr so the CLI can keep stdout for JSON. MEDIA_EXTRACTOR_LOG_LEVEL
("DEBUG", "WARNING", ...) sets the initial level.
"""

import logging
import os
import sys
from typing import Optional, Union

ROOT_LOGGER_NAME = "media_extractor"
LOG_LEVEL_ENV = "MEDIA_EXTRACTOR_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        # Unknown names come back as "Level X"
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logger(
    level: Union[int, str, None] = None,
    log_file: Optional[str] = None,
    name: str = ROOT_LOGGER_NAME,
) -> logging.Logger:
    """
    Configure the package logger.

    The first call installs a stderr handler (plus a file handler when
    ``log_file`` is given). Later calls change the level of the existing
    handlers and add a file handler if one was not installed yet.

    Args:
        level: Level number or name; defaults to MEDIA_EXTRACTOR_LOG_LEVEL, then INFO
        log_file: Optional path that also receives every record
        name: Logger name

    Returns:
        The configured logger
    """
    level = _resolve_level(level)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    has_file = any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    if log_file and not has_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(level)
    return logger


logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """Child logger such as "media_extractor.merger"; records reach the package handlers."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}")
