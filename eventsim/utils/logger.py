"""Logging setup shared by all simulation components."""

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ROOT_LOGGER_NAME = "eventsim"


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Create (or fetch) a logger under the package namespace.

    Args:
        name: Logger name, usually the class name of the caller
        level: Optional level name ('DEBUG', 'INFO', ...)

    Returns:
        Configured logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False

    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    if level is not None:
        logger.setLevel(level.upper())

    return logger

