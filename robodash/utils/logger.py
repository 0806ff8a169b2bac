"""Logging utilities."""
import logging
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] [%(name)s] - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Union[int, str, None], default: int = logging.INFO) -> int:
    """Accept a logging level as int or name ("DEBUG") and return the int value."""
    if level is None:
        return default
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else default


def setup_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Setup and return a logger with configured handler.

    Args:
        name: Logger name
        level: Logging level; applied even when the logger already exists

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(resolve_level(level))
        logger.propagate = False
    elif level is not None:
        logger.setLevel(resolve_level(level))
    return logger
