"""
Logging utility
Application-wide console logging setup
"""
import logging
import os
import sys
from typing import Optional


def _default_level() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def setup_logger(name: str = __name__, level: Optional[int] = None) -> logging.Logger:
    """
    Configure and return a logger

    Args:
        name: logger name
        level: logging level (defaults to LOG_LEVEL from the environment)

    Returns:
        Configured Logger instance
    """
    if level is None:
        level = _default_level()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated setup
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    formatter = logging.Formatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    return logger
