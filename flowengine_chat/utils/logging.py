"""
Logging configuration for the package
"""

import logging
import sys
from typing import Union

def setup_logger(name: str = "flowengine_chat", level: int = logging.INFO) -> logging.Logger:
    """Configure and return a logger instance.

    Args:
        name: Name of the logger
        level: Logging level

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(level)

    return logger

def setup_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """Configure the package logger from a level name or number"""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger = setup_logger(level=level)
    logger.setLevel(level)
    return logger

# Create default logger instance
logger = setup_logger()
