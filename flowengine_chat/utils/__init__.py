"""
Utility functions and helpers
"""

from flowengine_chat.utils.callbacks import LoggingCallback, MetricsCallback, NodeCallback
from flowengine_chat.utils.logging import setup_logger, setup_logging

__all__ = [
    "LoggingCallback",
    "MetricsCallback",
    "NodeCallback",
    "setup_logger",
    "setup_logging"
]
