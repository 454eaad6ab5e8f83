"""
Infrastructure module - logging and progress reporting.
"""

from .logging_config import DailyRotatingFileHandler, setup_logging
from .progress import ProgressEvent, ProgressReporter

__all__ = [
    "DailyRotatingFileHandler",
    "setup_logging",
    "ProgressEvent",
    "ProgressReporter",
]
