"""
Logging setup for collation runs.

One file per calendar day under the log directory, named
email_collation_<YYYYMMDD>_<HHMMSS>.log where HHMMSS is the process start.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

LOGGER_NAME = "email_collation"
LOG_FILE_PREFIX = "email_collation"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_PROCESS_START_TIME = datetime.now().strftime("%H%M%S")


class DailyRotatingFileHandler(logging.FileHandler):
    """
    File handler that switches to a new file when the date changes.

    All files written by one process share the start-time suffix, so a
    run spanning midnight is easy to follow across files.
    """

    def __init__(self, log_dir: str = "logs", now: Callable[[], datetime] = datetime.now):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._now = now
        self._day = self._today()
        super().__init__(self.path_for(self._day), mode='a', encoding='utf-8')

    def _today(self) -> str:
        return self._now().strftime("%Y%m%d")

    def path_for(self, day: str) -> str:
        """Log file path for a YYYYMMDD day stamp."""
        return str(self.log_dir / f"{LOG_FILE_PREFIX}_{day}_{_PROCESS_START_TIME}.log")

    def emit(self, record: logging.LogRecord) -> None:
        day = self._today()
        if day != self._day:
            self.close()
            self._day = day
            self.baseFilename = self.path_for(day)
            self.stream = self._open()
        super().emit(record)


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = "logs") -> logging.Logger:
    """
    Configure the email_collation logger and return it.

    Logs go to the console, and to daily files under log_dir unless it is
    None. Calling again replaces the previous handlers. Records do not
    propagate to the root logger.

    Args:
        log_level: Level name; unknown names fall back to INFO
        log_dir: Directory for log files, None for console only
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    handlers = [logging.StreamHandler()]
    if log_dir is not None:
        handlers.append(DailyRotatingFileHandler(log_dir=log_dir))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if log_dir is not None:
        logger.info(f"Logging started - level: {log_level}, log file: {handlers[-1].baseFilename}")
    else:
        logger.info(f"Logging started - level: {log_level}")
    return logger
