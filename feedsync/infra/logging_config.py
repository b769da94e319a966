"""
Logging configuration module.

One log file per calendar day and command:
logs/<prefix>_YYYYMMDD.log, e.g. logs/feedsync_generate_20260301.log
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

LOGGER_NAME = "feedsync"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class DailyRotatingFileHandler(logging.FileHandler):
    """
    File handler that switches files when the record date changes.

    The date comes from the record's creation time, so a record logged
    just before midnight lands in that day's file.
    """

    def __init__(self, log_dir: str = "logs", prefix: str = LOGGER_NAME, encoding: str = "utf-8"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix

        self._current_date = datetime.now().strftime("%Y%m%d")
        super().__init__(self._path_for(self._current_date), mode='a', encoding=encoding)

    def _path_for(self, date_str: str) -> str:
        return str(self.log_dir / f"{self.prefix}_{date_str}.log")

    def emit(self, record: logging.LogRecord) -> None:
        record_date = datetime.fromtimestamp(record.created).strftime("%Y%m%d")

        if record_date != self._current_date:
            self.close()
            self.baseFilename = self._path_for(record_date)
            self._current_date = record_date
            self.stream = self._open()

        super().emit(record)


def setup_logging(
    log_level: str = "INFO",
    log_dir: str | Path = "logs",
    prefix: str = LOGGER_NAME,
    context: Optional[dict] = None,
) -> logging.Logger:
    """
    Configure the feedsync logger and return it.

    All modules log through logging.getLogger(__name__) below the
    'feedsync' namespace, so they share these handlers. Calling it again
    replaces the handlers.

    Args:
        log_level: Logging level name; unknown names fall back to INFO
        log_dir: Directory for daily log files
        prefix: Log file name prefix, usually feedsync_<command>
        context: Settings worth recording at the top of the log
            (command, feed path, batch size)

    Returns:
        logging.Logger: Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.propagate = False

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    file_handler = DailyRotatingFileHandler(log_dir=str(log_dir), prefix=prefix)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.info(f"Logging started - level: {logging.getLevelName(numeric_level)}, file: {file_handler.baseFilename}")
    for key, value in (context or {}).items():
        logger.info(f"  {key}: {value}")

    return logger
