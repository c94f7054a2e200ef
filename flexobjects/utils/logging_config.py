"""Logging setup shared by the CLI and the web app.

``LOG_LEVEL`` overrides the level passed in; ``LOG_TO_FILE=true`` enables
the rotating file log, written to ``LOG_FILE`` when set.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that only matter when something is wrong
_QUIET_LOGGERS = ("werkzeug", "jinja2", "blinker")


class ColorFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # Other handlers share the record; restore the plain level name
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(level: str = "INFO", log_file: str | None = None, colored: bool = True) -> None:
    """Configure the root logger.

    Console output goes to stderr so command output on stdout stays clean.

    Args:
        level: Level name used unless ``LOG_LEVEL`` is set.
        log_file: Default path for the file log.
        colored: Color level names when stderr is a terminal.
    """
    level = os.getenv("LOG_LEVEL", level)
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    console_handler = logging.StreamHandler(sys.stderr)
    if colored and sys.stderr.isatty():
        console_handler.setFormatter(ColorFormatter(_FORMAT, _DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(_FORMAT, _DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if os.getenv("LOG_TO_FILE", "false").lower() == "true":
        log_file = os.getenv("LOG_FILE", log_file or "logs/flexobjects.log")
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(logging.Formatter(_FORMAT, _DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
