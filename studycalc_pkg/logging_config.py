"""Structured logging configuration for StudyCalc.

Log lines go to stderr (and optionally a file) so that stdout carries only
calculator output. With ``json_lines=True`` each record is one JSON object,
which keeps stderr machine-readable next to ``--format json`` output.
"""

import json
import logging
import sys
from datetime import datetime
from typing import Optional

from . import config

ROOT_LOGGER_NAME = "studycalc"


class StructuredFormatter(logging.Formatter):
    """``timestamp [LEVEL] logger: message`` lines, or JSON objects."""

    def __init__(self, json_lines: bool = False):
        super().__init__()
        self.json_lines = json_lines

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat(timespec="milliseconds")
        if self.json_lines:
            entry = {
                "time": timestamp,
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            if record.exc_info:
                entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(entry, ensure_ascii=False)

        line = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_lines: bool = False,
) -> logging.Logger:
    """Configure the ``studycalc`` logger tree.

    Args:
        level: DEBUG, INFO, WARNING or ERROR; defaults to STUDYCALC_LOG_LEVEL
        log_file: Optional file that receives the same records as stderr
        json_lines: Emit one JSON object per record

    Returns:
        The configured root ``studycalc`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, (level or config.LOG_LEVEL).upper(), logging.WARNING))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = StructuredFormatter(json_lines=json_lines)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger of ``studycalc`` for a module (``get_logger("store")``)."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
