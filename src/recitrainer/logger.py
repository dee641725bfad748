"""Logging setup for the interactive shell."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s:%(levelname)s:%(name)s: %(message)s"


def setup_logging(log_file: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    """Configure the package logger.

    Warnings go to stderr so they do not interleave with practice output;
    everything at `level` and above goes to a rotating file when one is set.
    """
    log_formatter = logging.Formatter(LOG_FORMAT)
    package_logger = logging.getLogger("recitrainer")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=2, encoding="utf-8")
        file_handler.setFormatter(log_formatter)
        file_handler.setLevel(level)
        package_logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(log_formatter)
    stream_handler.setLevel(logging.WARNING)
    package_logger.addHandler(stream_handler)
    return package_logger
