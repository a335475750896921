"""Centralized logging configuration for the Passerelles backend."""

from __future__ import annotations

import logging
from logging import Logger
from pathlib import Path
from typing import Iterable, List


DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_FILE_NAME = "passerelles.log"


def configure_logging(level: int = logging.INFO, *, handlers: Iterable[logging.Handler] | None = None) -> Logger:
    """Attach *handlers* (or a stderr stream handler) to the root logger."""

    logger = logging.getLogger()
    logger.setLevel(level)

    if handlers is None:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        handlers = [stream_handler]

    for handler in handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)

    return logger


def get_log_file_path(data_root: Path) -> Path:
    """Return the server log file, kept next to the JSON documents."""

    return data_root / LOG_FILE_NAME


def build_server_handlers(data_root: Path) -> List[logging.Handler]:
    """Return the stream and file handlers used by ``run.py serve``."""

    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)
    handlers: List[logging.Handler] = []

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    log_file = get_log_file_path(data_root)
    try:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as error:
        logging.getLogger(__name__).warning("Cannot open log file %s: %s", log_file, error)
    else:
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    return handlers


__all__ = [
    "DEFAULT_LOG_FORMAT",
    "build_server_handlers",
    "configure_logging",
    "get_log_file_path",
]
