"""Logging configuration using loguru.

The package logs through loguru but stays silent until the host application
calls :func:`setup_logging`.  Records from the ``websockets`` library, which
uses stdlib logging, are routed into the same sink.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

from loguru import logger

from fhircast.settings import get_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# stdlib loggers forwarded into loguru, and the floor applied to them
FORWARDED_LOGGERS = {
    "websockets": logging.WARNING,
    "websockets.client": logging.WARNING,
}


class _InterceptHandler(logging.Handler):
    """Re-emit stdlib records through loguru at the original call site."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None, sink: TextIO | Any = None) -> int:
    """Install a single loguru sink and turn on ``fhircast`` logs.

    *level* defaults to ``FHIRCAST_LOG_LEVEL``; *sink* defaults to stderr.
    Returns the loguru handler id so callers can remove the sink later.
    """
    level = (level or get_settings().log_level).upper()

    logger.remove()
    handler_id = logger.add(sink or sys.stderr, level=level, format=LOG_FORMAT)
    logger.enable("fhircast")

    intercept = _InterceptHandler()
    for name, floor in FORWARDED_LOGGERS.items():
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [intercept]
        stdlib_logger.setLevel(floor)
        stdlib_logger.propagate = False

    logger.info("fhircast logging initialised (level={})", level)
    return handler_id
