"""Central logging configuration using loguru."""

from __future__ import annotations

import logging
import os
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Route stdlib ``logging`` records (ours, uvicorn's, SQLAlchemy's) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def init_logging():
    """Configure the loguru sink.

    The log level is controlled by the ``ECONTRACT_DEBUG`` environment
    variable.
    """
    debug = os.getenv("ECONTRACT_DEBUG") == "1"
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO", backtrace=True, diagnose=debug)
    logging.basicConfig(handlers=[InterceptHandler()], level=logging.DEBUG if debug else logging.INFO, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [InterceptHandler()]
    return logger


__all__ = ["InterceptHandler", "init_logging", "logger"]
