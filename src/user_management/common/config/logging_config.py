"""Centralized logging configuration.

All modules log through loguru's ``logger``. Standard-library loggers
(uvicorn, asyncpg, httpx) are routed into loguru so every record ends up on
the same sink with the same format.
"""

import logging
import sys
from enum import Enum
from typing import Optional

from loguru import logger

from .settings import Settings


class LogFormat(str, Enum):
    """Supported output formats."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


FORMATS = {
    LogFormat.SIMPLE: "{time:YYYY-MM-DD HH:mm:ss} - {level} - {message}",
    LogFormat.DETAILED: (
        "{time:YYYY-MM-DD HH:mm:ss} - {name} - {level} - "
        "[{file}:{line}] - {message}"
    ),
}

# Modules that should only log warnings and above
QUIET_MODULES = [
    "httpx",
    "httpcore",
    "asyncio",
]


class InterceptHandler(logging.Handler):
    """Forward standard-library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller that issued the logging call
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _resolve_format(log_format: str) -> Optional[str]:
    try:
        fmt = LogFormat(log_format.lower())
    except ValueError:
        fmt = LogFormat.SIMPLE
    return FORMATS.get(fmt)


def configure_logging(settings: Settings) -> None:
    """Configure loguru and stdlib logging from settings.

    Args:
        settings: Application settings providing ``log_level`` and ``log_format``
    """
    level = settings.log_level.upper()
    fmt = _resolve_format(settings.log_format)

    logger.remove()
    if fmt is None:
        logger.add(sys.stdout, level=level, serialize=True)
    else:
        logger.add(sys.stdout, level=level, format=fmt)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "asyncpg"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    for module in QUIET_MODULES:
        logging.getLogger(module).setLevel(logging.WARNING)

    logger.debug(f"Logging configured (level={level}, format={settings.log_format})")
