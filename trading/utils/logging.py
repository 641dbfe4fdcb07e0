"""Structured logging setup for the trading core."""

import logging
import sys

import structlog
from pythonjsonlogger.json import JsonFormatter

from trading.config import get_settings

# Every module logs under this name via logging.getLogger(__name__)
TRADING_LOGGER = "trading"


def setup_logging(logger_name: str = TRADING_LOGGER) -> logging.Logger:
    """
    Attach a single stdout handler to the trading logger tree.

    Only the named logger is configured; the root logger and any handlers
    an embedding application installed are left alone.

    Returns:
        The configured logger
    """
    settings = get_settings()

    log_level = getattr(logging, settings.log_level)
    trading_logger = logging.getLogger(logger_name)
    trading_logger.setLevel(log_level)
    trading_logger.propagate = False
    trading_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)

    if settings.log_format == "json":
        formatter = JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
            rename_fields={"levelname": "level", "name": "logger"},
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    trading_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            (
                structlog.processors.JSONRenderer()
                if settings.log_format == "json"
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    trading_logger.info(
        "Logging configured: level=%s, format=%s", settings.log_level, settings.log_format
    )
    return trading_logger
