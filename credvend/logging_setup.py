"""Structured logging configuration.

Human-friendly console output in development, JSON in production.
"""

import logging
from typing import Optional

import structlog


def configure_logging(log_level: str = "INFO", json_logs: Optional[bool] = None, app_env: str = "development") -> None:
    """Configure stdlib logging and structlog.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Force JSON rendering on or off (default: on when app_env is production)
        app_env: Application environment name
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level)

    if json_logs is None:
        json_logs = app_env.lower() == "production"

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
