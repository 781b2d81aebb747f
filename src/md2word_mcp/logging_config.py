"""Structured logging configuration for md2word-mcp.

Provides JSON-formatted structured logging using structlog for production observability.
All logs are output to stderr with ISO timestamps, log levels, and contextual information.
Uvicorn's own loggers are routed through the same handler so access logs share the format.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog with JSON rendering for production use.

    Sets up structlog processors for:
    - ISO timestamp formatting
    - Log level addition
    - JSON rendering

    Also configures stdlib logging to route through structlog.

    Args:
        level: Log level name (e.g. "DEBUG"). Defaults to the LOG_LEVEL setting.
    """
    level_name = (level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging to also use structlog
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
    )
    logging.getLogger().setLevel(numeric_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(numeric_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance bound with the module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        A structlog BoundLogger instance with module context
    """
    return structlog.get_logger(name)


# Configure on module import
configure_logging()
