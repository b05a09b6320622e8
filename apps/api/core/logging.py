"""Structured logging with structlog.

Configures JSON logging for production and colorized console for dev.
Engine modules log through structlog; stdlib loggers (pandas, httpx,
the spreadsheet reader) share the same stream.

Usage:
    import structlog
    logger = structlog.get_logger()
    logger.info("import_complete", added=12, skipped=3)
"""

import logging
import sys
from typing import Optional

import structlog

# Supabase talks HTTP through httpx, which logs every request at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Python log level string (DEBUG, INFO, WARNING, ERROR).
        json_output: If True, use JSON renderer (production). If False,
                     use colorized console renderer (development).
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request_context(request_id: str, household_id: Optional[str] = None) -> None:
    """Attach request-scoped fields to every log line emitted while handling it."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    if household_id:
        structlog.contextvars.bind_contextvars(household_id=household_id)
