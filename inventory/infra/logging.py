"""Structured logging configuration using structlog.

Every log line carries the request context bound by the HTTP middleware
(`request_id`, `method`, `path`), so the import summary, per-row warnings
and upsert failures of one upload can be correlated.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from inventory.config import settings

# Libraries whose INFO output drowns the application's own events
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "asyncpg", "multipart")


def _renderer(use_json: bool) -> list[Processor]:
    if use_json:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(level: str | None = None, use_json: bool | None = None) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Log level name, defaults to `settings.log_level`
        use_json: Force JSON output; by default JSON is used outside dev
            when `settings.log_json` is set
    """
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if use_json is None:
        use_json = settings.log_json and settings.environment != "dev"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        *_renderer(use_json),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # SQL echo is only useful while debugging queries
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


def bind_request_context(request_id: str, method: str, path: str) -> None:
    """Attach request identifiers to every log line until cleared."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Get a logger, optionally with context already bound.

    Example:
        logger = get_logger(__name__, format="shopify")
        logger.info("Export rendered", exported=12)
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
