"""Infrastructure - Database and logging."""

from inventory.infra.database import DatabaseSession, close_db_engine, get_db_session
from inventory.infra.logging import get_logger, setup_logging

__all__ = [
    "get_db_session",
    "DatabaseSession",
    "close_db_engine",
    "setup_logging",
    "get_logger",
]
