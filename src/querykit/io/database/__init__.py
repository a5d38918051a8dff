"""
Timed, logged query execution on top of SQLAlchemy connections.
"""

from .driver import Driver, SQLAlchemyDriver
from .executor import DBX, QueryExecutorMixin, Tx
from .models import (
    LEVEL_DEBUG,
    LEVEL_ERROR,
    LEVEL_SLOW_QUERY,
    LogChannel,
    LoggerConfigError,
    QueryLogError,
    QueryLogRecord,
)
from .query_logger import DEFAULT_SLOW_LOG_MIN, QueryLogger, QueryNormalizer

__all__ = [
    "DBX",
    "DEFAULT_SLOW_LOG_MIN",
    "Driver",
    "LEVEL_DEBUG",
    "LEVEL_ERROR",
    "LEVEL_SLOW_QUERY",
    "LogChannel",
    "LoggerConfigError",
    "QueryExecutorMixin",
    "QueryLogError",
    "QueryLogRecord",
    "QueryLogger",
    "QueryNormalizer",
    "SQLAlchemyDriver",
    "Tx",
]
