"""
Timed and logged query execution.

``DBX`` wraps a driver (usually a SQLAlchemy connection) and a ``QueryLogger``.
Every operation rebinds the query to the driver's placeholders, times the
driver call and hands the outcome to the logger exactly once, whether the
call succeeded or raised. The driver's result or exception always reaches
the caller unchanged; logging problems are reported to the package logger.

Example:
    >>> from sqlalchemy import create_engine
    >>> engine = create_engine("sqlite://")
    >>> with engine.connect() as conn:
    ...     db = DBX(conn)
    ...     db.exec("create table person (name text, is_alive boolean)")
    ...     db.insert([{"name": "Alpha", "is_alive": True}], "person", ["name", "is_alive"])
    ...     db.select("select name from person")
"""

import time
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Callable, List, Optional, Sequence, TextIO, Tuple, Union

from sqlalchemy import Connection, RootTransaction

from querykit.config import Settings, get_settings
from querykit.sql.core.describe import as_named_args
from querykit.sql.core.parameters import bind_named
from querykit.sql.operations.insert import named_insert
from querykit.utils.logging import get_logger

from .driver import Driver, SQLAlchemyDriver
from .models import LogChannel
from .query_logger import QueryLogger, format_error

logger = get_logger(__name__)


class QueryExecutorMixin:
    """Operations shared by ``DBX`` and ``Tx``; requires ``driver`` and ``query_logger``."""

    driver: Driver
    query_logger: QueryLogger

    def _timed(self, query: str, args: Sequence[Any], call: Callable[[str], Any]) -> Any:
        query = self.driver.rebind(query)

        start = time.perf_counter_ns()
        error: Optional[BaseException] = None
        try:
            return call(query)
        except Exception as e:
            error = e
            raise
        finally:
            self._log_query(query, time.perf_counter_ns() - start, error, args)

    def _log_query(
        self, query: str, exec_time_ns: int, error: Optional[BaseException], args: Sequence[Any]
    ) -> None:
        try:
            self.query_logger.log_query(query, exec_time_ns, error, args)
        except Exception as e:
            # Runs inside _timed's finally: nothing may escape
            logger.warning("query_log.write_failed", error=format_error(e))

    def query(self, query: str, *args: Any) -> Any:
        """Run a query returning rows (a SQLAlchemy ``CursorResult``)."""
        return self._timed(query, args, lambda q: self.driver.query(q, args))

    def query_row(self, query: str, *args: Any) -> Any:
        """Run a query and return its first row, or None."""
        return self._timed(query, args, lambda q: self.driver.query_row(q, args))

    def select(self, query: str, *args: Any, into: Optional[Callable[..., Any]] = None) -> List[Any]:
        """
        Run a query and collect every row.

        Args:
            query: Query using ``?`` placeholders
            *args: Positional arguments
            into: Optional callable building one object per row from the
                row's columns as keyword arguments (e.g. a pydantic model)

        Returns:
            List of row mappings, or of ``into`` results
        """

        def _select(q: str) -> List[Any]:
            rows = self.driver.select(q, args)
            if into is None:
                return rows
            return [into(**dict(row)) for row in rows]

        return self._timed(query, args, _select)

    def exec(self, query: str, *args: Any) -> Any:
        """Run a statement returning no rows (a SQLAlchemy ``CursorResult``)."""
        return self._timed(query, args, lambda q: self.driver.exec(q, args))

    def named_exec(self, query: str, arg: Any) -> Any:
        """Run a ``:name`` statement with a mapping, a record, or a list of them."""
        return self._timed(query, (arg,), lambda q: self.driver.named_exec(q, arg))

    def named_select(
        self, query: str, arg: Any, into: Optional[Callable[..., Any]] = None
    ) -> List[Any]:
        """Bind a ``:name`` query from a mapping or record, then ``select`` it."""
        bound_query, args = bind_named(query, as_named_args(arg))
        return self.select(bound_query, *args, into=into)

    def named_insert(
        self,
        target: Any,
        table: str,
        columns: Sequence[str],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[str, List[Any]]:
        """Build a multi-row INSERT with ``?`` placeholders; see ``named_insert``."""
        return named_insert(target, table, columns, overrides)

    def insert(
        self,
        target: Any,
        table: str,
        columns: Sequence[str],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Build a multi-row INSERT from records and execute it."""
        query, args = named_insert(target, table, columns, overrides)
        return self.exec(query, *args)

    def rebind(self, query: str) -> str:
        return self.driver.rebind(query)

    def skip_log(self) -> None:
        """Do not log the next query run through this handle."""
        self.query_logger.skip_log()


class DBX(QueryExecutorMixin):
    """
    Database handle with timed, multi-channel query logging.

    Attributes:
        driver: Execution backend
        query_logger: Logging configuration of this handle
    """

    def __init__(
        self,
        connection: Union[Connection, Driver],
        query_logger: Optional[QueryLogger] = None,
    ) -> None:
        """
        Args:
            connection: SQLAlchemy Connection, or any object implementing Driver
            query_logger: Logging configuration; built from settings when omitted
        """
        if isinstance(connection, Connection):
            self.driver: Driver = SQLAlchemyDriver(connection)
        else:
            self.driver = connection
        if query_logger is None:
            query_logger = QueryLogger.from_settings(get_settings())
        self.query_logger = query_logger

    @classmethod
    def from_settings(
        cls,
        connection: Union[Connection, Driver],
        settings: Optional[Settings] = None,
        error_sink: Optional[TextIO] = None,
    ) -> "DBX":
        settings = settings or get_settings()
        db = cls(connection, QueryLogger.from_settings(settings, error_sink=error_sink))
        logger.info(
            "database.handle.created",
            slow_query_threshold_ms=settings.SLOW_QUERY_THRESHOLD_MS,
            log_async=settings.LOG_ASYNC,
        )
        return db

    def set_logger(self, channel: LogChannel, sink: Optional[TextIO]) -> None:
        self.query_logger.set_logger(channel, sink)

    def set_slow_log_min(self, min_duration: timedelta) -> None:
        self.query_logger.set_slow_log_min(min_duration)

    def set_logger_async(self, log_async: bool) -> None:
        self.query_logger.set_async(log_async)

    def begin(self) -> "Tx":
        """
        Begin a transaction on the underlying connection.

        The returned handle copies this handle's logging configuration and
        has its own skip flag.
        """
        begin = getattr(self.driver, "begin", None)
        if begin is None:
            raise TypeError(f"{type(self.driver).__name__} does not support transactions")
        return Tx(self.driver, self.query_logger.copy(), begin())

    def close(self) -> None:
        """Flush and stop asynchronous query logging. The connection stays open."""
        self.query_logger.close()


class Tx(QueryExecutorMixin):
    """
    Transaction handle with the same operations as ``DBX``.

    Usable as a context manager: commits on success, rolls back on error.
    """

    def __init__(self, driver: Driver, query_logger: QueryLogger, transaction: RootTransaction) -> None:
        self.driver = driver
        self.query_logger = query_logger
        self.transaction = transaction

    def commit(self) -> None:
        self.transaction.commit()

    def rollback(self) -> None:
        self.transaction.rollback()

    def __enter__(self) -> "Tx":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
