"""
Driver capability consumed by the query executor.

The executor only needs six operations from a backend: multi-row query,
single-row query, select, exec, named exec and placeholder rebinding.
``SQLAlchemyDriver`` provides them on top of a SQLAlchemy ``Connection``;
the caller owns the connection and its transaction lifecycle.
"""

from collections.abc import Mapping
from typing import Any, List, Optional, Protocol, Sequence

from sqlalchemy import Connection, CursorResult, Row, RowMapping, RootTransaction, text

from querykit.sql.core.describe import as_named_args, is_record
from querykit.sql.dialects.paramstyle import rebind


class Driver(Protocol):
    """Protocol for execution backends."""

    def query(self, query: str, args: Sequence[Any]) -> Any: ...
    def query_row(self, query: str, args: Sequence[Any]) -> Any: ...
    def select(self, query: str, args: Sequence[Any]) -> List[Any]: ...
    def exec(self, query: str, args: Sequence[Any]) -> Any: ...
    def named_exec(self, query: str, arg: Any) -> Any: ...
    def rebind(self, query: str) -> str: ...


class SQLAlchemyDriver:
    """
    Driver executing raw SQL on a SQLAlchemy connection.

    Positional queries use ``?`` placeholders, rebound to the DB-API
    paramstyle of the connection's dialect and run with ``exec_driver_sql``.
    Named queries use ``:name`` placeholders and run through ``text()``.

    Example:
        >>> from sqlalchemy import create_engine
        >>> engine = create_engine("sqlite://")
        >>> with engine.connect() as conn:
        ...     driver = SQLAlchemyDriver(conn)
        ...     driver.query_row("select ? + 1", [1])
        (2,)
    """

    def __init__(self, connection: Connection) -> None:
        """
        Args:
            connection: SQLAlchemy Connection. Caller owns transaction lifecycle.
        """
        self.connection = connection

    @property
    def paramstyle(self) -> str:
        return self.connection.dialect.paramstyle

    def rebind(self, query: str) -> str:
        return rebind(query, self.paramstyle)

    def _execute(self, query: str, args: Sequence[Any]) -> CursorResult:
        return self.connection.exec_driver_sql(query, tuple(args) if args else None)

    def query(self, query: str, args: Sequence[Any]) -> CursorResult:
        return self._execute(query, args)

    def query_row(self, query: str, args: Sequence[Any]) -> Optional[Row]:
        return self._execute(query, args).first()

    def select(self, query: str, args: Sequence[Any]) -> List[RowMapping]:
        return list(self._execute(query, args).mappings().all())

    def exec(self, query: str, args: Sequence[Any]) -> CursorResult:
        return self._execute(query, args)

    def named_exec(self, query: str, arg: Any) -> CursorResult:
        """
        Execute a named query with a mapping, a record, or a sequence of
        those (executemany).
        """
        if isinstance(arg, Mapping) or is_record(arg):
            params: Any = as_named_args(arg)
        else:
            params = [as_named_args(item) for item in arg]
        return self.connection.execute(text(query), params)

    def begin(self) -> RootTransaction:
        return self.connection.begin()
