"""
querykit: dynamic multi-row INSERT building and timed, multi-channel query logging.

Usage:
    >>> from sqlalchemy import create_engine
    >>> import sys
    >>> from querykit import DBX, LogChannel
    >>> engine = create_engine("sqlite://")
    >>> conn = engine.connect()
    >>> db = DBX(conn)
    >>> db.set_logger(LogChannel.DEBUG, sys.stdout)
"""

from querykit.io.database import (
    DBX,
    Driver,
    LogChannel,
    LoggerConfigError,
    QueryLogError,
    QueryLogger,
    SQLAlchemyDriver,
    Tx,
)
from querykit.sql import (
    Column,
    ColumnDescriber,
    EmptySliceError,
    InsertStatement,
    MissingParamError,
    NilPointerError,
    QueryBuildError,
    QueryKitError,
    QueryOption,
    WrongTypeError,
    build_insert,
    named_insert,
    offset_option,
    page_option,
    returning_all,
    returning_custom,
    returning_id,
    with_options,
)

__version__ = "0.1.0"

__all__ = [
    "Column",
    "ColumnDescriber",
    "DBX",
    "Driver",
    "EmptySliceError",
    "InsertStatement",
    "LogChannel",
    "LoggerConfigError",
    "MissingParamError",
    "NilPointerError",
    "QueryBuildError",
    "QueryKitError",
    "QueryLogError",
    "QueryLogger",
    "QueryOption",
    "SQLAlchemyDriver",
    "Tx",
    "WrongTypeError",
    "build_insert",
    "named_insert",
    "offset_option",
    "page_option",
    "returning_all",
    "returning_custom",
    "returning_id",
    "with_options",
]
