"""
SQL module for dynamic statement generation.

This module builds multi-row INSERT statements from records, binds named
placeholders and rewrites placeholders into a driver's paramstyle.
"""

from .core.describe import Column, ColumnDescriber, describe_row, resolve_row_values
from .core.parameters import bind_named, build_insert_params
from .dialects.paramstyle import rebind
from .errors import (
    EmptySliceError,
    MissingParamError,
    NilPointerError,
    QueryBuildError,
    QueryKitError,
    WrongTypeError,
)
from .operations.insert import (
    InsertStatement,
    build_insert,
    named_insert,
    returning_all,
    returning_custom,
    returning_id,
)
from .operations.paging import QueryOption, offset_option, page_option, with_options

__all__ = [
    "Column",
    "ColumnDescriber",
    "EmptySliceError",
    "InsertStatement",
    "MissingParamError",
    "NilPointerError",
    "QueryBuildError",
    "QueryKitError",
    "QueryOption",
    "WrongTypeError",
    "bind_named",
    "build_insert",
    "build_insert_params",
    "describe_row",
    "named_insert",
    "offset_option",
    "page_option",
    "rebind",
    "resolve_row_values",
    "returning_all",
    "returning_custom",
    "returning_id",
    "with_options",
]
