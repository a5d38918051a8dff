"""Core SQL utilities package."""

from .describe import Column, ColumnDescriber, as_named_args, describe_row, is_record, resolve_row_values
from .parameters import bind_named, build_insert_params

__all__ = [
    "Column",
    "ColumnDescriber",
    "as_named_args",
    "bind_named",
    "build_insert_params",
    "describe_row",
    "is_record",
    "resolve_row_values",
]
