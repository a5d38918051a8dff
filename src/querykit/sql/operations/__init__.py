"""SQL statement builders."""

from .insert import (
    InsertStatement,
    build_insert,
    named_insert,
    normalize_target,
    returning_all,
    returning_custom,
    returning_id,
)
from .paging import OptionKind, QueryOption, offset_option, page_option, with_options

__all__ = [
    "InsertStatement",
    "OptionKind",
    "QueryOption",
    "build_insert",
    "named_insert",
    "normalize_target",
    "offset_option",
    "page_option",
    "returning_all",
    "returning_custom",
    "returning_id",
    "with_options",
]
