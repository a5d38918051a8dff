"""
SQL parameter binding utilities.

Provides row-indexed named placeholders for multi-row INSERT statements and
the conversion of named placeholders (``:name``) into positional question-mark
placeholders with an ordered argument list.
"""

import re
from collections.abc import Mapping
from typing import Any, Dict, List, Sequence, Tuple

from ..errors import MissingParamError

# ``::`` is a PostgreSQL cast and is left untouched
NAMED_PARAM_PATTERN = re.compile(r"(?<!:):([^\W\d]\w*)")


def build_insert_params(
    named_args: Dict[str, Any],
    row_index: int,
    columns: Sequence[str],
    values: Sequence[Any],
) -> str:
    """
    Build the placeholder group of one row and register its named arguments.

    Every placeholder is suffixed with the row index so groups of a multi-row
    statement never share a name. Groups after the first are prefixed with a
    comma so they can be concatenated into a VALUES clause.

    Args:
        named_args: Shared name -> value map, updated in place
        row_index: Position of the row in the batch
        columns: Column names in statement order
        values: Resolved values, aligned with ``columns``

    Returns:
        Placeholder group, e.g. ``(:a_0,:b_0)`` or ``,(:a_1,:b_1)``

    Examples:
        >>> args = {}
        >>> build_insert_params(args, 0, ["a", "b"], [1, 2])
        '(:a_0,:b_0)'
        >>> args
        {'a_0': 1, 'b_0': 2}
        >>> build_insert_params(args, 1, ["a", "b"], [3, 4])
        ',(:a_1,:b_1)'
    """
    placeholders = []
    for column, value in zip(columns, values):
        param = f"{column}_{row_index}"
        named_args[param] = value
        placeholders.append(f":{param}")

    group = "(" + ",".join(placeholders) + ")"
    if row_index > 0:
        group = "," + group
    return group


def bind_named(query: str, arg: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    """
    Rewrite named placeholders into ``?`` placeholders.

    Args:
        query: Query using ``:name`` placeholders
        arg: Mapping providing a value for every placeholder

    Returns:
        Tuple of (query with ``?`` placeholders, arguments in placeholder order)

    Raises:
        MissingParamError: If a placeholder has no value in ``arg``

    Example:
        >>> bind_named("select * from t where a = :a and b = :b", {"a": 1, "b": 2})
        ('select * from t where a = ? and b = ?', [1, 2])
    """
    args: List[Any] = []

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in arg:
            raise MissingParamError(name)
        args.append(arg[name])
        return "?"

    return NAMED_PARAM_PATTERN.sub(_replace, query), args
