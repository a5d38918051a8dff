"""
Multi-row INSERT statement builders.

Builds ``Insert into <table> (<cols>) Values (...)[,(...)]`` statements with
row-indexed named placeholders from records of any supported shape, plus
RETURNING clause helpers.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..core.describe import is_record, resolve_row_values
from ..core.parameters import bind_named, build_insert_params
from ..errors import EmptySliceError, NilPointerError, WrongTypeError


@dataclass(frozen=True)
class InsertStatement:
    """INSERT statement with named placeholders and its argument map."""

    query: str
    named_args: Dict[str, Any] = field(default_factory=dict)

    def bind(self) -> Tuple[str, List[Any]]:
        """Rewrite to ``?`` placeholders with arguments in placeholder order."""
        return bind_named(self.query, self.named_args)


def normalize_target(target: Any) -> List[Any]:
    """
    Normalize an insert target into the ordered list of its rows.

    Accepted shapes:
    - a single record: one row
    - a list, tuple or other non-string sequence of records, order preserved

    Args:
        target: Record or sequence of records

    Returns:
        Rows in their original order

    Raises:
        NilPointerError: If target, or any element of a sequence target, is None
        EmptySliceError: If a sequence target is empty
        WrongTypeError: If target is neither a record nor a sequence
    """
    if target is None:
        raise NilPointerError("nil pointer passed to insert target")

    if is_record(target):
        return [target]

    if isinstance(target, (str, bytes, bytearray)) or not isinstance(target, Sequence):
        raise WrongTypeError("target type not accepted")

    if len(target) == 0:
        raise EmptySliceError("target slice is empty")

    rows = []
    for row in target:
        if row is None:
            raise NilPointerError("nil pointer passed to insert target element")
        rows.append(row)
    return rows


def build_insert(
    target: Any,
    table: str,
    columns: Sequence[str],
    overrides: Optional[Mapping[str, Any]] = None,
) -> InsertStatement:
    """
    Build a multi-row INSERT statement with named placeholders.

    Args:
        target: Record or sequence of records
        table: Target table, inserted verbatim
        columns: Columns to insert, in statement order
        overrides: Values applied to every row, taking precedence over row values

    Returns:
        InsertStatement holding the query and a fresh named argument map

    Raises:
        NilPointerError, EmptySliceError, WrongTypeError, MissingParamError

    Example:
        >>> stmt = build_insert({"name": "Alpha", "is_alive": True}, "person", ["name", "is_alive"])
        >>> stmt.query
        'Insert into person (name,is_alive) Values (:name_0,:is_alive_0)'
        >>> stmt.named_args
        {'name_0': 'Alpha', 'is_alive_0': True}
    """
    overrides = overrides if overrides is not None else {}
    rows = normalize_target(target)

    named_args: Dict[str, Any] = {}
    values_part = ""
    for row_index, row in enumerate(rows):
        values = resolve_row_values(row, columns, overrides)
        values_part += build_insert_params(named_args, row_index, columns, values)

    query = f"Insert into {table} ({','.join(columns)}) Values {values_part}"
    return InsertStatement(query=query, named_args=named_args)


def named_insert(
    target: Any,
    table: str,
    columns: Sequence[str],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Tuple[str, List[Any]]:
    """
    Build a multi-row INSERT statement bound to ``?`` placeholders.

    Example:
        >>> named_insert([{"a": 1}, {"a": 2}], "t", ["a"])
        ('Insert into t (a) Values (?),(?)', [1, 2])
    """
    return build_insert(target, table, columns, overrides).bind()


def returning_all(query: str) -> str:
    """Append ``Returning *`` to a statement."""
    return query + " Returning *"


def returning_id(query: str) -> str:
    """Append ``Returning id`` to a statement."""
    return query + " Returning id"


def returning_custom(query: str, fields: Sequence[str]) -> str:
    """Append ``Returning <fields>`` to a statement."""
    return query + " Returning " + ",".join(fields)
