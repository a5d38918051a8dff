"""
Row describers and column value resolution.

A row describer is the ordered list of ``Column`` entries derived from one
record. Each entry carries the attribute name declared on the record, the
persisted (database) name bound to it, if any, and the current value.

Supported records:
- objects implementing ``describe_columns()`` (explicit capability)
- dataclass instances, persisted name taken from ``field(metadata={"db": ...})``
- pydantic models, persisted name taken from the field alias
- named tuples and mappings, which carry no persisted names
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel

from ..errors import MissingParamError, NilPointerError, WrongTypeError

PERSISTED_NAME_KEY = "db"


class Column(NamedTuple):
    """One column of a row describer."""

    field: str
    persisted: Optional[str]
    value: Any


@runtime_checkable
class ColumnDescriber(Protocol):
    """Protocol for records that describe their own columns."""

    def describe_columns(self) -> Iterable[Column]: ...


def is_record(value: Any) -> bool:
    """Return True if ``value`` has a shape ``describe_row`` accepts."""
    if isinstance(value, ColumnDescriber) or isinstance(value, (BaseModel, Mapping)):
        return True
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return True
    return isinstance(value, tuple) and hasattr(value, "_fields")


def describe_row(row: Any) -> List[Column]:
    """
    Build the ordered row describer for one record.

    Args:
        row: Record to describe

    Returns:
        Ordered list of Column entries

    Raises:
        NilPointerError: If row is None
        WrongTypeError: If row is not record-shaped
    """
    if row is None:
        raise NilPointerError("nil pointer passed as row")

    if isinstance(row, ColumnDescriber):
        return [Column(*column) for column in row.describe_columns()]

    if isinstance(row, BaseModel):
        return [
            Column(name, info.serialization_alias or info.alias, getattr(row, name))
            for name, info in type(row).model_fields.items()
        ]

    if dataclasses.is_dataclass(row) and not isinstance(row, type):
        return [
            Column(f.name, f.metadata.get(PERSISTED_NAME_KEY), getattr(row, f.name))
            for f in dataclasses.fields(row)
        ]

    if isinstance(row, tuple) and hasattr(row, "_fields"):
        return [Column(name, None, value) for name, value in zip(row._fields, row)]

    if isinstance(row, Mapping):
        return [Column(str(key), None, value) for key, value in row.items()]

    raise WrongTypeError(f"not a record: {type(row).__name__}")


def as_named_args(row: Any) -> Dict[str, Any]:
    """
    Flatten a record into a name -> value mapping for named binding.

    Both declared field names and persisted names are present as keys;
    persisted names win when they collide with another field's name.
    """
    if isinstance(row, Mapping):
        return dict(row)

    columns = describe_row(row)
    named = {column.field: column.value for column in columns}
    named.update(
        {column.persisted: column.value for column in columns if column.persisted}
    )
    return named


def resolve_row_values(
    row: Any, columns: Sequence[str], overrides: Mapping[str, Any]
) -> List[Any]:
    """
    Resolve every requested column of one row to a value.

    Resolution order per column: override map, exact declared field name,
    persisted name. Nothing else is consulted.

    Args:
        row: Record to read values from
        columns: Requested column names, in statement order
        overrides: Values applied to every row, taking precedence

    Returns:
        Values in the order of ``columns``

    Raises:
        NilPointerError: If row is None
        WrongTypeError: If row is not record-shaped
        MissingParamError: For the first column that cannot be resolved

    Example:
        >>> @dataclasses.dataclass
        ... class Person:
        ...     Name: str = dataclasses.field(metadata={"db": "name"})
        >>> resolve_row_values(Person("Alpha"), ["name", "Name"], {})
        ['Alpha', 'Alpha']
    """
    describer = describe_row(row)
    by_field = {column.field: column.value for column in describer}
    by_persisted = {
        column.persisted: column.value for column in describer if column.persisted
    }

    values = []
    for name in columns:
        if name in overrides:
            values.append(overrides[name])
        elif name in by_field:
            values.append(by_field[name])
        elif name in by_persisted:
            values.append(by_persisted[name])
        else:
            raise MissingParamError(name)
    return values
