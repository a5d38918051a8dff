"""
Unit tests for the multi-row INSERT builder.

Covers every accepted target shape, override precedence, row ordering and
the all-or-nothing error behaviour.
"""

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4

import pytest

from querykit.sql.errors import (
    EmptySliceError,
    MissingParamError,
    NilPointerError,
    WrongTypeError,
)
from querykit.sql.operations.insert import (
    InsertStatement,
    build_insert,
    named_insert,
    normalize_target,
    returning_all,
    returning_custom,
    returning_id,
)

TOKEN = uuid4()


@dataclass
class Person:
    ID: int = field(metadata={"db": "id"})
    Name: str = field(metadata={"db": "name"})
    Location: str = field(metadata={"db": "location"})
    IsAlive: bool = field(metadata={"db": "is_alive"})
    Token: Optional[object] = field(default=None, metadata={"db": "user_token"})


@pytest.fixture
def alpha() -> Person:
    return Person(ID=1, Name="Alpha", Location="Australia", IsAlive=True, Token=TOKEN)


@pytest.fixture
def beta() -> Person:
    return Person(ID=2, Name="Beta", Location="France", IsAlive=False, Token=TOKEN)


pytestmark = pytest.mark.unit


class TestBuildInsert:
    """Tests for build_insert statement text and named arguments."""

    def test_single_record(self):
        stmt = build_insert(
            Person(ID=1, Name="Alpha", Location="Australia", IsAlive=True),
            "person",
            ["name", "is_alive"],
            {},
        )

        assert stmt.query == "Insert into person (name,is_alive) Values (:name_0,:is_alive_0)"
        assert stmt.named_args == {"name_0": "Alpha", "is_alive_0": True}
        assert stmt.bind() == (
            "Insert into person (name,is_alive) Values (?,?)",
            ["Alpha", True],
        )

    def test_multiple_rows_keep_order_and_suffixes(self, alpha, beta):
        gamma = Person(ID=3, Name="Gamma", Location="Peru", IsAlive=True)

        stmt = build_insert([alpha, beta, gamma], "person", ["name", "id"])

        assert stmt.query == (
            "Insert into person (name,id) Values "
            "(:name_0,:id_0),(:name_1,:id_1),(:name_2,:id_2)"
        )
        assert stmt.named_args == {
            "name_0": "Alpha",
            "id_0": 1,
            "name_1": "Beta",
            "id_1": 2,
            "name_2": "Gamma",
            "id_2": 3,
        }

    def test_column_order_follows_request(self, alpha):
        stmt = build_insert(alpha, "person", ["is_alive", "id", "name"])

        assert stmt.query == (
            "Insert into person (is_alive,id,name) Values (:is_alive_0,:id_0,:name_0)"
        )

    def test_none_overrides_is_treated_as_empty(self, alpha):
        stmt = build_insert(alpha, "person", ["name"], None)

        assert stmt.named_args == {"name_0": "Alpha"}

    def test_overrides_are_not_mutated(self, alpha, beta):
        overrides = {"location": "China"}

        build_insert([alpha, beta], "person", ["name", "location"], overrides)

        assert overrides == {"location": "China"}

    def test_tuple_of_mappings(self):
        stmt = build_insert(({"a": 1}, {"a": 2}), "t", ["a"])

        assert stmt == InsertStatement(
            query="Insert into t (a) Values (:a_0),(:a_1)",
            named_args={"a_0": 1, "a_1": 2},
        )


class TestNamedInsert:
    """Tests for named_insert bound output."""

    def test_single_row(self, alpha):
        query, args = named_insert([alpha], "person", ["name", "is_alive", "user_token"], {})

        assert query == "Insert into person (name,is_alive,user_token) Values (?,?,?)"
        assert args == ["Alpha", True, TOKEN]

    def test_multiple_rows(self, alpha, beta):
        query, args = named_insert(
            [alpha, beta], "person", ["name", "location", "is_alive", "user_token"], {}
        )

        assert query == (
            "Insert into person (name,location,is_alive,user_token) "
            "Values (?,?,?,?),(?,?,?,?)"
        )
        assert args == ["Alpha", "Australia", True, TOKEN, "Beta", "France", False, TOKEN]

    def test_by_field_name_instead_of_persisted_name(self, alpha):
        query, args = named_insert([alpha], "person", ["Name", "IsAlive", "Token"], {})

        assert query == "Insert into person (Name,IsAlive,Token) Values (?,?,?)"
        assert args == ["Alpha", True, TOKEN]

    def test_override_replaces_every_row_value(self, alpha, beta):
        query, args = named_insert(
            [alpha, beta],
            "person",
            ["name", "location", "is_alive", "user_token"],
            {"location": "China"},
        )

        assert query == (
            "Insert into person (name,location,is_alive,user_token) "
            "Values (?,?,?,?),(?,?,?,?)"
        )
        assert args == ["Alpha", "China", True, TOKEN, "Beta", "China", False, TOKEN]

    def test_two_rows_override_location(self):
        rows = [
            {"name": "Alpha", "location": "Australia"},
            {"name": "Beta", "location": "France"},
        ]

        stmt = build_insert(rows, "person", ["name", "location"], {"location": "China"})

        assert stmt.named_args["location_0"] == "China"
        assert stmt.named_args["location_1"] == "China"

    def test_single_record_not_wrapped_in_list(self, alpha):
        query, args = named_insert(alpha, "person", ["name"])

        assert query == "Insert into person (name) Values (?)"
        assert args == ["Alpha"]


class TestInsertErrors:
    """Build errors abort without partial output."""

    def test_unknown_column_raises_missing_param(self, alpha, beta):
        with pytest.raises(MissingParamError) as exc_info:
            named_insert(
                [alpha, beta],
                "person",
                ["name", "location", "is_alive", "user_token", "unknown_param"],
                {},
            )

        assert exc_info.value.column == "unknown_param"

    def test_empty_list_raises_empty_slice(self):
        with pytest.raises(EmptySliceError, match="target slice is empty"):
            named_insert([], "person", ["name"], {})

    def test_none_target_raises_nil_pointer(self):
        with pytest.raises(NilPointerError):
            build_insert(None, "person", ["name"])

    def test_none_element_stops_processing(self, alpha):
        class Exploding:
            def describe_columns(self):
                raise AssertionError("rows after a None element must not be read")

        with pytest.raises(NilPointerError):
            build_insert([alpha, None, Exploding()], "person", ["name"])

    @pytest.mark.parametrize("target", [42, "person", b"raw", 1.5])
    def test_primitive_target_raises_wrong_type(self, target):
        with pytest.raises(WrongTypeError, match="target type not accepted"):
            build_insert(target, "person", ["name"])

    def test_sequence_of_primitives_raises_wrong_type(self):
        with pytest.raises(WrongTypeError):
            build_insert([1, 2], "person", ["name"])


class TestNormalizeTarget:
    """Tests for normalize_target."""

    def test_record_becomes_single_row(self, alpha):
        assert normalize_target(alpha) == [alpha]

    def test_sequence_keeps_order(self, alpha, beta):
        assert normalize_target((beta, alpha)) == [beta, alpha]


class TestReturning:
    """Tests for RETURNING helpers."""

    def test_returning_all(self):
        assert returning_all("Insert into t (a) Values (?)") == "Insert into t (a) Values (?) Returning *"

    def test_returning_id(self):
        assert returning_id("Insert into t (a) Values (?)") == "Insert into t (a) Values (?) Returning id"

    def test_returning_custom(self):
        assert (
            returning_custom("Insert into t (a) Values (?)", ["id", "created_at"])
            == "Insert into t (a) Values (?) Returning id,created_at"
        )
