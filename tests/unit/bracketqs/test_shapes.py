# -*- coding: utf-8 -*-
"""Unit tests for annotation to shape mapping."""

# Standard
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, NamedTuple, Optional, Sequence, Set, Tuple, TypedDict, Union

# Third-Party
from pydantic import BaseModel, Field, Tag
import pytest

# First-Party
from bracketqs.errors import MalformedKeyError, UnsupportedTypeError
from bracketqs.helpers import Brackets, CommaSeparated, Rename, SkipIfNone
from bracketqs.shapes import (
    ANY,
    MapShape,
    OptionalShape,
    RecordShape,
    ScalarShape,
    SequenceShape,
    shape_for_value,
    shape_of,
    TupleShape,
    VariantShape,
)


class Color(Enum):
    RED = 1
    GREEN = 2


class Point(NamedTuple):
    x: int
    y: int


@dataclass
class Tree:
    label: str
    children: List["Tree"] = field(default_factory=list)


@dataclass
class Renamed:
    user_id: Annotated[int, Rename("userId")]
    note: Annotated[Optional[str], SkipIfNone()] = None


class Aliased(BaseModel):
    user_id: int = Field(alias="userId")
    tags: Annotated[List[str], Brackets()] = []
    secret: str = Field(default="", exclude=True)


class Movie(TypedDict):
    title: str
    year: int


@dataclass
class Circle:
    radius: float


@dataclass
class Square:
    side: float


@dataclass
class BadName:
    value: Annotated[int, Rename("a[b]")]


class TestScalarShapes:
    """Test primitive annotations."""

    @pytest.mark.parametrize(
        "tp,kind",
        [(str, "str"), (int, "int"), (float, "float"), (bool, "bool"), (Decimal, "decimal"), (bytes, "bytes")],
    )
    def test_primitives(self, tp, kind):
        """Builtin leaves map to their scalar kind."""
        assert shape_of(tp) == ScalarShape(kind)

    def test_adapted_leaf(self):
        """Other leaves go through a pydantic adapter."""
        shape = shape_of(date)
        assert shape.kind == "adapted"
        assert shape.parse("2024-02-29") == date(2024, 2, 29)
        assert shape.render(date(2024, 2, 29)) == "2024-02-29"

    def test_literal_leaf(self):
        """Literals are validated by pydantic."""
        shape = shape_of(Literal["asc", "desc"])
        assert shape.parse("asc") == "asc"

    def test_unknown_class_rejected(self):
        """Arbitrary classes have no query-string form."""

        class Opaque:
            pass

        with pytest.raises(UnsupportedTypeError):
            shape_of(Opaque)


class TestContainerShapes:
    """Test sequence, tuple and map annotations."""

    def test_sequences(self):
        """Homogeneous containers are sequences."""
        assert shape_of(List[int]) == SequenceShape(ScalarShape("int"), list)
        assert shape_of(Set[str]).factory is set
        assert shape_of(FrozenSet[str]).factory is frozenset
        assert shape_of(Tuple[int, ...]).factory is tuple
        assert shape_of(Sequence[int]).factory is list

    def test_fixed_tuples(self):
        """Fixed tuples and NamedTuples have one shape per position."""
        assert shape_of(Tuple[int, str]) == TupleShape((ScalarShape("int"), ScalarShape("str")))
        named = shape_of(Point)
        assert named.named
        assert named.build([1, 2]) == Point(1, 2)

    def test_maps(self):
        """Dicts are maps with scalar or enum keys."""
        assert shape_of(Dict[str, int]) == MapShape(ScalarShape("str"), ScalarShape("int"))
        assert isinstance(shape_of(Dict[Color, int]).key, VariantShape)

    def test_map_key_must_be_scalar(self):
        """Structured map keys are rejected."""
        with pytest.raises(UnsupportedTypeError):
            shape_of(Dict[Point, int])

    def test_any(self):
        """Any and bare containers resolve at runtime."""
        assert shape_of(Any) is ANY
        assert shape_of(dict) == MapShape(ScalarShape("str"), ANY)
        assert shape_of(list) == SequenceShape(ANY, list)

    def test_optional(self):
        """Optional wraps the inner shape."""
        assert shape_of(Optional[int]) == OptionalShape(ScalarShape("int"))
        assert shape_of(int | None) == OptionalShape(ScalarShape("int"))

    def test_style_marker(self):
        """Array format markers attach to the sequence."""
        assert shape_of(Annotated[List[int], CommaSeparated]).style == CommaSeparated
        assert shape_of(Annotated[Optional[List[int]], Brackets()]).inner.style == Brackets()

    def test_style_marker_needs_scalar_items(self):
        """Alternate formats only hold scalars."""
        with pytest.raises(UnsupportedTypeError):
            shape_of(Annotated[List[List[int]], Brackets()])
        with pytest.raises(UnsupportedTypeError):
            shape_of(Annotated[int, Brackets()])


class TestRecordShapes:
    """Test record field discovery."""

    def test_dataclass_fields(self):
        """Dataclass fields are listed in order with defaults."""
        shape = shape_of(Tree)
        assert isinstance(shape, RecordShape)
        assert [spec.key for spec in shape.fields] == ["label", "children"]
        assert shape.fields[0].required
        assert not shape.fields[1].required

    def test_recursive_record(self):
        """A record may contain itself."""
        children = shape_of(Tree).fields[1].shape
        assert children.item is shape_of(Tree)

    def test_rename_and_skip(self):
        """Markers set the wire name and skip rules."""
        user_id, note = shape_of(Renamed).fields
        assert user_id.key == "userId"
        assert user_id.init_name == "user_id"
        assert note.skip_if_none

    def test_pydantic_fields(self):
        """pydantic aliases, metadata and exclusions are honoured."""
        user_id, tags, secret = shape_of(Aliased).fields
        assert user_id.key == "userId"
        assert user_id.init_name == "userId"
        assert tags.shape.style == Brackets()
        assert secret.exclude

    def test_typeddict_fields(self):
        """TypedDict keys are fields."""
        shape = shape_of(Movie)
        assert shape.kind == "typeddict"
        assert [spec.key for spec in shape.fields] == ["title", "year"]

    def test_bracket_in_field_name(self):
        """Field names must be valid bracket segments."""
        with pytest.raises(MalformedKeyError):
            shape_of(BadName).fields


class TestVariantShapes:
    """Test enum and union variants."""

    def test_enum_unit_variants(self):
        """Enum members are unit variants named by member name."""
        shape = shape_of(Color)
        assert shape.names == ("RED", "GREEN")
        assert shape.arm("RED").value is Color.RED

    def test_union_of_records(self):
        """Records in a union are struct variants named by class."""
        shape = shape_of(Union[Circle, Square])
        assert shape.names == ("Circle", "Square")
        assert shape.arm_for(Square(2.0)).name == "Square"

    def test_tagged_newtypes(self):
        """Tagged arms are newtype variants."""
        shape = shape_of(Union[Annotated[int, Tag("count")], Annotated[str, Tag("label")], Point])
        assert shape.arm_for(3).name == "count"
        assert shape.arm_for("x").name == "label"
        assert shape.arm_for(Point(1, 2)).kind == "tuple"

    def test_exact_type_wins(self):
        """bool is matched to its own arm before int."""
        shape = shape_of(Union[Annotated[int, Tag("n")], Annotated[bool, Tag("b")]])
        assert shape.arm_for(True).name == "b"
        assert shape.arm_for(1).name == "n"

    def test_untagged_scalar_rejected(self):
        """Untagged scalar unions are not supported."""
        with pytest.raises(UnsupportedTypeError):
            shape_of(Union[int, str])

    def test_duplicate_names_rejected(self):
        """Variant names must be unique."""
        with pytest.raises(UnsupportedTypeError):
            shape_of(Union[Annotated[int, Tag("x")], Annotated[str, Tag("x")]])

    def test_optional_union(self):
        """None in a union of records makes it optional."""
        shape = shape_of(Optional[Union[Circle, Square]])
        assert isinstance(shape, OptionalShape)
        assert isinstance(shape.inner, VariantShape)


class TestShapeForValue:
    """Test runtime shape inference."""

    def test_values(self):
        """Runtime values map to matching shapes."""
        assert shape_for_value({}) == MapShape(ScalarShape("str"), ANY)
        assert shape_for_value([1]) == SequenceShape(ANY, list)
        assert shape_for_value(1) == ScalarShape("int")
        assert shape_for_value(Color.RED) == shape_of(Color)
        assert isinstance(shape_for_value(Circle(1.0)), RecordShape)
        assert isinstance(shape_for_value(Point(1, 2)), TupleShape)
