# -*- coding: utf-8 -*-
"""Unit tests for typed resolution of decoded query strings."""

# Standard
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import math
from typing import Annotated, Any, Dict, List, NamedTuple, Optional, Tuple, TypedDict, Union
from uuid import UUID

# Third-Party
from pydantic import BaseModel, Field, field_validator, Tag
import pytest

# First-Party
from bracketqs.config import Config
from bracketqs.errors import InvalidNumberError, InvalidUtf8Error, TypeMismatchError, UnknownVariantError, UnsupportedTypeError
from bracketqs.helpers import CommaSeparated, PipeDelimited, Rename


class Color(Enum):
    Red = "red"
    Green = "green"


class Pair(NamedTuple):
    left: int
    right: str


@dataclass
class Flat:
    name: str
    count: int
    ratio: float
    enabled: bool


@dataclass
class Opts:
    x: Optional[str] = None
    y: Optional[int] = None


@dataclass
class Address:
    city: str
    zip: str = ""


@dataclass
class Person:
    name: str
    tags: List[str]
    address: Address
    scores: Dict[str, int] = field(default_factory=dict)


@dataclass
class Paint:
    color: Color


@dataclass
class Circle:
    radius: float


@dataclass
class Rect:
    w: int
    h: int


@dataclass
class Drawing:
    shape: Union[Circle, Rect]


@dataclass
class Payload:
    value: Union[Annotated[int, Tag("Number")], Annotated[str, Tag("Text")], Pair, Color]


@dataclass
class Blob:
    data: bytes
    text: str = ""


@dataclass
class Listing:
    ids: Annotated[List[int], CommaSeparated]
    words: Annotated[List[str], PipeDelimited] = field(default_factory=list)


@dataclass
class Renamed:
    user_id: Annotated[int, Rename("userId")]


@dataclass
class Leaves:
    when: datetime
    ident: UUID


@dataclass
class Holder:
    opts: Opts


@dataclass
class Coordinates:
    point: Tuple[int, int]
    pair: Optional[Pair] = None


class Signup(BaseModel):
    email: str
    age: int = Field(alias="userAge", ge=0)
    plan: str = "free"

    @field_validator("email")
    @classmethod
    def email_has_at(cls, v):
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class Movie(TypedDict, total=False):
    title: str
    year: int


@dataclass
class Numbers:
    values: List[float]


def decode(text, tp, **kwargs):
    """Decode with an optional config override."""
    return Config(**kwargs).deserialize_str(text, tp)


class TestScalars:
    """Test scalar resolution rules."""

    def test_primitives(self):
        """Text parses into each primitive type."""
        assert decode("name=ada&count=3&ratio=0.5&enabled=false", Flat) == Flat("ada", 3, 0.5, False)

    def test_bare_bool_is_true(self):
        """A bare key or empty value is a true flag."""
        assert decode("name=&count=0&ratio=0&enabled", Flat).enabled is True
        assert decode("name=&count=0&ratio=0&enabled=", Flat).enabled is True

    def test_bare_str_is_empty(self):
        """A bare key for a string is the empty string."""
        assert decode("name&count=0&ratio=0&enabled=true", Flat).name == ""

    def test_empty_number_is_error(self):
        """Empty text is not a number."""
        with pytest.raises(InvalidNumberError) as exc_info:
            decode("name=a&count=&ratio=0&enabled=true", Flat)
        assert exc_info.value.key == "count"

    def test_bare_number_is_mismatch(self):
        """A bare key cannot be a number."""
        with pytest.raises(TypeMismatchError):
            decode("name=a&count&ratio=0&enabled=true", Flat)

    def test_bad_bool(self):
        """Only true/false are booleans."""
        with pytest.raises(TypeMismatchError):
            decode("name=a&count=1&ratio=0&enabled=yes", Flat)

    def test_repeated_key_last_wins(self):
        """A scalar from a repeated key takes the last value."""
        assert decode("name=a&name=b&count=1&count=2&ratio=0&enabled", Flat) == Flat("b", 2, 0.0, True)

    def test_special_floats(self):
        """NaN and infinities decode."""
        values = decode("values[0]=NaN&values[1]=inf&values[2]=-inf", Numbers).values
        assert math.isnan(values[0])
        assert values[1:] == [float("inf"), float("-inf")]

    def test_adapted_leaves(self):
        """datetime and UUID parse through pydantic."""
        result = decode("when=2024-01-02T03:04:05%2B00:00&ident=12345678-1234-5678-1234-567812345678", Leaves)
        assert result.when.year == 2024
        assert result.when.utcoffset().total_seconds() == 0
        assert result.ident == UUID("12345678-1234-5678-1234-567812345678")


class TestOptionals:
    """Test null versus empty handling."""

    def test_absent_is_none(self):
        """Missing optionals are None."""
        assert decode("", Opts) == Opts(None, None)

    def test_bare_key_is_none(self):
        """A bare key is None."""
        assert decode("x&y", Opts) == Opts(None, None)

    def test_empty_value_is_present(self):
        """An empty value is present."""
        assert decode("x=", Opts) == Opts("", None)

    def test_value(self):
        """A value resolves as the inner type."""
        assert decode("x=hi&y=4", Opts) == Opts("hi", 4)


class TestSequencesAndMaps:
    """Test container resolution."""

    def test_nested(self):
        """Records, sequences and maps nest."""
        text = "name=ada&tags[0]=a&tags[1]=b&address[city]=Paris&scores[x]=1&scores[y]=2"
        assert decode(text, Person) == Person("ada", ["a", "b"], Address("Paris"), {"x": 1, "y": 2})

    def test_single_value_wraps(self):
        """A single value is a one-element sequence."""
        assert decode("name=a&tags=solo&address[city]=c", Person).tags == ["solo"]

    def test_repeated_key_is_list(self):
        """A repeated flat key is a list."""
        assert decode("name=a&tags=x&tags=y&address[city]=c", Person).tags == ["x", "y"]

    def test_append_brackets(self):
        """'[]' keys build a list."""
        assert decode("name=a&tags[]=x&tags[]=y&address[city]=c", Person).tags == ["x", "y"]

    def test_missing_sequence_is_empty(self):
        """Absent sequences and maps are empty."""
        result = decode("name=a&address[city]=c", Person)
        assert result.tags == []
        assert result.scores == {}

    def test_empty_value_is_empty_container(self):
        """'key=' is an empty container."""
        result = decode("name=a&tags=&address=&scores=", Any)
        assert result == {"name": "a", "tags": "", "address": "", "scores": ""}
        with pytest.raises(TypeMismatchError):
            decode("name=a&tags=&address=&scores=", Person)
        result = decode("name=a&tags=&address[city]=c&scores=", Person)
        assert result.tags == []
        assert result.scores == {}

    def test_empty_record(self):
        """'key=' is a record with every field defaulted."""
        assert decode("opts=", Holder) == Holder(Opts())

    def test_index_keyed_map(self):
        """An index-keyed sequence reads as a map keyed by index."""
        assert decode("m[1]=a&m[2]=b", Dict[str, Dict[int, str]]) == {"m": {1: "a", 2: "b"}}

    def test_enum_keyed_map(self):
        """Map keys may be enum member names."""
        assert decode("m[Red]=1", Dict[str, Dict[Color, int]]) == {"m": {Color.Red: 1}}

    def test_sparse_indices(self):
        """Out-of-order indices keep insertion order."""
        assert decode("a[1]=x&a[0]=y", Dict[str, List[str]]) == {"a": ["x", "y"]}

    def test_tuple_exact_length(self):
        """Tuples need exactly their declared length."""
        assert decode("point[0]=1&point[1]=2&pair[0]=3&pair[1]=z", Coordinates) == Coordinates((1, 2), Pair(3, "z"))
        with pytest.raises(TypeMismatchError):
            decode("point[0]=1", Coordinates)

    def test_delimited(self):
        """Delimited fields split their value."""
        assert decode("ids=1,2,3&words=a|b", Listing) == Listing([1, 2, 3], ["a", "b"])
        assert decode("ids=", Listing) == Listing([], [])

    def test_map_from_scalar_is_mismatch(self):
        """A value cannot be read as a map."""
        with pytest.raises(TypeMismatchError):
            decode("scores=1&name=a&address[city]=c", Person)


class TestRecords:
    """Test record-specific rules."""

    def test_unknown_keys_ignored(self):
        """Keys without a field are ignored."""
        assert decode("city=Rome&planet=earth", Address) == Address("Rome")

    def test_missing_required_field(self):
        """Required fields must be present."""
        with pytest.raises(TypeMismatchError) as exc_info:
            decode("name=a", Person)
        assert exc_info.value.key == "address"

    def test_rename(self):
        """Renamed fields are read under their wire name."""
        assert decode("userId=7", Renamed) == Renamed(7)

    def test_pydantic_alias_and_default(self):
        """pydantic models honour aliases and defaults."""
        result = decode("email=a@b.c&userAge=30", Signup)
        assert result.age == 30
        assert result.plan == "free"

    def test_pydantic_validators_run(self):
        """pydantic validation failures become type mismatches."""
        with pytest.raises(TypeMismatchError) as exc_info:
            decode("email=nope&userAge=30", Signup)
        assert exc_info.value.__cause__ is not None

    def test_typeddict(self):
        """TypedDict records are plain dicts."""
        assert decode("title=Up", Movie) == {"title": "Up"}

    def test_error_key_path(self):
        """Errors carry the full key path."""
        with pytest.raises(InvalidNumberError) as exc_info:
            decode("name=a&address[city]=c&scores[x]=oops", Person)
        assert exc_info.value.key == "scores[x]"


class TestVariants:
    """Test externally tagged variant resolution."""

    def test_unit_variant(self):
        """'x[Red]' selects a unit variant."""
        assert decode("color[Red]", Paint) == Paint(Color.Red)
        assert decode("color[Green]=", Paint) == Paint(Color.Green)

    def test_unknown_variant(self):
        """Unknown names are rejected."""
        with pytest.raises(UnknownVariantError) as exc_info:
            decode("color[Pink]", Paint)
        assert exc_info.value.key == "color[Pink]"

    def test_unit_variant_with_value(self):
        """Unit variants take no value."""
        with pytest.raises(TypeMismatchError):
            decode("color[Red]=1", Paint)

    def test_scalar_form_rejected(self):
        """A variant must be a one-entry map."""
        with pytest.raises(TypeMismatchError):
            decode("color=Red", Paint)

    def test_two_variants_rejected(self):
        """Exactly one variant may be named."""
        with pytest.raises(TypeMismatchError):
            decode("color[Red]&color[Green]", Paint)

    def test_struct_variant(self):
        """Struct variants read their fields one level deeper."""
        assert decode("shape[Rect][w]=2&shape[Rect][h]=3", Drawing) == Drawing(Rect(2, 3))

    def test_newtype_and_tuple_variants(self):
        """Tagged and NamedTuple arms read their payloads."""
        assert decode("value[Number]=5", Payload).value == 5
        assert decode("value[Text]=hi", Payload).value == "hi"
        assert decode("value[Pair][0]=1&value[Pair][1]=b", Payload).value == Pair(1, "b")
        assert decode("value[Green]", Payload).value is Color.Green

    def test_top_level_variant(self):
        """A variant may be the top-level value."""
        assert decode("Circle[radius]=1.5", Union[Circle, Rect]) == Circle(1.5)


class TestBytesAndUtf8:
    """Test non-UTF-8 values."""

    def test_bytes_field_accepts_invalid_utf8(self):
        """bytes fields take the raw decoded bytes."""
        assert decode("data=%FF%00", Blob) == Blob(b"\xff\x00")

    def test_bytes_field_accepts_text(self):
        """bytes fields encode valid text as UTF-8."""
        assert decode("data=caf%C3%A9", Blob).data == "café".encode()

    def test_str_field_rejects_invalid_utf8(self):
        """Other fields reject invalid UTF-8."""
        with pytest.raises(InvalidUtf8Error) as exc_info:
            decode("data=&text=%FF", Blob)
        assert exc_info.value.key == "text"


class TestTopLevel:
    """Test top-level shape restrictions."""

    def test_scalar_top_level_rejected(self):
        """A scalar cannot be the whole query string."""
        with pytest.raises(UnsupportedTypeError):
            decode("a=1", int)

    def test_any_top_level(self):
        """Any decodes into plain dicts and lists."""
        assert decode("a[b][]=1&a[b][]=2&c", Any) == {"a": {"b": ["1", "2"]}, "c": None}
