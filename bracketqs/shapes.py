# -*- coding: utf-8 -*-
"""Location: ./bracketqs/shapes.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shape requests: what the codec expects to find at a position.

The reader and the writer never inspect type annotations directly. They
ask :func:`shape_of` to describe an annotation as one of a closed set of
shapes and then dispatch on that shape:

===============  ==========================================================
Shape            Annotations
===============  ==========================================================
ScalarShape      ``str``, ``int``, ``float``, ``bool``, ``Decimal``,
                 ``bytes``; any other leaf pydantic can parse from a string
SequenceShape    ``list[T]``, ``set[T]``, ``frozenset[T]``, ``tuple[T, ...]``
TupleShape       ``tuple[A, B]``, ``NamedTuple`` subclasses
MapShape         ``dict[K, V]``, ``Mapping[K, V]``
RecordShape      dataclasses, pydantic models, ``TypedDict``
VariantShape     ``Enum`` subclasses, unions of records / NamedTuples /
                 enums / ``Annotated[T, Tag("name")]``
OptionalShape    ``Optional[T]``
AnyShape         ``Any``, ``object``, bare ``dict`` / ``list``
===============  ==========================================================

Examples:
    >>> from typing import Dict, List, Optional
    >>> shape_of(List[int])
    SequenceShape(item=ScalarShape(kind='int'), factory=<class 'list'>, style=None)
    >>> shape_of(Optional[str])
    OptionalShape(inner=ScalarShape(kind='str'))
    >>> shape_of(Dict[str, float]).value
    ScalarShape(kind='float')
    >>> shape_of(List[int]) is shape_of(List[int])
    True
"""

# Standard
import collections.abc
import dataclasses
from decimal import Decimal
from enum import Enum
from functools import cached_property, lru_cache
import logging
import types
from typing import Annotated, Any, Callable, Dict, get_args, get_origin, get_type_hints, is_typeddict, NotRequired, Optional, Required, Tuple, Union

# Third-Party
from pydantic import BaseModel, Tag, TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError
from pydantic_core import PydanticSerializationError

# First-Party
from bracketqs.encoding import (
    parse_bool,
    parse_decimal,
    parse_float,
    parse_int,
    render_bool,
    render_decimal,
    render_float,
    render_int,
    utf8,
)
from bracketqs.errors import MalformedKeyError, TypeMismatchError, UnknownVariantError, UnsupportedTypeError
from bracketqs.helpers import Brackets, Delimited, find_marker, Rename, Repeated, SkipIfDefault, SkipIfNone

logger = logging.getLogger(__name__)

MISSING = object()

_SEQUENCE_ORIGINS = {
    list: list,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Collection: list,
    collections.abc.Iterable: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}

_MAP_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def type_name(tp: Any) -> str:
    """Short human-readable name of a type, for error messages.

    Args:
        tp: Type or annotation.

    Returns:
        str: Name.

    Examples:
        >>> type_name(int)
        'int'
        >>> from typing import List
        >>> type_name(List[int])
        'typing.List[int]'
    """
    return tp.__name__ if isinstance(tp, type) else repr(tp)


class Shape:
    """Base class of all shape requests."""


@dataclasses.dataclass(frozen=True)
class AnyShape(Shape):
    """Whatever the input holds: ``str``, ``None``, ``list`` or ``dict``."""


ANY = AnyShape()


@dataclasses.dataclass(frozen=True)
class ScalarShape(Shape):
    """A single leaf value.

    Attributes:
        kind: One of ``str``, ``int``, ``float``, ``bool``, ``decimal``,
            ``bytes`` or ``adapted`` (parsed and rendered through pydantic).
        tp: The annotated type.
        adapter: pydantic adapter for ``adapted`` scalars.
    """

    kind: str
    tp: Any = dataclasses.field(default=None, compare=False, repr=False)
    adapter: Optional[TypeAdapter] = dataclasses.field(default=None, compare=False, repr=False)

    @property
    def name(self) -> str:
        """Name used in error messages.

        Returns:
            str: Type name.
        """
        return type_name(self.tp) if self.kind == "adapted" else self.kind

    def parse(self, raw: Union[str, bytes, None]) -> Any:
        """Convert one raw decoded value into the requested type.

        Args:
            raw: Text, bytes (not valid UTF-8) or ``None`` (bare key).

        Returns:
            Any: Parsed value.

        Raises:
            InvalidUtf8Error: If ``raw`` is bytes and the type is not ``bytes``.
            InvalidNumberError: If numeric text is malformed.
            TypeMismatchError: If ``raw`` cannot become the requested type.

        Examples:
            >>> ScalarShape("int").parse("42")
            42
            >>> ScalarShape("bool").parse(None)
            True
            >>> ScalarShape("str").parse(None)
            ''
            >>> ScalarShape("bytes").parse(b"\\xff")
            b'\\xff'
            >>> ScalarShape("bool").parse("yes")
            Traceback (most recent call last):
            ...
            bracketqs.errors.TypeMismatchError: expected 'true' or 'false', found 'yes'
        """
        if self.kind == "bytes":
            if raw is None:
                return b""
            return raw if isinstance(raw, bytes) else raw.encode("utf-8")
        if isinstance(raw, bytes):
            raw = utf8(raw)
        if raw is None:
            if self.kind == "bool":
                return True
            if self.kind == "str":
                return ""
            raise TypeMismatchError(f"expected {self.name}, found a bare key")

        if self.kind == "str":
            return raw
        if self.kind == "bool":
            try:
                return parse_bool(raw)
            except ValueError as exc:
                raise TypeMismatchError(str(exc)) from exc
        if self.kind == "int":
            return parse_int(raw)
        if self.kind == "float":
            return parse_float(raw)
        if self.kind == "decimal":
            return parse_decimal(raw)
        try:
            return self.adapter.validate_strings(raw)
        except ValidationError as exc:
            raise TypeMismatchError(f"invalid {self.name}: {exc.errors()[0]['msg']}") from exc

    def render(self, value: Any) -> Union[str, bytes]:
        """Render one value as raw text (or bytes) for encoding.

        Args:
            value: Value of the requested type.

        Returns:
            Union[str, bytes]: Raw value, not yet percent-encoded.

        Raises:
            TypeMismatchError: If ``value`` is not of the requested type.

        Examples:
            >>> ScalarShape("float").render(2)
            '2.0'
            >>> ScalarShape("bool").render(False)
            'false'
            >>> ScalarShape("int").render("3")
            Traceback (most recent call last):
            ...
            bracketqs.errors.TypeMismatchError: expected int, found str
        """
        expected = {
            "str": str,
            "bytes": (bytes, bytearray),
            "bool": bool,
            "int": int,
            "float": (int, float),
            "decimal": (int, Decimal),
        }.get(self.kind)
        if expected is not None and not isinstance(value, expected):
            raise TypeMismatchError(f"expected {self.name}, found {type(value).__name__}")

        if self.kind == "bytes":
            return bytes(value)
        if self.kind == "str":
            return value
        if self.kind == "bool":
            return render_bool(value)
        if self.kind == "int":
            return render_int(value)
        if self.kind == "float":
            return render_float(float(value))
        if self.kind == "decimal":
            return render_decimal(Decimal(value))
        try:
            dumped = self.adapter.dump_python(value, mode="json")
        except PydanticSerializationError as exc:
            raise TypeMismatchError(f"cannot render {self.name}: {exc}") from exc
        if isinstance(dumped, bool):
            return render_bool(dumped)
        if isinstance(dumped, float):
            return render_float(dumped)
        return str(dumped)


@dataclasses.dataclass(frozen=True)
class OptionalShape(Shape):
    """A value that may be absent or ``None``."""

    inner: Shape


@dataclasses.dataclass(frozen=True)
class SequenceShape(Shape):
    """A homogeneous, variable-length sequence.

    Attributes:
        item: Shape of every element.
        factory: Container type built on decode.
        style: Alternate write format (:class:`Brackets`, :class:`Repeated`
            or :class:`Delimited`); ``None`` writes ``xs[0]=..``.
    """

    item: Shape
    factory: type = list
    style: Any = None

    def build(self, values: list) -> Any:
        """Build the container from decoded elements.

        Args:
            values: Elements in stored order.

        Returns:
            Any: Container of type ``factory``.
        """
        return values if self.factory is list else self.factory(values)


@dataclasses.dataclass(frozen=True)
class TupleShape(Shape):
    """A fixed-length sequence with one shape per position."""

    items: Tuple[Shape, ...]
    factory: Callable[..., Any] = dataclasses.field(default=tuple, compare=False, repr=False)
    named: bool = False

    def build(self, values: list) -> Any:
        """Build the tuple from decoded elements.

        Args:
            values: One element per position.

        Returns:
            Any: ``tuple`` or ``NamedTuple`` instance.
        """
        return self.factory(*values) if self.named else tuple(values)


@dataclasses.dataclass(frozen=True)
class MapShape(Shape):
    """Key/value pairs with homogeneous keys and values.

    Keys must be scalars or enums without payloads.
    """

    key: Shape
    value: Shape

    def parse_key(self, text: str) -> Any:
        """Convert an entry name into a key of the requested type.

        Args:
            text: Entry name.

        Returns:
            Any: Parsed key.

        Examples:
            >>> MapShape(ScalarShape("int"), ANY).parse_key("7")
            7
        """
        if isinstance(self.key, VariantShape):
            return self.key.arm(text).value
        if isinstance(self.key, ScalarShape):
            return self.key.parse(text)
        return text

    def render_key(self, key: Any) -> str:
        """Convert a key into an entry name.

        Args:
            key: Map key.

        Returns:
            str: Entry name.

        Raises:
            MalformedKeyError: If the name is empty or contains brackets.
        """
        if isinstance(self.key, VariantShape):
            text = self.key.arm_for(key).name
        elif isinstance(self.key, ScalarShape):
            text = self.key.render(key)
        else:
            text = key if isinstance(key, str) else str(key)
        if isinstance(text, bytes):
            text = utf8(text)
        if not text or "[" in text or "]" in text:
            raise MalformedKeyError(f"map key {text!r} cannot be written as a bracket segment")
        return text


@dataclasses.dataclass(frozen=True)
class FieldSpec:
    """One declared field of a record.

    Attributes:
        name: Attribute name on the record.
        key: Entry name on the wire.
        init_name: Name used when constructing the record.
        annotation: Declared annotation, markers included.
        required: Whether construction fails without the field.
        skip_if_none: Omit on write when the value is ``None``.
        skip_if_default: Omit on write when the value equals the default.
        exclude: Never written.
    """

    name: str
    key: str
    init_name: str
    annotation: Any
    required: bool = True
    skip_if_none: bool = False
    skip_if_default: bool = False
    exclude: bool = False
    default_factory: Optional[Callable[[], Any]] = dataclasses.field(default=None, compare=False, repr=False)

    @cached_property
    def shape(self) -> Shape:
        """Shape of the field, resolved on first use so records may refer to themselves.

        Returns:
            Shape: Field shape.
        """
        return shape_of(self.annotation)

    def default(self) -> Any:
        """Declared default value.

        Returns:
            Any: Default, or a sentinel when there is none.
        """
        return self.default_factory() if self.default_factory is not None else MISSING

    def is_default(self, value: Any) -> bool:
        """Whether ``value`` equals the declared default.

        Args:
            value: Current value.

        Returns:
            bool: True when the field has a default equal to ``value``.
        """
        default = self.default()
        return default is not MISSING and default == value


def _markers(annotation: Any, extra: Tuple[Any, ...] = ()) -> Tuple[Any, ...]:
    """Collect ``Annotated`` metadata from the outer layer of an annotation.

    Args:
        annotation: Field annotation.
        extra: Metadata already separated by pydantic.

    Returns:
        Tuple[Any, ...]: Metadata items.
    """
    items = tuple(extra)
    while get_origin(annotation) in (Required, NotRequired):
        annotation = get_args(annotation)[0]
    if get_origin(annotation) is Annotated:
        items += tuple(annotation.__metadata__)
    return items


def _dataclass_fields(cls: type, hints: Dict[str, Any]) -> Tuple[FieldSpec, ...]:
    """List the init fields of a dataclass with their markers and defaults."""
    specs = []
    for fld in dataclasses.fields(cls):
        if not fld.init:
            continue
        annotation = hints.get(fld.name, Any)
        meta = _markers(annotation)
        rename = find_marker(meta, Rename)
        factory = None
        if fld.default is not dataclasses.MISSING:
            factory = lambda value=fld.default: value  # noqa: E731
        elif fld.default_factory is not dataclasses.MISSING:
            factory = fld.default_factory
        specs.append(
            FieldSpec(
                name=fld.name,
                key=rename.name if rename else fld.name,
                init_name=fld.name,
                annotation=annotation,
                required=factory is None,
                skip_if_none=find_marker(meta, SkipIfNone) is not None,
                skip_if_default=find_marker(meta, SkipIfDefault) is not None,
                default_factory=factory,
            )
        )
    return tuple(specs)


def _pydantic_fields(cls: type) -> Tuple[FieldSpec, ...]:
    """List the fields of a pydantic model, honouring aliases, metadata and exclusions."""
    specs = []
    for name, info in cls.model_fields.items():
        meta = tuple(info.metadata)
        annotation = Annotated[(info.annotation, *meta)] if meta else info.annotation
        rename = find_marker(meta, Rename)
        init_name = info.alias or name
        required = info.is_required()
        specs.append(
            FieldSpec(
                name=name,
                key=rename.name if rename else init_name,
                init_name=init_name,
                annotation=annotation,
                required=required,
                skip_if_none=find_marker(meta, SkipIfNone) is not None,
                skip_if_default=find_marker(meta, SkipIfDefault) is not None,
                exclude=bool(info.exclude),
                default_factory=None if required else (lambda info=info: info.get_default(call_default_factory=True)),
            )
        )
    return tuple(specs)


def _typeddict_fields(cls: type, hints: Dict[str, Any]) -> Tuple[FieldSpec, ...]:
    """List the keys of a TypedDict; optional keys are not required."""
    specs = []
    for name, annotation in hints.items():
        meta = _markers(annotation)
        rename = find_marker(meta, Rename)
        specs.append(
            FieldSpec(
                name=name,
                key=rename.name if rename else name,
                init_name=name,
                annotation=annotation,
                required=name in cls.__required_keys__,
                skip_if_none=find_marker(meta, SkipIfNone) is not None,
            )
        )
    return tuple(specs)


@dataclasses.dataclass(frozen=True)
class RecordShape(Shape):
    """A record with named fields: dataclass, pydantic model or TypedDict.

    Field shapes are resolved lazily so that a record may contain itself.
    """

    cls: type
    kind: str

    @cached_property
    def fields(self) -> Tuple[FieldSpec, ...]:
        """Declared fields in declaration order.

        Returns:
            Tuple[FieldSpec, ...]: Field descriptions.

        Raises:
            UnsupportedTypeError: If annotations cannot be resolved or two
                fields share a wire name.
        """
        if self.kind == "pydantic":
            specs = _pydantic_fields(self.cls)
        else:
            try:
                hints = get_type_hints(self.cls, include_extras=True)
            except (NameError, TypeError) as exc:
                raise UnsupportedTypeError(f"cannot resolve annotations of {self.cls.__name__}: {exc}") from exc
            specs = _dataclass_fields(self.cls, hints) if self.kind == "dataclass" else _typeddict_fields(self.cls, hints)

        seen = set()
        for spec in specs:
            if not spec.key or "[" in spec.key or "]" in spec.key:
                raise MalformedKeyError(f"field name {spec.key!r} of {self.cls.__name__} cannot be written as a bracket segment")
            if spec.key in seen:
                raise UnsupportedTypeError(f"{self.cls.__name__} has two fields named {spec.key!r}")
            seen.add(spec.key)
        return specs

    def build(self, values: Dict[str, Any]) -> Any:
        """Construct a record from decoded field values.

        Args:
            values: Field values keyed by ``FieldSpec.init_name``.

        Returns:
            Any: Record instance.

        Raises:
            TypeMismatchError: If model validation fails.
        """
        if self.kind == "pydantic":
            try:
                return self.cls.model_validate(values)
            except ValidationError as exc:
                raise TypeMismatchError(f"invalid {self.cls.__name__}: {exc.error_count()} validation error(s)") from exc
        if self.kind == "typeddict":
            return dict(values)
        return self.cls(**values)

    def get(self, record: Any, spec: FieldSpec) -> Any:
        """Read one field from a record instance.

        Args:
            record: Record instance.
            spec: Field to read.

        Returns:
            Any: Field value, or a sentinel when a TypedDict lacks the key.
        """
        if self.kind == "typeddict":
            return record.get(spec.name, MISSING)
        return getattr(record, spec.name)


@dataclasses.dataclass(frozen=True)
class VariantArm:
    """One variant of a :class:`VariantShape`.

    Attributes:
        name: Variant name on the wire.
        kind: ``unit``, ``newtype``, ``tuple`` or ``struct``.
        payload: Shape of the content; ``None`` for unit variants.
        value: Enum member of a unit variant.
        match: Python type of newtype/tuple/struct values.
    """

    name: str
    kind: str
    payload: Optional[Shape] = None
    value: Any = dataclasses.field(default=None, compare=False)
    match: Optional[type] = dataclasses.field(default=None, compare=False)


@dataclasses.dataclass(frozen=True)
class VariantShape(Shape):
    """An externally tagged choice between named variants."""

    tp: Any = dataclasses.field(compare=False, repr=False)
    arms: Tuple[VariantArm, ...] = ()

    @cached_property
    def _by_name(self) -> Dict[str, VariantArm]:
        """Arms keyed by variant name."""
        return {arm.name: arm for arm in self.arms}

    @property
    def names(self) -> Tuple[str, ...]:
        """Variant names in declaration order.

        Returns:
            Tuple[str, ...]: Names.
        """
        return tuple(arm.name for arm in self.arms)

    def arm(self, name: str) -> VariantArm:
        """Look up a variant by name.

        Args:
            name: Variant name.

        Returns:
            VariantArm: The variant.

        Raises:
            UnknownVariantError: If no variant has that name.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownVariantError(f"unknown variant {name!r}, expected one of {', '.join(self.names)}") from None

    def arm_for(self, value: Any) -> VariantArm:
        """Find the variant that describes a value.

        Exact type matches win over subclass matches, so ``Tag`` arms for
        ``int`` and ``bool`` can coexist.

        Args:
            value: Value to classify.

        Returns:
            VariantArm: Matching variant.

        Raises:
            TypeMismatchError: If no variant matches.
        """
        if isinstance(value, Enum):
            for arm in self.arms:
                if arm.kind == "unit" and arm.value is value:
                    return arm
        else:
            for arm in self.arms:
                if arm.match is not None and type(value) is arm.match:
                    return arm
            for arm in self.arms:
                if arm.match is not None and isinstance(value, arm.match):
                    return arm
        raise TypeMismatchError(f"{type(value).__name__} value is not a variant of {type_name(self.tp)}")


def _is_namedtuple(tp: type) -> bool:
    """Whether a class was made by ``typing.NamedTuple``."""
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


def _is_record(tp: Any) -> bool:
    """Whether an annotation is a dataclass, pydantic model or TypedDict."""
    return isinstance(tp, type) and (dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel) or is_typeddict(tp))


def _record(tp: type) -> RecordShape:
    """Build the record shape for a record class."""
    if is_typeddict(tp):
        return RecordShape(tp, "typeddict")
    if issubclass(tp, BaseModel):
        return RecordShape(tp, "pydantic")
    return RecordShape(tp, "dataclass")


def _namedtuple(tp: type) -> TupleShape:
    """Build a named tuple shape from the field annotations."""
    try:
        hints = get_type_hints(tp, include_extras=True)
    except (NameError, TypeError) as exc:
        raise UnsupportedTypeError(f"cannot resolve annotations of {tp.__name__}: {exc}") from exc
    items = tuple(shape_of(hints.get(name, Any)) for name in tp._fields)
    return TupleShape(items, factory=tp, named=True)


def _enum_arms(tp: type) -> Tuple[VariantArm, ...]:
    """One unit variant per enum member, named by member name."""
    return tuple(VariantArm(member.name, "unit", value=member) for member in tp)


def _union_arms(tp: Any, args: Tuple[Any, ...]) -> Tuple[VariantArm, ...]:
    """Variants of a union; every arm must carry a name."""
    arms = []
    for arg in args:
        if get_origin(arg) is Annotated:
            tag = next((item for item in arg.__metadata__ if isinstance(item, Tag)), None)
            if tag is not None:
                inner = get_args(arg)[0]
                arms.append(VariantArm(tag.tag, "newtype", payload=shape_of(arg), match=get_origin(inner) or inner))
                continue
            arg = get_args(arg)[0]
        if isinstance(arg, type) and issubclass(arg, Enum):
            arms.extend(_enum_arms(arg))
        elif isinstance(arg, type) and _is_namedtuple(arg):
            arms.append(VariantArm(arg.__name__, "tuple", payload=shape_of(arg), match=arg))
        elif _is_record(arg) and not is_typeddict(arg):
            arms.append(VariantArm(arg.__name__, "struct", payload=shape_of(arg), match=arg))
        else:
            raise UnsupportedTypeError(f"{type_name(arg)} in {type_name(tp)} is untagged; wrap it as Annotated[{type_name(arg)}, Tag('name')]")

    names = [arm.name for arm in arms]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise UnsupportedTypeError(f"{type_name(tp)} has duplicate variant names: {', '.join(duplicates)}")
    return tuple(arms)


def _with_style(shape: Shape, style: Any, tp: Any) -> Shape:
    """Attach an array format marker to a sequence shape."""
    if isinstance(shape, OptionalShape):
        return OptionalShape(_with_style(shape.inner, style, tp))
    if not isinstance(shape, SequenceShape):
        raise UnsupportedTypeError(f"{type(style).__name__} only applies to sequences, not {type_name(tp)}")
    if isinstance(style, (Brackets, Repeated, Delimited)):
        item = shape.item.inner if isinstance(shape.item, OptionalShape) else shape.item
        if not isinstance(item, ScalarShape):
            raise UnsupportedTypeError(f"{type(style).__name__} requires scalar items, not {type_name(tp)}")
    return dataclasses.replace(shape, style=style)


def _build_shape(tp: Any) -> Shape:
    """Describe an annotation as a shape.

    Args:
        tp: Type annotation.

    Returns:
        Shape: Shape request.

    Raises:
        UnsupportedTypeError: If the annotation has no representation.
    """
    if tp is Any or tp is object:
        return ANY

    origin = get_origin(tp)
    args = get_args(tp)

    if origin is Annotated:
        shape = shape_of(args[0])
        meta = tp.__metadata__
        style = find_marker(meta, Brackets) or find_marker(meta, Repeated) or find_marker(meta, Delimited)
        return _with_style(shape, style, tp) if style is not None else shape

    if origin in (Required, NotRequired):
        return shape_of(args[0])

    if origin is Union or origin is types.UnionType:
        present = tuple(arg for arg in args if arg is not type(None))
        if len(present) < len(args):
            return OptionalShape(shape_of(present[0] if len(present) == 1 else Union[present]))
        return VariantShape(tp, _union_arms(tp, args))

    if isinstance(tp, type):
        if issubclass(tp, Enum):
            return VariantShape(tp, _enum_arms(tp))
        if issubclass(tp, bool):
            return ScalarShape("bool", tp)
        if issubclass(tp, int):
            return ScalarShape("int", tp)
        if issubclass(tp, float):
            return ScalarShape("float", tp)
        if issubclass(tp, Decimal):
            return ScalarShape("decimal", tp)
        if issubclass(tp, str):
            return ScalarShape("str", tp)
        if issubclass(tp, (bytes, bytearray)):
            return ScalarShape("bytes", tp)
        if tp is dict:
            return MapShape(ScalarShape("str", str), ANY)
        if tp in (list, set, frozenset, tuple):
            return SequenceShape(ANY, tp)
        if _is_namedtuple(tp):
            return _namedtuple(tp)
        if _is_record(tp):
            return _record(tp)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return SequenceShape(shape_of(args[0]), tuple)
        if args == ((),):
            return TupleShape(())
        return TupleShape(tuple(shape_of(arg) for arg in args))

    if origin in _SEQUENCE_ORIGINS:
        return SequenceShape(shape_of(args[0]) if args else ANY, _SEQUENCE_ORIGINS[origin])

    if origin in _MAP_ORIGINS:
        key = shape_of(args[0]) if args else ScalarShape("str", str)
        if not isinstance(key, (ScalarShape, VariantShape, AnyShape)) or (isinstance(key, VariantShape) and any(arm.kind != "unit" for arm in key.arms)):
            raise UnsupportedTypeError(f"map keys must be scalars or plain enums, not {type_name(args[0])}")
        return MapShape(key, shape_of(args[1]) if args else ANY)

    try:
        adapter = TypeAdapter(tp)
    except (PydanticSchemaGenerationError, TypeError) as exc:
        raise UnsupportedTypeError(f"{type_name(tp)} cannot be encoded as a query string value") from exc
    return ScalarShape("adapted", tp, adapter)


@lru_cache(maxsize=1024)
def _cached_shape(tp: Any) -> Shape:
    """Memoized :func:`_build_shape` for hashable annotations."""
    return _build_shape(tp)


def shape_of(tp: Any) -> Shape:
    """Describe a type annotation as a shape request, with caching.

    Args:
        tp: Type annotation.

    Returns:
        Shape: Shape request.

    Raises:
        UnsupportedTypeError: If the annotation cannot be expressed.

    Examples:
        >>> from typing import Union
        >>> shape_of(Union[int, str])  # doctest: +ELLIPSIS
        Traceback (most recent call last):
        ...
        bracketqs.errors.UnsupportedTypeError: int in ... is untagged; ...
    """
    try:
        hash(tp)
    except TypeError:
        return _build_shape(tp)
    return _cached_shape(tp)


def shape_for_value(value: Any) -> Shape:
    """Describe a runtime value when no annotation is available.

    Args:
        value: Any value.

    Returns:
        Shape: Shape request for ``value``.

    Examples:
        >>> shape_for_value({"a": [1]})
        MapShape(key=ScalarShape(kind='str'), value=AnyShape())
        >>> shape_for_value(None)
        OptionalShape(inner=AnyShape())
    """
    if value is None:
        return OptionalShape(ANY)
    if isinstance(value, dict):
        return MapShape(ScalarShape("str", str), ANY)
    if isinstance(value, (list, set, frozenset)) or (isinstance(value, tuple) and not _is_namedtuple(type(value))):
        return SequenceShape(ANY, type(value))
    return shape_of(type(value))
