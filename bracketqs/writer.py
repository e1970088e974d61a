# -*- coding: utf-8 -*-
"""Location: ./bracketqs/writer.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Typed writer: walks a value depth-first and emits raw pairs.

The writer keeps an explicit stack of path segments. A textual key is only
rendered when a leaf is committed, so intermediate containers never build
strings. Depth is checked every time a segment is pushed.

Examples:
    >>> from bracketqs.shapes import shape_for_value
    >>> pairs = write({"a": {"b": [1, 2]}, "c": None}, shape_for_value({}))
    >>> pairs
    [RawPair(key='a[b][0]', value='1'), RawPair(key='a[b][1]', value='2'), RawPair(key='c', value=None)]
    >>> serialize_pairs(pairs)
    'a[b][0]=1&a[b][1]=2&c'
"""

# Standard
import logging
from typing import Any, Iterable, List

# First-Party
from bracketqs.encoding import EncodeMode, percent_encode, utf8
from bracketqs.errors import MalformedKeyError, MaxDepthExceededError, QsError, TypeMismatchError, UnsupportedTypeError
from bracketqs.helpers import Brackets, Delimited, Repeated
from bracketqs.keypath import Append, Index, MapKey, PathSegment, render_key
from bracketqs.scanner import RawPair
from bracketqs.shapes import (
    MISSING,
    AnyShape,
    MapShape,
    OptionalShape,
    RecordShape,
    ScalarShape,
    SequenceShape,
    Shape,
    shape_for_value,
    TupleShape,
    type_name,
    VariantShape,
)

logger = logging.getLogger(__name__)


class PairWriter:
    """Depth-first emitter with an explicit segment stack.

    Attributes:
        max_depth: Maximum number of segments, identifier included.
        stack: Current path.
        pairs: Committed pairs in emission order.

    Examples:
        >>> w = PairWriter(max_depth=2)
        >>> w.push_name("a")
        >>> w.push(Index(0))
        >>> w.commit("x")
        >>> w.pairs
        [RawPair(key='a[0]', value='x')]
        >>> w.push(Append())
        Traceback (most recent call last):
        ...
        bracketqs.errors.MaxDepthExceededError: key depth 3 exceeds max_depth 2 (at 'a[0][]')
    """

    def __init__(self, max_depth: int = 5):
        """Initialize an empty writer.

        Args:
            max_depth: Maximum path depth.
        """
        self.max_depth = max_depth
        self.stack: List[PathSegment] = []
        self.pairs: List[RawPair] = []

    @property
    def key(self) -> str:
        """Render the current stack as key text.

        Returns:
            str: Key, or ``""`` at the root.
        """
        return render_key(self.stack) if self.stack else ""

    def push(self, segment: PathSegment) -> None:
        """Descend one level.

        Args:
            segment: Segment to push.

        Raises:
            MaxDepthExceededError: If the path would exceed ``max_depth``.
        """
        if len(self.stack) + 1 > self.max_depth:
            key = render_key(self.stack + [segment])
            raise MaxDepthExceededError(f"key depth {len(self.stack) + 1} exceeds max_depth {self.max_depth}", key=key)
        self.stack.append(segment)

    def push_name(self, name: str) -> None:
        """Descend into a named child.

        Args:
            name: Entry, field or variant name.

        Raises:
            MalformedKeyError: If the name is empty or contains brackets.
        """
        if not name or "[" in name or "]" in name:
            raise MalformedKeyError(f"name {name!r} cannot be written as a bracket segment", key=self.key or None)
        self.push(MapKey(name))

    def pop(self) -> None:
        """Ascend one level."""
        self.stack.pop()

    def commit(self, value: Any) -> None:
        """Emit one pair at the current path.

        Args:
            value: Raw value; ``None`` emits a bare key.
        """
        self.pairs.append(RawPair(render_key(self.stack), value))

    def write(self, value: Any, shape: Shape) -> None:
        """Write ``value`` at the current path.

        Args:
            value: Value to write.
            shape: Shape describing ``value``.

        Raises:
            QsError: On any failure, with the current key attached.
        """
        try:
            self._write(value, shape)
        except QsError as exc:
            if self.stack:
                exc.with_key(self.key)
            raise

    def _write(self, value: Any, shape: Shape) -> None:
        """Dispatch on ``shape``; empty non-root containers commit ``key=``."""
        if isinstance(shape, OptionalShape):
            if value is None:
                self.commit(None)
            else:
                self.write(value, shape.inner)
            return
        if isinstance(shape, AnyShape):
            self.write(value, shape_for_value(value))
            return
        if isinstance(shape, ScalarShape):
            self.commit(shape.render(value))
            return

        start = len(self.pairs)
        if isinstance(shape, SequenceShape):
            self._write_sequence(value, shape)
        elif isinstance(shape, TupleShape):
            self._write_tuple(value, shape)
        elif isinstance(shape, MapShape):
            self._write_map(value, shape)
        elif isinstance(shape, RecordShape):
            self._write_record(value, shape)
        elif isinstance(shape, VariantShape):
            self._write_variant(value, shape)
        else:
            raise UnsupportedTypeError(f"cannot write {type(shape).__name__}")

        # Empty non-root containers are written as ``key=``
        if len(self.pairs) == start and self.stack and not isinstance(shape, VariantShape):
            self.commit("")

    def _join_items(self, items: List[Any], shape: SequenceShape) -> str:
        """Render and join the items of a delimited list.

        Args:
            items: Non-empty list of items.
            shape: Sequence shape carrying the :class:`Delimited` marker.

        Returns:
            str: Joined value.

        Raises:
            UnsupportedTypeError: If the joined text would not split back into the same items.
        """
        sep = shape.style.sep
        parts = []
        for item in items:
            if item is None:
                raise UnsupportedTypeError(f"None cannot be written in a {sep!r}-delimited list")
            part = self._render_item(item, shape.item)
            if sep in part:
                raise UnsupportedTypeError(f"item {part!r} contains the delimiter {sep!r}")
            parts.append(part)
        if parts == [""]:
            raise UnsupportedTypeError("a single empty item cannot be written as a delimited list, it would read back as an empty list")
        return shape.style.join(parts)

    def _render_item(self, value: Any, shape: Shape) -> str:
        """Render one non-None scalar item of an alternate-format sequence as text."""
        if isinstance(shape, OptionalShape):
            shape = shape.inner
        text = shape.render(value)
        return utf8(text) if isinstance(text, bytes) else text

    def _is_empty_text(self, value: Any, shape: Shape) -> bool:
        """Return True when a scalar item renders as ``""``."""
        if value is None:
            return False
        if isinstance(shape, OptionalShape):
            shape = shape.inner
        if isinstance(shape, AnyShape):
            shape = shape_for_value(value)
        return isinstance(shape, ScalarShape) and shape.render(value) in ("", b"")

    def _write_sequence(self, value: Any, shape: SequenceShape) -> None:
        """Write sequence items in the format chosen by the marker."""
        if isinstance(value, (str, bytes, dict)):
            raise TypeMismatchError(f"expected a sequence, found {type(value).__name__}")
        items = list(value)
        if isinstance(shape.style, Delimited):
            if items:
                self.commit(self._join_items(items, shape))
            return
        # ``xs=`` is the empty list
        if isinstance(shape.style, Repeated) and len(items) == 1 and self._is_empty_text(items[0], shape.item):
            raise UnsupportedTypeError("a single empty item cannot be written as a repeated key, it would read back as an empty list")
        for i, item in enumerate(items):
            if isinstance(shape.style, Repeated):
                self.write(item, shape.item)
                continue
            self.push(Append() if isinstance(shape.style, Brackets) else Index(i))
            self.write(item, shape.item)
            self.pop()

    def _write_tuple(self, value: Any, shape: TupleShape) -> None:
        """Write tuple items by position."""
        if not isinstance(value, tuple) or len(value) != len(shape.items):
            raise TypeMismatchError(f"expected a tuple of {len(shape.items)} elements, found {type(value).__name__}")
        for i, (item, item_shape) in enumerate(zip(value, shape.items)):
            self.push(Index(i))
            self.write(item, item_shape)
            self.pop()

    def _write_map(self, value: Any, shape: MapShape) -> None:
        """Write map entries in iteration order."""
        if not isinstance(value, dict):
            raise TypeMismatchError(f"expected a map, found {type(value).__name__}")
        for key, item in value.items():
            self.push_name(shape.render_key(key))
            self.write(item, shape.value)
            self.pop()

    def _write_record(self, value: Any, shape: RecordShape) -> None:
        """Write record fields in declaration order, applying skip rules."""
        expected = dict if shape.kind == "typeddict" else shape.cls
        if not isinstance(value, expected):
            raise TypeMismatchError(f"expected {shape.cls.__name__}, found {type(value).__name__}")
        for spec in shape.fields:
            if spec.exclude:
                continue
            item = shape.get(value, spec)
            if item is MISSING:
                continue
            if spec.skip_if_none and item is None:
                continue
            if spec.skip_if_default and spec.is_default(item):
                continue
            self.push_name(spec.key)
            self.write(item, spec.shape)
            self.pop()

    def _write_variant(self, value: Any, shape: VariantShape) -> None:
        """Push the variant name, then write the payload or a bare key."""
        arm = shape.arm_for(value)
        self.push_name(arm.name)
        if arm.kind == "unit":
            self.commit(None)
        else:
            self.write(value, arm.payload)
        self.pop()


def write(value: Any, shape: Shape, max_depth: int = 5) -> List[RawPair]:
    """Write a top-level value as raw pairs.

    Args:
        value: Record, map or variant value.
        shape: Shape describing ``value``.
        max_depth: Maximum path depth.

    Returns:
        List[RawPair]: Pairs in emission order.

    Raises:
        UnsupportedTypeError: If the top-level value is not keyed.
        MaxDepthExceededError: If a path exceeds ``max_depth``.
        MalformedKeyError: If a name cannot be written as a bracket segment.
        TypeMismatchError: If a value does not match its declared type.

    Examples:
        >>> from bracketqs.shapes import shape_of
        >>> write(3, shape_of(int))
        Traceback (most recent call last):
        ...
        bracketqs.errors.UnsupportedTypeError: top-level value must be a record, map or variant, not int
    """
    if isinstance(shape, AnyShape):
        shape = shape_for_value(value)
    if not isinstance(shape, (RecordShape, MapShape, VariantShape)):
        raise UnsupportedTypeError(f"top-level value must be a record, map or variant, not {type_name(type(value))}")
    writer = PairWriter(max_depth)
    writer.write(value, shape)
    logger.debug(f"Wrote {len(writer.pairs)} pairs for {type_name(type(value))}")
    return writer.pairs


def serialize_pairs(pairs: Iterable[RawPair], mode: EncodeMode = EncodeMode.MINIMAL) -> str:
    """Percent-encode and join raw pairs.

    Args:
        pairs: Raw pairs.
        mode: Encoding profile.

    Returns:
        str: Query string.

    Examples:
        >>> serialize_pairs([RawPair("a b", "c&d")])
        'a%20b=c%26d'
        >>> serialize_pairs([RawPair("a b", "c&d")], EncodeMode.FORM)
        'a+b=c%26d'
        >>> serialize_pairs([RawPair("x", None), RawPair("y", "")])
        'x&y='
    """
    parts = []
    for key, value in pairs:
        encoded = percent_encode(key, mode)
        if value is not None:
            encoded += "=" + percent_encode(value, mode)
        parts.append(encoded)
    return "&".join(parts)
