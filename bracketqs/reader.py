# -*- coding: utf-8 -*-
"""Location: ./bracketqs/reader.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Typed reader: the second decode pass.

Walks the untyped tree from :mod:`bracketqs.tree` under the guidance of a
shape from :mod:`bracketqs.shapes` and produces the final Python value.
The main ambiguity rules live here:

- A scalar requested from a repeated key takes the **last** value.
- A sequence requested from a single value wraps it as one element.
- A bare key (``x``) is ``None`` for optionals, ``True`` for booleans and
  ``""`` for strings; ``x=`` is the empty string, or an empty container.
- A variant is a map with exactly one entry naming it (``color[Red]``).

Examples:
    >>> from bracketqs.scanner import scan
    >>> from bracketqs.tree import build
    >>> from bracketqs.shapes import shape_of
    >>> read(build(scan("a=1&a=2")), shape_of(dict))
    {'a': ['1', '2']}
    >>> from bracketqs.shapes import MapShape, ScalarShape, SequenceShape
    >>> read(build(scan("a=1&a=2")), MapShape(ScalarShape("str"), ScalarShape("int")))
    {'a': 2}
    >>> read(build(scan("a=1")), MapShape(ScalarShape("str"), SequenceShape(ScalarShape("int"))))
    {'a': [1]}
"""

# Standard
import logging
from typing import Any, Dict, Optional

# First-Party
from bracketqs.encoding import utf8
from bracketqs.errors import QsError, TypeMismatchError, UnsupportedTypeError
from bracketqs.helpers import Delimited
from bracketqs.shapes import (
    AnyShape,
    MapShape,
    OptionalShape,
    RecordShape,
    ScalarShape,
    SequenceShape,
    Shape,
    TupleShape,
    type_name,
    VariantShape,
)
from bracketqs.tree import Map, Node, Scalar, Sequence

logger = logging.getLogger(__name__)


def _child_key(key: str, name: Any) -> str:
    """Extend a textual key path by one bracket segment."""
    return f"{key}[{name}]" if key else str(name)


def _describe(node: Optional[Node]) -> str:
    """Name the kind of a node for error messages."""
    if node is None:
        return "nothing"
    if isinstance(node, Scalar):
        return "a bare key" if node.value is None else "a value"
    if isinstance(node, Map):
        return "a map"
    return "a sequence"


def _is_empty(node: Node) -> bool:
    """Whether ``node`` is the ``key=`` form that encodes an empty container."""
    return isinstance(node, Scalar) and node.value == ""


def _read_any(node: Node) -> Any:
    """Convert a node to plain ``str`` / ``None`` / ``list`` / ``dict`` values."""
    if isinstance(node, Scalar):
        return utf8(node.value) if isinstance(node.value, bytes) else node.value
    if isinstance(node, Sequence):
        return [_read_any(item) for item in node.items]
    return {name: _read_any(child) for name, child in node.entries.items()}


def _read_scalar(node: Node, shape: ScalarShape, key: str) -> Any:
    """Resolve a node as one leaf value; repeated keys give their last value."""
    if isinstance(node, Sequence):
        if not node.items:
            raise TypeMismatchError(f"expected {shape.name}, found an empty sequence")
        return _read(node.items[-1], shape, key)
    if isinstance(node, Map):
        raise TypeMismatchError(f"expected {shape.name}, found a map")
    return shape.parse(node.value)


def _read_sequence(node: Node, shape: SequenceShape, key: str) -> Any:
    """Resolve a node as a variable-length sequence."""
    if isinstance(node, Sequence):
        return shape.build([_read(item, shape.item, _child_key(key, i)) for i, item in enumerate(node.items)])
    if isinstance(node, Map):
        raise TypeMismatchError("expected a sequence, found a map")

    if isinstance(shape.style, Delimited):
        raw = node.value
        text = utf8(raw) if isinstance(raw, bytes) else (raw or "")
        parts = shape.style.split(text)
        return shape.build([_read(Scalar(part), shape.item, _child_key(key, i)) for i, part in enumerate(parts)])
    if _is_empty(node):
        return shape.build([])
    return shape.build([_read(node, shape.item, key)])


def _read_tuple(node: Node, shape: TupleShape, key: str) -> Any:
    """Resolve a node as a fixed-length tuple."""
    if isinstance(node, Scalar):
        if len(shape.items) == 1:
            return shape.build([_read(node, shape.items[0], key)])
        if not shape.items and _is_empty(node):
            return shape.build([])
        raise TypeMismatchError(f"expected a tuple of {len(shape.items)} elements, found {_describe(node)}")
    if isinstance(node, Map):
        raise TypeMismatchError("expected a tuple, found a map")
    if len(node.items) != len(shape.items):
        raise TypeMismatchError(f"expected a tuple of {len(shape.items)} elements, found {len(node.items)}")
    return shape.build([_read(item, item_shape, _child_key(key, i)) for i, (item, item_shape) in enumerate(zip(node.items, shape.items))])


def _read_map(node: Node, shape: MapShape, key: str) -> Dict[Any, Any]:
    """Resolve a map, or an index-keyed sequence, as a dict."""
    if isinstance(node, Map):
        entries = node.entries.items()
    elif isinstance(node, Sequence) and node.indexed:
        entries = zip(node.keys, node.items)
    elif _is_empty(node):
        return {}
    else:
        raise TypeMismatchError(f"expected a map, found {_describe(node)}")

    result = {}
    for name, child in entries:
        child_key = _child_key(key, name)
        try:
            map_key = shape.parse_key(name)
        except QsError as exc:
            raise exc.with_key(child_key)
        result[map_key] = _read(child, shape.value, child_key)
    return result


def _read_record(node: Node, shape: RecordShape, key: str) -> Any:
    """Resolve a map as a record, filling in missing fields."""
    if _is_empty(node):
        node = Map()
    if not isinstance(node, Map):
        raise TypeMismatchError(f"expected {shape.cls.__name__}, found {_describe(node)}")

    values = {}
    for spec in shape.fields:
        child_key = _child_key(key, spec.key)
        child = node.entries.get(spec.key)
        if child is not None:
            values[spec.init_name] = _read(child, spec.shape, child_key)
        elif not spec.required:
            continue
        elif isinstance(spec.shape, OptionalShape):
            values[spec.init_name] = None
        elif isinstance(spec.shape, SequenceShape):
            values[spec.init_name] = spec.shape.build([])
        elif isinstance(spec.shape, MapShape):
            values[spec.init_name] = {}
        else:
            raise TypeMismatchError(f"missing field {spec.key!r} of {shape.cls.__name__}", key=child_key)

    unknown = [name for name in node.entries if name not in {spec.key for spec in shape.fields}]
    if unknown:
        logger.debug(f"Ignoring unknown keys for {shape.cls.__name__}: {unknown}")
    return shape.build(values)


def _read_variant(node: Node, shape: VariantShape, key: str) -> Any:
    """Resolve a single-entry map as the variant it names."""
    if not isinstance(node, Map) or len(node.entries) != 1:
        found = f"{len(node.entries)} entries" if isinstance(node, Map) else _describe(node)
        raise TypeMismatchError(f"expected exactly one variant of {type_name(shape.tp)}, found {found}")

    name, payload = next(iter(node.entries.items()))
    child_key = _child_key(key, name)
    try:
        arm = shape.arm(name)
    except QsError as exc:
        raise exc.with_key(child_key)
    if arm.kind == "unit":
        if not (isinstance(payload, Scalar) and payload.value in (None, "")):
            raise TypeMismatchError(f"unit variant {name!r} takes no value", key=child_key)
        return arm.value
    return _read(payload, arm.payload, child_key)


def _read(node: Optional[Node], shape: Shape, key: str) -> Any:
    """Resolve one node as ``shape``.

    Args:
        node: Tree node, or ``None`` when the key was absent.
        shape: Requested shape.
        key: Textual key path of ``node``, for error messages.

    Returns:
        Any: Resolved value.

    Raises:
        QsError: Any resolution failure, with ``key`` attached.
    """
    try:
        if isinstance(shape, OptionalShape):
            if node is None or (isinstance(node, Scalar) and node.value is None):
                return None
            return _read(node, shape.inner, key)
        if node is None:
            raise TypeMismatchError("missing value")
        if isinstance(shape, AnyShape):
            return _read_any(node)
        if isinstance(shape, ScalarShape):
            return _read_scalar(node, shape, key)
        if isinstance(shape, SequenceShape):
            return _read_sequence(node, shape, key)
        if isinstance(shape, TupleShape):
            return _read_tuple(node, shape, key)
        if isinstance(shape, MapShape):
            return _read_map(node, shape, key)
        if isinstance(shape, RecordShape):
            return _read_record(node, shape, key)
        if isinstance(shape, VariantShape):
            return _read_variant(node, shape, key)
        raise UnsupportedTypeError(f"cannot read {type(shape).__name__}")
    except QsError as exc:
        if key:
            exc.with_key(key)
        raise


def read(root: Map, shape: Shape) -> Any:
    """Resolve a whole tree as the top-level ``shape``.

    Args:
        root: Root map from :func:`bracketqs.tree.build`.
        shape: Top-level shape: a record, map, variant or ``Any``.

    Returns:
        Any: Typed value.

    Raises:
        UnsupportedTypeError: If the top-level shape is not keyed.
        TypeMismatchError: If the tree does not fit the shape.
        UnknownVariantError: If a variant name is not recognised.
        InvalidNumberError: If numeric text is malformed.
        InvalidUtf8Error: If a non-``bytes`` value is not valid UTF-8.

    Examples:
        >>> from bracketqs.shapes import ScalarShape
        >>> read(Map(), ScalarShape("int"))
        Traceback (most recent call last):
        ...
        bracketqs.errors.UnsupportedTypeError: top-level value must be a record, map or variant, not ScalarShape
    """
    if not isinstance(shape, (RecordShape, MapShape, VariantShape, AnyShape)):
        raise UnsupportedTypeError(f"top-level value must be a record, map or variant, not {type(shape).__name__}")
    logger.debug(f"Reading {len(root.entries)} top-level keys as {type(shape).__name__}")
    return _read(root, shape, "")
