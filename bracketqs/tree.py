# -*- coding: utf-8 -*-
"""Location: ./bracketqs/tree.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Untyped value tree built from raw pairs.

The tree is the intermediate form between the scanner and the typed
reader. It has three node kinds:

- :class:`Scalar` holds one raw decoded value (``None`` for a bare key).
- :class:`Sequence` holds ordered slots. It is either *explicit* (created by
  ``[n]`` or ``[]`` segments) or *implicit* (created when a flat key repeats).
- :class:`Map` holds named children in insertion order.

Explicit sequence indices act as keys on the sequence: ``a[1]=x&a[0]=y``
yields the slots ``x, y`` in insertion order, and a second ``a[0][...]``
reuses the slot created for index 0.

Examples:
    >>> from bracketqs.scanner import scan
    >>> root = build(scan("a[b][0]=1&a[b][1]=2&c=3&c=4"))
    >>> root.to_python()
    {'a': {'b': ['1', '2']}, 'c': ['3', '4']}
    >>> build(scan("x&y=")).to_python()
    {'x': None, 'y': ''}
"""

# Standard
from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING, Union

# First-Party
from bracketqs.errors import PathConflictError, QsError
from bracketqs.keypath import Append, Index, MapKey, parse_key, PathSegment, render_key
from bracketqs.scanner import RawPair, RawValue

if TYPE_CHECKING:
    # First-Party
    from bracketqs.config import Config

logger = logging.getLogger(__name__)


@dataclass
class Scalar:
    """A leaf holding one decoded value."""

    value: RawValue = None

    def to_python(self) -> RawValue:
        """Return the raw value.

        Returns:
            RawValue: Text, bytes or ``None``.
        """
        return self.value


@dataclass
class Sequence:
    """Ordered slots addressed by position.

    Attributes:
        items: Child nodes in slot order.
        keys: Raw index text per slot (``None`` for appended or implicit slots).
        implicit: True when the sequence came from a repeated flat key.
    """

    items: List["Node"] = field(default_factory=list)
    keys: List[Optional[str]] = field(default_factory=list)
    implicit: bool = False
    _slots: Dict[str, int] = field(default_factory=dict, repr=False, compare=False)

    def slot(self, text: str) -> Optional["Node"]:
        """Look up the slot created for an index.

        ``[7]`` and ``[007]`` are different slots.

        Args:
            text: Index text as written in the key.

        Returns:
            Optional[Node]: The slot, or ``None`` if the index was never used.
        """
        position = self._slots.get(text)
        return None if position is None else self.items[position]

    def add(self, node: "Node", text: Optional[str] = None) -> None:
        """Add a new slot at the end.

        Args:
            node: Slot content.
            text: Index text that addresses the slot, if any.
        """
        if text is not None:
            self._slots[text] = len(self.items)
        self.items.append(node)
        self.keys.append(text)

    def replace(self, text: str, node: "Node") -> None:
        """Replace the content of an indexed slot.

        Args:
            text: Index text of an existing slot.
            node: New content.
        """
        self.items[self._slots[text]] = node

    def to_map(self) -> "Map":
        """Re-key an indexed sequence by its index text.

        Returns:
            Map: Entries in slot order.

        Examples:
            >>> seq = Sequence()
            >>> seq.add(Scalar("a"), "1")
            >>> seq.to_map().to_python()
            {'1': 'a'}
        """
        return Map(dict(zip(self.keys, self.items)))

    @property
    def indexed(self) -> bool:
        """Whether every slot was addressed by an explicit index.

        Returns:
            bool: True for sequences built only from ``[n]`` segments.
        """
        return bool(self.keys) and all(key is not None for key in self.keys)

    def to_python(self) -> List[Any]:
        """Convert to plain Python lists.

        Returns:
            List[Any]: Slot contents.
        """
        return [item.to_python() for item in self.items]


@dataclass
class Map:
    """Named children in insertion order."""

    entries: Dict[str, "Node"] = field(default_factory=dict)

    def to_python(self) -> Dict[str, Any]:
        """Convert to plain Python dicts.

        Returns:
            Dict[str, Any]: Entry contents.
        """
        return {key: node.to_python() for key, node in self.entries.items()}


Node = Union[Scalar, Sequence, Map]


def _kind(node: Node) -> str:
    """Name the kind of a node for conflict messages."""
    if isinstance(node, Scalar):
        return "value"
    if isinstance(node, Map):
        return "map"
    return "repeated key" if node.implicit else "sequence"


def _entry_name(segment: PathSegment) -> str:
    """Entry name of a segment applied to a map; indices use their text."""
    return segment.name if isinstance(segment, MapKey) else segment.text


def _child(container: Union[Map, Sequence], segment: PathSegment) -> Optional[Node]:
    """Find the existing child addressed by ``segment``.

    Args:
        container: Map or explicit sequence being walked.
        segment: Segment addressing a child.

    Returns:
        Optional[Node]: Existing child, or ``None``.
    """
    if isinstance(container, Map):
        return container.entries.get(_entry_name(segment))
    if isinstance(segment, Index):
        return container.slot(segment.text)
    return None


def _attach(container: Union[Map, Sequence], segment: PathSegment, node: Node) -> None:
    """Store ``node`` under ``segment``, replacing any existing child.

    Args:
        container: Map or explicit sequence being walked.
        segment: Segment addressing the child.
        node: Node to store.
    """
    if isinstance(container, Map):
        container.entries[_entry_name(segment)] = node
    elif isinstance(segment, Index):
        if container.slot(segment.text) is None:
            container.add(node, segment.text)
        else:
            container.replace(segment.text, node)
    else:
        container.add(node)


def _expects(container: Node, segment: PathSegment) -> bool:
    """Whether ``segment`` can address a child of ``container``.

    Maps accept names and indices; explicit sequences accept indices and ``[]``.

    Args:
        container: Node the segment is applied to.
        segment: Segment to apply.

    Returns:
        bool: True when the kinds agree.
    """
    if isinstance(container, Map):
        return not isinstance(segment, Append)
    return isinstance(container, Sequence) and not container.implicit and not isinstance(segment, MapKey)


def insert(root: Map, segments: List[PathSegment], value: RawValue) -> None:
    """Insert one value at a full path.

    A name applied to a sequence built only from ``[n]`` segments turns it
    into a map keyed by the index text, so ``m[1]=a&m[x]=b`` is one map.

    Args:
        root: Root map of the tree.
        segments: Full path; the first segment is the identifier as a :class:`MapKey`.
        value: Raw value to store.

    Raises:
        PathConflictError: If the path is used both as a value and as a container,
            or as two different kinds of container.

    Examples:
        >>> root = Map()
        >>> insert(root, [MapKey("m"), Index(1, "1")], "a")
        >>> insert(root, [MapKey("m"), MapKey("x")], "b")
        >>> root.to_python()
        {'m': {'1': 'a', 'x': 'b'}}
        >>> insert(root, [MapKey("a"), Append()], "1")
        >>> insert(root, [MapKey("a"), Append()], "2")
        >>> insert(root, [MapKey("a"), MapKey("b")], "3")
        Traceback (most recent call last):
        ...
        bracketqs.errors.PathConflictError: 'a' is a sequence, cannot use it as a map (at 'a[b]')
    """
    container: Node = root
    parent: Union[Map, Sequence] = root
    parent_segment: Optional[PathSegment] = None
    for depth, segment in enumerate(segments):
        if isinstance(segment, MapKey) and isinstance(container, Sequence) and not container.implicit and container.indexed:
            container = container.to_map()
            _attach(parent, parent_segment, container)

        if not _expects(container, segment):
            wanted = "map" if isinstance(segment, MapKey) else "sequence"
            here = render_key(segments[:depth])
            raise PathConflictError(f"{here!r} is a {_kind(container)}, cannot use it as a {wanted}", key=render_key(segments))

        existing = _child(container, segment)
        if depth == len(segments) - 1:
            if existing is None:
                _attach(container, segment, Scalar(value))
            elif isinstance(existing, Scalar):
                implicit = Sequence(implicit=True)
                implicit.add(existing)
                implicit.add(Scalar(value))
                _attach(container, segment, implicit)
            elif isinstance(existing, Sequence) and existing.implicit:
                existing.add(Scalar(value))
            else:
                raise PathConflictError(f"{render_key(segments)!r} is a {_kind(existing)}, cannot assign a value to it", key=render_key(segments))
            return

        if existing is None:
            existing = Map() if isinstance(segments[depth + 1], MapKey) else Sequence()
            _attach(container, segment, existing)
        parent, parent_segment = container, segment
        container = existing


def build(pairs: Iterable[RawPair], config: Optional["Config"] = None) -> Map:
    """Fold raw pairs into a value tree.

    Args:
        pairs: Raw pairs in input order.
        config: Codec configuration; only ``max_depth`` is used.

    Returns:
        Map: Root of the tree.

    Raises:
        MalformedKeyError: If a key cannot be parsed.
        MaxDepthExceededError: If a key is nested deeper than ``max_depth``.
        PathConflictError: On conflicting uses of one path.

    Examples:
        >>> from bracketqs.scanner import scan
        >>> build(scan("a[1]=x&a[0]=y")).to_python()
        {'a': ['x', 'y']}
        >>> build(scan("a[0][p]=1&a[0][q]=2")).to_python()
        {'a': [{'p': '1', 'q': '2'}]}
        >>> build(scan("a=1&a[b]=2"))
        Traceback (most recent call last):
        ...
        bracketqs.errors.PathConflictError: 'a' is a value, cannot use it as a map (at 'a[b]')
    """
    max_depth = config.max_depth if config is not None else 5
    root = Map()
    count = 0
    for pair in pairs:
        try:
            path = parse_key(pair.key, max_depth)
            insert(root, [MapKey(path.ident), *path.segments], pair.value)
        except QsError as exc:
            raise exc.with_key(pair.key)
        count += 1
    logger.debug(f"Built value tree with {len(root.entries)} top-level keys from {count} pairs")
    return root
