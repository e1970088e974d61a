# -*- coding: utf-8 -*-
"""Location: ./bracketqs/keypath.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Bracketed key paths.

A key such as ``a[b][0][]`` is a leading identifier followed by bracket
groups. Each group is a map key, a sequence index (all digits) or the
empty "append" marker::

    Path    = Ident ( "[" Content "]" )*
    Content = ""        -> Append
            | digits    -> Index(n)
            | other     -> MapKey(text)

Depth is ``1 + number of groups`` and is checked against ``max_depth`` on
both the decode side (:func:`parse_key`) and the encode side (the writer
pushes segments one at a time and calls :func:`check_depth`).

Examples:
    >>> parse_key("a[b][0][]")
    Path(ident='a', segments=(MapKey(name='b'), Index(index=0), Append()))
    >>> parse_key("a[b][0][]").depth
    4
    >>> render_key([MapKey("a"), MapKey("b"), Index(0), Append()])
    'a[b][0][]'
"""

# Standard
from dataclasses import dataclass, field
from typing import Iterable, Tuple, Union

# First-Party
from bracketqs.errors import MalformedKeyError, MaxDepthExceededError


@dataclass(frozen=True)
class MapKey:
    """Named child of a map or record."""

    name: str


@dataclass(frozen=True)
class Index:
    """Numbered child of a sequence.

    Attributes:
        index: Numeric index.
        raw: Index text as written in the key (``"007"`` for ``[007]``).
    """

    index: int
    raw: str = field(default="", compare=False, repr=False)

    @property
    def text(self) -> str:
        """Index text as written, or the minimal decimal form.

        Returns:
            str: Index text.
        """
        return self.raw or str(self.index)


@dataclass(frozen=True)
class Append:
    """The empty ``[]`` marker: the next free slot of a sequence."""


PathSegment = Union[MapKey, Index, Append]


@dataclass(frozen=True)
class Path:
    """A parsed key: leading identifier plus bracket segments."""

    ident: str
    segments: Tuple[PathSegment, ...] = ()

    @property
    def depth(self) -> int:
        """Nesting depth, counting the identifier.

        Returns:
            int: ``1 + len(segments)``.
        """
        return 1 + len(self.segments)

    def __str__(self) -> str:
        """Render back to bracket notation.

        Returns:
            str: Key text.
        """
        return render_key((MapKey(self.ident),) + self.segments)


def check_depth(depth: int, max_depth: int, key: str) -> None:
    """Fail when a path is nested deeper than allowed.

    Args:
        depth: Depth of the path, counting the identifier.
        max_depth: Configured limit.
        key: Key text for the error message.

    Raises:
        MaxDepthExceededError: If ``depth > max_depth``.

    Examples:
        >>> check_depth(3, 2, "a[b][c]")
        Traceback (most recent call last):
        ...
        bracketqs.errors.MaxDepthExceededError: key depth 3 exceeds max_depth 2 (at 'a[b][c]')
    """
    if depth > max_depth:
        raise MaxDepthExceededError(f"key depth {depth} exceeds max_depth {max_depth}", key=key)


def _segment(content: str) -> PathSegment:
    """Classify the text between one pair of brackets.

    Args:
        content: Group content.

    Returns:
        PathSegment: ``Append``, ``Index`` or ``MapKey``.
    """
    if not content:
        return Append()
    if content.isascii() and content.isdigit():
        return Index(int(content), content)
    return MapKey(content)


def parse_key(text: str, max_depth: int = 5) -> Path:
    """Parse decoded key text into a :class:`Path`.

    Args:
        text: Decoded key.
        max_depth: Maximum allowed depth.

    Returns:
        Path: Parsed path.

    Raises:
        MalformedKeyError: On unmatched brackets, text between groups, or an
            empty identifier.
        MaxDepthExceededError: If the key is nested deeper than ``max_depth``.

    Examples:
        >>> parse_key("plain")
        Path(ident='plain', segments=())
        >>> parse_key("m[007]").segments[0].text
        '007'
        >>> parse_key("a[b")
        Traceback (most recent call last):
        ...
        bracketqs.errors.MalformedKeyError: unmatched '[' (at 'a[b')
        >>> parse_key("a[b]c")
        Traceback (most recent call last):
        ...
        bracketqs.errors.MalformedKeyError: unexpected 'c' after ']' (at 'a[b]c')
        >>> parse_key("a[b][c]", max_depth=2)
        Traceback (most recent call last):
        ...
        bracketqs.errors.MaxDepthExceededError: key depth 3 exceeds max_depth 2 (at 'a[b][c]')
    """
    open_at = text.find("[")
    ident = text if open_at < 0 else text[:open_at]
    if not ident:
        raise MalformedKeyError("key has an empty identifier", key=text)
    if "]" in ident:
        raise MalformedKeyError("unmatched ']'", key=text)
    check_depth(1, max_depth, text)
    if open_at < 0:
        return Path(ident)

    segments = []
    pos = open_at
    while pos < len(text):
        if text[pos] != "[":
            raise MalformedKeyError(f"unexpected {text[pos]!r} after ']'", key=text)
        close = text.find("]", pos + 1)
        if close < 0:
            raise MalformedKeyError("unmatched '['", key=text)
        content = text[pos + 1 : close]
        if "[" in content:
            raise MalformedKeyError("'[' inside a bracket group", key=text)
        segments.append(_segment(content))
        check_depth(1 + len(segments), max_depth, text)
        pos = close + 1
    return Path(ident, tuple(segments))


def render_segment(segment: PathSegment) -> str:
    """Render one non-leading segment in bracket form.

    Args:
        segment: Segment to render.

    Returns:
        str: ``[name]``, ``[n]`` or ``[]``.
    """
    if isinstance(segment, MapKey):
        return f"[{segment.name}]"
    if isinstance(segment, Index):
        return f"[{segment.text}]"
    return "[]"


def render_key(segments: Iterable[PathSegment]) -> str:
    """Render a segment stack as key text; the first segment is the bare identifier.

    Args:
        segments: Segments, the first of which must be a :class:`MapKey`.

    Returns:
        str: Key text.

    Raises:
        MalformedKeyError: If the stack is empty or does not start with a map key.

    Examples:
        >>> render_key([MapKey("user"), Index(2), MapKey("name")])
        'user[2][name]'
    """
    items = list(segments)
    if not items or not isinstance(items[0], MapKey):
        raise MalformedKeyError("a key must start with a name")
    return items[0].name + "".join(render_segment(seg) for seg in items[1:])
