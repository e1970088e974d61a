# -*- coding: utf-8 -*-
"""Location: ./bracketqs/helpers.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Field markers that change how a single field is written or read.

Markers are plain frozen objects placed in ``typing.Annotated`` metadata
(or, for pydantic models, in ``Field`` metadata through ``Annotated``):

    >>> from dataclasses import dataclass
    >>> from typing import Annotated, List, Optional
    >>> @dataclass
    ... class Query:
    ...     ids: Annotated[List[int], CommaSeparated]
    ...     tags: Annotated[List[str], Brackets()]
    ...     page: Annotated[Optional[int], SkipIfNone()] = None

By default a sequence is written with explicit indices (``xs[0]=1&xs[1]=2``).
:class:`Brackets` writes ``xs[]=1&xs[]=2``, :class:`Repeated` writes
``xs=1&xs=2`` and :class:`Delimited` writes ``xs=1,2``. Every format
decodes back to the same list.
"""

# Standard
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Type, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Brackets:
    """Write sequence items with empty brackets: ``xs[]=1&xs[]=2``."""


@dataclass(frozen=True)
class Repeated:
    """Write sequence items under the bare key: ``xs=1&xs=2``."""


@dataclass(frozen=True)
class Delimited:
    """Write sequence items as one value joined by ``sep``.

    Attributes:
        sep: Separator placed between items; must be non-empty.

    Examples:
        >>> Delimited("|").sep
        '|'
        >>> Delimited("")
        Traceback (most recent call last):
        ...
        ValueError: delimiter must be a non-empty string
    """

    sep: str

    def __post_init__(self) -> None:
        """Validate the separator.

        Raises:
            ValueError: If the separator is empty.
        """
        if not self.sep:
            raise ValueError("delimiter must be a non-empty string")

    def join(self, parts: Iterable[str]) -> str:
        """Join rendered items.

        Args:
            parts: Rendered item texts.

        Returns:
            str: Joined value.
        """
        return self.sep.join(parts)

    def split(self, text: str) -> list:
        """Split a value back into item texts; empty text is an empty list.

        Args:
            text: Joined value.

        Returns:
            list: Item texts.

        Examples:
            >>> CommaSeparated.split("1,2,3")
            ['1', '2', '3']
            >>> CommaSeparated.split("")
            []
        """
        return text.split(self.sep) if text else []


CommaSeparated = Delimited(",")
PipeDelimited = Delimited("|")
SpaceDelimited = Delimited(" ")


def generic_delimiter(sep: str) -> Delimited:
    """Build a :class:`Delimited` marker for an arbitrary separator.

    Args:
        sep: Separator.

    Returns:
        Delimited: Marker instance.

    Examples:
        >>> generic_delimiter(";") == Delimited(";")
        True
    """
    return Delimited(sep)


@dataclass(frozen=True)
class SkipIfNone:
    """Omit the field entirely when its value is ``None``."""


@dataclass(frozen=True)
class SkipIfDefault:
    """Omit the field entirely when its value equals the declared default."""


@dataclass(frozen=True)
class Rename:
    """Read and write the field under ``name`` instead of its attribute name."""

    name: str


def find_marker(metadata: Iterable[Any], kind: Type[T]) -> Optional[T]:
    """Return the first marker of ``kind`` in ``metadata``.

    Marker classes may be given bare (``Annotated[int, SkipIfNone]``) as well
    as instantiated.

    Args:
        metadata: ``Annotated`` metadata items.
        kind: Marker class.

    Returns:
        Optional[T]: Marker instance, or ``None``.

    Examples:
        >>> find_marker(["doc", Repeated()], Repeated)
        Repeated()
        >>> find_marker([SkipIfNone], SkipIfNone)
        SkipIfNone()
        >>> find_marker([], Brackets) is None
        True
    """
    for item in metadata:
        if isinstance(item, kind):
            return item
        if item is kind and kind not in (Delimited, Rename):
            return kind()
    return None
