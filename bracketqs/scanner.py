# -*- coding: utf-8 -*-
"""Location: ./bracketqs/scanner.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Raw pair scanner: the first decode pass.

Splits an encoded query string on ``&`` into ``key[=value]`` segments and
percent-decodes both halves. Keys must be valid UTF-8. Values that are not
valid UTF-8 are kept as ``bytes`` so that a destination typed ``bytes`` can
accept them; every other destination rejects them later in the reader.

Examples:
    >>> scan("b=2&a=1&flag&b=3")
    [RawPair(key='b', value='2'), RawPair(key='a', value='1'), RawPair(key='flag', value=None), RawPair(key='b', value='3')]
    >>> scan("")
    []
    >>> scan("k=%FF")
    [RawPair(key='k', value=b'\\xff')]
"""

# Standard
import logging
from typing import List, NamedTuple, Optional, Union

# First-Party
from bracketqs.encoding import percent_decode, utf8
from bracketqs.errors import InvalidUtf8Error

logger = logging.getLogger(__name__)

RawValue = Union[str, bytes, None]


class RawPair(NamedTuple):
    """One decoded ``key[=value]`` segment, in input order.

    Attributes:
        key: Decoded key text, brackets included.
        value: Decoded value; ``None`` when the segment had no ``=``, ``bytes``
            when the decoded value is not valid UTF-8.
    """

    key: str
    value: RawValue


def _decode_value(raw: bytes) -> RawValue:
    """Decode a value, falling back to raw bytes when it is not UTF-8.

    Args:
        raw: Encoded value bytes.

    Returns:
        RawValue: Decoded text, or the decoded bytes.
    """
    data = percent_decode(raw)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


def scan(text: Union[str, bytes]) -> List[RawPair]:
    """Split an encoded query string into decoded pairs.

    Only ``&`` separates pairs; ``;`` is ordinary data. Empty segments
    (``a=1&&b=2``) are skipped. Each segment splits on its first ``=``.

    Args:
        text: Encoded query string.

    Returns:
        List[RawPair]: Pairs in input order, duplicates preserved.

    Raises:
        InvalidUtf8Error: If a decoded key is not valid UTF-8.
        InvalidEncodingError: On a malformed percent escape.

    Examples:
        >>> scan("a=1;b=2")
        [RawPair(key='a', value='1;b=2')]
        >>> scan("a[b]=x=y&&c=")
        [RawPair(key='a[b]', value='x=y'), RawPair(key='c', value='')]
        >>> scan("a%5B0%5D=hello+world")
        [RawPair(key='a[0]', value='hello world')]
    """
    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    pairs: List[RawPair] = []
    if not data:
        return pairs

    for segment in data.split(b"&"):
        if not segment:
            continue
        raw_key, sep, raw_value = segment.partition(b"=")
        try:
            key = utf8(percent_decode(raw_key))
        except InvalidUtf8Error as exc:
            raise exc.with_key(raw_key.decode("ascii", errors="replace"))
        value: Optional[RawValue] = _decode_value(raw_value) if sep else None
        pairs.append(RawPair(key, value))

    logger.debug(f"Scanned {len(pairs)} pairs from {len(data)} bytes")
    return pairs
