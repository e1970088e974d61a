# -*- coding: utf-8 -*-
"""Location: ./bracketqs/encoding.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Percent-encoding and numeric text rules.

Two encode profiles are supported:

1. ``EncodeMode.MINIMAL`` escapes the WHATWG query percent-encode set
   (controls, space, ``"``, ``#``, ``<``, ``>``) plus ``%`` and the
   separators the format itself relies on (``&``, ``=``, ``+``). Square
   brackets pass through, which keeps nested keys readable: ``a[b][0]=1``.
2. ``EncodeMode.FORM`` follows ``application/x-www-form-urlencoded``:
   everything except ASCII alphanumerics and ``*-._`` is escaped and a
   space becomes ``+``.

Decoding is shared by both profiles: ``+`` is a space and ``%XX`` a byte.

Examples:
    >>> percent_encode("a b[c]", EncodeMode.MINIMAL)
    'a%20b[c]'
    >>> percent_encode("a b[c]", EncodeMode.FORM)
    'a+b%5Bc%5D'
    >>> decode_text(b"a+b%5Bc%5D")
    'a b[c]'
    >>> render_float(0.1)
    '0.1'
    >>> parse_float("1e-3")
    0.001
"""

# Standard
from decimal import Decimal, InvalidOperation
from enum import Enum
import math
import re
from typing import Union
from urllib.parse import unquote_to_bytes

# First-Party
from bracketqs.errors import InvalidEncodingError, InvalidNumberError, InvalidUtf8Error

_HEX = "0123456789ABCDEF"

# Bytes that never need escaping in form mode
_FORM_SAFE = frozenset(b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789*-._")

# Printable ASCII escaped in minimal mode; controls and non-ASCII are always escaped
_MINIMAL_UNSAFE = frozenset(b' "#<>%&=+')

# A '%' that does not start a two-digit hex escape
_BAD_ESCAPE_RE = re.compile(rb"%(?![0-9A-Fa-f]{2})")

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_SPECIAL_FLOAT_RE = re.compile(r"[+-]?(?:nan|inf|infinity)", re.IGNORECASE)


class EncodeMode(str, Enum):
    """Percent-encoding profile used when rendering keys and values."""

    MINIMAL = "minimal"
    FORM = "form"


def _build_table(mode: EncodeMode) -> tuple:
    """Precompute the escaped form of every byte for one profile.

    Args:
        mode: Encoding profile.

    Returns:
        tuple: 256 strings, indexed by byte value.
    """
    table = []
    for byte in range(256):
        escaped = "%" + _HEX[byte >> 4] + _HEX[byte & 0x0F]
        if mode is EncodeMode.FORM:
            if byte == 0x20:
                table.append("+")
            elif byte in _FORM_SAFE:
                table.append(chr(byte))
            else:
                table.append(escaped)
        elif byte < 0x20 or byte >= 0x7F or byte in _MINIMAL_UNSAFE:
            table.append(escaped)
        else:
            table.append(chr(byte))
    return tuple(table)


_TABLES = {mode: _build_table(mode) for mode in EncodeMode}


def percent_encode(value: Union[str, bytes], mode: EncodeMode = EncodeMode.MINIMAL) -> str:
    """Percent-encode text or raw bytes under the given profile.

    Text is encoded as UTF-8 first; raw bytes are escaped as they are, which
    lets values that were never valid UTF-8 survive a round trip.

    Args:
        value: Text or bytes to encode.
        mode: Encoding profile.

    Returns:
        str: ASCII-only encoded text.

    Examples:
        >>> percent_encode("c&d=e+f")
        'c%26d%3De%2Bf'
        >>> percent_encode("50% <off>")
        '50%25%20%3Coff%3E'
        >>> percent_encode("x/y?z", EncodeMode.FORM)
        'x%2Fy%3Fz'
        >>> percent_encode("é")
        '%C3%A9'
        >>> percent_encode(b"\\xff")
        '%FF'
        >>> percent_encode("plain-text_1.2*")
        'plain-text_1.2*'
    """
    data = value.encode("utf-8") if isinstance(value, str) else value
    table = _TABLES[mode]
    return "".join(table[byte] for byte in data)


def percent_decode(data: bytes) -> bytes:
    """Decode ``+`` and ``%XX`` escapes.

    Args:
        data: Encoded bytes.

    Returns:
        bytes: Decoded bytes, not yet checked for UTF-8 validity.

    Raises:
        InvalidEncodingError: If a ``%`` is not followed by two hex digits.

    Examples:
        >>> percent_decode(b"a%20b+c")
        b'a b c'
        >>> percent_decode(b"%E4%B8%96")
        b'\\xe4\\xb8\\x96'
        >>> percent_decode(b"100%")
        Traceback (most recent call last):
        ...
        bracketqs.errors.InvalidEncodingError: malformed percent escape at offset 3
    """
    if b"%" not in data and b"+" not in data:
        return data
    bad = _BAD_ESCAPE_RE.search(data)
    if bad is not None:
        raise InvalidEncodingError(f"malformed percent escape at offset {bad.start()}")
    return unquote_to_bytes(data.replace(b"+", b" "))


def decode_text(data: bytes) -> str:
    """Percent-decode bytes and validate the result as UTF-8.

    Args:
        data: Encoded bytes.

    Returns:
        str: Decoded text.

    Raises:
        InvalidUtf8Error: If the decoded bytes are not valid UTF-8.

    Examples:
        >>> decode_text(b"caf%C3%A9")
        'café'
        >>> decode_text(b"%FF")
        Traceback (most recent call last):
        ...
        bracketqs.errors.InvalidUtf8Error: invalid utf-8 sequence at byte 0
    """
    return utf8(percent_decode(data))


def utf8(data: bytes) -> str:
    """Decode already percent-decoded bytes as strict UTF-8.

    Args:
        data: Raw bytes.

    Returns:
        str: Decoded text.

    Raises:
        InvalidUtf8Error: If ``data`` is not valid UTF-8.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidUtf8Error(f"invalid utf-8 sequence at byte {exc.start}") from exc


def render_bool(value: bool) -> str:
    """Render a boolean as ``true`` or ``false``.

    Args:
        value: Boolean to render.

    Returns:
        str: ``"true"`` or ``"false"``.
    """
    return "true" if value else "false"


def render_int(value: int) -> str:
    """Render an integer as minimal decimal text.

    Args:
        value: Integer to render.

    Returns:
        str: Decimal text, signed only when negative.

    Examples:
        >>> render_int(-0)
        '0'
        >>> render_int(-9223372036854775808)
        '-9223372036854775808'
    """
    return str(int(value))


def render_float(value: float) -> str:
    """Render a float as the shortest text that parses back to the same value.

    Args:
        value: Float to render.

    Returns:
        str: Shortest round-trip decimal, or ``NaN`` / ``inf`` / ``-inf``.

    Examples:
        >>> render_float(1.0)
        '1.0'
        >>> render_float(-0.0)
        '-0.0'
        >>> render_float(1e300)
        '1e+300'
        >>> render_float(float("-inf"))
        '-inf'
        >>> render_float(float("nan"))
        'NaN'
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return repr(float(value))


def render_decimal(value: Decimal) -> str:
    """Render a :class:`~decimal.Decimal` without losing precision.

    Args:
        value: Decimal to render.

    Returns:
        str: Decimal text.

    Examples:
        >>> render_decimal(Decimal("1.50"))
        '1.50'
    """
    return str(value)


def parse_bool(text: str) -> bool:
    """Parse ``true``/``false``; empty text means bare presence, which is truthy.

    Args:
        text: Decoded text.

    Returns:
        bool: Parsed value.

    Raises:
        ValueError: If ``text`` is not a boolean literal.

    Examples:
        >>> parse_bool("true"), parse_bool("false"), parse_bool("")
        (True, False, True)
    """
    if text == "" or text == "true":
        return True
    if text == "false":
        return False
    raise ValueError(f"expected 'true' or 'false', found {text!r}")


def parse_int(text: str) -> int:
    """Parse an optionally signed decimal integer.

    Args:
        text: Decoded text.

    Returns:
        int: Parsed integer.

    Raises:
        InvalidNumberError: If ``text`` is not a decimal integer.

    Examples:
        >>> parse_int("-42")
        -42
        >>> parse_int("007")
        7
        >>> parse_int("1_000")
        Traceback (most recent call last):
        ...
        bracketqs.errors.InvalidNumberError: invalid integer '1_000'
    """
    if not _INT_RE.fullmatch(text):
        raise InvalidNumberError(f"invalid integer {text!r}")
    return int(text)


def parse_float(text: str) -> float:
    """Parse a decimal literal, or one of the special values ``nan``/``inf``.

    Args:
        text: Decoded text.

    Returns:
        float: Parsed value.

    Raises:
        InvalidNumberError: If ``text`` is not a decimal literal.

    Examples:
        >>> parse_float("3.25")
        3.25
        >>> parse_float("-inf")
        -inf
        >>> parse_float("0x10")
        Traceback (most recent call last):
        ...
        bracketqs.errors.InvalidNumberError: invalid float '0x10'
    """
    if not (_FLOAT_RE.fullmatch(text) or _SPECIAL_FLOAT_RE.fullmatch(text)):
        raise InvalidNumberError(f"invalid float {text!r}")
    return float(text)


def parse_decimal(text: str) -> Decimal:
    """Parse a decimal literal into an exact :class:`~decimal.Decimal`.

    Args:
        text: Decoded text.

    Returns:
        Decimal: Parsed value.

    Raises:
        InvalidNumberError: If ``text`` is not a decimal literal.

    Examples:
        >>> parse_decimal("19.99")
        Decimal('19.99')
    """
    if not (_FLOAT_RE.fullmatch(text) or _SPECIAL_FLOAT_RE.fullmatch(text)):
        raise InvalidNumberError(f"invalid decimal {text!r}")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise InvalidNumberError(f"invalid decimal {text!r}") from exc
