# -*- coding: utf-8 -*-
"""Location: ./bracketqs/errors.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Error types raised by the bracketqs decode and encode pipelines.

Every failure is a pure function of the input and the configuration, so
all errors are terminal for the call that raised them. Each error class
carries a machine-readable ``kind`` and, where it is known, the textual
key path at which the failure happened.

Examples:
    >>> from bracketqs.errors import MalformedKeyError, ErrorKind
    >>> err = MalformedKeyError("unmatched '['", key="a[b")
    >>> err.kind
    <ErrorKind.MALFORMED_KEY: 'malformed_key'>
    >>> str(err)
    "unmatched '[' (at 'a[b')"
    >>> err.key
    'a[b'
"""

# Standard
from enum import Enum
from typing import ClassVar, Optional


class ErrorKind(str, Enum):
    """Machine-readable classification of a :class:`QsError`."""

    INVALID_UTF8 = "invalid_utf8"
    INVALID_ENCODING = "invalid_encoding"
    INVALID_NUMBER = "invalid_number"
    MALFORMED_KEY = "malformed_key"
    MAX_DEPTH_EXCEEDED = "max_depth_exceeded"
    PATH_CONFLICT = "path_conflict"
    TYPE_MISMATCH = "type_mismatch"
    UNKNOWN_VARIANT = "unknown_variant"
    UNSUPPORTED_TYPE = "unsupported_type"


class QsError(Exception):
    """Base class for all query-string codec errors.

    Attributes:
        kind: Classification of the error.
        message: Human-readable description without the key suffix.
        key: Textual key path where the error occurred, if known.

    Examples:
        >>> err = QsError("something broke")
        >>> str(err)
        'something broke'
        >>> err.key is None
        True
        >>> isinstance(TypeMismatchError("x"), QsError)
        True
    """

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, *, key: Optional[str] = None) -> None:
        """Initialize the error.

        Args:
            message: Description of the failure.
            key: Key path where the failure happened.
        """
        self.message = message
        self.key = key
        super().__init__(message)

    def __str__(self) -> str:
        """Render the message with the key path appended when known.

        Returns:
            str: Error text.
        """
        if self.key:
            return f"{self.message} (at {self.key!r})"
        return self.message

    def with_key(self, key: str) -> "QsError":
        """Attach a key path unless one is already set.

        Args:
            key: Key path to record.

        Returns:
            QsError: ``self``, for use in ``raise err.with_key(...)``.

        Examples:
            >>> TypeMismatchError("bad").with_key("a[b]").key
            'a[b]'
            >>> TypeMismatchError("bad", key="x").with_key("y").key
            'x'
        """
        if self.key is None:
            self.key = key
        return self


class InvalidUtf8Error(QsError):
    """Raised when decoded bytes are not valid UTF-8."""

    kind = ErrorKind.INVALID_UTF8


class InvalidEncodingError(QsError):
    """Raised on a malformed percent escape such as ``%G1`` or a trailing ``%``."""

    kind = ErrorKind.INVALID_ENCODING


class InvalidNumberError(QsError):
    """Raised when text cannot be parsed as the requested numeric type."""

    kind = ErrorKind.INVALID_NUMBER


class MalformedKeyError(QsError):
    """Raised when a key has unbalanced brackets or cannot be represented."""

    kind = ErrorKind.MALFORMED_KEY


class MaxDepthExceededError(QsError):
    """Raised when a key path is nested deeper than ``Config.max_depth``."""

    kind = ErrorKind.MAX_DEPTH_EXCEEDED


class PathConflictError(QsError):
    """Raised when the same path is used both as a scalar and as a container."""

    kind = ErrorKind.PATH_CONFLICT


class TypeMismatchError(QsError):
    """Raised when the requested shape does not match the decoded content."""

    kind = ErrorKind.TYPE_MISMATCH


class UnknownVariantError(QsError):
    """Raised when an enum variant name is not one of the expected variants.

    Examples:
        >>> err = UnknownVariantError("unknown variant 'Pink'", key="color")
        >>> err.kind.value
        'unknown_variant'
    """

    kind = ErrorKind.UNKNOWN_VARIANT


class UnsupportedTypeError(QsError):
    """Raised when a type annotation or value cannot be expressed in the format."""

    kind = ErrorKind.UNSUPPORTED_TYPE
