# -*- coding: utf-8 -*-
"""bracketqs: typed query strings with bracket notation.

Encodes nested records, sequences, maps and enum variants as a single
query string (``user[name]=ada&user[tags][0]=x``) and decodes them back
into the annotated types.

    >>> from bracketqs import from_str, to_string
    >>> to_string({"user": {"name": "ada", "tags": ["x", "y"]}})
    'user[name]=ada&user[tags][0]=x&user[tags][1]=y'
    >>> from_str("user[name]=ada&user[tags][0]=x", dict)
    {'user': {'name': 'ada', 'tags': ['x']}}

SPDX-License-Identifier: Apache-2.0
"""

from bracketqs.config import Config, from_bytes, from_str, get_settings, Settings, to_string, to_writer
from bracketqs.encoding import EncodeMode
from bracketqs.errors import (
    ErrorKind,
    InvalidEncodingError,
    InvalidNumberError,
    InvalidUtf8Error,
    MalformedKeyError,
    MaxDepthExceededError,
    PathConflictError,
    QsError,
    TypeMismatchError,
    UnknownVariantError,
    UnsupportedTypeError,
)
from bracketqs.helpers import (
    Brackets,
    CommaSeparated,
    Delimited,
    generic_delimiter,
    PipeDelimited,
    Rename,
    Repeated,
    SkipIfDefault,
    SkipIfNone,
    SpaceDelimited,
)

__version__ = "0.1.0"

__all__ = [
    "Brackets",
    "CommaSeparated",
    "Config",
    "Delimited",
    "EncodeMode",
    "ErrorKind",
    "InvalidEncodingError",
    "InvalidNumberError",
    "InvalidUtf8Error",
    "MalformedKeyError",
    "MaxDepthExceededError",
    "PathConflictError",
    "PipeDelimited",
    "QsError",
    "Rename",
    "Repeated",
    "Settings",
    "SkipIfDefault",
    "SkipIfNone",
    "SpaceDelimited",
    "TypeMismatchError",
    "UnknownVariantError",
    "UnsupportedTypeError",
    "from_bytes",
    "from_str",
    "generic_delimiter",
    "get_settings",
    "to_string",
    "to_writer",
]
