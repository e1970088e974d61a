# -*- coding: utf-8 -*-
"""Location: ./bracketqs/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Codec configuration and entry points.

:class:`Config` is an immutable pydantic model holding the two knobs both
pipelines share. Process-wide defaults come from :class:`Settings`, which
reads the environment (and a ``.env`` file) through pydantic-settings:

- BRACKETQS_MAX_DEPTH: Maximum key depth, identifier included (default: 5)
- BRACKETQS_USE_FORM_ENCODING: Encode with the form profile (default: False)

Examples:
    >>> cfg = Config()
    >>> cfg.max_depth, cfg.use_form_encoding
    (5, False)
    >>> cfg.serialize_string({"a b": "c&d"})
    'a%20b=c%26d'
    >>> cfg.with_form_encoding(True).serialize_string({"a b": "c&d"})
    'a+b=c%26d'
    >>> from pydantic import ValidationError
    >>> try:
    ...     Config(max_depth=0)
    ... except ValidationError as e:
    ...     print(e.errors()[0]["type"])
    greater_than_equal
"""

# Standard
from functools import lru_cache
import io
import logging
from typing import Any, IO, Optional, Type, TypeVar, Union

# Third-Party
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# First-Party
from bracketqs.encoding import EncodeMode
from bracketqs.reader import read
from bracketqs.scanner import scan
from bracketqs.shapes import shape_for_value, shape_of
from bracketqs.tree import build
from bracketqs.writer import serialize_pairs, write

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_DEPTH = 5


class Settings(BaseSettings):
    """Environment defaults for :meth:`Config.from_settings`.

    Examples:
        >>> Settings(max_depth=3).max_depth
        3
        >>> Settings(use_form_encoding="true").use_form_encoding
        True
    """

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1, description="Maximum key depth, identifier included")
    use_form_encoding: bool = Field(default=False, description="Encode with application/x-www-form-urlencoded rules")

    model_config = SettingsConfigDict(env_prefix="BRACKETQS_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: A cached instance of the Settings class.

    Examples:
        >>> get_settings() is get_settings()
        True
    """
    cfg = Settings()
    logger.debug(f"Loaded settings: max_depth={cfg.max_depth}, use_form_encoding={cfg.use_form_encoding}")
    return cfg


class Config(BaseModel):
    """Immutable codec configuration.

    Attributes:
        max_depth: Maximum key depth, identifier included. Exceeding it is
            an error on both encode and decode.
        use_form_encoding: Encode with the form profile instead of the
            minimal one. Decoding accepts both.
    """

    model_config = ConfigDict(frozen=True)

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    use_form_encoding: bool = False

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Config":
        """Build a config from environment settings.

        Args:
            settings: Settings to use; defaults to :func:`get_settings`.

        Returns:
            Config: New configuration.

        Examples:
            >>> Config.from_settings(Settings(max_depth=7)).max_depth
            7
        """
        settings = settings or get_settings()
        return cls(max_depth=settings.max_depth, use_form_encoding=settings.use_form_encoding)

    def with_max_depth(self, max_depth: int) -> "Config":
        """Return a copy with a different depth limit.

        Args:
            max_depth: New limit, at least 1.

        Returns:
            Config: New configuration.

        Examples:
            >>> Config().with_max_depth(2).max_depth
            2
        """
        return type(self)(max_depth=max_depth, use_form_encoding=self.use_form_encoding)

    def with_form_encoding(self, use_form_encoding: bool) -> "Config":
        """Return a copy with a different encoding profile.

        Args:
            use_form_encoding: Whether to use the form profile.

        Returns:
            Config: New configuration.
        """
        return type(self)(max_depth=self.max_depth, use_form_encoding=use_form_encoding)

    @property
    def encode_mode(self) -> EncodeMode:
        """Percent-encoding profile for this configuration.

        Returns:
            EncodeMode: ``FORM`` or ``MINIMAL``.

        Examples:
            >>> Config(use_form_encoding=True).encode_mode
            <EncodeMode.FORM: 'form'>
        """
        return EncodeMode.FORM if self.use_form_encoding else EncodeMode.MINIMAL

    def serialize_string(self, value: Any, tp: Any = None) -> str:
        """Encode a value as a query string.

        Args:
            value: Record, map or variant value.
            tp: Annotation describing ``value``; inferred from the value when omitted.

        Returns:
            str: Encoded query string.

        Raises:
            QsError: If the value cannot be encoded.
        """
        shape = shape_of(tp) if tp is not None else shape_for_value(value)
        pairs = write(value, shape, self.max_depth)
        return serialize_pairs(pairs, self.encode_mode)

    def serialize_to_writer(self, value: Any, writer: IO, tp: Any = None) -> int:
        """Encode a value and write it to a text or binary stream.

        Args:
            value: Record, map or variant value.
            writer: Destination stream.
            tp: Annotation describing ``value``.

        Returns:
            int: Number of characters written.

        Raises:
            QsError: If the value cannot be encoded.

        Examples:
            >>> buf = io.BytesIO()
            >>> Config().serialize_to_writer({"q": "x y"}, buf)
            7
            >>> buf.getvalue()
            b'q=x%20y'
        """
        text = self.serialize_string(value, tp)
        if isinstance(writer, (io.RawIOBase, io.BufferedIOBase)):
            writer.write(text.encode("ascii"))
        else:
            writer.write(text)
        return len(text)

    def deserialize_str(self, text: str, tp: Type[T]) -> T:
        """Decode a query string into a value of type ``tp``.

        Args:
            text: Encoded query string.
            tp: Target annotation: a record, map, variant or ``Any``.

        Returns:
            T: Decoded value.

        Raises:
            QsError: If the input is malformed or does not fit ``tp``.
        """
        return self.deserialize_bytes(text.encode("utf-8"), tp)

    def deserialize_bytes(self, data: Union[bytes, bytearray], tp: Type[T]) -> T:
        """Decode raw query-string bytes into a value of type ``tp``.

        Args:
            data: Encoded query string.
            tp: Target annotation.

        Returns:
            T: Decoded value.

        Raises:
            QsError: If the input is malformed or does not fit ``tp``.

        Examples:
            >>> from typing import Dict, List
            >>> Config().deserialize_bytes(b"a[0]=1&a[1]=2", Dict[str, List[int]])
            {'a': [1, 2]}
        """
        shape = shape_of(tp)
        pairs = scan(bytes(data))
        logger.debug(f"Decoding {len(pairs)} pairs with max_depth={self.max_depth}")
        return read(build(pairs, self), shape)


def from_str(text: str, tp: Type[T]) -> T:
    """Decode a query string with the default configuration.

    Args:
        text: Encoded query string.
        tp: Target annotation.

    Returns:
        T: Decoded value.
    """
    return Config.from_settings().deserialize_str(text, tp)


def from_bytes(data: bytes, tp: Type[T]) -> T:
    """Decode query-string bytes with the default configuration.

    Args:
        data: Encoded query string.
        tp: Target annotation.

    Returns:
        T: Decoded value.
    """
    return Config.from_settings().deserialize_bytes(data, tp)


def to_string(value: Any, tp: Any = None) -> str:
    """Encode a value with the default configuration.

    Args:
        value: Record, map or variant value.
        tp: Annotation describing ``value``.

    Returns:
        str: Encoded query string.
    """
    return Config.from_settings().serialize_string(value, tp)


def to_writer(value: Any, writer: IO, tp: Any = None) -> int:
    """Encode a value to a stream with the default configuration.

    Args:
        value: Record, map or variant value.
        writer: Destination stream.
        tp: Annotation describing ``value``.

    Returns:
        int: Number of characters written.
    """
    return Config.from_settings().serialize_to_writer(value, writer, tp)
