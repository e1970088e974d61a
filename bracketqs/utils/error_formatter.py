# -*- coding: utf-8 -*-
"""Location: ./bracketqs/utils/error_formatter.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Error formatting for query-string decode and encode failures.

Web handlers that decode query strings usually want to answer a bad
request with a structured body rather than a traceback. This module turns
:class:`~bracketqs.errors.QsError` instances, and the pydantic
``ValidationError`` a model raises while a record is being built, into
one consistent dictionary shape:

- message: General error description
- details: List of ``{"field", "kind", "message"}`` entries
- success: Always False for errors

Examples:
    >>> from bracketqs.errors import MalformedKeyError
    >>> result = ErrorFormatter.format_qs_error(MalformedKeyError("unmatched '['", key="a[b"))
    >>> result["message"]
    "Invalid query string: key 'a[b' has unbalanced brackets"
    >>> result["success"]
    False
"""

# Standard
import logging
from typing import Any, Dict, List

# Third-Party
from pydantic import ValidationError

# First-Party
from bracketqs.errors import ErrorKind, QsError

logger = logging.getLogger(__name__)


class ErrorFormatter:
    """Transform codec errors into user-friendly messages.

    Examples:
        >>> formatter = ErrorFormatter()
        >>> isinstance(formatter, ErrorFormatter)
        True
    """

    @staticmethod
    def format_qs_error(error: QsError) -> Dict[str, Any]:
        """Convert a codec error to the API error format.

        When a record's pydantic validation failed, the chained
        ``ValidationError`` contributes one detail entry per field error,
        prefixed with the key of the record.

        Args:
            error (QsError): The codec error to format

        Returns:
            Dict[str, Any]: A dictionary with formatted error details containing:
                - message: General error description
                - details: List of field-specific errors
                - success: Always False for errors

        Examples:
            >>> from bracketqs.errors import InvalidNumberError
            >>> result = ErrorFormatter.format_qs_error(InvalidNumberError("invalid integer 'x'", key="page"))
            >>> result["message"]
            'Invalid query string: page must be a number'
            >>> result["details"]
            [{'field': 'page', 'kind': 'invalid_number', 'message': "invalid integer 'x'"}]

            >>> from pydantic import BaseModel, Field
            >>> from bracketqs.errors import TypeMismatchError
            >>> class Page(BaseModel):
            ...     size: int = Field(ge=1)
            >>> try:
            ...     Page(size=0)
            ... except ValidationError as e:
            ...     wrapped = TypeMismatchError("invalid Page", key="page")
            ...     wrapped.__cause__ = e
            >>> result = ErrorFormatter.format_qs_error(wrapped)
            >>> [detail["field"] for detail in result["details"]]
            ['page', 'page[size]']
        """
        field = error.key or "query"
        details: List[Dict[str, Any]] = [{"field": field, "kind": error.kind.value, "message": error.message}]

        cause = error.__cause__
        if isinstance(cause, ValidationError):
            details.extend(ErrorFormatter._validation_details(cause, prefix=error.key or ""))

        # Log the full error for debugging
        logger.debug(f"Query string error: {error}")

        user_message = ErrorFormatter._get_user_message(field, error.kind)
        return {"message": f"Invalid query string: {user_message}", "details": details, "success": False}

    @staticmethod
    def format_validation_error(error: ValidationError) -> Dict[str, Any]:
        """Convert pydantic errors to user-friendly format.

        Args:
            error (ValidationError): The pydantic validation error to format

        Returns:
            Dict[str, Any]: A dictionary with formatted error details containing:
                - message: General error description
                - details: List of field-specific errors
                - success: Always False for errors

        Examples:
            >>> from pydantic import BaseModel
            >>> class Query(BaseModel):
            ...     page: int
            >>> try:
            ...     Query(page="x")
            ... except ValidationError as e:
            ...     result = ErrorFormatter.format_validation_error(e)
            >>> result["message"]
            'Validation failed: page: Input should be a valid integer, unable to parse string as an integer'
            >>> result["details"][0]["field"]
            'page'
        """
        details = ErrorFormatter._validation_details(error)

        # Log the full error for debugging
        logger.debug(f"Validation error: {error}")

        first = details[0] if details else {"field": "query", "message": "Invalid value"}
        return {"message": f"Validation failed: {first['field']}: {first['message']}", "details": details, "success": False}

    @staticmethod
    def _validation_details(error: ValidationError, prefix: str = "") -> List[Dict[str, Any]]:
        """Flatten pydantic errors into detail entries with bracket-notation fields.

        Args:
            error (ValidationError): The pydantic validation error
            prefix (str): Key of the record that failed validation

        Returns:
            List[Dict[str, Any]]: Detail entries.
        """
        details = []
        for err in error.errors():
            loc = [str(part) for part in err.get("loc", ())]
            segments = [prefix] if prefix else []
            segments.extend(loc)
            if segments:
                field = segments[0] + "".join(f"[{part}]" for part in segments[1:])
            else:
                field = "query"
            details.append({"field": field, "kind": err.get("type", "value_error"), "message": err.get("msg", "Invalid value")})
        return details

    @staticmethod
    def _get_user_message(field: str, kind: ErrorKind) -> str:
        """Map an error kind to a user-friendly message.

        Args:
            field (str): The key that failed
            kind (ErrorKind): The error classification

        Returns:
            str: User-friendly error message with field context

        Examples:
            >>> ErrorFormatter._get_user_message("tags", ErrorKind.PATH_CONFLICT)
            'tags is used both as a value and as a nested key'
            >>> ErrorFormatter._get_user_message("a[b][c]", ErrorKind.MAX_DEPTH_EXCEEDED)
            'a[b][c] is nested too deeply'
        """
        mappings = {
            ErrorKind.INVALID_UTF8: f"{field} is not valid UTF-8",
            ErrorKind.INVALID_ENCODING: f"{field} contains a malformed percent escape",
            ErrorKind.INVALID_NUMBER: f"{field} must be a number",
            ErrorKind.MALFORMED_KEY: f"key {field!r} has unbalanced brackets",
            ErrorKind.MAX_DEPTH_EXCEEDED: f"{field} is nested too deeply",
            ErrorKind.PATH_CONFLICT: f"{field} is used both as a value and as a nested key",
            ErrorKind.TYPE_MISMATCH: f"{field} has the wrong type",
            ErrorKind.UNKNOWN_VARIANT: f"{field} is not an accepted choice",
            ErrorKind.UNSUPPORTED_TYPE: f"{field} cannot be represented in a query string",
        }

        # Default fallback
        return mappings.get(kind, f"Invalid {field}")
