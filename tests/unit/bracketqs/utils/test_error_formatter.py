# -*- coding: utf-8 -*-
"""Location: ./tests/unit/bracketqs/utils/test_error_formatter.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Unit tests for **bracketqs.utils.error_formatter**
Running:
    pytest -q tests/unit/bracketqs/utils/test_error_formatter.py
"""

# Third-Party
from pydantic import BaseModel, Field, field_validator, ValidationError
import pytest

# First-Party
from bracketqs.config import Config
from bracketqs.errors import ErrorKind, QsError, UnknownVariantError
from bracketqs.utils.error_formatter import ErrorFormatter


class Page(BaseModel):
    size: int = Field(ge=1)
    sort: str = "asc"

    @field_validator("sort")
    def validate_sort(cls, v):
        if v not in ("asc", "desc"):
            raise ValueError("sort must be asc or desc")
        return v


class Search(BaseModel):
    page: Page


def decode_error(text, tp=Search, **kwargs):
    """Decode and return the raised codec error."""
    with pytest.raises(QsError) as exc_info:
        Config(**kwargs).deserialize_str(text, tp)
    return exc_info.value


class TestFormatQsError:
    """Test formatting of codec errors."""

    def test_invalid_number(self):
        """Bad numbers name the innermost key."""
        result = ErrorFormatter.format_qs_error(decode_error("page[size]=ten"))
        assert result["message"] == "Invalid query string: page[size] must be a number"
        assert result["details"][0]["kind"] == "invalid_number"
        assert result["success"] is False

    def test_model_validation_details(self):
        """pydantic errors from a record become bracket-keyed details."""
        error = decode_error("page[size]=0&page[sort]=up")
        assert error.kind is ErrorKind.TYPE_MISMATCH
        result = ErrorFormatter.format_qs_error(error)
        assert result["message"] == "Invalid query string: page has the wrong type"
        fields = [detail["field"] for detail in result["details"]]
        assert fields == ["page", "page[size]", "page[sort]"]
        assert result["details"][1]["kind"] == "greater_than_equal"
        assert "sort must be asc or desc" in result["details"][2]["message"]

    def test_top_level_model_validation(self):
        """Validation errors at the root use plain field names."""
        result = ErrorFormatter.format_qs_error(decode_error("size=0", Page))
        assert [detail["field"] for detail in result["details"]] == ["query", "size"]

    def test_depth(self):
        """Depth errors name the offending key."""
        result = ErrorFormatter.format_qs_error(decode_error("a[b][c]=1", dict, max_depth=2))
        assert result["message"] == "Invalid query string: a[b][c] is nested too deeply"

    def test_path_conflict(self):
        """Conflicting paths are reported."""
        result = ErrorFormatter.format_qs_error(decode_error("a=1&a[b]=2", dict))
        assert result["details"][0]["kind"] == "path_conflict"
        assert result["message"].endswith("is used both as a value and as a nested key")

    def test_without_key(self):
        """Errors without a key are attributed to the whole query."""
        result = ErrorFormatter.format_qs_error(UnknownVariantError("unknown variant 'x'"))
        assert result["message"] == "Invalid query string: query is not an accepted choice"
        assert result["details"] == [{"field": "query", "kind": "unknown_variant", "message": "unknown variant 'x'"}]


class TestFormatValidationError:
    """Test formatting of bare pydantic errors."""

    def test_nested_location(self):
        """Nested locations are joined with brackets."""
        with pytest.raises(ValidationError) as exc_info:
            Search(page={"size": 0})
        result = ErrorFormatter.format_validation_error(exc_info.value)
        assert result["details"][0]["field"] == "page[size]"
        assert result["message"].startswith("Validation failed: page[size]: ")
        assert result["success"] is False
