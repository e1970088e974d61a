# -*- coding: utf-8 -*-
"""Unit tests for field markers."""

# Third-Party
import pytest

# First-Party
from bracketqs.helpers import (
    Brackets,
    CommaSeparated,
    Delimited,
    find_marker,
    generic_delimiter,
    PipeDelimited,
    Rename,
    Repeated,
    SkipIfDefault,
    SkipIfNone,
    SpaceDelimited,
)


class TestDelimited:
    """Test delimited list markers."""

    def test_presets(self):
        """Presets use the usual separators."""
        assert CommaSeparated.sep == ","
        assert PipeDelimited.sep == "|"
        assert SpaceDelimited.sep == " "

    def test_join_and_split(self):
        """Join and split are inverses for non-empty lists."""
        assert PipeDelimited.join(["a", "b"]) == "a|b"
        assert PipeDelimited.split("a|b") == ["a", "b"]
        assert PipeDelimited.split("") == []

    def test_generic_delimiter(self):
        """Any non-empty separator works."""
        assert generic_delimiter("::").split("a::b") == ["a", "b"]

    def test_empty_separator_rejected(self):
        """An empty separator is invalid."""
        with pytest.raises(ValueError):
            Delimited("")

    def test_markers_are_hashable(self):
        """Markers can be used inside cached annotations."""
        assert len({Brackets(), Brackets(), Repeated(), CommaSeparated, Delimited(",")}) == 3


class TestFindMarker:
    """Test marker lookup in metadata."""

    def test_instances(self):
        """Instances are found by class."""
        assert find_marker(["doc", Rename("n")], Rename) == Rename("n")

    def test_bare_classes(self):
        """Argument-free markers may be given as classes."""
        assert find_marker([SkipIfNone], SkipIfNone) == SkipIfNone()
        assert find_marker([SkipIfDefault], SkipIfDefault) == SkipIfDefault()

    def test_bare_class_needing_arguments_ignored(self):
        """Markers that need arguments must be instantiated."""
        assert find_marker([Rename], Rename) is None

    def test_missing(self):
        """Absent markers are None."""
        assert find_marker([Brackets()], Repeated) is None
