# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
"""

# Third-Party
import pytest

# First-Party
from bracketqs.config import Config, get_settings


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from BRACKETQS_* variables and the settings cache."""
    monkeypatch.delenv("BRACKETQS_MAX_DEPTH", raising=False)
    monkeypatch.delenv("BRACKETQS_USE_FORM_ENCODING", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def config():
    """Default codec configuration."""
    return Config()


@pytest.fixture
def form_config():
    """Configuration that encodes with the form profile."""
    return Config(use_form_encoding=True)
