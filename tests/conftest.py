# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
"""

# Standard
import logging

# Third-Party
import pytest

# First-Party
from webmerge.config import get_settings
from webmerge.services.validation_service import get_validation_engine


@pytest.fixture(autouse=True)
def _reset_cached_singletons():
    """Start every test with empty settings and engine caches."""
    get_settings.cache_clear()
    get_validation_engine.cache_clear()
    yield
    get_settings.cache_clear()
    get_validation_engine.cache_clear()


@pytest.fixture(autouse=True)
def _webmerge_log_level():
    """Restore the package logger level after each test."""
    package_logger = logging.getLogger("webmerge")
    level = package_logger.level
    yield
    package_logger.setLevel(level)
