"""
Shared test fixtures for common-schema.

Every test starts from a fresh default factory and freshly read settings,
so that registrations and environment overrides do not leak between tests.
"""

from typing import Generator

import pytest

from commonschema.config import get_settings
from commonschema.registry import reset_default_factory


@pytest.fixture(autouse=True)
def fresh_defaults() -> Generator[None, None, None]:
    """Reset the default factory and settings cache around each test."""
    get_settings.cache_clear()
    reset_default_factory()
    yield
    get_settings.cache_clear()
    reset_default_factory()
