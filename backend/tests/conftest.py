"""Root conftest: shared test configuration.

Invariants:
    - Tests never pick up a developer .env engine binding
    - Every test starts with a fresh Settings cache
"""

import os

import pytest

os.environ.setdefault("CALLSETUP_LOG_FORMAT", "text")
os.environ.setdefault("CALLSETUP_DEBUG_SURFACE_ENABLED", "true")


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    from callsetup.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
