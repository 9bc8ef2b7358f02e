import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def clear_cache():
    """Cached settings and stats must not leak between tests."""
    cache.clear()
    yield
    cache.clear()
