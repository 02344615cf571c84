"""Shared fixtures."""
import pytest

from core import buildings, places, weather


@pytest.fixture(autouse=True)
def _clear_upstream_caches():
    """Upstream responses are cached at module level; isolate every test."""
    for cache in (places._PLACE_CACHE, buildings._BUILDING_CACHE, weather._CLOUD_CACHE):
        cache.clear()
    yield
