import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _clear_cache():
    # Throttle counters and the dashboard both live in the default cache
    cache.clear()
    yield
    cache.clear()
