"""
Global pytest fixtures for the Shortener Platform test suite.

Responsibilities:
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide isolated in-memory Storage and cache fixtures for direct testing
    - Provide a UrlManager fixture wired to those fixtures (unit/integration)
    - Provide a cache tier that always fails, for degradation tests

Why an app factory?
    Using `create_app()` with injected storage and cache tiers gives each test
    fresh in-memory state (records, cache entries, throttle windows), which
    eliminates cross-test flakiness.
"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shortener_platform.cache.backends import MemoryCacheBackend
from shortener_platform.cache.base import CacheBackend
from shortener_platform.cache.fallback import FallbackCache
from shortener_platform.cache.redirect_cache import RedirectCache
from shortener_platform.exceptions import CacheBackendError
from shortener_platform.manager.url_manager import UrlManager
from shortener_platform.storage.storage import Storage


class FailingCacheBackend(CacheBackend):
    """Cache tier that is permanently down."""

    name = "failing"

    def __init__(self):
        self.calls = 0

    def get(self, key: str) -> Optional[str]:
        self.calls += 1
        raise CacheBackendError("connection refused")

    def put(self, key: str, value: str, ttl: int) -> None:
        self.calls += 1
        raise CacheBackendError("connection refused")

    def forget(self, key: str) -> None:
        self.calls += 1
        raise CacheBackendError("connection refused")


@pytest.fixture
def storage() -> Storage:
    """Provide a fresh in-memory Storage backend."""
    return Storage()


@pytest.fixture
def memory_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def failing_backend() -> FailingCacheBackend:
    return FailingCacheBackend()


@pytest.fixture
def redirect_cache(memory_backend: MemoryCacheBackend) -> RedirectCache:
    return RedirectCache(FallbackCache([memory_backend]))


@pytest.fixture
def manager(storage: Storage, redirect_cache: RedirectCache) -> UrlManager:
    """
    Provide a UrlManager wired to the storage and redirect cache fixtures.

    Notes:
        - Validator and generator use their defaults (2048 chars, 6-8 symbol codes).
    """
    return UrlManager(storage=storage, cache=redirect_cache)


@pytest.fixture
def client(storage: Storage, memory_backend: MemoryCacheBackend) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    Notes:
        - The app shares the `storage` fixture so tests can inspect records
          (e.g. click counts) without going through the API.
    """
    app = create_app(storage=storage, cache_backends=[memory_backend])
    return TestClient(app)
