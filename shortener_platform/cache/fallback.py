"""
FallbackCache – ordered chain of cache tiers with graceful degradation.

Policy:
    - `remember`: walk the tiers in order. The first tier that answers `get`
      decides hit or miss; on a miss the loader runs (at most once per call)
      and the result is written to that tier. A tier that raises is logged
      and skipped. If every tier fails, the loader result is returned
      without caching.
    - `put`: write to the first tier that accepts the value.
    - `forget`: clear the key from every tier; returns False if any tier
      failed to forget it.

Cache failures never reach the caller. Errors raised by the loader itself
(e.g. the record store is down) are not cache failures and propagate.
"""

import logging
from typing import Callable, List, Optional, Sequence

from ..exceptions import CacheBackendError
from ..logging_service import LoggingService
from .base import CacheBackend

_MISSING = object()


class FallbackCache:
    def __init__(self, backends: Sequence[CacheBackend], logging_service: Optional[LoggingService] = None):
        self.backends: List[CacheBackend] = list(backends)
        self.logging = logging_service or LoggingService(logging.getLogger("shortener.cache"))

    def remember(self, key: str, ttl: int, loader: Callable[[], Optional[str]]) -> Optional[str]:
        """
        Return the cached value for `key`, loading and caching it on a miss.

        A loader result of None is returned but never cached, so a missing
        record is looked up again on the next call.
        """
        loaded = _MISSING
        failures = []
        for backend in self.backends:
            try:
                value = backend.get(key)
                if value is not None:
                    return value
                if loaded is _MISSING:
                    loaded = loader()
                if loaded is not None:
                    backend.put(key, loaded, ttl)
                return loaded
            except CacheBackendError as e:
                failures.append(f"{backend.name}: {e}")
                self.logging.cache_issue(key, "remember", f"{backend.name} failed, falling back: {e}")

        if failures and len(failures) == len(self.backends):
            self.logging.cache_issue(
                key, "remember", "All cache stores failed, executing loader directly", level=logging.ERROR
            )
        return loader() if loaded is _MISSING else loaded

    def put(self, key: str, value: str, ttl: int) -> bool:
        for backend in self.backends:
            try:
                backend.put(key, value, ttl)
                return True
            except CacheBackendError as e:
                self.logging.cache_issue(key, "put", f"{backend.name} failed, falling back: {e}")
        if self.backends:
            self.logging.cache_issue(key, "put", "All cache stores failed for put operation", level=logging.ERROR)
        return False

    def get(self, key: str) -> Optional[str]:
        for backend in self.backends:
            try:
                return backend.get(key)
            except CacheBackendError as e:
                self.logging.cache_issue(key, "get", f"{backend.name} failed, falling back: {e}")
        return None

    def forget(self, key: str) -> bool:
        success = True
        for backend in self.backends:
            try:
                backend.forget(key)
            except CacheBackendError as e:
                self.logging.cache_issue(key, "forget", f"Failed to clear {backend.name} cache: {e}")
                success = False
        return success
