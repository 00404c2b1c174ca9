"""
Cache backend contract.

Every tier (in-memory, Redis, database table) offers the same three
operations over string values. A tier that cannot serve a request raises
CacheBackendError; the FallbackCache turns that into "try the next tier".
"""

from abc import ABC, abstractmethod
from typing import Optional


class CacheBackend(ABC):
    """Abstract base for one cache tier."""

    name: str = "cache"

    @abstractmethod  # pragma: no cover
    def get(self, key: str) -> Optional[str]:
        """Return the cached value, or None on a miss or after expiry."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def put(self, key: str, value: str, ttl: int) -> None:
        """Store `value` for `ttl` seconds."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def forget(self, key: str) -> None:
        raise NotImplementedError
