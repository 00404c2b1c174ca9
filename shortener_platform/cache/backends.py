"""
Concrete cache tiers.

- MemoryCacheBackend:   process-local cachetools TLRUCache (tests, single-process demo)
- RedisCacheBackend:    redis-py client, SETEX for TTL
- DatabaseCacheBackend: `cache` table in PostgreSQL via psycopg, the
                        persistent fallback when Redis is unavailable

Each backend converts its library's errors into CacheBackendError.
"""

import contextlib
import functools
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Tuple, TypeVar

import psycopg
import redis
from cachetools import TLRUCache

from ..exceptions import CacheBackendError
from .base import CacheBackend

F = TypeVar("F", bound=Callable[..., Any])


def _entry_expiry(key: str, entry: Tuple[str, int], now: float) -> float:
    return now + entry[1]


class MemoryCacheBackend(CacheBackend):
    """Process-local tier on a cachetools TLRUCache; each entry carries its own TTL."""

    name = "memory"

    def __init__(self, maxsize: int = 10_000, clock: Callable[[], float] = time.monotonic):
        self._entries = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=clock)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
        return entry[0] if entry is not None else None

    def put(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (value, ttl)

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


def handle_redis_error(method: F) -> F:
    """Wrap Redis calls so any client failure surfaces as CacheBackendError."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except redis.exceptions.RedisError as e:
            info = self.redis.connection_pool.connection_kwargs
            raise CacheBackendError(
                f"Redis {method.__name__} failed at {info.get('host')}:{info.get('port')}/{info.get('db')}: {e}"
            ) from e

    return wrapper  # type: ignore[return-value]


class RedisCacheBackend(CacheBackend):
    name = "redis"

    def __init__(self, redis_client: Optional[redis.Redis] = None, url: str = "redis://localhost:6379/0"):
        self.redis = redis_client or redis.Redis.from_url(url, decode_responses=True)

    @handle_redis_error
    def get(self, key: str) -> Optional[str]:
        value = self.redis.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    @handle_redis_error
    def put(self, key: str, value: str, ttl: int) -> None:
        self.redis.setex(key, ttl, value)

    @handle_redis_error
    def forget(self, key: str) -> None:
        self.redis.delete(key)


class DatabaseCacheBackend(CacheBackend):
    """Cache rows in `cache(key PRIMARY KEY, value, expiration)`; see schema.sql."""

    name = "database"

    def __init__(self, dsn: str):
        self.dsn = dsn

    @contextlib.contextmanager
    def _cursor(self):
        try:
            with psycopg.connect(self.dsn, autocommit=True) as con, con.cursor() as cur:
                yield cur
        except psycopg.Error as e:
            raise CacheBackendError(f"Database cache failed: {e}") from e

    def get(self, key: str) -> Optional[str]:
        """Return a live value; an expired row is deleted on the way out."""
        with self._cursor() as cur:
            cur.execute("SELECT value, expiration > NOW() FROM cache WHERE key = %s", (key,))
            row = cur.fetchone()
            if row is None:
                return None
            value, live = row
            if not live:
                cur.execute("DELETE FROM cache WHERE key = %s AND expiration <= NOW()", (key,))
                return None
            return value

    def put(self, key: str, value: str, ttl: int) -> None:
        expiration = datetime.now(timezone.utc) + timedelta(seconds=ttl)
        with self._cursor() as cur:
            cur.execute(
                """
                INSERT INTO cache (key, value, expiration) VALUES (%s, %s, %s)
                ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, expiration = EXCLUDED.expiration
                """,
                (key, value, expiration),
            )

    def forget(self, key: str) -> None:
        with self._cursor() as cur:
            cur.execute("DELETE FROM cache WHERE key = %s", (key,))
