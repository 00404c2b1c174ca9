"""
Cache factory – build the ordered tier list from config (lazy env version)
=========================================================================

Environment variables
---------------------
- SHORTENER_CACHE_BACKENDS: comma separated tiers in priority order,
  e.g. "redis,database". Known names: "memory", "redis", "database", "none".
- SHORTENER_CACHE_MAX_ENTRIES: size bound of the "memory" tier (default 10000)
- SHORTENER_REDIS_URL:      used by the "redis" tier
- SHORTENER_DB_DSN:         used by the "database" tier
"""

import logging
import os
from typing import List, Optional

from shortener_platform.cache.backends import DatabaseCacheBackend, MemoryCacheBackend, RedisCacheBackend
from shortener_platform.cache.base import CacheBackend

log = logging.getLogger("shortener.cache")


def get_cache_backends(names: Optional[str] = None, **kwargs) -> List[CacheBackend]:
    """Return the configured tiers, primary first. An empty list disables caching."""
    raw = names if names is not None else os.getenv("SHORTENER_CACHE_BACKENDS", "memory")
    tiers = [n.strip().lower() for n in raw.split(",") if n.strip()]
    log.info("Selected cache tiers: %s", tiers or ["none"])

    backends: List[CacheBackend] = []
    for name in tiers:
        if name == "none":
            continue
        if name == "memory":
            maxsize = int(kwargs.get("maxsize") or os.getenv("SHORTENER_CACHE_MAX_ENTRIES", "10000"))
            backends.append(MemoryCacheBackend(maxsize=maxsize))
        elif name == "redis":
            url = kwargs.get("redis_url") or os.getenv("SHORTENER_REDIS_URL", "redis://localhost:6379/0")
            backends.append(RedisCacheBackend(url=url))
        elif name == "database":
            dsn = kwargs.get("dsn") or os.getenv("SHORTENER_DB_DSN", "")
            if not dsn:
                raise ValueError("DB_DSN is required for the database cache tier (env SHORTENER_DB_DSN)")
            backends.append(DatabaseCacheBackend(dsn=dsn))
        else:
            raise ValueError(f"Unknown cache backend: {name!r}")
    return backends
