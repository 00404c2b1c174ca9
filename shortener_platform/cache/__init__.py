from .backends import DatabaseCacheBackend, MemoryCacheBackend, RedisCacheBackend
from .base import CacheBackend
from .cache_key_schema import CacheKeySchema
from .fallback import FallbackCache
from .redirect_cache import RedirectCache

__all__ = [
    "CacheBackend",
    "CacheKeySchema",
    "DatabaseCacheBackend",
    "FallbackCache",
    "MemoryCacheBackend",
    "RedirectCache",
    "RedisCacheBackend",
]
