"""
RedirectCache – read-through cache of short code -> UrlRecord.

- Key: "url_<code>" (optionally namespaced by CacheKeySchema's prefix)
- TTL: 3600 seconds by default
- Only found records are cached; a miss is retried against the store.
- `forget` is the delete handler's job. Updates do not invalidate, so a
  cached redirect may serve the previous target until its TTL runs out.
"""

from typing import Callable, Optional

from ..models import UrlRecord
from .cache_key_schema import CacheKeySchema
from .fallback import FallbackCache

DEFAULT_REDIRECT_TTL = 3600

RecordLoader = Callable[[], Optional[UrlRecord]]


class RedirectCache:
    def __init__(
        self,
        cache: FallbackCache,
        ttl: int = DEFAULT_REDIRECT_TTL,
        keys: Optional[CacheKeySchema] = None,
    ):
        self.cache = cache
        self.ttl = ttl
        self.keys = keys or CacheKeySchema()

    def get_or_load(self, short_code: str, loader: RecordLoader) -> Optional[UrlRecord]:
        def _load() -> Optional[str]:
            record = loader()
            return record.model_dump_json() if record is not None else None

        payload = self.cache.remember(self.keys.redirect_key(short_code), self.ttl, _load)
        return UrlRecord.model_validate_json(payload) if payload is not None else None

    def peek(self, short_code: str) -> Optional[UrlRecord]:
        """Cached record without loading (None on miss)."""
        payload = self.cache.get(self.keys.redirect_key(short_code))
        return UrlRecord.model_validate_json(payload) if payload is not None else None

    def forget(self, short_code: str) -> bool:
        return self.cache.forget(self.keys.redirect_key(short_code))
