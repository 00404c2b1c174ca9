import functools
from collections.abc import Callable
from typing import Optional

__all__ = ["CacheKeySchema"]


def prefix_key(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> str:
        key = func(self, *args, **kwargs)
        return f"{self.prefix}:{key}" if self.prefix else key

    return wrapper


class CacheKeySchema:
    """Standardized cache keys.

    An optional prefix namespaces every key, e.g. "shortener:prod". With no
    prefix a redirect key is simply "url_<code>".
    """

    def __init__(self, prefix: Optional[str] = None):
        if prefix is not None and not isinstance(prefix, str):
            raise TypeError(f"Prefix must be of type string (given type: {type(prefix)}).")
        self.prefix = prefix

    @prefix_key
    def redirect_key(self, short_code: str) -> str:
        return f"url_{short_code}"

    @prefix_key
    def health_check_key(self, token: str) -> str:
        return f"health_check_cache_{token}"
