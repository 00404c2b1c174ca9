"""
Per-client throttling for the /api routes.

Counting is done by slowapi (moving window, keyed by client IP). Every /api
route shares one budget through `Limiter.shared_limit(..., scope=API_SCOPE)`;
redirects and /health are never throttled.

Storage defaults to process memory. Point SHORTENER_THROTTLE_STORAGE_URI at
redis://... to share counters between workers.
"""

import time

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

API_SCOPE = "api"
THROTTLE_MESSAGE = "Too Many Attempts."


def create_limiter(storage_uri: str = "memory://", enabled: bool = True) -> Limiter:
    """Build a fresh limiter; each app gets its own so tests never share counters."""
    return Limiter(
        key_func=get_remote_address,
        strategy="moving-window",
        storage_uri=storage_uri,
        enabled=enabled,
    )


def retry_after(request: Request, limiter: Limiter) -> int:
    """Seconds until the exhausted window frees a slot (at least 1)."""
    current = getattr(request.state, "view_rate_limit", None)
    if current is None:
        return 1
    item, identifiers = current
    stats = limiter.limiter.get_window_stats(item, *identifiers)
    return max(1, int(stats.reset_time - time.time()) + 1)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"message": THROTTLE_MESSAGE},
        headers={"Retry-After": str(retry_after(request, request.app.state.limiter))},
    )
