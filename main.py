"""
Main API module for the Shortener Platform.

Responsibilities:
    - Expose REST endpoints to create, list, update and delete short links
      scoped by the caller's device id (X-Device-ID header)
    - Redirect short codes to their stored URL and count clicks
    - Report service health (store and cache tiers)
    - Translate platform errors into HTTP responses

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory storage and cache by default; PostgreSQL / Redis / database
      cache tiers are selected from the environment.
    - UrlManager orchestrates validation, code generation, persistence and
      the redirect cache; routes stay thin.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from auth.dependencies import get_device_id
from shortener_platform.cache.base import CacheBackend
from shortener_platform.cache.cache_factory import get_cache_backends
from shortener_platform.cache.cache_key_schema import CacheKeySchema
from shortener_platform.cache.fallback import FallbackCache
from shortener_platform.cache.redirect_cache import RedirectCache
from shortener_platform.config import settings
from shortener_platform.exceptions import (
    CodeGenerationExhaustedError,
    DataStoreError,
    DeviceIdRequiredError,
    InvalidUrlError,
    OwnershipError,
    RecordNotFoundError,
)
from shortener_platform.health import HealthChecker
from shortener_platform.logging_service import LoggingService, configure_logging
from shortener_platform.manager.code_generator import ROUTE_CODE_PATTERN, get_generator_from_config
from shortener_platform.manager.url_manager import RequestContext, UrlManager
from shortener_platform.models import Page, UrlRecord
from shortener_platform.monitoring.activity import ActivityMonitor
from shortener_platform.monitoring.throttle import API_SCOPE, create_limiter, rate_limit_exceeded_handler
from shortener_platform.storage.base import BaseStorage
from shortener_platform.storage.storage_factory import get_storage
from shortener_platform.validation.url_validator import UrlValidator


class URLRequest(BaseModel):
    """Request payload for creating or updating a short link."""
    url: str = Field(..., max_length=2048)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer"),
    )


def create_app(
    storage: Optional[BaseStorage] = None,
    cache_backends: Optional[List[CacheBackend]] = None,
    monitor: Optional[ActivityMonitor] = None,
    limiter: Optional[Limiter] = None,
    throttle_rate: Optional[str] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage: Record store; defaults to the backend chosen by SHORTENER_STORAGE_BACKEND.
        cache_backends: Ordered cache tiers; defaults to SHORTENER_CACHE_BACKENDS.
        monitor: Activity monitor (logging only).
        limiter: slowapi limiter for /api routes; a fresh in-memory one by default.
        throttle_rate: Shared /api budget per client IP, e.g. "60/minute".

    Returns:
        FastAPI: A fully configured application with its own store and cache,
        so tests never share state.
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    log = logging.getLogger("shortener")

    app = FastAPI(
        title="Shortener Platform",
        description="Device-scoped URL shortener with RFC 1738 URL sanitization",
        docs_url="/docs",
    )

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    logging_service = LoggingService(log)
    storage = storage if storage is not None else get_storage()
    cache_backends = cache_backends if cache_backends is not None else get_cache_backends()
    redirect_cache = RedirectCache(
        FallbackCache(cache_backends, LoggingService(logging.getLogger("shortener.cache"))),
        ttl=settings.CACHE_TTL,
        keys=CacheKeySchema(prefix=settings.CACHE_PREFIX or None),
    )
    manager = UrlManager(
        storage=storage,
        cache=redirect_cache,
        validator=UrlValidator(max_length=settings.MAX_URL_LENGTH),
        generator=get_generator_from_config(),
        logging_service=logging_service,
    )
    monitor = monitor or ActivityMonitor(logging_service)
    limiter = limiter if limiter is not None else create_limiter(settings.THROTTLE_STORAGE_URI)
    api_limit = limiter.shared_limit(throttle_rate or settings.THROTTLE_RATE, scope=API_SCOPE)
    health = HealthChecker(
        storage, cache_backends, environment=settings.APP_ENV, debug=settings.DEBUG,
        logging_service=logging_service,
    )

    app.state.manager = manager
    app.state.storage = storage
    app.state.redirect_cache = redirect_cache
    app.state.monitor = monitor
    app.state.limiter = limiter

    log.info("Storage backend: %s, cache tiers: %s",
             type(storage).__name__, [b.name for b in cache_backends] or ["none"])

    # ----------------------------------------------------------------
    # Error translation
    # ----------------------------------------------------------------
    @app.exception_handler(InvalidUrlError)
    def _invalid_url(request: Request, exc: InvalidUrlError):
        message = "The URL is not a valid RFC 1738 compliant URL. " + ". ".join(exc.errors)
        return JSONResponse(status_code=422, content={"message": message, "errors": exc.errors})

    @app.exception_handler(DeviceIdRequiredError)
    def _device_required(request: Request, exc: DeviceIdRequiredError):
        return JSONResponse(status_code=400, content={"error": "Device ID required"})

    @app.exception_handler(RecordNotFoundError)
    def _not_found(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content={"error": "URL not found"})

    @app.exception_handler(OwnershipError)
    def _forbidden(request: Request, exc: OwnershipError):
        return JSONResponse(status_code=403, content={"error": str(exc)})

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.exception_handler(CodeGenerationExhaustedError)
    def _exhausted(request: Request, exc: CodeGenerationExhaustedError):
        log.error("Short code generation exhausted", extra={"attempts": exc.attempts, "length": exc.length})
        return JSONResponse(
            status_code=503,
            content={"error": "Service temporarily unavailable", "message": "Could not allocate a short code"},
        )

    @app.exception_handler(DataStoreError)
    def _store_down(request: Request, exc: DataStoreError):
        log.error("Database connection error",
                  extra={"error": str(exc), "url": str(request.url), "method": request.method})
        return JSONResponse(
            status_code=503,
            content={
                "error": "Service temporarily unavailable",
                "message": "Database connection issue",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    @app.exception_handler(Exception)
    def _unhandled(request: Request, exc: Exception):
        log.exception(
            "Application Error",
            extra={
                "error": str(exc),
                "url": str(request.url),
                "method": request.method,
                "user_agent": request.headers.get("user-agent"),
                "ip": _client_ip(request),
            },
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "message": str(exc) if settings.DEBUG else "Something went wrong",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

    # ----------------------------------------------------------------
    # Request guards
    # ----------------------------------------------------------------
    def track_activity(request: Request) -> None:
        monitor.track_request(_client_ip(request), request.headers.get(settings.DEVICE_HEADER))

    # Health check
    @app.get("/health")
    def health_check():
        report = health.check()
        status_code = 503 if report["status"] == "unhealthy" else 200
        return JSONResponse(status_code=status_code, content=report)

    # ----------------------------------------------------------------
    # API routes
    # ----------------------------------------------------------------
    api = APIRouter(prefix="/api", dependencies=[Depends(track_activity)])

    @api.get("/urls", response_model=Page)
    @api_limit
    def list_urls(
        request: Request,
        device_id: str = Depends(get_device_id),
        search: Optional[str] = Query(None, max_length=255),
        per_page: int = Query(settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
        page: int = Query(1, ge=1),
    ) -> Page:
        """List the caller's short links, newest first, optionally filtered by URL substring."""
        return manager.list_urls(device_id, search=search, page=page, per_page=per_page)

    @api.post("/urls", status_code=201)
    @api_limit
    def create_url(req: URLRequest, request: Request, device_id: str = Depends(get_device_id)):
        """
        Shorten a URL for the calling device.

        Returns:
            dict: short_url, original_url (stored, normalized form), code, and
            whether sanitization / normalization changed the input.
        """
        ctx = _request_context(request)
        monitor.inspect_url(req.url, device_id, ip=ctx.ip, user_agent=ctx.user_agent)
        created = manager.create_url(req.url, device_id, ctx)
        record = created.record
        return {
            "short_url": str(request.url_for("redirect_url", code=record.short_code)),
            "original_url": record.original_url,
            "code": record.short_code,
            "sanitized": created.sanitized,
            "normalized": created.normalized,
        }

    @api.api_route("/urls/{record_id}", methods=["PUT", "PATCH"], response_model=UrlRecord)
    @api_limit
    def update_url(
        record_id: int, req: URLRequest, request: Request, device_id: str = Depends(get_device_id)
    ) -> UrlRecord:
        """Point an owned short link at a new URL (cached redirects may lag until TTL)."""
        return manager.update_url(record_id, req.url, device_id, _request_context(request))

    @api.delete("/urls/{record_id}", status_code=204)
    @api_limit
    def delete_url(record_id: int, request: Request, device_id: str = Depends(get_device_id)) -> Response:
        """Delete an owned short link and forget its cached redirect."""
        manager.delete_url(record_id, device_id, _request_context(request))
        return Response(status_code=204)

    app.include_router(api)

    # ----------------------------------------------------------------
    # Redirect
    # ----------------------------------------------------------------
    @app.get("/{code}", name="redirect_url")
    def redirect_url(code: str, request: Request) -> Response:
        """Redirect (302) to the stored URL and count the click."""
        if not ROUTE_CODE_PATTERN.match(code):
            raise HTTPException(status_code=404, detail="Not Found")
        record = manager.resolve(code, _request_context(request))
        return RedirectResponse(url=record.original_url, status_code=302)

    return app


# Backward compatibility for uvicorn and legacy imports:
# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
