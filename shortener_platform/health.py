"""
Health checks for the Shortener Platform.

`HealthChecker.check()` probes the record store and every cache tier and
folds the results into one status:

    - any service "unhealthy"            -> "unhealthy" (HTTP 503)
    - any service "degraded"             -> "degraded"  (HTTP 200)
    - otherwise                          -> "healthy"   (HTTP 200)

A failing cache tier is "degraded" while another tier still works, and
"unhealthy" once every tier fails. Messages from exceptions are only
included when `debug` is on.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .cache.base import CacheBackend
from .cache.cache_key_schema import CacheKeySchema
from .exceptions import CacheBackendError, DataStoreError
from .logging_service import LoggingService
from .storage.base import BaseStorage

log = logging.getLogger("shortener.health")


class HealthChecker:
    def __init__(
        self,
        storage: BaseStorage,
        cache_backends: List[CacheBackend],
        environment: str = "local",
        debug: bool = False,
        logging_service: Optional[LoggingService] = None,
    ):
        self.storage = storage
        self.cache_backends = cache_backends
        self.environment = environment
        self.debug = debug
        self.logging = logging_service or LoggingService()
        self.keys = CacheKeySchema()

    def check(self) -> Dict[str, Any]:
        services: Dict[str, Dict[str, Any]] = {"database": self._check_database()}
        tiers = {f"cache_{b.name}": self._check_cache(b) for b in self.cache_backends}
        any_working = any(t["status"] == "healthy" for t in tiers.values())
        for result in tiers.values():
            if result["status"] != "healthy":
                result["status"] = "degraded" if any_working else "unhealthy"
                if any_working:
                    result["fallback"] = "Another cache tier available"
        services.update(tiers)

        overall = self._overall(services)
        return {
            "status": overall["status"],
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": self.environment,
            "services": services,
            **{k: v for k, v in overall.items() if k != "status"},
        }

    def _check_database(self) -> Dict[str, Any]:
        try:
            details = self.storage.ping()
            total_urls = self.storage.count_records()
            self.logging.system_health(total_urls, self.storage.count_devices())
            return {"status": "healthy", "total_urls": total_urls, **details}
        except DataStoreError as e:
            log.error("Database health check failed", extra={"error": str(e)})
            return {
                "status": "unhealthy",
                "error": "Connection failed",
                "message": str(e) if self.debug else "Database unavailable",
            }

    def _check_cache(self, backend: CacheBackend) -> Dict[str, Any]:
        token = secrets.token_hex(4)
        key = self.keys.health_check_key(token)
        try:
            backend.put(key, token, 5)
            value = backend.get(key)
            backend.forget(key)
            if value != token:
                raise CacheBackendError("Cache read/write test failed")
            return {"status": "healthy", "driver": backend.name}
        except CacheBackendError as e:
            log.warning("Cache health check failed", extra={"driver": backend.name, "error": str(e)})
            return {
                "status": "unhealthy",
                "driver": backend.name,
                "error": "Cache test failed",
                "message": str(e) if self.debug else f"{backend.name} cache unavailable",
            }

    @staticmethod
    def _overall(services: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        unhealthy = [name for name, s in services.items() if s["status"] == "unhealthy"]
        degraded = [name for name, s in services.items() if s["status"] == "degraded"]
        if unhealthy:
            return {"status": "unhealthy", "issues": unhealthy}
        if degraded:
            return {"status": "degraded", "warnings": degraded}
        return {"status": "healthy"}
