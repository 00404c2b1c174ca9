"""
Logging for the Shortener Platform.

Two pieces live here:

- `configure_logging()` sets up the root logger once per process, either as
  plain text (default) or as one JSON object per line (`LOG_FORMAT=json`),
  in which case any `extra=` fields are copied into the JSON payload.
- `LoggingService` emits the structured monitoring events the service cares
  about (validation edge cases, failed redirects, cache trouble, suspicious
  activity, slow operations). Call sites pass request context (ip, user
  agent) explicitly; nothing here reaches into a global request object.

JSON line format:
    {"timestamp": "2025-12-26T12:00:00.000Z", "level": "WARNING",
     "logger": "shortener", "message": "Failed Redirection", "short_code": "..."}
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

DEFAULT_LOGGER = "shortener"
SLOW_OPERATION_SECONDS = 1.0


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes LogRecord extras"""

    STANDARD_ATTRS = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "module",
            "msecs",
            "msg",
            "message",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
        }
    )

    def format(self, record: logging.LogRecord) -> str:
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        payload: Dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure the root logger unless the host (uvicorn, pytest) already did."""
    if logging.getLogger().handlers:
        logging.getLogger(DEFAULT_LOGGER).setLevel(level)
        return

    formatter: Dict[str, Any]
    if fmt == "json":
        formatter = {"()": JsonFormatter}
    else:
        formatter = {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": level, "handlers": ["stdout"]},
        }
    )


class LoggingService:
    """Structured monitoring events for edge cases and system behaviour."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger(DEFAULT_LOGGER)

    def url_validation_edge_case(
        self,
        url: str,
        errors: List[str],
        sanitized_url: str,
        context: str = "general",
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        self.log.warning(
            "URL Validation Edge Case",
            extra={
                "context": context,
                "original_url": url,
                "errors": errors,
                "sanitized_url": sanitized_url,
                "ip": ip,
                "user_agent": user_agent,
            },
        )

    def url_processing(
        self, original_url: str, processed_url: str, sanitized: bool, normalized: bool, duration: float
    ) -> None:
        self.log.info(
            "RFC 1738 Processing",
            extra={
                "original_url": original_url,
                "processed_url": processed_url,
                "was_sanitized": sanitized,
                "was_normalized": normalized,
                "processing_time": duration,
            },
        )

    def suspicious_activity(
        self, url: str, device_id: str, reason: str, ip: Optional[str] = None, user_agent: Optional[str] = None
    ) -> None:
        self.log.warning(
            "Suspicious URL Shortening Activity",
            extra={"url": url, "device_id": device_id, "reason": reason, "ip": ip, "user_agent": user_agent},
        )

    def high_frequency_activity(
        self, device_id: str, request_count: int, time_window: int, ip: Optional[str] = None
    ) -> None:
        self.log.warning(
            "High Frequency Activity Detected",
            extra={
                "device_id": device_id,
                "request_count": request_count,
                "time_window_seconds": time_window,
                "ip": ip,
            },
        )

    def performance_metrics(
        self,
        operation: str,
        duration: float,
        metadata: Optional[Dict[str, Any]] = None,
        threshold: float = SLOW_OPERATION_SECONDS,
    ) -> bool:
        """Log only when `duration` exceeds `threshold`; returns whether it logged."""
        if duration <= threshold:
            return False
        self.log.warning(
            "Slow Operation Detected",
            extra={"operation": operation, "duration_seconds": duration, "metadata": metadata or {}},
        )
        return True

    def cache_issue(self, cache_key: str, operation: str, issue: str, level: int = logging.WARNING) -> None:
        self.log.log(
            level,
            "Cache Operation Issue",
            extra={"cache_key": cache_key, "operation": operation, "issue": issue},
        )

    def failed_redirection(
        self,
        short_code: str,
        reason: str,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
    ) -> None:
        self.log.error(
            "Failed Redirection",
            extra={
                "short_code": short_code,
                "reason": reason,
                "ip": ip,
                "user_agent": user_agent,
                "referer": referer,
            },
        )

    def device_id_issue(
        self, device_id: Optional[str], issue: str, context: Optional[Dict[str, Any]] = None, ip: Optional[str] = None
    ) -> None:
        self.log.warning(
            "Device ID Issue",
            extra={"device_id": device_id, "issue": issue, "context": context or {}, "ip": ip},
        )

    def successful_operation(self, operation: str, metrics: Optional[Dict[str, Any]] = None) -> None:
        self.log.info("Operation Success", extra={"operation": operation, "metrics": metrics or {}})

    def system_health(self, total_urls: int, active_devices: int) -> None:
        self.log.info("System Health Check", extra={"total_urls": total_urls, "active_devices": active_devices})
