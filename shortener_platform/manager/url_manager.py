"""
UrlManager module for the Shortener Platform.

Responsibilities:
    - Validate, sanitize and normalize submitted URLs before they are stored
    - Mint unique short codes and persist records scoped by device id
    - Enforce owner-only update/delete (device id is the only credential)
    - Resolve short codes through the redirect cache and count clicks

Design notes:
    - Storage, cache, validator and generator are injected; the manager holds
      no request state and can be shared across threads.
    - Existence is checked before ownership, so a foreign device can tell a
      missing record (404) from someone else's (403).
    - The generator's uniqueness pre-check does not reserve the code. If the
      store reports a conflict on insert, one fresh code is tried before
      giving up with CodeGenerationExhaustedError.
    - Updates do not touch the redirect cache; a cached redirect keeps its
      old target until the TTL expires. Deletes forget the cache entry.
"""

import time
from dataclasses import dataclass
from typing import Optional

from ..cache.redirect_cache import RedirectCache
from ..exceptions import (
    CodeGenerationExhaustedError,
    InvalidUrlError,
    OwnershipError,
    RecordNotFoundError,
    ShortCodeConflictError,
)
from ..logging_service import LoggingService
from ..models import Page, UrlRecord
from ..storage.base import BaseStorage
from ..validation.url_validator import UrlValidator
from .code_generator import ShortCodeGenerator

REDIRECT_SLOW_SECONDS = 0.1


@dataclass
class CreatedUrl:
    record: UrlRecord
    sanitized: bool
    normalized: bool


@dataclass
class RequestContext:
    """Client details carried into log events."""

    ip: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None


class UrlManager:
    """
    Coordinates creation, lookup, update and deletion of URL records.
    """

    def __init__(
        self,
        storage: BaseStorage,
        cache: RedirectCache,
        validator: Optional[UrlValidator] = None,
        generator: Optional[ShortCodeGenerator] = None,
        logging_service: Optional[LoggingService] = None,
    ):
        self.storage = storage
        self.cache = cache
        self.validator = validator or UrlValidator()
        self.generator = generator or ShortCodeGenerator()
        self.logging = logging_service or LoggingService()

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    def _prepare_url(self, raw_url: str, context: str, ctx: RequestContext):
        """
        Validate `raw_url`, then return (sanitized, normalized).

        Raises:
            InvalidUrlError: If the raw input or its normalized form fails validation.
        """
        result = self.validator.validate(raw_url)
        if not result.valid:
            self.logging.url_validation_edge_case(
                raw_url,
                result.errors,
                self.validator.sanitize(raw_url),
                context=context,
                ip=ctx.ip,
                user_agent=ctx.user_agent,
            )
            raise InvalidUrlError(result.errors)

        sanitized = self.validator.sanitize(raw_url)
        normalized = self.validator.normalize(sanitized)

        recheck = self.validator.validate(normalized)
        if not recheck.valid:
            self.logging.url_validation_edge_case(
                normalized, recheck.errors, normalized, context=f"{context}_normalized", ip=ctx.ip
            )
            raise InvalidUrlError(recheck.errors)
        return sanitized, normalized

    def _get_owned(self, record_id: int, device_id: str, action: str, ctx: RequestContext) -> UrlRecord:
        record = self.storage.find_by_id(record_id)
        if record is None:
            raise RecordNotFoundError("URL not found")
        if record.device_id != device_id:
            self.logging.device_id_issue(
                device_id, f"Unauthorized {action} attempt", {"record_id": record_id}, ip=ctx.ip
            )
            raise OwnershipError(action)
        return record

    def _insert_with_unique_code(self, original_url: str, device_id: str) -> UrlRecord:
        code = self.generator.generate_unique_code(self.storage.short_code_exists)
        try:
            return self.storage.create(original_url, code, device_id)
        except ShortCodeConflictError:
            self.logging.log.warning("Short code taken between check and insert", extra={"short_code": code})

        code = self.generator.generate_unique_code(self.storage.short_code_exists)
        try:
            return self.storage.create(original_url, code, device_id)
        except ShortCodeConflictError as e:
            raise CodeGenerationExhaustedError(self.generator.max_attempts + 1, len(code)) from e

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create_url(self, raw_url: str, device_id: str, ctx: Optional[RequestContext] = None) -> CreatedUrl:
        """
        Shorten `raw_url` for `device_id`.

        Returns:
            CreatedUrl: the stored record plus whether sanitization and
            normalization changed the input.

        Raises:
            InvalidUrlError: On validation failure (all failing rules listed).
            CodeGenerationExhaustedError: If no unique code could be stored.
        """
        ctx = ctx or RequestContext()
        started = time.perf_counter()

        sanitized, normalized = self._prepare_url(raw_url, "store_request", ctx)
        was_sanitized = sanitized != raw_url
        was_normalized = normalized != sanitized
        self.logging.url_processing(
            raw_url, normalized, was_sanitized, was_normalized, time.perf_counter() - started
        )

        record = self._insert_with_unique_code(normalized, device_id)

        self.logging.performance_metrics(
            "url_creation",
            time.perf_counter() - started,
            {"original_length": len(raw_url), "final_length": len(normalized), "device_id": device_id},
        )
        self.logging.successful_operation(
            "create_url",
            {"short_code": record.short_code, "processing_applied": was_sanitized or was_normalized},
        )
        return CreatedUrl(record=record, sanitized=was_sanitized, normalized=was_normalized)

    def list_urls(
        self, device_id: str, search: Optional[str] = None, page: int = 1, per_page: int = 15
    ) -> Page:
        return self.storage.list_by_device(device_id, search=search or None, page=page, per_page=per_page)

    def update_url(
        self, record_id: int, raw_url: str, device_id: str, ctx: Optional[RequestContext] = None
    ) -> UrlRecord:
        """
        Point an owned record at a new URL. The redirect cache is left alone.

        Raises:
            RecordNotFoundError, OwnershipError, InvalidUrlError
        """
        ctx = ctx or RequestContext()
        self._get_owned(record_id, device_id, "update", ctx)
        _, normalized = self._prepare_url(raw_url, "update_request", ctx)

        updated = self.storage.update(record_id, normalized)
        if updated is None:
            raise RecordNotFoundError("URL not found")
        self.logging.successful_operation("update_url", {"short_code": updated.short_code})
        return updated

    def delete_url(self, record_id: int, device_id: str, ctx: Optional[RequestContext] = None) -> None:
        """
        Delete an owned record and drop its cached redirect.

        Raises:
            RecordNotFoundError, OwnershipError
        """
        ctx = ctx or RequestContext()
        record = self._get_owned(record_id, device_id, "delete", ctx)
        self.cache.forget(record.short_code)
        self.storage.delete(record_id)
        self.logging.successful_operation("delete_url", {"short_code": record.short_code})

    def resolve(self, short_code: str, ctx: Optional[RequestContext] = None) -> UrlRecord:
        """
        Look up the redirect target for `short_code` and count the click.

        The lookup may be served from cache (and so may be stale after an
        update); the click is counted in the store on every call.

        Raises:
            RecordNotFoundError: If no record owns the code.
        """
        ctx = ctx or RequestContext()
        started = time.perf_counter()

        record = self.cache.get_or_load(short_code, lambda: self.storage.find_by_short_code(short_code))
        if record is None:
            self.logging.failed_redirection(
                short_code, "URL not found in database", ip=ctx.ip, user_agent=ctx.user_agent, referer=ctx.referer
            )
            raise RecordNotFoundError("URL not found")

        duration = time.perf_counter() - started
        if duration > REDIRECT_SLOW_SECONDS:
            self.logging.performance_metrics(
                "url_redirect",
                duration,
                {"short_code": short_code, "cached": self.cache.peek(short_code) is not None},
                threshold=REDIRECT_SLOW_SECONDS,
            )

        if not self.storage.increment_clicks(short_code):
            self.cache.forget(short_code)
            self.logging.failed_redirection(
                short_code, "URL removed after cache lookup", ip=ctx.ip, user_agent=ctx.user_agent, referer=ctx.referer
            )
            raise RecordNotFoundError("URL not found")

        self.logging.successful_operation(
            "redirect",
            {
                "short_code": short_code,
                "clicks": record.clicks + 1,
                "target_url_length": len(record.original_url),
            },
        )
        return record
