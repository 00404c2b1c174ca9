"""
Exception hierarchy for the Shortener Platform.

Every error the core raises derives from `ShortenerError` so the HTTP layer
can translate the whole family with a handful of exception handlers:

    InvalidUrlError              -> 422 (carries the validator's error list)
    DeviceIdRequiredError        -> 400
    RecordNotFoundError          -> 404
    OwnershipError               -> 403
    CodeGenerationExhaustedError -> 503
    DataStoreError               -> 503
    ShortCodeConflictError       -> handled inside the manager (regenerate once)
    CacheBackendError            -> never leaves the cache layer
"""

from typing import List, Optional


class ShortenerError(Exception):
    """Base class for all platform errors."""


class InvalidUrlError(ShortenerError):
    """The submitted URL failed one or more validation rules."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(". ".join(self.errors) or "Invalid URL")


class DeviceIdRequiredError(ShortenerError):
    """The request carried no device identifier."""


class RecordNotFoundError(ShortenerError):
    """No URL record exists for the given id or short code."""


class OwnershipError(ShortenerError):
    """The caller's device id does not own the record."""

    def __init__(self, action: str = "access"):
        self.action = action
        super().__init__(f"Unauthorized to {action} this URL")


class ShortCodeConflictError(ShortenerError):
    """The storage layer already holds a record with this short code."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code already exists: {short_code}")


class CodeGenerationExhaustedError(ShortenerError):
    """No unused short code was found within the allowed number of attempts."""

    def __init__(self, attempts: int, length: Optional[int] = None):
        self.attempts = attempts
        self.length = length
        super().__init__(f"Could not generate a unique short code after {attempts} attempts")


class DataStoreError(ShortenerError):
    """The primary record store is unreachable or failed."""


class CacheBackendError(ShortenerError):
    """A single cache tier failed; callers fall through to the next tier."""
