from .url_validator import ProcessedUrl, UrlParts, UrlValidator, ValidationResult

__all__ = ["ProcessedUrl", "UrlParts", "UrlValidator", "ValidationResult"]
