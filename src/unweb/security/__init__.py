"""Security validation for unweb."""

from .url_guard import UrlGuard, UrlValidationResult, ValidatedUrl, literal_ipv4

__all__ = ["UrlGuard", "UrlValidationResult", "ValidatedUrl", "literal_ipv4"]
