"""Error values returned by the URL guard, fetcher and conversion pipeline.

Errors are plain immutable values carried inside result objects. Callers
branch on ``kind`` instead of catching exceptions, which keeps the mapping
to outward status codes in one place (see ``unweb.server.responses``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UrlErrorKind(str, Enum):
    """Reasons a URL is rejected before any network access."""

    INVALID_FORMAT = "invalid_format"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    FORBIDDEN_HOST = "forbidden_host"


class FetchErrorKind(str, Enum):
    """Remote-side or network-side fetch failures."""

    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    UNSUPPORTED_CONTENT_TYPE = "unsupported_content_type"
    TOO_LARGE = "too_large"
    NETWORK_ERROR = "network_error"
    FORBIDDEN_REDIRECT = "forbidden_redirect"
    TOO_MANY_REDIRECTS = "too_many_redirects"


class ConversionErrorKind(str, Enum):
    """Local processing failures."""

    PARSE_FAILED = "parse_failed"
    INTERNAL_FAILURE = "internal_failure"


@dataclass(frozen=True)
class UrlError:
    """A URL rejected by the guard."""

    kind: UrlErrorKind
    message: str

    @classmethod
    def invalid_format(cls) -> UrlError:
        return cls(UrlErrorKind.INVALID_FORMAT, "Invalid URL format")

    @classmethod
    def unsupported_scheme(cls, scheme: str) -> UrlError:
        return cls(
            UrlErrorKind.UNSUPPORTED_SCHEME,
            f"Unsupported protocol: {scheme}. Only HTTP and HTTPS are allowed",
        )

    @classmethod
    def forbidden_host(cls, host: str) -> UrlError:
        return cls(
            UrlErrorKind.FORBIDDEN_HOST,
            f"Access to private or local address '{host}' is not allowed",
        )


@dataclass(frozen=True)
class FetchError:
    """
    A failed remote fetch.

    Attributes:
        kind: Failure category
        message: Short, caller-safe description
        status_code: HTTP status (http_status only)
        reason: HTTP reason phrase (http_status only)
        content_type: Offending Content-Type (unsupported_content_type only)
        size: Declared or actually read byte count (too_large only)
    """

    kind: FetchErrorKind
    message: str
    status_code: int | None = None
    reason: str | None = None
    content_type: str | None = None
    size: int | None = None

    @classmethod
    def timeout(cls, seconds: float) -> FetchError:
        return cls(FetchErrorKind.TIMEOUT, f"Request timed out after {seconds:g} seconds")

    @classmethod
    def http_status(cls, status_code: int, reason: str | None) -> FetchError:
        return cls(
            FetchErrorKind.HTTP_STATUS,
            f"Failed to fetch URL. Status: {status_code} {reason or ''}".rstrip(),
            status_code=status_code,
            reason=reason,
        )

    @classmethod
    def unsupported_content_type(cls, content_type: str) -> FetchError:
        return cls(
            FetchErrorKind.UNSUPPORTED_CONTENT_TYPE,
            f"Unsupported content type: {content_type}. Only text/html is supported",
            content_type=content_type,
        )

    @classmethod
    def too_large(cls, size: int, limit: int) -> FetchError:
        return cls(
            FetchErrorKind.TOO_LARGE,
            f"Content too large: {size} bytes. Maximum: {limit} bytes",
            size=size,
        )

    @classmethod
    def network_error(cls, detail: str) -> FetchError:
        return cls(FetchErrorKind.NETWORK_ERROR, f"Failed to fetch URL: {detail}")

    @classmethod
    def forbidden_redirect(cls, target: str, url_error: UrlError) -> FetchError:
        return cls(
            FetchErrorKind.FORBIDDEN_REDIRECT,
            f"Redirect to {target} rejected: {url_error.message}",
        )

    @classmethod
    def too_many_redirects(cls, limit: int) -> FetchError:
        return cls(FetchErrorKind.TOO_MANY_REDIRECTS, f"Too many redirects (limit: {limit})")


@dataclass(frozen=True)
class ConversionError:
    """
    A local parse or processing failure.

    ``cause`` keeps the underlying exception text for logs; it is never
    sent back to API clients.
    """

    kind: ConversionErrorKind
    message: str
    cause: str | None = None

    @classmethod
    def parse_failed(cls, exc: BaseException) -> ConversionError:
        return cls(ConversionErrorKind.PARSE_FAILED, "Failed to parse HTML", cause=repr(exc))

    @classmethod
    def internal_failure(cls, exc: BaseException) -> ConversionError:
        return cls(
            ConversionErrorKind.INTERNAL_FAILURE,
            "Failed to convert HTML to markdown",
            cause=repr(exc),
        )
