"""Mapping of pipeline outcomes to HTTP responses."""

from __future__ import annotations

import logging

from aiohttp import web

from ..models.errors import (
    ConversionError,
    FetchError,
    FetchErrorKind,
    UrlError,
    UrlErrorKind,
)
from ..models.results import ConversionOutcome, PipelineError

logger = logging.getLogger(__name__)

URL_ERROR_STATUS = {
    UrlErrorKind.INVALID_FORMAT: 400,
    UrlErrorKind.UNSUPPORTED_SCHEME: 400,
    UrlErrorKind.FORBIDDEN_HOST: 403,
}

FETCH_ERROR_STATUS = {
    FetchErrorKind.TIMEOUT: 504,
    FetchErrorKind.TOO_LARGE: 413,
    FetchErrorKind.UNSUPPORTED_CONTENT_TYPE: 415,
    FetchErrorKind.FORBIDDEN_REDIRECT: 403,
    FetchErrorKind.HTTP_STATUS: 502,
    FetchErrorKind.NETWORK_ERROR: 502,
    FetchErrorKind.TOO_MANY_REDIRECTS: 502,
}


def status_for(error: PipelineError) -> int:
    """HTTP status code for a pipeline error."""
    if isinstance(error, UrlError):
        return URL_ERROR_STATUS[error.kind]
    if isinstance(error, FetchError):
        return FETCH_ERROR_STATUS[error.kind]
    return 500


def json_error(status: int, message: str, **extra: object) -> web.Response:
    """JSON error body with a single ``error`` message."""
    return web.json_response({"error": message, **extra}, status=status)


def error_response(error: PipelineError) -> web.Response:
    """
    Build the response for a failed conversion.

    Conversion errors only expose their short message; the cause stays in
    the server log.
    """
    status = status_for(error)
    if isinstance(error, ConversionError):
        logger.error(f"Conversion failed ({error.kind.value}): {error.cause}")
        return json_error(status, error.message, title="Conversion failed")

    logger.info(f"Request rejected with {status} ({error.kind.value}): {error.message}")
    title = "Failed to fetch URL" if isinstance(error, FetchError) else "Invalid URL"
    return json_error(status, error.message, title=title, kind=error.kind.value)


def outcome_response(outcome: ConversionOutcome) -> web.Response:
    """200 with markdown and warnings, or the mapped error response."""
    if outcome.ok:
        assert outcome.result is not None
        return web.json_response(outcome.result.to_dict())
    assert outcome.error is not None
    return error_response(outcome.error)
