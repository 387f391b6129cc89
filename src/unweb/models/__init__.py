"""Unweb configuration, error and result models."""

from .config import ByteSize, FetchPolicy, ServerConfig, UnwebConfig
from .errors import (
    ConversionError,
    ConversionErrorKind,
    FetchError,
    FetchErrorKind,
    UrlError,
    UrlErrorKind,
)
from .results import (
    FALLBACK_WARNING,
    HEURISTIC_WARNING,
    ConversionOutcome,
    ConversionResult,
    ExtractionMethod,
    ExtractionOutcome,
)

__all__ = [
    # Config
    "ByteSize",
    "FetchPolicy",
    "ServerConfig",
    "UnwebConfig",
    # Errors
    "ConversionError",
    "ConversionErrorKind",
    "FetchError",
    "FetchErrorKind",
    "UrlError",
    "UrlErrorKind",
    # Results
    "ConversionOutcome",
    "ConversionResult",
    "ExtractionMethod",
    "ExtractionOutcome",
    "FALLBACK_WARNING",
    "HEURISTIC_WARNING",
]
