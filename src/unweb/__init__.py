"""
unweb - Convert HTML pages, files and URLs to clean Markdown.

Usage:
    from unweb import ConversionPipeline

    pipeline = ConversionPipeline()
    outcome = pipeline.convert_html("<main><h1>Title</h1></main>")
    print(outcome.result.markdown)

    async with ConversionPipeline() as pipeline:
        outcome = await pipeline.convert_url("https://example.com")
"""

__version__ = "1.0.0"

from .models.config import FetchPolicy, ServerConfig, UnwebConfig
from .models.errors import (
    ConversionError,
    ConversionErrorKind,
    FetchError,
    FetchErrorKind,
    UrlError,
    UrlErrorKind,
)
from .models.results import ConversionOutcome, ConversionResult
from .pipeline.converter import ConversionPipeline, convert_url_blocking

__all__ = [
    "__version__",
    # Core
    "ConversionPipeline",
    "convert_url_blocking",
    # Config
    "FetchPolicy",
    "ServerConfig",
    "UnwebConfig",
    # Results
    "ConversionOutcome",
    "ConversionResult",
    # Errors
    "ConversionError",
    "ConversionErrorKind",
    "FetchError",
    "FetchErrorKind",
    "UrlError",
    "UrlErrorKind",
]
