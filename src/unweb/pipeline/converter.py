"""Conversion pipeline: extraction, rendering and normalization."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Optional

from ..conversion.document import DEFAULT_PARSER, HtmlDocument
from ..conversion.extractor import CHROME_TAGS, MainContentExtractor
from ..conversion.markdown import HtmlToMarkdown, normalize_markdown
from ..conversion.protocols import MarkdownRenderer
from ..http.fetcher import BoundedFetcher
from ..http.protocols import HtmlFetcher
from ..models.config import FetchPolicy
from ..models.errors import ConversionError
from ..models.results import ConversionOutcome, ConversionResult
from ..security.url_guard import UrlGuard

logger = logging.getLogger(__name__)


class ConversionPipeline:
    """
    Converts HTML documents, pasted or fetched, into clean Markdown.

    Paste/upload path:
        parse -> extract main content -> render -> normalize

    URL path:
        validate URL -> bounded fetch -> paste/upload path

    URL and fetch errors are returned unchanged so callers can tell them
    apart; parse and rendering failures come back as ConversionError.

    Example:
        async with ConversionPipeline() as pipeline:
            outcome = await pipeline.convert_url("https://example.com")
            if outcome.ok:
                print(outcome.result.markdown)
    """

    def __init__(
        self,
        policy: Optional[FetchPolicy] = None,
        guard: Optional[UrlGuard] = None,
        fetcher: Optional[HtmlFetcher] = None,
        extractor: Optional[MainContentExtractor] = None,
        renderer: Optional[MarkdownRenderer] = None,
        parser: str = DEFAULT_PARSER,
    ):
        """
        Initialize the pipeline.

        Args:
            policy: Fetch limits shared by guard and fetcher
            guard: URL guard (default: built from policy)
            fetcher: HTML fetcher (default: BoundedFetcher opened with the pipeline)
            extractor: Main content extractor (uses default if None)
            renderer: Markdown renderer (uses default if None)
            parser: BeautifulSoup parser name
        """
        self._policy = policy or FetchPolicy()
        self._guard = guard or UrlGuard(self._policy)
        self._fetcher = fetcher
        self._owned_fetcher: Optional[BoundedFetcher] = None
        self._extractor = extractor or MainContentExtractor()
        self._renderer = renderer or HtmlToMarkdown()
        self._parser = parser

    @property
    def policy(self) -> FetchPolicy:
        return self._policy

    async def __aenter__(self) -> ConversionPipeline:
        """Open the default fetcher if none was injected."""
        if self._fetcher is None:
            self._owned_fetcher = BoundedFetcher(self._policy, self._guard)
            self._fetcher = await self._owned_fetcher.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the fetcher opened by __aenter__."""
        if self._owned_fetcher is not None:
            await self._owned_fetcher.__aexit__(exc_type, exc_val, exc_tb)
            self._owned_fetcher = None
            self._fetcher = None

    def convert_html(self, html: str, base_url: Optional[str] = None) -> ConversionOutcome:
        """
        Convert an HTML document to Markdown.

        Args:
            html: Full document or fragment
            base_url: Source URL for resolving relative links, if known

        Returns:
            ConversionOutcome with the result, or a ConversionError
        """
        try:
            document = HtmlDocument.parse(html, self._parser)
        except Exception as e:
            logger.exception("Failed to parse HTML")
            return ConversionOutcome.failure(ConversionError.parse_failed(e))

        try:
            extraction = self._extractor.extract(document)
            fragment = document.outer_html(extraction.node, exclude=CHROME_TAGS)
            markdown = normalize_markdown(self._renderer.render(fragment, base_url))
        except Exception as e:
            logger.exception("Error converting HTML to markdown")
            return ConversionOutcome.failure(ConversionError.internal_failure(e))

        warnings = (extraction.warning,) if extraction.warning else ()
        return ConversionOutcome.success(ConversionResult(markdown=markdown, warnings=warnings))

    async def convert_url(self, url: str) -> ConversionOutcome:
        """
        Fetch a remote document and convert it.

        Args:
            url: Absolute http(s) URL

        Returns:
            ConversionOutcome with the result, or a UrlError, FetchError
            or ConversionError
        """
        if self._fetcher is None:
            raise RuntimeError("Pipeline not initialized. Use 'async with' context manager.")

        validation = self._guard.validate(url)
        if not validation.is_valid:
            assert validation.error is not None
            logger.info(f"Rejected URL {url!r}: {validation.error.message}")
            return ConversionOutcome.failure(validation.error)

        assert validation.url is not None
        logger.info(f"Fetching HTML from URL: {validation.url.url}")
        fetched = await self._fetcher.fetch(validation.url)
        if not fetched.ok:
            assert fetched.error is not None
            return ConversionOutcome.failure(fetched.error)

        # Parsing and rendering are CPU-bound; keep the event loop free
        return await asyncio.to_thread(self.convert_html, fetched.text or "", fetched.final_url)


def convert_url_blocking(url: str, policy: Optional[FetchPolicy] = None) -> ConversionOutcome:
    """
    Blocking URL conversion for sync code that can't use async/await.

    WARNING: Do not call from within an existing event loop. Use
    ConversionPipeline.convert_url instead.

    Args:
        url: Absolute http(s) URL
        policy: Fetch limits (default: FetchPolicy())

    Returns:
        ConversionOutcome
    """

    async def run() -> ConversionOutcome:
        async with ConversionPipeline(policy) as pipeline:
            return await pipeline.convert_url(url)

    return asyncio.run(run())
