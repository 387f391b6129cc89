"""Tests for the conversion pipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from unweb.http import FetchResult
from unweb.models import (
    FALLBACK_WARNING,
    HEURISTIC_WARNING,
    ConversionErrorKind,
    FetchError,
    UrlErrorKind,
)
from unweb.pipeline import ConversionPipeline

LONG_TEXT = "Lorem ipsum dolor sit amet. " * 40


@pytest.fixture
def pipeline():
    return ConversionPipeline()


def mock_fetcher(result):
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=result)
    return fetcher


class TestConvertHtml:
    """Tests for ConversionPipeline.convert_html."""

    def test_main_content(self, pipeline):
        """Test a clean page with <main> converts without warnings."""
        outcome = pipeline.convert_html("<html><body><main><h1>Title</h1><p>Body.</p></main></body></html>")

        assert outcome.ok
        assert outcome.result.markdown == "# Title\n\nBody."
        assert outcome.result.warnings == ()

    def test_excludes_page_chrome(self, pipeline):
        """Test that navigation and footer outside <main> are dropped."""
        outcome = pipeline.convert_html(
            "<html><body><nav>Home</nav><main><h1>Main</h1></main><footer>Copyright</footer></body></html>"
        )

        assert "Main" in outcome.result.markdown
        assert "Home" not in outcome.result.markdown
        assert "Copyright" not in outcome.result.markdown

    def test_strips_scripts_and_styles(self, pipeline):
        """Test that script and style bodies never reach the output."""
        outcome = pipeline.convert_html(
            "<html><head><style>body { color: red; }</style></head><body>"
            "<main><p>Hello</p><script>alert('x')</script><style>.a{}</style></main>"
            "</body></html>"
        )

        markdown = outcome.result.markdown
        assert "Hello" in markdown
        assert "alert" not in markdown
        assert "color" not in markdown
        assert ".a{}" not in markdown

    def test_heuristic_extraction_warns(self, pipeline):
        """Test that scored content carries the analysis warning."""
        outcome = pipeline.convert_html(
            f"<html><body><nav>X</nav><div><p>{LONG_TEXT}</p><p>Second paragraph.</p></div></body></html>"
        )

        assert outcome.result.warnings == (HEURISTIC_WARNING,)
        assert "Lorem ipsum" in outcome.result.markdown
        assert "X" not in outcome.result.markdown

    def test_body_fallback_warns(self, pipeline):
        """Test that short pages use the whole body."""
        outcome = pipeline.convert_html(
            "<html><body><div><h1>Content in div</h1><p>Some content here.</p></div></body></html>"
        )

        assert outcome.result.warnings == (FALLBACK_WARNING,)
        assert "# Content in div" in outcome.result.markdown
        assert "Some content here." in outcome.result.markdown

    def test_body_fallback_still_drops_chrome(self, pipeline):
        outcome = pipeline.convert_html("<body><nav>Menu</nav><p>Short text</p><footer>Foot</footer></body>")

        assert outcome.result.markdown == "Short text"

    def test_empty_body(self, pipeline):
        """Test that an empty document converts to empty markdown."""
        outcome = pipeline.convert_html("<html><body></body></html>")

        assert outcome.ok
        assert outcome.result.markdown == ""
        assert outcome.result.warnings == (FALLBACK_WARNING,)

    def test_collapses_blank_runs(self, pipeline):
        outcome = pipeline.convert_html("<main><p>One</p><br><br><br><br><br><br><p>Two</p></main>")

        assert "\n\n\n\n" not in outcome.result.markdown
        assert outcome.result.markdown.startswith("One")
        assert outcome.result.markdown.endswith("Two")

    def test_resolves_links_against_base_url(self, pipeline):
        outcome = pipeline.convert_html("<main><a href='next'>Next</a></main>", base_url="https://example.com/docs/page")

        assert "[Next](https://example.com/docs/next)" in outcome.result.markdown

    def test_parse_failure(self):
        """Test that parser errors become parse_failed."""
        outcome = ConversionPipeline(parser="no-such-parser").convert_html("<p>x</p>")

        assert not outcome.ok
        assert outcome.error.kind == ConversionErrorKind.PARSE_FAILED
        assert outcome.error.message == "Failed to parse HTML"

    def test_renderer_failure(self):
        """Test that unexpected errors become internal_failure with the cause kept."""
        renderer = MagicMock()
        renderer.render.side_effect = RuntimeError("boom")

        outcome = ConversionPipeline(renderer=renderer).convert_html("<main>x</main>")

        assert outcome.error.kind == ConversionErrorKind.INTERNAL_FAILURE
        assert outcome.error.message == "Failed to convert HTML to markdown"
        assert "boom" in outcome.error.cause


class TestConvertUrl:
    """Tests for ConversionPipeline.convert_url."""

    @pytest.mark.asyncio
    async def test_converts_fetched_page(self):
        """Test the URL path uses the final URL for relative links."""
        fetcher = mock_fetcher(
            FetchResult.success(
                "<main><h1>Docs</h1><a href='next'>Next</a></main>",
                "https://example.com/docs/page",
            )
        )

        async with ConversionPipeline(fetcher=fetcher) as pipeline:
            outcome = await pipeline.convert_url("https://example.com/docs/start")

        assert outcome.ok
        assert "# Docs" in outcome.result.markdown
        assert "[Next](https://example.com/docs/next)" in outcome.result.markdown
        validated = fetcher.fetch.await_args.args[0]
        assert validated.host == "example.com"
        assert validated.scheme == "https"

    @pytest.mark.asyncio
    async def test_rejected_url_is_not_fetched(self):
        """Test that guard errors come back unchanged before any fetch."""
        fetcher = mock_fetcher(FetchResult.success("<p>x</p>", "http://localhost/"))

        async with ConversionPipeline(fetcher=fetcher) as pipeline:
            outcome = await pipeline.convert_url("http://localhost/admin")

        assert outcome.error.kind == UrlErrorKind.FORBIDDEN_HOST
        fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["http://0x7f.0.0.1:8080/", "http://127.1/", "http://[::ffff:127.0.0.1]/"])
    async def test_numeric_loopback_forms_are_not_fetched(self, url):
        """Test that hex, short and IPv4-mapped loopback hosts never reach the fetcher."""
        fetcher = mock_fetcher(FetchResult.success("<main>INTERNAL SECRET</main>", url))

        async with ConversionPipeline(fetcher=fetcher) as pipeline:
            outcome = await pipeline.convert_url(url)

        assert outcome.error.kind == UrlErrorKind.FORBIDDEN_HOST
        fetcher.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        fetcher = mock_fetcher(FetchResult.success("", ""))

        async with ConversionPipeline(fetcher=fetcher) as pipeline:
            outcome = await pipeline.convert_url("not-a-valid-url")

        assert outcome.error.kind == UrlErrorKind.INVALID_FORMAT

    @pytest.mark.asyncio
    async def test_fetch_error_is_passed_through(self):
        """Test that fetch errors are not rewrapped."""
        error = FetchError.timeout(60)
        fetcher = mock_fetcher(FetchResult.failed(error))

        async with ConversionPipeline(fetcher=fetcher) as pipeline:
            outcome = await pipeline.convert_url("https://example.com")

        assert outcome.error is error

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        with pytest.raises(RuntimeError):
            await ConversionPipeline().convert_url("https://example.com")

    @pytest.mark.asyncio
    async def test_owns_default_fetcher(self):
        """Test that the default fetcher lives for the context only."""
        pipeline = ConversionPipeline()

        async with pipeline:
            assert pipeline._fetcher is not None

        assert pipeline._fetcher is None
