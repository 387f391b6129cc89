"""Tests for the HTTP API."""

import contextlib
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import FormData
from aiohttp.test_utils import TestClient, TestServer
from unweb.http import FetchResult
from unweb.models import (
    FALLBACK_WARNING,
    ConversionError,
    FetchError,
    FetchPolicy,
    ServerConfig,
    UnwebConfig,
    UrlError,
)
from unweb.pipeline import ConversionPipeline
from unweb.server import create_app, status_for

PAGE = "<html><body><main><h1>Title</h1><p>Body.</p></main></body></html>"


def mock_fetcher(result):
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=result)
    return fetcher


@contextlib.asynccontextmanager
async def api(config=None, fetch_result=None):
    """Start the app with a stubbed fetcher and yield a test client."""
    config = config or UnwebConfig()
    fetcher = mock_fetcher(fetch_result or FetchResult.success(PAGE, "https://example.com/"))
    pipeline = ConversionPipeline(config.fetch, fetcher=fetcher)
    client = TestClient(TestServer(create_app(config, pipeline)))
    await client.start_server()
    try:
        yield client
    finally:
        await client.close()


def html_upload(content, filename="page.html"):
    data = FormData()
    data.add_field("file", content, filename=filename, content_type="text/html")
    return data


class TestStatusMapping:
    """Tests for error kind to HTTP status mapping."""

    @pytest.mark.parametrize(
        "error, status",
        [
            (UrlError.invalid_format(), 400),
            (UrlError.unsupported_scheme("ftp"), 400),
            (UrlError.forbidden_host("localhost"), 403),
            (FetchError.forbidden_redirect("http://10.0.0.1/", UrlError.forbidden_host("10.0.0.1")), 403),
            (FetchError.timeout(60), 504),
            (FetchError.too_large(20_000_000, 10_485_760), 413),
            (FetchError.unsupported_content_type("application/json"), 415),
            (FetchError.http_status(404, "Not Found"), 502),
            (FetchError.network_error("connection refused"), 502),
            (FetchError.too_many_redirects(5), 502),
            (ConversionError.parse_failed(ValueError("x")), 500),
            (ConversionError.internal_failure(RuntimeError("x")), 500),
        ],
    )
    def test_status_for(self, error, status):
        assert status_for(error) == status


class TestPasteEndpoint:
    """Tests for POST /api/convert/paste."""

    @pytest.mark.asyncio
    async def test_converts_html(self):
        async with api() as client:
            response = await client.post("/api/convert/paste", json={"html": PAGE})
            body = await response.json()

        assert response.status == 200
        assert body == {"markdown": "# Title\n\nBody.", "warnings": []}

    @pytest.mark.asyncio
    async def test_returns_warnings(self):
        async with api() as client:
            response = await client.post("/api/convert/paste", json={"html": "<p>Just a line</p>"})
            body = await response.json()

        assert body["warnings"] == [FALLBACK_WARNING]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"html": ""}, {"html": "   "}, {"html": 42}])
    async def test_requires_html(self, payload):
        """Test that missing or blank HTML is a 400."""
        async with api() as client:
            response = await client.post("/api/convert/paste", json=payload)
            body = await response.json()

        assert response.status == 400
        assert body["error"] == "HTML content is required"

    @pytest.mark.asyncio
    async def test_accepts_paste_larger_than_one_mebibyte(self):
        """Test that pastes are limited by the upload policy, not aiohttp's default."""
        html = "<main><p>" + "word " * 440_000 + "</p></main>"
        assert len(html) > 2 * 1024 * 1024

        async with api() as client:
            response = await client.post("/api/convert/paste", json={"html": html})
            body = await response.json()

        assert response.status == 200
        assert body["markdown"].startswith("word word")
        assert body["warnings"] == []

    @pytest.mark.asyncio
    async def test_oversized_paste_gets_json_413(self):
        """Test that a body over the JSON limit is refused with the usual error shape."""
        config = UnwebConfig(fetch=FetchPolicy(max_upload_bytes=1024))

        async with api(config) as client:
            response = await client.post("/api/convert/paste", json={"html": "x" * 10_000})
            body = await response.json()

        assert response.status == 413
        assert body["error"] == "Request body too large. Maximum: 2048 bytes"

    @pytest.mark.asyncio
    async def test_oversized_url_request_gets_json_413(self):
        config = UnwebConfig(fetch=FetchPolicy(max_upload_bytes=1024))

        async with api(config) as client:
            response = await client.post("/api/convert/url", json={"url": "https://example.com/" + "a" * 5000})

        assert response.status == 413
        assert "error" in await response.json()

    @pytest.mark.asyncio
    async def test_rejects_non_json_body(self):
        async with api() as client:
            response = await client.post("/api/convert/paste", data="<p>raw</p>")

        assert response.status == 400


class TestUploadEndpoint:
    """Tests for POST /api/convert/upload."""

    @pytest.mark.asyncio
    async def test_converts_uploaded_file(self):
        async with api() as client:
            response = await client.post("/api/convert/upload", data=html_upload(PAGE.encode()))
            body = await response.json()

        assert response.status == 200
        assert body["markdown"] == "# Title\n\nBody."

    @pytest.mark.asyncio
    async def test_accepts_htm_and_utf8_bom(self):
        """Test .htm files and a leading byte order mark."""
        content = b"\xef\xbb\xbf" + "<main><p>Café</p></main>".encode()

        async with api() as client:
            response = await client.post("/api/convert/upload", data=html_upload(content, "PAGE.HTM"))
            body = await response.json()

        assert body["markdown"] == "Café"

    @pytest.mark.asyncio
    async def test_rejects_other_extensions(self):
        async with api() as client:
            response = await client.post("/api/convert/upload", data=html_upload(b"<p>x</p>", "notes.txt"))
            body = await response.json()

        assert response.status == 400
        assert body["error"] == "Only .html and .htm files are allowed"

    @pytest.mark.asyncio
    async def test_requires_file_field(self):
        data = FormData()
        data.add_field("other", b"<p>x</p>", filename="page.html")

        async with api() as client:
            response = await client.post("/api/convert/upload", data=data)
            body = await response.json()

        assert response.status == 400
        assert body["error"] == "No file uploaded"

    @pytest.mark.asyncio
    async def test_requires_multipart(self):
        async with api() as client:
            response = await client.post("/api/convert/upload", json={"html": PAGE})

        assert response.status == 400

    @pytest.mark.asyncio
    async def test_rejects_empty_file(self):
        async with api() as client:
            response = await client.post("/api/convert/upload", data=html_upload(b""))

        assert response.status == 400

    @pytest.mark.asyncio
    async def test_rejects_oversized_file(self):
        """Test the upload size limit."""
        config = UnwebConfig(fetch=FetchPolicy(max_upload_bytes=1024))

        async with api(config) as client:
            response = await client.post("/api/convert/upload", data=html_upload(b"x" * 4096))
            body = await response.json()

        assert response.status == 413
        assert "1024" in body["error"]


class TestUrlEndpoint:
    """Tests for POST /api/convert/url."""

    @pytest.mark.asyncio
    async def test_converts_url(self):
        async with api() as client:
            response = await client.post("/api/convert/url", json={"url": "https://example.com"})
            body = await response.json()

        assert response.status == 200
        assert body["markdown"] == "# Title\n\nBody."

    @pytest.mark.asyncio
    async def test_requires_url(self):
        async with api() as client:
            response = await client.post("/api/convert/url", json={"url": ""})
            body = await response.json()

        assert response.status == 400
        assert body["error"] == "URL is required"

    @pytest.mark.asyncio
    async def test_forbidden_host(self):
        """Test that private addresses are refused with 403."""
        async with api() as client:
            response = await client.post("/api/convert/url", json={"url": "http://localhost/test"})
            body = await response.json()

        assert response.status == 403
        assert body["kind"] == "forbidden_host"
        assert "not allowed" in body["error"]

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        async with api() as client:
            response = await client.post("/api/convert/url", json={"url": "not-a-valid-url"})
            body = await response.json()

        assert response.status == 400
        assert body["error"] == "Invalid URL format"

    @pytest.mark.asyncio
    async def test_unsupported_scheme(self):
        async with api() as client:
            response = await client.post("/api/convert/url", json={"url": "ftp://example.com/file"})

        assert response.status == 400

    @pytest.mark.asyncio
    async def test_fetch_timeout(self):
        async with api(fetch_result=FetchResult.failed(FetchError.timeout(60))) as client:
            response = await client.post("/api/convert/url", json={"url": "https://example.com"})
            body = await response.json()

        assert response.status == 504
        assert body["title"] == "Failed to fetch URL"
        assert body["error"] == "Request timed out after 60 seconds"

    @pytest.mark.asyncio
    async def test_fetch_too_large(self):
        error = FetchError.too_large(20_000_000, 10_485_760)

        async with api(fetch_result=FetchResult.failed(error)) as client:
            response = await client.post("/api/convert/url", json={"url": "https://example.com"})

        assert response.status == 413


class TestHealthAndCors:
    """Tests for /health and CORS handling."""

    @pytest.mark.asyncio
    async def test_health(self):
        async with api() as client:
            response = await client.get("/health")
            body = await response.json()

        assert response.status == 200
        assert body == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_any_origin_in_production(self):
        async with api() as client:
            response = await client.get("/health", headers={"Origin": "https://app.example.com"})

        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_preflight(self):
        """Test that preflight requests are answered without hitting handlers."""
        config = UnwebConfig(server=ServerConfig(development=True))

        async with api(config) as client:
            response = await client.options(
                "/api/convert/paste",
                headers={
                    "Origin": "http://localhost:5173",
                    "Access-Control-Request-Method": "POST",
                    "Access-Control-Request-Headers": "Content-Type",
                },
            )

        assert response.status == 204
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert "POST" in response.headers["Access-Control-Allow-Methods"]

    @pytest.mark.asyncio
    async def test_unknown_origin_in_development(self):
        config = UnwebConfig(server=ServerConfig(development=True))

        async with api(config) as client:
            response = await client.get("/health", headers={"Origin": "https://evil.example.com"})

        assert "Access-Control-Allow-Origin" not in response.headers
