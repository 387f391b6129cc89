"""aiohttp application exposing the conversion API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Any, Optional

from aiohttp import BodyPartReader, web

from ..models.config import UnwebConfig
from ..pipeline.converter import ConversionPipeline
from .responses import json_error, outcome_response

logger = logging.getLogger(__name__)

PIPELINE_KEY = web.AppKey("pipeline", ConversionPipeline)
CONFIG_KEY = web.AppKey("config", UnwebConfig)

ALLOWED_UPLOAD_EXTENSIONS = frozenset({".html", ".htm"})
UPLOAD_CHUNK_SIZE = 64 * 1024

# Headroom for JSON string escaping of pasted HTML
JSON_ESCAPE_FACTOR = 2

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def cors_middleware(origins: list[str]) -> Any:
    """
    Build a CORS middleware for the given origins.

    ``"*"`` in ``origins`` allows any origin. Preflight requests are
    answered directly with 204.
    """
    allow_all = "*" in origins

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
            response: web.StreamResponse = web.Response(status=204)
        else:
            response = await handler(request)

        origin = request.headers.get("Origin")
        if origin and (allow_all or origin in origins):
            response.headers["Access-Control-Allow-Origin"] = "*" if allow_all else origin
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = request.headers.get(
                "Access-Control-Request-Headers", "Content-Type"
            )
            if not allow_all:
                response.headers["Vary"] = "Origin"
        return response

    return middleware


def json_body_limit(config: UnwebConfig) -> int:
    """Largest JSON request body accepted: an upload-sized document after escaping."""
    return config.fetch.max_upload_bytes * JSON_ESCAPE_FACTOR


async def _read_json_object(request: web.Request) -> Optional[dict]:
    """
    Parse the body as a JSON object.

    Returns None for invalid JSON or a non-object body. Raises
    web.HTTPRequestEntityTooLarge when the body exceeds the app limit.
    """
    try:
        payload = await request.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _body_too_large(request: web.Request) -> web.Response:
    limit = json_body_limit(request.app[CONFIG_KEY])
    return json_error(413, f"Request body too large. Maximum: {limit} bytes")


async def convert_paste(request: web.Request) -> web.Response:
    """POST /api/convert/paste - convert raw HTML from a JSON body."""
    try:
        payload = await _read_json_object(request)
    except web.HTTPRequestEntityTooLarge:
        return _body_too_large(request)
    if payload is None:
        return json_error(400, "Request body must be a JSON object")

    html = payload.get("html")
    if not isinstance(html, str) or not html.strip():
        return json_error(400, "HTML content is required")

    pipeline = request.app[PIPELINE_KEY]
    outcome = await asyncio.to_thread(pipeline.convert_html, html)
    return outcome_response(outcome)


async def convert_upload(request: web.Request) -> web.Response:
    """POST /api/convert/upload - convert an uploaded .html/.htm file."""
    if not request.content_type.startswith("multipart/"):
        return json_error(400, "No file uploaded")

    reader = await request.multipart()
    field: Optional[BodyPartReader] = None
    while True:
        part = await reader.next()
        if part is None:
            break
        if isinstance(part, BodyPartReader) and part.name == "file":
            field = part
            break
        await part.release()

    if field is None:
        return json_error(400, "No file uploaded")

    extension = Path(field.filename or "").suffix.lower()
    if extension not in ALLOWED_UPLOAD_EXTENSIONS:
        return json_error(400, "Only .html and .htm files are allowed")

    limit = request.app[CONFIG_KEY].fetch.max_upload_bytes
    content = bytearray()
    while True:
        chunk = await field.read_chunk(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        content.extend(chunk)
        if len(content) > limit:
            logger.info(f"Upload {field.filename!r} rejected: larger than {limit} bytes")
            return json_error(413, f"File too large. Maximum: {limit} bytes")

    if not content:
        return json_error(400, "No file uploaded")

    html = bytes(content).decode("utf-8-sig", errors="replace")
    pipeline = request.app[PIPELINE_KEY]
    outcome = await asyncio.to_thread(pipeline.convert_html, html)
    return outcome_response(outcome)


async def convert_url(request: web.Request) -> web.Response:
    """POST /api/convert/url - fetch a remote page and convert it."""
    try:
        payload = await _read_json_object(request)
    except web.HTTPRequestEntityTooLarge:
        return _body_too_large(request)
    if payload is None:
        return json_error(400, "Request body must be a JSON object")

    url = payload.get("url")
    if not isinstance(url, str) or not url.strip():
        return json_error(400, "URL is required")

    pipeline = request.app[PIPELINE_KEY]
    outcome = await pipeline.convert_url(url.strip())
    return outcome_response(outcome)


async def health(request: web.Request) -> web.Response:
    """GET /health - liveness probe."""
    return web.json_response({"status": "healthy"})


def create_app(
    config: Optional[UnwebConfig] = None,
    pipeline: Optional[ConversionPipeline] = None,
) -> web.Application:
    """
    Create the API application.

    Args:
        config: Root configuration (default: UnwebConfig())
        pipeline: Conversion pipeline (default: built from config.fetch)

    Returns:
        aiohttp Application; the pipeline is opened on startup and closed
        on cleanup.
    """
    config = config or UnwebConfig()
    pipeline = pipeline or ConversionPipeline(config.fetch)

    app = web.Application(
        middlewares=[cors_middleware(config.server.cors_origins())],
        client_max_size=json_body_limit(config),
    )
    app[CONFIG_KEY] = config
    app[PIPELINE_KEY] = pipeline

    async def pipeline_context(app: web.Application) -> AsyncIterator[None]:
        async with app[PIPELINE_KEY]:
            yield

    app.cleanup_ctx.append(pipeline_context)

    app.router.add_post("/api/convert/paste", convert_paste)
    app.router.add_post("/api/convert/upload", convert_upload)
    app.router.add_post("/api/convert/url", convert_url)
    app.router.add_get("/health", health)

    return app


def run_server(config: Optional[UnwebConfig] = None) -> None:
    """Run the API until interrupted."""
    config = config or UnwebConfig()
    logger.info(f"Starting unweb API on http://{config.server.host}:{config.server.port}")
    web.run_app(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        print=None,
    )
