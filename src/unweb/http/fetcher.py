"""Bounded async HTML fetcher."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType
from typing import Optional
from urllib.parse import urljoin

import aiohttp
from charset_normalizer import from_bytes as detect_encoding

from ..models.config import FetchPolicy
from ..models.errors import FetchError
from ..security.url_guard import UrlGuard, ValidatedUrl
from .protocols import FetchResult

logger = logging.getLogger(__name__)


class BoundedFetcher:
    """
    Fetches a single HTML document under strict limits.

    Features:
    - One total time budget for the whole exchange (redirects and body)
    - Declared Content-Length and streamed byte count both checked
    - Redirects followed by hand, each target re-validated by UrlGuard
    - Content-Type restricted to text/html
    - No retries; every failure is reported once as a FetchError

    Example:
        policy = FetchPolicy()
        guard = UrlGuard(policy)

        async with BoundedFetcher(policy, guard) as fetcher:
            result = await fetcher.fetch(guard.validate(url).url)
            if result.ok:
                print(result.text)
    """

    CHUNK_SIZE = 8192

    REDIRECT_STATUS_CODES = frozenset({301, 302, 303, 307, 308})

    def __init__(
        self,
        policy: Optional[FetchPolicy] = None,
        guard: Optional[UrlGuard] = None,
    ) -> None:
        """
        Initialize the fetcher.

        Args:
            policy: Limits, timeout and User-Agent (default: FetchPolicy())
            guard: Validator applied to redirect targets (default: built from policy)
        """
        self._policy = policy or FetchPolicy()
        self._guard = guard or UrlGuard(self._policy)
        self._session: aiohttp.ClientSession | None = None

    @property
    def policy(self) -> FetchPolicy:
        return self._policy

    async def __aenter__(self) -> BoundedFetcher:
        """Enter async context and create session."""
        self._session = aiohttp.ClientSession(
            headers={
                "User-Agent": self._policy.user_agent,
                "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.1",
            },
            timeout=aiohttp.ClientTimeout(total=self._policy.request_timeout),
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch(self, url: ValidatedUrl) -> FetchResult:
        """
        Fetch and decode an HTML document.

        Args:
            url: URL that already passed the URL guard

        Returns:
            FetchResult with decoded text and final URL, or a FetchError
        """
        if self._session is None:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")

        timeout = self._policy.request_timeout
        try:
            # Cancelling the task abandons the in-flight read; partial bytes are dropped
            result = await asyncio.wait_for(self._fetch(url.url), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Timeout fetching {url.url} after {timeout:g}s")
            return FetchResult.failed(FetchError.timeout(timeout))
        except (aiohttp.ClientError, OSError) as e:
            logger.error(f"HTTP error fetching {url.url}: {e}")
            return FetchResult.failed(FetchError.network_error(str(e) or type(e).__name__))

        if result.ok:
            logger.info(f"Fetched {len(result.text or '')} characters from {result.final_url}")
        else:
            logger.warning(f"Fetch of {url.url} failed: {result.error.message}")
        return result

    async def _fetch(self, url: str) -> FetchResult:
        assert self._session is not None
        current = url

        for _ in range(self._policy.max_redirects + 1):
            async with self._session.get(current, allow_redirects=False) as response:
                location = response.headers.get("Location")
                if response.status in self.REDIRECT_STATUS_CODES and location:
                    target = urljoin(current, location)
                    check = self._guard.validate(target)
                    if not check.is_valid:
                        assert check.error is not None
                        return FetchResult.failed(FetchError.forbidden_redirect(target, check.error))
                    logger.debug(f"Following redirect {response.status} from {current} to {target}")
                    current = target
                    continue

                return await self._read(response)

        return FetchResult.failed(FetchError.too_many_redirects(self._policy.max_redirects))

    async def _read(self, response: aiohttp.ClientResponse) -> FetchResult:
        """Check status, type and size, then stream the body under the limit."""
        if not 200 <= response.status < 300:
            return FetchResult.failed(FetchError.http_status(response.status, response.reason))

        content_type = response.headers.get("Content-Type")
        if content_type is not None and not content_type.strip().lower().startswith("text/html"):
            return FetchResult.failed(FetchError.unsupported_content_type(content_type))

        limit = self._policy.max_content_bytes
        declared = response.content_length
        if declared is not None and declared > limit:
            response.close()
            return FetchResult.failed(FetchError.too_large(declared, limit))

        content = bytearray()
        async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
            content.extend(chunk)
            if len(content) > limit:
                response.close()
                return FetchResult.failed(FetchError.too_large(len(content), limit))

        text = self._decode_content(bytes(content), content_type or "")
        return FetchResult.success(text, str(response.url))

    def _decode_content(self, content: bytes, content_type: str) -> str:
        """
        Decode content with encoding detection.

        Fallback chain:
        1. Content-Type header charset
        2. charset-normalizer detection
        3. UTF-8 with replacement
        """
        encoding = None
        for part in content_type.split(";"):
            part = part.strip()
            if part.lower().startswith("charset="):
                encoding = part.split("=", 1)[1].strip().strip("\"'")
                break

        if encoding:
            try:
                return content.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                logger.debug(f"Failed to decode with declared encoding: {encoding}")

        if not content:
            return ""

        best_match = detect_encoding(content).best()
        if best_match is not None:
            logger.debug(f"Detected encoding: {best_match.encoding}")
            return str(best_match)

        return content.decode("utf-8", errors="replace")
