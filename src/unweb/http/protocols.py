"""Protocol definitions for remote HTML fetching."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..models.errors import FetchError
from ..security.url_guard import ValidatedUrl


@dataclass(frozen=True)
class FetchResult:
    """
    Decoded HTML document or the reason it could not be fetched.

    Attributes:
        text: Decoded response body
        final_url: URL the body was served from, after redirects
        error: FetchError when the fetch failed
    """

    text: str | None = None
    final_url: str | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(text: str, final_url: str) -> FetchResult:
        """Create a successful result."""
        return FetchResult(text=text, final_url=final_url)

    @staticmethod
    def failed(error: FetchError) -> FetchResult:
        """Create a failed result."""
        return FetchResult(error=error)


class HtmlFetcher(Protocol):
    """
    Protocol for bounded HTML fetchers.

    This abstraction allows for:
    - Mock implementations in tests
    - Swapping the HTTP backend without touching the pipeline
    """

    async def fetch(self, url: ValidatedUrl) -> FetchResult:
        """
        Fetch an HTML document.

        Args:
            url: URL that already passed the URL guard

        Returns:
            FetchResult with decoded text or a FetchError
        """
        ...
