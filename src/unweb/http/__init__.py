"""Bounded HTML fetching for unweb."""

from .fetcher import BoundedFetcher
from .protocols import FetchResult, HtmlFetcher

__all__ = [
    "BoundedFetcher",
    "FetchResult",
    "HtmlFetcher",
]
