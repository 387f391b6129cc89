"""Protocol definitions for content conversion."""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence, Union

from bs4 import Tag


class DomDocument(Protocol):
    """
    Narrow query interface the extractor needs from a parsed document.

    Any parser wrapper exposing these operations can replace HtmlDocument.
    """

    def query_first(self, name: Optional[str] = None, attrs: Optional[dict[str, str]] = None) -> Optional[Tag]:
        """First element in document order matching tag name and attributes."""
        ...

    def query_all(self, name: Union[str, Sequence[str]], within: Optional[Tag] = None) -> list[Tag]:
        """All elements with these tag names in document order, optionally below ``within``."""
        ...

    def contains_any(self, node: Tag, names: Iterable[str]) -> bool:
        """True if ``node`` has a descendant with one of the tag names."""
        ...

    def text_content(self, node: Tag) -> str:
        """Flattened text of a subtree."""
        ...

    def outer_html(self, node: Tag, exclude: Iterable[str] = ()) -> str:
        """Serialized markup of a subtree, minus ``exclude`` elements."""
        ...

    @property
    def body(self) -> Tag:
        """Body element, or the document root when there is none."""
        ...


class MarkdownRenderer(Protocol):
    """
    Protocol for converting an HTML fragment to Markdown.

    Implementations render the fragment as-is; normalization happens later.
    """

    def render(self, html: str, base_url: Optional[str] = None) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML fragment
            base_url: Source URL for resolving relative links, if known

        Returns:
            Markdown string
        """
        ...
