"""Content conversion for unweb (extraction, HTML to Markdown, normalization)."""

from .document import HtmlDocument
from .extractor import MainContentExtractor
from .markdown import HtmlToMarkdown, normalize_markdown
from .protocols import DomDocument, MarkdownRenderer

__all__ = [
    # Protocols
    "DomDocument",
    "MarkdownRenderer",
    # Implementations
    "HtmlDocument",
    "MainContentExtractor",
    "HtmlToMarkdown",
    "normalize_markdown",
]
