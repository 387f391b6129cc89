"""BeautifulSoup adapter exposing the DOM queries used during extraction."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Union

from bs4 import BeautifulSoup, Comment, Tag

DEFAULT_PARSER = "html.parser"


class HtmlDocument:
    """
    Parsed HTML document.

    Wraps a BeautifulSoup tree behind the small set of operations the
    content extractor and pipeline rely on. The tree is never modified;
    ``outer_html`` works on a copy.

    Example:
        doc = HtmlDocument.parse("<main><p>Hi</p></main>")
        main = doc.query_first("main")
        print(doc.outer_html(main))
    """

    def __init__(self, soup: BeautifulSoup, parser: str = DEFAULT_PARSER):
        self._soup = soup
        self._parser = parser

    @classmethod
    def parse(cls, html: str, parser: str = DEFAULT_PARSER) -> HtmlDocument:
        """Parse HTML text into a document."""
        return cls(BeautifulSoup(html, parser), parser)

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    @property
    def body(self) -> Tag:
        body = self._soup.body
        if isinstance(body, Tag):
            return body
        root = self._soup.find("html")
        if isinstance(root, Tag):
            return root
        return self._soup

    def query_first(self, name: Optional[str] = None, attrs: Optional[dict[str, str]] = None) -> Optional[Tag]:
        element = self._soup.find(name, attrs=attrs or {})
        return element if isinstance(element, Tag) else None

    def query_all(self, name: Union[str, Sequence[str]], within: Optional[Tag] = None) -> list[Tag]:
        root = within if within is not None else self._soup
        names = name if isinstance(name, str) else list(name)
        return [el for el in root.find_all(names) if isinstance(el, Tag)]

    def contains_any(self, node: Tag, names: Iterable[str]) -> bool:
        return node.find(list(names)) is not None

    def text_content(self, node: Tag) -> str:
        return node.get_text()

    def outer_html(self, node: Tag, exclude: Iterable[str] = ()) -> str:
        """
        Serialize a subtree.

        Args:
            node: Element to serialize
            exclude: Tag names removed (with their contents) from the output

        Returns:
            HTML fragment string
        """
        # Copy to avoid modifying the parsed document
        fragment = BeautifulSoup(str(node), self._parser)

        names = list(exclude)
        if names:
            for el in fragment.find_all(names):
                el.extract()

        for comment in fragment.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()

        return str(fragment)
