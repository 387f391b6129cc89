"""HTML to Markdown rendering and Markdown clean-up."""

from __future__ import annotations

from typing import Optional

import html2text

MAX_BLANK_LINES = 2


class HtmlToMarkdown:
    """
    Renders an HTML fragment as CommonMark-style Markdown.

    Uses html2text with settings chosen for readable output: no line
    wrapping, inline links, ``*`` emphasis and unescaped prose. A new
    html2text parser is built for every call, so one instance can be
    shared across threads.

    Example:
        renderer = HtmlToMarkdown()
        markdown = renderer.render("<h1>Title</h1>", "https://example.com/page")
    """

    def __init__(
        self,
        body_width: int = 0,
        inline_links: bool = True,
        wrap_links: bool = False,
        ignore_images: bool = False,
        ignore_tables: bool = False,
        unicode_snob: bool = True,
        escape_snob: bool = False,
        emphasis_mark: str = "*",
        strong_mark: str = "**",
    ):
        """
        Initialize the Markdown renderer.

        Args:
            body_width: Max line width (0 = no wrapping)
            inline_links: Use inline [text](url) vs reference style
            wrap_links: Wrap long links
            ignore_images: Skip image conversion
            ignore_tables: Skip table conversion
            unicode_snob: Use Unicode chars where possible
            escape_snob: Escape every Markdown special char in text
            emphasis_mark: Marker for <em>/<i>
            strong_mark: Marker for <strong>/<b>
        """
        self._options = {
            "body_width": body_width,
            "inline_links": inline_links,
            "wrap_links": wrap_links,
            "protect_links": False,
            "ignore_images": ignore_images,
            "ignore_tables": ignore_tables,
            "unicode_snob": unicode_snob,
            "escape_snob": escape_snob,
            "emphasis_mark": emphasis_mark,
            "strong_mark": strong_mark,
            # <a href="x">x</a> becomes <x>
            "use_automatic_links": True,
            "default_image_alt": "",
            "single_line_break": False,
        }

    def _build_converter(self, base_url: Optional[str]) -> html2text.HTML2Text:
        converter = html2text.HTML2Text(baseurl=base_url or "")
        for name, value in self._options.items():
            setattr(converter, name, value)
        return converter

    def render(self, html: str, base_url: Optional[str] = None) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML fragment
            base_url: Source URL for resolving relative links, if known

        Returns:
            Raw Markdown (not yet normalized)
        """
        return self._build_converter(base_url).handle(html)


def normalize_markdown(markdown: str, max_blank_lines: int = MAX_BLANK_LINES) -> str:
    """
    Collapse runs of blank lines and trim the document.

    A run of more than ``max_blank_lines`` whitespace-only lines is cut
    down to its first ``max_blank_lines`` lines; shorter runs and all
    other lines are kept verbatim. Idempotent.

    Args:
        markdown: Rendered Markdown
        max_blank_lines: Longest blank run allowed in the output

    Returns:
        Normalized Markdown
    """
    kept: list[str] = []
    blank_run = 0

    for line in markdown.split("\n"):
        if line.strip():
            blank_run = 0
            kept.append(line)
            continue

        blank_run += 1
        if blank_run <= max_blank_lines:
            kept.append(line)

    return "\n".join(kept).strip()
