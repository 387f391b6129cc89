"""Conversion and extraction result types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

from .errors import ConversionError, FetchError, UrlError

if TYPE_CHECKING:
    from bs4 import Tag

HEURISTIC_WARNING = "Main content extracted using content analysis"
FALLBACK_WARNING = "No main content detected; using entire body"


class ExtractionMethod(str, Enum):
    """How the main content node was chosen."""

    SEMANTIC_TAG = "semantic_tag"
    HEURISTIC_SCORE = "heuristic_score"
    BODY_FALLBACK = "body_fallback"


@dataclass(frozen=True)
class ExtractionOutcome:
    """
    Node selected as main content for one conversion.

    Attributes:
        node: Element inside the parsed document
        method: Selection tier that produced the node
        score: Content score (only meaningful for HEURISTIC_SCORE)
    """

    node: Tag
    method: ExtractionMethod
    score: int = 0

    @property
    def warning(self) -> str | None:
        """Advisory warning for the tier, None for semantic tags."""
        if self.method is ExtractionMethod.HEURISTIC_SCORE:
            return HEURISTIC_WARNING
        if self.method is ExtractionMethod.BODY_FALLBACK:
            return FALLBACK_WARNING
        return None


@dataclass(frozen=True)
class ConversionResult:
    """Markdown produced by one conversion plus advisory warnings."""

    markdown: str
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        """Convert to the JSON shape returned by the API."""
        return {"markdown": self.markdown, "warnings": list(self.warnings)}


PipelineError = Union[UrlError, FetchError, ConversionError]


@dataclass(frozen=True)
class ConversionOutcome:
    """Either a ConversionResult or the error that prevented it."""

    result: ConversionResult | None = None
    error: PipelineError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @staticmethod
    def success(result: ConversionResult) -> ConversionOutcome:
        """Create a successful outcome."""
        return ConversionOutcome(result=result)

    @staticmethod
    def failure(error: PipelineError) -> ConversionOutcome:
        """Create a failed outcome."""
        return ConversionOutcome(error=error)
