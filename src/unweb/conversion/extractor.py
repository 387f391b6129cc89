"""Main content extraction from parsed HTML documents."""

import logging
from typing import Optional

from bs4 import Tag

from ..models.results import ExtractionMethod, ExtractionOutcome
from .protocols import DomDocument

logger = logging.getLogger(__name__)

# Semantic selectors, in priority order: (tag name, attributes)
SEMANTIC_SELECTORS: list[tuple[Optional[str], dict[str, str]]] = [
    ("main", {}),
    ("article", {}),
    (None, {"role": "main"}),
]

# Generic blocks scored when no semantic element exists
CANDIDATE_TAGS = ("div",)

# A candidate containing any of these is never selected
EXCLUDED_DESCENDANTS = ("nav", "footer", "aside", "script", "style")

# Site furniture stripped from the selected subtree before rendering
CHROME_TAGS = ("nav", "footer", "aside", "script", "style", "noscript")

SCORE_THRESHOLD = 100
TEXT_SCORE_DIVISOR = 10
TEXT_SCORE_CAP = 100
PARAGRAPH_POINTS = 10


class MainContentExtractor:
    """
    Picks the element holding a document's main content.

    Selection tiers, first match wins:
    1. Semantic tags: <main>, then <article>, then role="main"
    2. Heuristic scoring of generic <div> blocks (text length,
       paragraph count, link density); the best score must exceed 100
    3. The body element, or the document root when there is no body

    Extraction never fails: an empty document still yields its root.

    Example:
        extractor = MainContentExtractor()
        outcome = extractor.extract(HtmlDocument.parse(html))
        if outcome.warning:
            print(outcome.warning)
    """

    def __init__(
        self,
        candidate_tags: tuple[str, ...] = CANDIDATE_TAGS,
        threshold: int = SCORE_THRESHOLD,
    ):
        """
        Initialize the content extractor.

        Args:
            candidate_tags: Tag names scored in the heuristic tier
            threshold: Score a candidate must strictly exceed to be selected
        """
        self._candidate_tags = candidate_tags
        self._threshold = threshold

    def extract(self, document: DomDocument) -> ExtractionOutcome:
        """
        Select the main content node.

        Args:
            document: Parsed document

        Returns:
            ExtractionOutcome naming the node and the tier that chose it
        """
        semantic = self._find_semantic(document)
        if semantic is not None:
            logger.info("Main content extracted using semantic HTML")
            return ExtractionOutcome(node=semantic, method=ExtractionMethod.SEMANTIC_TAG)

        best, best_score = self._find_best_candidate(document)
        if best is not None and best_score > self._threshold:
            logger.info(f"Main content extracted using content analysis (score {best_score})")
            return ExtractionOutcome(node=best, method=ExtractionMethod.HEURISTIC_SCORE, score=best_score)

        logger.warning("No main content detected; using entire body")
        return ExtractionOutcome(node=document.body, method=ExtractionMethod.BODY_FALLBACK)

    def _find_semantic(self, document: DomDocument) -> Optional[Tag]:
        for name, attrs in SEMANTIC_SELECTORS:
            element = document.query_first(name, attrs)
            if element is not None:
                return element
        return None

    def _find_best_candidate(self, document: DomDocument) -> tuple[Optional[Tag], int]:
        """Scan candidates in document order; ties keep the earlier one."""
        best: Optional[Tag] = None
        best_score = 0

        for element in document.query_all(self._candidate_tags):
            score = self.score(document, element)
            if score > best_score:
                best, best_score = element, score

        return best, best_score

    def score(self, document: DomDocument, element: Tag) -> int:
        """
        Compute the content score of one candidate.

        Args:
            document: Document the element belongs to
            element: Candidate element

        Returns:
            Integer score (0 for blocks containing chrome or scripts)
        """
        if document.contains_any(element, EXCLUDED_DESCENDANTS):
            return 0

        score = min(len(document.text_content(element)) // TEXT_SCORE_DIVISOR, TEXT_SCORE_CAP)

        paragraphs = len(document.query_all("p", within=element))
        score += paragraphs * PARAGRAPH_POINTS

        # Link farms and menus that happen to carry some text
        links = len(document.query_all("a", within=element))
        if links > paragraphs * 2:
            score //= 2

        return score
