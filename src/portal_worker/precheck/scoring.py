"""
Pure scoring and link-selection rules for the precheck heuristic.

Nothing here touches the browser: the classifier feeds extracted text
and anchors in, so every rule can be exercised directly.
"""

import re
from collections.abc import Iterable, Sequence

from portal_worker.config.settings import PrecheckSettings, ScoreMarker
from portal_worker.precheck.models import PrecheckCategory


def compute_auto_score(text: str, markers: Iterable[ScoreMarker]) -> int:
    """
    Sum marker weights over the lower-cased page text.

    Matching is by substring. Each marker contributes its weight once
    however often its phrase occurs.

    Args:
        text: Visible page text (any case)
        markers: Phrases and weights

    Returns:
        Integer automation score
    """
    lower = text.lower()
    return sum(marker.weight for marker in markers if marker.phrase in lower)


def categorize(
    score: int,
    automatable_min_score: int = 2,
    partner_max_score: int = -1,
) -> PrecheckCategory:
    """
    Map a score to a category.

    Starts from HYBRID, then checks AUTOMATABLE, then PARTNER_REQUIRED.
    Both checks always run, so if thresholds ever overlap the partner
    check wins.
    """
    category = PrecheckCategory.HYBRID
    if score >= automatable_min_score:
        category = PrecheckCategory.AUTOMATABLE
    if score <= partner_max_score:
        category = PrecheckCategory.PARTNER_REQUIRED
    return category


def select_document_links(
    anchors: Sequence[dict[str, str]],
    suffix: str = ".pdf",
    limit: int = 10,
) -> list[str]:
    """
    Collect hrefs ending in the document suffix (case-insensitive).

    Returns:
        Up to `limit` hrefs in document order
    """
    suffix = suffix.lower()
    links: list[str] = []

    for anchor in anchors:
        if len(links) >= limit:
            break
        href = anchor.get("href", "")
        if href and href.lower().endswith(suffix):
            links.append(href)

    return links


def build_actionable_pattern(words: Iterable[str]) -> re.Pattern[str]:
    """Compile a case-insensitive alternation of the given words."""
    return re.compile("|".join(re.escape(w) for w in words), re.IGNORECASE)


def select_actionable_links(
    anchors: Sequence[dict[str, str]],
    pattern: re.Pattern[str],
    limit: int = 10,
) -> list[str]:
    """
    Collect hrefs whose "<text> <href>" matches the actionable pattern.

    Anchors without an href are skipped.

    Returns:
        Up to `limit` hrefs in document order
    """
    links: list[str] = []

    for anchor in anchors:
        if len(links) >= limit:
            break
        href = anchor.get("href", "")
        if not href:
            continue
        if pattern.search(f"{anchor.get('text', '')} {href}"):
            links.append(href)

    return links


class PrecheckScorer:
    """
    Precheck rules bound to one PrecheckSettings instance.

    Example:
        >>> scorer = PrecheckScorer(PrecheckSettings())
        >>> scorer.score("Apply online and upload documents")
        2
    """

    def __init__(self, settings: PrecheckSettings) -> None:
        self.settings = settings
        self._actionable = build_actionable_pattern(settings.actionable_words)

    def score(self, text: str) -> int:
        return compute_auto_score(text, self.settings.markers)

    def categorize(self, score: int) -> PrecheckCategory:
        return categorize(
            score,
            automatable_min_score=self.settings.automatable_min_score,
            partner_max_score=self.settings.partner_max_score,
        )

    def document_links(self, anchors: Sequence[dict[str, str]]) -> list[str]:
        return select_document_links(
            anchors,
            suffix=self.settings.document_suffix,
            limit=self.settings.link_limit,
        )

    def actionable_links(self, anchors: Sequence[dict[str, str]]) -> list[str]:
        return select_actionable_links(
            anchors,
            self._actionable,
            limit=self.settings.link_limit,
        )
