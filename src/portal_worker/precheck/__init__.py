"""
Precheck module for the portal automation worker.

Scores a page's visible text against marker phrases, buckets it into a
category, and extracts document and apply links.
"""

from portal_worker.precheck.models import PrecheckCategory, PrecheckResult
from portal_worker.precheck.scoring import (
    PrecheckScorer,
    compute_auto_score,
    categorize,
    select_document_links,
    select_actionable_links,
    build_actionable_pattern,
)
from portal_worker.precheck.classifier import PageClassifier

__all__ = [
    "PrecheckCategory",
    "PrecheckResult",
    "PrecheckScorer",
    "compute_auto_score",
    "categorize",
    "select_document_links",
    "select_actionable_links",
    "build_actionable_pattern",
    "PageClassifier",
]
