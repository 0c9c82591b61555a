"""
Data models for page precheck results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PrecheckCategory(str, Enum):
    """How suitable a page is for unattended automation."""

    AUTOMATABLE = "automatable"
    HYBRID = "hybrid"
    PARTNER_REQUIRED = "partner_required"


@dataclass
class PrecheckResult:
    """
    Classification of a single page.

    Both link lists are capped independently; an anchor can appear in both.
    """

    url: str
    category: PrecheckCategory
    auto_score: int
    pdf_links: list[str] = field(default_factory=list)
    apply_urls: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "category": self.category.value,
            "autoScore": self.auto_score,
            "pdfLinks": list(self.pdf_links),
            "applyUrls": list(self.apply_urls),
        }
