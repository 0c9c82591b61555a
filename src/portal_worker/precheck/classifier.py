"""
Page classifier: loads one page and rates how automatable it is.
"""

from portal_worker.browser import actions
from portal_worker.browser.session import Session
from portal_worker.config.settings import PrecheckSettings
from portal_worker.precheck.models import PrecheckResult
from portal_worker.precheck.scoring import PrecheckScorer
from portal_worker.utils.logging import get_logger

logger = get_logger(__name__)


class PageClassifier:
    """
    Classifies a page as automatable, hybrid or partner_required.

    Navigation waits for DOM-ready only, bounded by the precheck timeout.
    A timeout is raised as NavigationError rather than mapped to a category.
    """

    def __init__(self, settings: PrecheckSettings | None = None) -> None:
        self.settings = settings or PrecheckSettings()
        self.scorer = PrecheckScorer(self.settings)

    async def classify(self, session: Session, url: str) -> PrecheckResult:
        """
        Load the URL in the session and classify it.

        Args:
            session: Open session to load the page in
            url: Page to classify

        Returns:
            PrecheckResult with score, category and capped link lists

        Raises:
            NavigationError: If the page does not reach DOM-ready in time
            PageLoadError: If text or anchors cannot be read
        """
        page = session.page

        await actions.navigate(
            page,
            url,
            wait_until="domcontentloaded",
            timeout_ms=self.settings.timeout_ms,
        )

        text = await actions.extract_visible_text(page)
        score = self.scorer.score(text)
        category = self.scorer.categorize(score)

        anchors = await actions.extract_anchors(page)
        result = PrecheckResult(
            url=url,
            category=category,
            auto_score=score,
            pdf_links=self.scorer.document_links(anchors),
            apply_urls=self.scorer.actionable_links(anchors),
        )

        logger.info(
            f"Precheck {url}: score={score} category={category.value} "
            f"({len(anchors)} anchors, {len(result.pdf_links)} documents, "
            f"{len(result.apply_urls)} apply links)"
        )
        return result
