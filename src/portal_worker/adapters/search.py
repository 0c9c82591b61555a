"""
Portal discovery through a web search API (Google Custom Search).

The client degrades to an empty result list when no credentials are
configured; in that case no network request is made.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from portal_worker.config.settings import SearchSettings
from portal_worker.core.exceptions import SearchError
from portal_worker.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PortalCandidate:
    """A read-only projection of one search result."""

    title: str
    link: str
    snippet: str = ""
    display_link: str = ""

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "PortalCandidate":
        return cls(
            title=item.get("title") or "",
            link=item.get("link") or "",
            snippet=item.get("snippet") or "",
            display_link=item.get("displayLink") or "",
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "displayLink": self.display_link,
        }


class PortalSearchClient:
    """
    Finds candidate portal URLs for a query.

    Example:
        >>> client = PortalSearchClient(settings.search)
        >>> results = await client.search("birth certificate apply online", limit=5)
    """

    def __init__(
        self,
        settings: SearchSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the search client.

        Args:
            settings: Search API configuration
            transport: Optional httpx transport (used to stub the API in tests)
        """
        self.settings = settings
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def clamp_limit(self, limit: int | None) -> int:
        """Bound a requested result count to 1..max_limit."""
        if limit is None:
            return self.settings.default_limit
        return max(1, min(limit, self.settings.max_limit))

    async def search(self, query: str, limit: int | None = None) -> list[PortalCandidate]:
        """
        Search for portal candidates.

        Args:
            query: Free-text query
            limit: Requested number of results (clamped)

        Returns:
            Results in API rank order; empty when search is not configured

        Raises:
            SearchError: If the API call fails or returns an error
        """
        if not self.is_configured:
            logger.debug("Search API not configured, returning no results")
            return []

        params = {
            "key": self.settings.api_key,
            "cx": self.settings.engine_id,
            "q": query,
            "num": self.clamp_limit(limit),
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(self.settings.endpoint, params=params)
        except httpx.HTTPError as e:
            raise SearchError(f"Search request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise SearchError(
                "Search API returned a non-JSON response",
                status_code=response.status_code,
            ) from e

        if response.status_code >= 400:
            message = "Search API error"
            if isinstance(data, dict) and isinstance(data.get("error"), dict):
                message = data["error"].get("message") or message
            raise SearchError(message, status_code=response.status_code)

        items = data.get("items") if isinstance(data, dict) else None
        results = [
            PortalCandidate.from_item(item)
            for item in items or []
            if isinstance(item, dict)
        ]

        logger.info(f"Search returned {len(results)} result(s)")
        return results
