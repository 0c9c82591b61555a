"""
External collaborator adapters for the portal automation worker.

Both adapters are best-effort: without credentials they degrade to a
trivial result instead of failing.
"""

from portal_worker.adapters.search import PortalCandidate, PortalSearchClient
from portal_worker.adapters.expansion import (
    ExpansionClient,
    ExpansionOutcome,
    ParsedExpansions,
    RawTextFallback,
    parse_expansions,
    base_expansion,
    outcome_to_expansions,
)

__all__ = [
    "PortalCandidate",
    "PortalSearchClient",
    "ExpansionClient",
    "ExpansionOutcome",
    "ParsedExpansions",
    "RawTextFallback",
    "parse_expansions",
    "base_expansion",
    "outcome_to_expansions",
]
