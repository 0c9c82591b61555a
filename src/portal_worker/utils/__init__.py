"""
Utilities module for the portal automation worker.

Provides logging setup and helpers.
"""

from portal_worker.utils.logging import (
    setup_logging,
    get_logger,
    get_logger_with_context,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_logger_with_context",
]
