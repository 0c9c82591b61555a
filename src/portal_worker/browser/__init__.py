"""
Browser module for the portal automation worker.

Provides Playwright-based browser automation with:
- Per-session browser lifecycle management
- Isolated single-use sessions with bounded concurrency
- Navigation, extraction and interaction primitives
"""

from portal_worker.browser.manager import BrowserManager
from portal_worker.browser.session import Session, SessionManager
from portal_worker.browser.actions import (
    navigate,
    extract_visible_text,
    extract_anchors,
    click,
    fill,
    capture_screenshot,
)

__all__ = [
    "BrowserManager",
    "Session",
    "SessionManager",
    "navigate",
    "extract_visible_text",
    "extract_anchors",
    "click",
    "fill",
    "capture_screenshot",
]
