"""
Portal Automation Worker - a headless-browser worker for portal automation.

This package exposes an HTTP worker that discovers candidate portal URLs,
classifies how automatable a page is, and executes small declarative
browser pipelines against isolated Playwright sessions.
"""

from portal_worker.config import Settings, load_config
from portal_worker.utils.logging import setup_logging, get_logger
from portal_worker.core.exceptions import PortalWorkerError

__version__ = "0.1.0"
__author__ = "Portal Worker Team"

__all__ = [
    "Settings",
    "load_config",
    "setup_logging",
    "get_logger",
    "PortalWorkerError",
]
