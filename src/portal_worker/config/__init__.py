"""
Configuration module for the portal automation worker.

Provides Pydantic-based settings management with YAML file support
and environment variable overrides.
"""

from portal_worker.config.settings import (
    Settings,
    ServerSettings,
    BrowserSettings,
    PrecheckSettings,
    ScoreMarker,
    SearchSettings,
    TextGenerationSettings,
    LoggingSettings,
)
from portal_worker.config.loader import load_config

__all__ = [
    "Settings",
    "ServerSettings",
    "BrowserSettings",
    "PrecheckSettings",
    "ScoreMarker",
    "SearchSettings",
    "TextGenerationSettings",
    "LoggingSettings",
    "load_config",
]
