"""
Core module for the portal automation worker.

Contains the exception hierarchy used throughout the application.
"""

from portal_worker.core.exceptions import (
    PortalWorkerError,
    ConfigurationError,
    RequestValidationError,
    BrowserError,
    SessionError,
    NavigationError,
    PageLoadError,
    PipelineError,
    InvalidPipelineError,
    InvalidStepError,
    UnsupportedActionError,
    AdapterError,
    SearchError,
    TextGenerationError,
)

__all__ = [
    # Base
    "PortalWorkerError",
    "ConfigurationError",
    "RequestValidationError",
    # Browser
    "BrowserError",
    "SessionError",
    "NavigationError",
    "PageLoadError",
    # Pipeline
    "PipelineError",
    "InvalidPipelineError",
    "InvalidStepError",
    "UnsupportedActionError",
    # Adapters
    "AdapterError",
    "SearchError",
    "TextGenerationError",
]
