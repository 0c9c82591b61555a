"""
Custom exceptions for the portal automation worker.

Provides a hierarchy of exceptions for precise error handling across
all subsystems. All exceptions inherit from PortalWorkerError.

Exception Hierarchy:
    PortalWorkerError (base)
    ├── ConfigurationError
    ├── RequestValidationError
    ├── BrowserError
    │   ├── SessionError
    │   ├── NavigationError
    │   └── PageLoadError
    ├── PipelineError
    │   ├── InvalidPipelineError
    │   ├── InvalidStepError
    │   └── UnsupportedActionError
    └── AdapterError
        ├── SearchError
        └── TextGenerationError
"""

from typing import Any


class PortalWorkerError(Exception):
    """
    Base exception for all portal worker errors.

    All custom exceptions inherit from this class, allowing for
    catch-all handling when needed.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(
                f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration and Request Errors
# =============================================================================


class ConfigurationError(PortalWorkerError):
    """
    Error in configuration loading or validation.

    Raised when:
    - Configuration file is missing or malformed
    - Setting values fail validation

    Missing API keys are not configuration errors; adapters degrade instead.
    """

    pass


class RequestValidationError(PortalWorkerError):
    """
    Caller input rejected before any work starts.

    Reported to HTTP callers with status 400. The message is returned
    verbatim, so details are not appended to it.
    """

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Browser Errors
# =============================================================================


class BrowserError(PortalWorkerError):
    """
    Base error for browser/Playwright operations.

    Raised for element interaction and capture failures not covered by
    more specific subclasses.
    """

    pass


class SessionError(BrowserError):
    """
    Error provisioning an isolated browser session.

    Raised when:
    - The browser process fails to launch
    - A context or page cannot be created
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if session_id:
            details["session_id"] = session_id
        super().__init__(message, details)
        self.session_id = session_id


class NavigationError(BrowserError):
    """
    Error during page navigation.

    Raised when:
    - URL is unreachable
    - Navigation times out before the requested load state
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        timed_out: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.url = url
        self.timed_out = timed_out


class PageLoadError(BrowserError):
    """
    Error reading content from a loaded page.

    Raised when text or anchor extraction scripts fail.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if url:
            details["url"] = url
        super().__init__(message, details)
        self.url = url


# =============================================================================
# Pipeline Errors
# =============================================================================


class PipelineError(PortalWorkerError):
    """
    Base error for pipeline parsing and step execution.
    """

    pass


class InvalidPipelineError(PipelineError):
    """
    The submitted pipeline is not an ordered list of steps.

    Reported to HTTP callers as {"ok": false} with status 200.
    """

    pass


class InvalidStepError(PipelineError):
    """
    A step is missing a payload field its action requires.

    Raised inside step execution; the interpreter records it as the
    failing step result.
    """

    def __init__(
        self,
        message: str,
        action: str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if action:
            details["action"] = action
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.action = action
        self.field = field


class UnsupportedActionError(PipelineError):
    """
    A step names an action the interpreter has no handler for.
    """

    def __init__(self, action: str) -> None:
        super().__init__(f"Unsupported action: {action!r}")
        self.action = action


# =============================================================================
# External Adapter Errors
# =============================================================================


class AdapterError(PortalWorkerError):
    """
    Base error for calls to external collaborator APIs.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if status_code:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.status_code = status_code


class SearchError(AdapterError):
    """
    Error calling the portal search API.

    Raised when:
    - The API is unreachable or times out
    - The API returns a non-success status or a non-JSON body
    """

    pass


class TextGenerationError(AdapterError):
    """
    Error calling the text-generation API.

    A reply that fails to parse as JSON is not an error; only transport
    and HTTP failures raise this.
    """

    pass
