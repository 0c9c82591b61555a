"""
Pydantic settings models for the portal automation worker.

All configuration is defined here with defaults matching a single
container deployment. Every model is frozen: settings are built once at
process start and handed to components explicitly.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator


def _optional_str(value: Any) -> str | None:
    """Normalize secrets and keys: empty means unset, numbers become text."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class ServerSettings(BaseModel):
    """HTTP worker configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(
        default="Portal Automation Worker",
        description="Worker name reported by the root endpoint",
    )
    host: str = Field(
        default="0.0.0.0",
        description="Interface to bind the HTTP server to",
    )
    port: int = Field(
        default=10000,
        ge=1,
        le=65535,
        description="TCP port for the HTTP server",
    )
    secret: str | None = Field(
        default=None,
        description="Shared secret required in the auth header. None disables auth (dev mode).",
    )
    secret_header: str = Field(
        default="x-worker-key",
        description="Request header carrying the shared secret",
    )
    public_paths: list[str] = Field(
        default_factory=lambda: ["/"],
        description="Paths served without the shared secret",
    )
    max_body_mb: int = Field(
        default=30,
        ge=1,
        le=200,
        description="Maximum accepted JSON request body size in megabytes",
    )
    max_concurrent_sessions: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Maximum browser sessions alive at the same time",
    )

    @field_validator("secret", mode="before")
    @classmethod
    def normalize_secret(cls, v: Any) -> str | None:
        """Treat empty secrets as unset."""
        return _optional_str(v)


class BrowserSettings(BaseModel):
    """Playwright browser configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    browser_type: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser engine to use",
    )
    launch_args: list[str] = Field(
        default_factory=lambda: ["--no-sandbox"],
        description="Extra command line flags passed to the browser process",
    )
    timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=120000,
        description="Implicit wait for element interactions in milliseconds",
    )
    navigation_timeout_ms: int = Field(
        default=60000,
        ge=5000,
        le=180000,
        description="Timeout for pipeline navigation in milliseconds",
    )
    accept_downloads: bool = Field(
        default=True,
        description="Whether session contexts accept file downloads",
    )
    user_agent: str | None = Field(
        default=None,
        description="Custom user agent string. None uses browser default.",
    )
    viewport_width: int = Field(
        default=1280,
        ge=320,
        le=3840,
        description="Browser viewport width in pixels",
    )
    viewport_height: int = Field(
        default=720,
        ge=240,
        le=2160,
        description="Browser viewport height in pixels",
    )
    ignore_https_errors: bool = Field(
        default=False,
        description="Whether to ignore HTTPS certificate errors",
    )


class ScoreMarker(BaseModel):
    """A phrase whose presence in page text adjusts the automation score."""

    model_config = {"frozen": True, "extra": "forbid"}

    phrase: str = Field(min_length=1)
    weight: int

    @field_validator("phrase")
    @classmethod
    def lowercase_phrase(cls, v: str) -> str:
        """Markers are matched against lower-cased text."""
        return v.lower()


class PrecheckSettings(BaseModel):
    """Precheck heuristic configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    timeout_ms: int = Field(
        default=35000,
        ge=1000,
        le=120000,
        description="DOM-ready navigation timeout for precheck in milliseconds",
    )
    markers: list[ScoreMarker] = Field(
        default_factory=lambda: [
            ScoreMarker(phrase="apply online", weight=1),
            ScoreMarker(phrase="captcha", weight=-1),
            ScoreMarker(phrase="otp", weight=-1),
            ScoreMarker(phrase="upload", weight=1),
            ScoreMarker(phrase="payment", weight=1),
        ],
        description="Marker phrases and their score weights",
    )
    automatable_min_score: int = Field(
        default=2,
        description="Score at or above which a page is automatable",
    )
    partner_max_score: int = Field(
        default=-1,
        description="Score at or below which a page needs a partner",
    )
    document_suffix: str = Field(
        default=".pdf",
        min_length=1,
        description="Case-insensitive href suffix identifying document links",
    )
    actionable_words: list[str] = Field(
        default_factory=lambda: [
            "apply",
            "registration",
            "login",
            "submit",
            "proceed",
            "online",
        ],
        min_length=1,
        description="Words marking an anchor as an apply/action link",
    )
    link_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum entries in each extracted link list",
    )


class SearchSettings(BaseModel):
    """Portal search API (Google Custom Search) configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    api_key: str | None = Field(
        default=None,
        description="Search API key. None disables search.",
    )
    engine_id: str | None = Field(
        default=None,
        description="Custom search engine identifier (cx). None disables search.",
    )
    endpoint: str = Field(
        default="https://www.googleapis.com/customsearch/v1",
        description="Search API endpoint",
    )
    default_limit: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Results requested when the caller gives no limit",
    )
    max_limit: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Upper bound on results per query",
    )
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="Timeout for search API requests",
    )

    @field_validator("api_key", "engine_id", mode="before")
    @classmethod
    def normalize_credentials(cls, v: Any) -> str | None:
        """Treat empty credentials as unset."""
        return _optional_str(v)

    @property
    def is_configured(self) -> bool:
        """Search needs both the key and the engine id."""
        return bool(self.api_key and self.engine_id)


class TextGenerationSettings(BaseModel):
    """Text-generation API (OpenAI chat completions) configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    api_key: str | None = Field(
        default=None,
        description="API key. None disables generation and uses the fallback expansion.",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier for chat completions",
    )
    endpoint: str = Field(
        default="https://api.openai.com/v1/chat/completions",
        description="Chat completions endpoint",
    )
    timeout_seconds: float = Field(
        default=60.0,
        ge=1.0,
        le=300.0,
        description="Timeout for generation requests",
    )

    @field_validator("api_key", mode="before")
    @classmethod
    def normalize_api_key(cls, v: Any) -> str | None:
        """Treat empty keys as unset."""
        return _optional_str(v)

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum logging level",
    )
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        description="Log message format string",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Date format for log timestamps",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path to log file. None means console only.",
    )
    max_file_size_mb: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum log file size before rotation",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Number of backup log files to keep",
    )
    log_to_console: bool = Field(
        default=True,
        description="Whether to output logs to console",
    )

    @field_validator("file_path", mode="before")
    @classmethod
    def convert_file_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        return Path(v) if isinstance(v, str) else v


class Settings(BaseModel):
    """
    Root configuration model containing all subsystem settings.

    Settings are loaded from YAML with environment variable overrides
    and are immutable once built.
    """

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="HTTP worker settings",
    )
    browser: BrowserSettings = Field(
        default_factory=BrowserSettings,
        description="Browser/Playwright settings",
    )
    precheck: PrecheckSettings = Field(
        default_factory=PrecheckSettings,
        description="Precheck heuristic settings",
    )
    search: SearchSettings = Field(
        default_factory=SearchSettings,
        description="Portal search API settings",
    )
    text_generation: TextGenerationSettings = Field(
        default_factory=TextGenerationSettings,
        description="Text-generation API settings",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    model_config = {
        "extra": "forbid",
        "validate_default": True,
        "frozen": True,
    }

    @model_validator(mode="after")
    def check_search_limits(self) -> "Settings":
        """Search bounds must be consistent."""
        if self.search.default_limit > self.search.max_limit:
            raise ValueError("search.default_limit must not exceed search.max_limit")
        return self
