"""
Browser process owned by a single session.
"""

from typing import Any

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Playwright,
)

from portal_worker.config.settings import BrowserSettings
from portal_worker.core.exceptions import SessionError
from portal_worker.utils.logging import get_logger_with_context


class BrowserManager:
    """
    One Playwright driver and browser process for one session.

    SessionManager starts it, opens exactly one context from it and stops
    it on release. Managers are never shared or restarted by the worker.
    """

    def __init__(self, settings: BrowserSettings, session_id: str | None = None) -> None:
        self.settings = settings
        self.session_id = session_id
        self._log = get_logger_with_context(__name__, session_id=session_id or "-")
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def start(self) -> None:
        """
        Start the driver and launch the configured browser.

        Raises:
            SessionError: If the driver or browser cannot be started; any
                partially started process is stopped first
        """
        if self._browser is not None:
            return

        self._log.debug(
            f"Launching {self.settings.browser_type} "
            f"(headless={self.settings.headless}, args={self.settings.launch_args})"
        )

        try:
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self.settings.browser_type)
            self._browser = await launcher.launch(
                headless=self.settings.headless,
                args=list(self.settings.launch_args),
            )
        except Exception as e:
            await self.stop()
            raise SessionError(
                f"Failed to launch browser: {e}",
                details={
                    "browser_type": self.settings.browser_type,
                    "session_id": self.session_id,
                },
            ) from e

    def _context_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "viewport": {
                "width": self.settings.viewport_width,
                "height": self.settings.viewport_height,
            },
            "ignore_https_errors": self.settings.ignore_https_errors,
            "accept_downloads": self.settings.accept_downloads,
        }
        if self.settings.user_agent:
            options["user_agent"] = self.settings.user_agent
        return options

    async def new_context(self) -> BrowserContext:
        """
        Open a fresh context (empty cookies and storage) with the worker's
        timeouts applied.

        Raises:
            SessionError: If the browser is not running or refuses the context
        """
        if self._browser is None:
            raise SessionError(
                "Browser is not running",
                details={"session_id": self.session_id},
            )

        try:
            context = await self._browser.new_context(**self._context_options())
        except Exception as e:
            raise SessionError(
                f"Failed to create browser context: {e}",
                details={"session_id": self.session_id},
            ) from e

        context.set_default_timeout(self.settings.timeout_ms)
        context.set_default_navigation_timeout(self.settings.navigation_timeout_ms)
        return context

    async def stop(self) -> None:
        """Close the browser, then the driver. Repeated calls do nothing."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None

        try:
            if browser is not None:
                try:
                    await browser.close()
                except Exception as e:
                    self._log.warning(f"Error closing browser: {e}")
        finally:
            if playwright is not None:
                try:
                    await playwright.stop()
                except Exception as e:
                    self._log.warning(f"Error stopping Playwright driver: {e}")
