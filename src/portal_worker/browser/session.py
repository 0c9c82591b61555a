"""
Isolated, single-use browser sessions.

A session is one browser process, one fresh context and one active page,
owned by the request that acquired it. Sessions are never pooled or
reused; the manager only bounds how many exist at once.
"""

import asyncio
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncGenerator, Callable

from playwright.async_api import BrowserContext, Page

from portal_worker.browser.manager import BrowserManager
from portal_worker.config.settings import BrowserSettings
from portal_worker.core.exceptions import SessionError
from portal_worker.utils.logging import LoggerAdapter, get_logger_with_context


@dataclass
class Session:
    """
    An isolated browsing context with one active page.

    Created by SessionManager.acquire() and closed exactly once by
    SessionManager.release().
    """

    page: Page
    context: BrowserContext
    browser: BrowserManager
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    closed: bool = False


class SessionManager:
    """
    Provisions and tears down isolated browser sessions.

    Each acquire() launches its own browser, so sessions never share
    cookies, storage or cache. A semaphore caps the number of live
    sessions; callers beyond the cap wait for a release.

    Example:
        >>> sessions = SessionManager(settings.browser, max_concurrent=4)
        >>> async with sessions.session() as session:
        ...     await session.page.goto("https://example.com")
    """

    def __init__(
        self,
        settings: BrowserSettings,
        max_concurrent: int = 4,
        browser_factory: Callable[..., BrowserManager] = BrowserManager,
    ) -> None:
        """
        Initialize the session manager.

        Args:
            settings: Browser configuration used for every launch
            max_concurrent: Maximum sessions alive at the same time
            browser_factory: Builds the per-session BrowserManager from
                the settings and a session_id keyword
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        self.settings = settings
        self.max_concurrent = max_concurrent
        self._browser_factory = browser_factory
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._active = 0

    @property
    def active_sessions(self) -> int:
        """Number of sessions acquired and not yet released."""
        return self._active

    async def acquire(self) -> Session:
        """
        Provision a fresh browser, context and page.

        Waits for a free slot when the concurrency cap is reached. If the
        launch fails or is cancelled, everything created so far is torn
        down and the slot is returned before the error propagates.

        Returns:
            A new open Session

        Raises:
            SessionError: If the browser, context or page cannot be created
        """
        await self._semaphore.acquire()
        session_id = uuid.uuid4().hex
        log = get_logger_with_context(__name__, session_id=session_id)
        browser = None
        context = None

        try:
            browser = self._browser_factory(self.settings, session_id=session_id)
            await browser.start()
            context = await browser.new_context()
            page = await context.new_page()
        except BaseException as e:
            try:
                try:
                    if context is not None:
                        await self._close_context(context, log)
                finally:
                    if browser is not None:
                        await browser.stop()
            finally:
                self._semaphore.release()
            if not isinstance(e, Exception) or isinstance(e, SessionError):
                raise
            raise SessionError(
                f"Failed to open session: {e}",
                details={"session_id": session_id},
            ) from e

        session = Session(page=page, context=context, browser=browser, session_id=session_id)
        self._active += 1
        log.info(f"Session opened ({self._active}/{self.max_concurrent} active)")
        return session

    @staticmethod
    async def _close_context(context: BrowserContext, log: LoggerAdapter) -> None:
        try:
            await context.close()
        except Exception as e:
            log.warning(f"Error closing context: {e}")

    async def release(self, session: Session) -> None:
        """
        Close the session's context and browser process.

        Idempotent: releasing an already closed session does nothing, so
        the slot is returned exactly once, even if closing is cancelled.
        """
        if session.closed:
            return

        session.closed = True
        log = get_logger_with_context(__name__, session_id=session.session_id)

        try:
            try:
                await self._close_context(session.context, log)
            finally:
                await session.browser.stop()
        finally:
            self._active -= 1
            self._semaphore.release()
            log.info("Session closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[Session, None]:
        """
        Scoped session: acquired on entry, released on every exit path.

        Yields:
            An open Session
        """
        session = await self.acquire()
        try:
            yield session
        finally:
            await self.release(session)
