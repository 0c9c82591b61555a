"""
Shared pytest fixtures for portal worker tests.

Provides reusable fixtures for:
- Configuration and settings
- In-process fake pages and sessions (no real browser)
- Temporary resources
"""

import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Generator

import pytest

from portal_worker.browser.session import Session
from portal_worker.config import Settings
from portal_worker.utils.logging import reset_logging


class FakePage:
    """
    Stand-in for a Playwright Page.

    Records every call; selectors listed in `missing_selectors` fail the
    way Playwright does when nothing matches.
    """

    def __init__(
        self,
        text: str = "",
        anchors: list[dict[str, str]] | None = None,
        missing_selectors: set[str] | None = None,
        goto_error: Exception | None = None,
        screenshot_bytes: bytes = b"\x89PNG-fake-image",
    ) -> None:
        self.url = "about:blank"
        self.text = text
        self.anchors = anchors or []
        self.missing_selectors = missing_selectors or set()
        self.goto_error = goto_error
        self.screenshot_bytes = screenshot_bytes
        self.calls: list[tuple[Any, ...]] = []

    async def goto(self, url: str, wait_until: str | None = None, timeout: int | None = None):
        self.calls.append(("goto", url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url
        return None

    async def evaluate(self, script: str, *args: Any) -> str:
        self.calls.append(("evaluate",))
        return self.text

    async def eval_on_selector_all(self, selector: str, script: str) -> list[dict[str, str]]:
        self.calls.append(("eval_on_selector_all", selector))
        return [dict(a) for a in self.anchors]

    async def click(self, selector: str) -> None:
        self.calls.append(("click", selector))
        self._check(selector)

    async def fill(self, selector: str, value: str) -> None:
        self.calls.append(("fill", selector, value))
        self._check(selector)

    async def screenshot(self, full_page: bool = False) -> bytes:
        self.calls.append(("screenshot", full_page))
        return self.screenshot_bytes

    def _check(self, selector: str) -> None:
        if selector in self.missing_selectors:
            raise Exception(f"Timeout 30000ms exceeded waiting for selector {selector!r}")

    @property
    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeContext:
    """Stand-in for a Playwright BrowserContext."""

    def __init__(
        self,
        page: FakePage | None = None,
        fail_new_page: bool = False,
        close_error: BaseException | None = None,
    ) -> None:
        self.page = page or FakePage()
        self.fail_new_page = fail_new_page
        self.close_error = close_error
        self.closed = 0

    async def new_page(self) -> FakePage:
        if self.fail_new_page:
            raise RuntimeError("page crashed")
        return self.page

    async def close(self) -> None:
        self.closed += 1
        if self.close_error is not None:
            raise self.close_error


class FakeBrowserManager:
    """Stand-in for BrowserManager that never launches a process."""

    instances: list["FakeBrowserManager"] = []

    def __init__(
        self,
        settings: Any,
        session_id: str | None = None,
        fail_start: bool = False,
        context: FakeContext | None = None,
        start_error: BaseException | None = None,
    ) -> None:
        self.settings = settings
        self.session_id = session_id
        self.fail_start = fail_start
        self.start_error = start_error
        self.context = context or FakeContext()
        self.started = 0
        self.stopped = 0
        FakeBrowserManager.instances.append(self)

    async def start(self) -> None:
        self.started += 1
        if self.start_error is not None:
            raise self.start_error
        if self.fail_start:
            raise RuntimeError("browser executable not found")

    async def stop(self) -> None:
        self.stopped += 1

    async def new_context(self) -> FakeContext:
        return self.context


class FakeSessionManager:
    """SessionManager replacement handing out sessions over one FakePage."""

    def __init__(self, page: FakePage | None = None) -> None:
        self.page = page or FakePage()
        self.acquired = 0
        self.released = 0

    @asynccontextmanager
    async def session(self):
        self.acquired += 1
        session = Session(
            page=self.page,
            context=FakeContext(self.page),
            browser=FakeBrowserManager(None),
        )
        try:
            yield session
        finally:
            session.closed = True
            self.released += 1


@pytest.fixture(autouse=True)
def reset_global_state():
    """Reset logging and fake registries around each test."""
    reset_logging()
    FakeBrowserManager.instances.clear()
    yield
    reset_logging()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no secret and no external credentials."""
    return Settings(
        server={"max_concurrent_sessions": 2},
        logging={"log_to_console": False},
    )


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def fake_session(fake_page: FakePage) -> Session:
    """An open session over the fake page."""
    return Session(
        page=fake_page,
        context=FakeContext(fake_page),
        browser=FakeBrowserManager(None),
    )


@pytest.fixture
def portal_anchors() -> list[dict[str, str]]:
    """Anchors of a typical service portal landing page."""
    return [
        {"href": "https://portal.example.gov/docs/guidelines.PDF", "text": "Guidelines"},
        {"href": "https://portal.example.gov/docs/form-a.pdf", "text": "Form A"},
        {"href": "https://portal.example.gov/about.html", "text": "About"},
        {"href": "https://portal.example.gov/citizen/login", "text": "Citizen Login"},
        {"href": "https://portal.example.gov/services", "text": "Apply for a service"},
        {"href": "", "text": "Apply (javascript handler)"},
    ]
