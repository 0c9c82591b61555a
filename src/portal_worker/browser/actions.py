"""
Browser primitives used by the pipeline interpreter and the precheck classifier.

Each function performs one Playwright operation against a page and wraps
Playwright failures in the worker's BrowserError hierarchy.
"""

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from portal_worker.core.exceptions import BrowserError, NavigationError, PageLoadError
from portal_worker.utils.logging import get_logger

logger = get_logger(__name__)

# Resolved hrefs (a.href) are absolute; anchors without href yield ''.
_ANCHORS_SCRIPT = """
    (anchors) => anchors.map(a => ({
        href: a.href || '',
        text: a.innerText || a.textContent || ''
    }))
"""

_BODY_TEXT_SCRIPT = """
    () => document.body ? (document.body.innerText || '') : ''
"""


async def navigate(
    page: Page,
    url: str,
    wait_until: str = "domcontentloaded",
    timeout_ms: int | None = None,
) -> None:
    """
    Navigate to a URL and wait for the given load state.

    Args:
        page: Playwright Page instance
        url: Target URL
        wait_until: Load state to wait for:
            - "domcontentloaded": DOM is ready
            - "load": Full page load including resources
            - "networkidle": No network activity for 500ms
        timeout_ms: Navigation timeout (None uses the context default)

    Raises:
        NavigationError: If navigation fails or times out
    """
    logger.debug(f"Navigating to: {url} (wait_until={wait_until})")

    try:
        await page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    except PlaywrightTimeoutError as e:
        raise NavigationError(
            f"Navigation timeout: {e}",
            url=url,
            timed_out=True,
        ) from e
    except Exception as e:
        raise NavigationError(
            f"Navigation failed: {e}",
            url=url,
        ) from e


async def extract_visible_text(page: Page) -> str:
    """
    Extract the rendered text of the page body.

    Returns:
        The body's innerText, or an empty string for documents without a body

    Raises:
        PageLoadError: If the page cannot be evaluated
    """
    try:
        text = await page.evaluate(_BODY_TEXT_SCRIPT)
    except Exception as e:
        raise PageLoadError(
            f"Failed to extract page text: {e}",
            url=page.url,
        ) from e

    return text or ""


async def extract_anchors(page: Page) -> list[dict[str, str]]:
    """
    Extract every anchor on the page in document order.

    Returns:
        List of dicts with resolved 'href' and rendered 'text'

    Raises:
        PageLoadError: If the page cannot be evaluated
    """
    try:
        anchors = await page.eval_on_selector_all("a", _ANCHORS_SCRIPT)
    except Exception as e:
        raise PageLoadError(
            f"Failed to extract links: {e}",
            url=page.url,
        ) from e

    return [
        {"href": a.get("href") or "", "text": a.get("text") or ""}
        for a in anchors or []
    ]


async def click(page: Page, selector: str) -> None:
    """
    Click the first element matching a selector.

    Playwright waits up to the context default timeout for the element
    to be attached, visible, stable and enabled.

    Raises:
        BrowserError: If no element matches or it never becomes actionable
    """
    try:
        await page.click(selector)
    except Exception as e:
        raise BrowserError(
            f"Click failed: {e}",
            details={"selector": selector},
        ) from e

    logger.debug(f"Clicked element: {selector}")


async def fill(page: Page, selector: str, value: str) -> None:
    """
    Set the value of the first element matching a selector.

    Raises:
        BrowserError: If no element matches or it is not an editable field
    """
    try:
        await page.fill(selector, value)
    except Exception as e:
        raise BrowserError(
            f"Fill failed: {e}",
            details={"selector": selector},
        ) from e

    logger.debug(f"Filled element: {selector}")


async def capture_screenshot(page: Page, full_page: bool = True) -> bytes:
    """
    Capture a PNG of the current render state.

    Args:
        page: Playwright Page instance
        full_page: Capture the entire scrollable page

    Returns:
        PNG image bytes

    Raises:
        BrowserError: If the screenshot fails
    """
    try:
        return await page.screenshot(full_page=full_page)
    except Exception as e:
        raise BrowserError(f"Screenshot failed: {e}") from e
