"""Playwright snapshots of live pages for offline annotation.

The captured HTML carries each element's rendered box in a
``data-<namespace>-box`` attribute so the overlay can apply its size
filter without a browser.
"""

from dataclasses import dataclass

try:
    from playwright.async_api import async_playwright

    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    PLAYWRIGHT_AVAILABLE = False
    async_playwright = None

from ..codemap_logging import LogCategory, get_category_logger
from .document import box_attribute

logger = get_category_logger(LogCategory.RUNTIME)

STAMP_BOXES_SCRIPT = """(attribute) => {
    for (const el of document.querySelectorAll('*')) {
        const r = el.getBoundingClientRect();
        const box = [r.x, r.y, r.width, r.height].map(v => Math.round(v * 100) / 100);
        el.setAttribute(attribute, box.join(','));
    }
    return document.documentElement.outerHTML;
}"""


@dataclass
class Viewport:
    """Browser viewport for a capture."""

    width: int = 1280
    height: int = 720


async def capture_page(
    url: str,
    namespace: str = "see-the-code",
    viewport: Viewport | None = None,
    timeout_ms: int = 30000,
) -> str:
    """Load a page in headless Chromium and return its measured HTML.

    Args:
        url: Page to load.
        namespace: Overlay namespace used for the box attribute.
        viewport: Viewport size (default 1280x720).
        timeout_ms: Navigation timeout in milliseconds.

    Returns:
        The document's outer HTML with box attributes stamped.

    Raises:
        ImportError: If Playwright is not installed.
    """
    if not PLAYWRIGHT_AVAILABLE:
        raise ImportError(
            "Playwright is required to capture live pages. "
            "Install with: pip install playwright && playwright install chromium"
        )

    viewport = viewport or Viewport()
    logger.info(f"Capturing {url} ({viewport.width}x{viewport.height})")

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=True)
        try:
            page = await browser.new_page(
                viewport={"width": viewport.width, "height": viewport.height}
            )
            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            html = await page.evaluate(STAMP_BOXES_SCRIPT, box_attribute(namespace))
        finally:
            await browser.close()

    return f"<!DOCTYPE html>\n{html}"
