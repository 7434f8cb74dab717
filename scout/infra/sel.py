"""
sel.py - Async Playwright helpers for script-rendered listing and detail pages.

* one browser, one context per crawl; :class:`PlaywrightClient` hands out pages
* `stealth` flag: desktop Chrome UA and no ``navigator.webdriver``
* :meth:`PlaywrightClient.goto` treats a navigation time-out as "good enough"
* element helpers (:func:`text_of`, :func:`html_of`, :func:`attr_of`) return
  ``None`` instead of raising when a selector matches nothing
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, Optional

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
)

logger = logging.getLogger(__name__)

BROWSER_TYPES = ("chromium", "firefox", "webkit")
CHROMIUM_ARGS = ["--disable-gpu", "--no-sandbox", "--disable-dev-shm-usage", "--disable-extensions"]
STEALTH_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.%d.%d Safari/537.36" % (random.randint(0, 9999), random.randint(0, 199))
)
HIDE_WEBDRIVER = "Object.defineProperty(navigator, 'webdriver', { get: () => undefined });"

# Substrings Playwright uses when a handle no longer points into the live DOM.
_DETACHED_MARKERS = ("not attached", "detached", "stale", "execution context was destroyed")


def is_detached_error(exc: BaseException) -> bool:
    """True for the transient "element is not attached to the DOM" family."""
    if not isinstance(exc, PlaywrightError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _DETACHED_MARKERS)


class PlaywrightClient:
    """
    Lazily launched headless browser.

    ``new_page()`` starts Playwright on first use; ``stop()`` tears down the
    context, the browser and the driver and may be called any number of
    times.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        browser_type: str = "chromium",
        timeout: float = 10_000,
        navigation_timeout: float = 30_000,
        stealth: bool = True,
        user_agent: Optional[str] = None,
        executable_path: Optional[str] = None,
    ) -> None:
        browser_type = browser_type.lower()
        if browser_type not in BROWSER_TYPES:
            raise ValueError(f"Unsupported browser type: {browser_type}")
        self.headless = headless
        self.browser_type = browser_type
        self.timeout = timeout
        self.navigation_timeout = navigation_timeout
        self.stealth = stealth
        self.user_agent = user_agent
        self.executable_path = executable_path

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    async def _launch(self) -> BrowserContext:
        self._playwright = await async_playwright().start()
        launcher = getattr(self._playwright, self.browser_type)

        options: Dict[str, Any] = {"headless": self.headless}
        if self.browser_type == "chromium":
            options["args"] = CHROMIUM_ARGS
        if self.executable_path:
            options["executable_path"] = self.executable_path
        self._browser = await launcher.launch(**options)

        context = await self._browser.new_context(
            ignore_https_errors=True,
            user_agent=(self.user_agent or STEALTH_UA) if self.stealth else self.user_agent,
        )
        if self.stealth:
            await context.add_init_script(HIDE_WEBDRIVER)

        logger.info("Browser launched: %s (headless=%s, stealth=%s)", self.browser_type, self.headless, self.stealth)
        return context

    async def new_page(self) -> Page:
        if self._context is None:
            self._context = await self._launch()
        page = await self._context.new_page()
        page.set_default_timeout(self.timeout)
        page.set_default_navigation_timeout(self.navigation_timeout)
        return page

    async def stop(self) -> None:
        if self._context is None and self._browser is None and self._playwright is None:
            return
        context, browser, driver = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None
        if context:
            await context.close()
        if browser:
            await browser.close()
        if driver:
            await driver.stop()
        logger.info("Browser closed")

    @staticmethod
    async def goto(
        page: Page,
        url: str,
        *,
        wait_for_selector: Optional[str] = None,
        settle_delay: float = 0.0,
        selector_timeout: float = 5_000,
    ) -> Page:
        """
        Navigate *page* to *url* and give client-side rendering time to finish.

        Navigation and selector time-outs are logged and ignored because the
        DOM is usually usable by then. Any other Playwright error propagates.
        """
        try:
            await page.goto(url, wait_until="domcontentloaded")
        except PlaywrightTimeout:
            logger.warning("Navigation to %s timed out, continuing with partial page", url)

        if wait_for_selector:
            try:
                await page.wait_for_selector(wait_for_selector, timeout=selector_timeout)
            except PlaywrightTimeout:
                logger.debug("Selector %r not found on %s", wait_for_selector, url)

        if settle_delay:
            await asyncio.sleep(settle_delay)
        return page


# --------------------------------------------------------------------------- #
# Element helpers. Each returns None when the selector matches nothing, so
# they slot straight into the field getters of an adapter.
async def text_of(node: Any, selector: str) -> Optional[str]:
    element = await node.query_selector(selector)
    if element is None:
        return None
    return await element.inner_text()


async def html_of(node: Any, selector: str) -> Optional[str]:
    element = await node.query_selector(selector)
    if element is None:
        return None
    return await element.inner_html()


async def attr_of(node: Any, selector: str, name: str) -> Optional[str]:
    element = await node.query_selector(selector)
    if element is None:
        return None
    return await element.get_attribute(name)


async def meta_description(page: Any) -> Optional[str]:
    return await attr_of(page, 'meta[name="description"], meta[property="og:description"]', "content")
