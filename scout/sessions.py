"""
Reusable :class:`~scout.interfaces.SourceSession` implementations.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError, Page

from .config import RenderSettings
from .errors import FetchError
from .infra.sel import PlaywrightClient
from .infra.soup import parse_html
from .interfaces import SourceSession

logger = logging.getLogger(__name__)


class RenderedSession(SourceSession):
    """One headless browser page, driven for the whole crawl.

    ``open_listing`` and ``open_detail`` both navigate the same page, so
    everything obtained from the previous document is invalid afterwards.
    With ``detail_as_soup`` the detail page is snapshotted into a
    BeautifulSoup tree instead of being returned live.
    """

    def __init__(
        self,
        render: RenderSettings,
        *,
        listing_selector: Optional[str] = None,
        detail_as_soup: bool = False,
        client: Optional[PlaywrightClient] = None,
    ) -> None:
        self._render = render
        self._listing_selector = listing_selector
        self._detail_as_soup = detail_as_soup
        self._client = client or PlaywrightClient(
            headless=render.headless,
            browser_type=render.browser_type,
            timeout=render.timeout_ms,
            navigation_timeout=render.navigation_timeout_ms,
            executable_path=render.executable_path,
        )
        self._page: Optional[Page] = None

    async def start(self) -> None:
        if self._page is None:
            self._page = await self._client.new_page()

    async def _navigate(self, url: str, *, wait_for_selector: Optional[str], settle_delay: float) -> Page:
        await self.start()
        return await PlaywrightClient.goto(
            self._page,
            url,
            wait_for_selector=wait_for_selector,
            settle_delay=settle_delay,
            selector_timeout=self._render.timeout_ms,
        )

    async def open_listing(self, url: str) -> Page:
        try:
            return await self._navigate(
                url,
                wait_for_selector=self._listing_selector,
                settle_delay=self._render.listing_settle_delay,
            )
        except PlaywrightError as e:
            raise FetchError(f"Could not load listing {url}: {e}", url=url) from e

    async def open_detail(self, url: str) -> Any:
        page = await self._navigate(url, wait_for_selector=None, settle_delay=self._render.detail_settle_delay)
        if self._detail_as_soup:
            return parse_html(await page.content())
        return page

    async def close(self) -> None:
        self._page = None
        await self._client.stop()
