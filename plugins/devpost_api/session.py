"""HTTP session for the Devpost API: JSON listings, parsed HTML detail pages."""
from __future__ import annotations

import logging
from typing import Any, Optional

from bs4 import BeautifulSoup

from scout.config import HttpSettings
from scout.infra.http import HttpClient
from scout.infra.soup import parse_html
from scout.interfaces import SourceSession

logger = logging.getLogger(__name__)


class DevpostApiSession(SourceSession):
    def __init__(self, http: HttpSettings, *, client: Optional[HttpClient] = None) -> None:
        self._http = client or HttpClient(
            connect_timeout=http.connect_timeout,
            read_timeout=http.read_timeout,
            max_retries=http.max_retries,
            base_delay=http.base_delay,
            max_delay=http.max_delay,
            default_headers={"User-Agent": http.user_agent},
        )

    async def open_listing(self, url: str) -> Any:
        return await self._http.get_json(url)

    async def open_detail(self, url: str) -> BeautifulSoup:
        return parse_html(await self._http.get_text(url))

    async def close(self) -> None:
        await self._http.close()
