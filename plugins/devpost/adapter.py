"""devpost.adapter - rendered Devpost hackathon search.

The search keyword is sent to Devpost itself (``?search=``), so titles are
not filtered again locally. Listing tiles are client-side rendered and go
stale easily, which is why :meth:`DevpostAdapter.is_transient` treats
"not attached" errors as retryable.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence
from urllib.parse import urlencode, urljoin

from scout.config import Settings
from scout.fields import FieldGetter
from scout.infra.sel import attr_of, html_of, is_detached_error, meta_description, text_of
from scout.interfaces import SourceAdapter
from scout.sessions import RenderedSession

logger = logging.getLogger(__name__)

__all__ = ["DevpostAdapter"]


# --------------------------------------------------------------------------- #
BASE_URL = "https://devpost.com"
LISTING_URL = f"{BASE_URL}/hackathons"

TILE = ".challenge-listing, .hackathon-tile"
TILE_TITLE = ".title, h3, .challenge-name"
TILE_LINK = "a[href]"
TILE_LOCATION = ".location, .info, .challenge-location"
TILE_DATE = ".date, .challenge-date, time"
TILE_IMAGE = "img[src]"

DETAIL_DESCRIPTION = "#challenge-description, .challenge-description, #challenge-overview, .content-section"
DETAIL_REQUIREMENTS = "#challenge-requirements, .challenge-requirements, #prizes, .prizes"
DETAIL_CRITERIA = "#judging-criteria, .judging-criteria"
DETAIL_JUDGES = "#judges, .judges, .judge-list"


# --------------------------------------------------------------------------- #
class DevpostAdapter(SourceAdapter):
    name = "devpost"
    provider = "DEVPOST"
    fallback_title = "Unknown"
    filters_keyword_remotely = True

    def __init__(self, *, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    # ------------------------------------------------------------------- #
    def open_session(self) -> RenderedSession:
        return RenderedSession(self.settings.render, listing_selector=TILE)

    def build_listing_url(self, keyword: str, page: int) -> Optional[str]:
        params: Dict[str, Any] = {}
        if keyword:
            params["search"] = keyword
        params["page"] = page
        return f"{LISTING_URL}?{urlencode(params)}"

    async def list_item_nodes(self, document: Any) -> Sequence[Any]:
        return await document.query_selector_all(TILE)

    def is_transient(self, exc: BaseException) -> bool:
        return is_detached_error(exc)

    # ------------------------------------------------------------------- #
    def basic_fields(self, node: Any) -> Dict[str, FieldGetter]:
        async def url() -> Optional[str]:
            href = await attr_of(node, TILE_LINK, "href")
            if not href:
                # The tile itself is often the anchor.
                href = await node.get_attribute("href")
            return urljoin(BASE_URL, href) if href else None

        return {
            "title": lambda: text_of(node, TILE_TITLE),
            "url": url,
            "location": lambda: text_of(node, TILE_LOCATION),
            "date": lambda: text_of(node, TILE_DATE),
            "image_url": lambda: attr_of(node, TILE_IMAGE, "src"),
        }

    def detail_fields(self, document: Any) -> Dict[str, FieldGetter]:
        return {
            "blurb": lambda: meta_description(document),
            "description": lambda: html_of(document, DETAIL_DESCRIPTION),
            "requirements": lambda: text_of(document, DETAIL_REQUIREMENTS),
            "judging_criteria": lambda: text_of(document, DETAIL_CRITERIA),
            "judges": lambda: text_of(document, DETAIL_JUDGES),
        }
