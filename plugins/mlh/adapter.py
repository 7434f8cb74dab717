"""mlh.adapter - ``mlh.io/seasons/<season>/events``.

The season page lists all events at once, so there is exactly one listing
page. Event links point at each hackathon's own site; their markup is
unknown, hence the tiered extraction in :meth:`MlhAdapter.detail_fields`:

1. page metadata (``og:description`` and friends) becomes the blurb,
2. the first semantic content block with real text becomes the description,
3. failing that, the start of the page body.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from bs4 import BeautifulSoup

from scout.config import Settings
from scout.fields import FieldGetter, deferred
from scout.infra.sel import attr_of, is_detached_error, text_of
from scout.infra.soup import meta_content
from scout.interfaces import SourceAdapter
from scout.sessions import RenderedSession

logger = logging.getLogger(__name__)

__all__ = ["MlhAdapter"]


# --------------------------------------------------------------------------- #
SEASON_URL = "https://mlh.io/seasons/{season}/events"

CARD = ".event-wrapper"
CARD_TITLE = ".event-name"
CARD_LINK = "a.event-link"
CARD_LOCATION = ".event-location"
CARD_DATE = ".event-date"
CARD_IMAGE = ".image-wrap img"

META_NAMES = ("og:description", "description", "twitter:description")
CONTENT_BLOCKS = "main, article, #about, #description, .about-section, .description-section, .post-content"
MIN_BLOCK_TEXT = 200
BODY_LIMIT = 3000


def describe(soup: BeautifulSoup) -> Optional[str]:
    """HTML of the first content block with more than 200 characters of text,
    else the body HTML cut at 3000 characters."""
    for block in soup.select(CONTENT_BLOCKS):
        if len(block.get_text(" ", strip=True)) > MIN_BLOCK_TEXT:
            return block.decode_contents().strip()

    body = soup.body
    if body is None:
        return None
    html = body.decode_contents().strip()
    if len(html) > BODY_LIMIT:
        return html[:BODY_LIMIT] + "..."
    return html


# --------------------------------------------------------------------------- #
class MlhAdapter(SourceAdapter):
    name = "mlh"
    provider = "MLH"
    fallback_title = "Unknown"

    def __init__(self, *, settings: Optional[Settings] = None, season: Optional[int] = None) -> None:
        self.settings = settings or Settings()
        self.season = season or self.settings.crawl.mlh_season

    # ------------------------------------------------------------------- #
    def open_session(self) -> RenderedSession:
        return RenderedSession(self.settings.render, listing_selector=CARD, detail_as_soup=True)

    def build_listing_url(self, keyword: str, page: int) -> Optional[str]:
        if page > 1:
            return None
        return SEASON_URL.format(season=self.season)

    async def list_item_nodes(self, document: Any) -> Sequence[Any]:
        return await document.query_selector_all(CARD)

    def is_transient(self, exc: BaseException) -> bool:
        return is_detached_error(exc)

    # ------------------------------------------------------------------- #
    def basic_fields(self, node: Any) -> Dict[str, FieldGetter]:
        return {
            "title": lambda: text_of(node, CARD_TITLE),
            "url": lambda: attr_of(node, CARD_LINK, "href"),
            "location": lambda: text_of(node, CARD_LOCATION),
            "date": lambda: text_of(node, CARD_DATE),
            "image_url": lambda: attr_of(node, CARD_IMAGE, "src"),
        }

    def detail_fields(self, soup: BeautifulSoup) -> Dict[str, FieldGetter]:
        return {
            "blurb": deferred(meta_content, soup, *META_NAMES),
            "description": deferred(describe, soup),
        }
