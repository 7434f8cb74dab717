"""devpost_api.adapter - Devpost's ``/api/hackathons`` endpoint.

Every item is a JSON object, so "nodes" here are plain dicts and the field
getters never go stale. The API is not searchable; the keyword is matched
against titles locally.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup

from scout.config import Settings
from scout.fields import FieldGetter, deferred, first_present
from scout.infra.soup import meta_content, parse_html, select_html, select_text
from scout.interfaces import SourceAdapter
from scout.models import EventDraft

from .session import DevpostApiSession

logger = logging.getLogger(__name__)

__all__ = ["DevpostApiAdapter"]


# --------------------------------------------------------------------------- #
API_URL = "https://devpost.com/api/hackathons"

# Alternative keys seen across API revisions, most specific first
BLURB_KEYS = ("short_description", "description", "blurb", "summary")
REQUIREMENTS_KEYS = ("requirements", "challenge_requirements", "requirements_text")
JUDGES_KEYS = ("judges", "judge_list")
CRITERIA_KEYS = ("judging_criteria", "criteria", "judging")

DETAIL_DESCRIPTION = (
    "main #challenge-description, main .challenge-blurb, #challenge-description, .challenge-description"
)
DETAIL_REQUIREMENTS = "main #challenge-requirements, #challenge-requirements, .challenge-requirements, .requirements"
DETAIL_JUDGES = "main #judges, #judges, .judges, .judge-list"
DETAIL_CRITERIA = "main #judging-criteria, #judging-criteria, .judging-criteria, .criteria"

# Fields the challenge page can supply when the API omits them
ENRICHABLE = ("blurb", "requirements", "judges", "judging_criteria")


# --------------------------------------------------------------------------- #
def _as_text(value: Any) -> Optional[str]:
    """Flatten list values (e.g. a list of judge names) into one string."""
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        parts = [_as_text(v) for v in value]
        return ", ".join(p for p in parts if p) or None
    if isinstance(value, Mapping):
        return _as_text(value.get("name") or value.get("title"))
    return str(value)


def _location(item: Mapping[str, Any]) -> Optional[str]:
    location = item.get("location")
    if location:
        return _as_text(location)
    displayed = item.get("displayed_location")
    if isinstance(displayed, Mapping):
        return _as_text(displayed.get("location"))
    return _as_text(displayed)


def _date(item: Mapping[str, Any]) -> Optional[str]:
    period = item.get("submission_period_dates")
    if period:
        return _as_text(period)
    start, end = item.get("start_a"), item.get("end_a")
    if start and end:
        return f"{start} - {end}"
    return _as_text(start or end)


def _thumbnail(item: Mapping[str, Any]) -> Optional[str]:
    url = item.get("thumbnail_url")
    if isinstance(url, str) and url.startswith("//"):
        return "https:" + url
    return url


def _plain(value: Any) -> Optional[str]:
    """Prize amounts arrive as markup, e.g. ``$<span data-currency-value>10,000</span>``."""
    text = _as_text(value)
    if text and "<" in text:
        return parse_html(text).get_text(strip=True)
    return text


def _count(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# --------------------------------------------------------------------------- #
class DevpostApiAdapter(SourceAdapter):
    name = "devpost_api"
    provider = "DEVPOST"
    fallback_title = "Unknown Title"

    def __init__(self, *, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self.page_delay = self.settings.crawl.api_page_delay

    # ------------------------------------------------------------------- #
    def open_session(self) -> DevpostApiSession:
        return DevpostApiSession(self.settings.http)

    def build_listing_url(self, keyword: str, page: int) -> Optional[str]:
        return f"{API_URL}?page={page}"

    async def list_item_nodes(self, document: Any) -> Sequence[Any]:
        if not isinstance(document, Mapping):
            logger.warning("Unexpected API payload type: %s", type(document).__name__)
            return []
        items: List[Any] = document.get("hackathons") or []
        return [item for item in items if isinstance(item, Mapping)]

    def needs_detail(self, draft: EventDraft) -> bool:
        if not draft.url:
            return False
        return any(not getattr(draft, field) for field in ENRICHABLE)

    # ------------------------------------------------------------------- #
    def basic_fields(self, item: Mapping[str, Any]) -> Dict[str, FieldGetter]:
        return {
            "title": deferred(lambda: _as_text(item.get("title"))),
            "url": deferred(lambda: _as_text(item.get("url"))),
            "location": deferred(_location, item),
            "date": deferred(_date, item),
            "image_url": deferred(_thumbnail, item),
            "organization": deferred(lambda: _as_text(item.get("organization_name"))),
            "prize_amount": deferred(lambda: _plain(item.get("prize_amount"))),
            "registrations_count": deferred(lambda: _count(item.get("registrations_count"))),
            "featured": deferred(lambda: bool(item.get("featured"))),
            "open_state": deferred(lambda: _as_text(item.get("open_state"))),
            "blurb": deferred(lambda: _as_text(first_present(item, *BLURB_KEYS))),
            "requirements": deferred(lambda: _as_text(first_present(item, *REQUIREMENTS_KEYS))),
            "judges": deferred(lambda: _as_text(first_present(item, *JUDGES_KEYS))),
            "judging_criteria": deferred(lambda: _as_text(first_present(item, *CRITERIA_KEYS))),
        }

    def detail_fields(self, soup: BeautifulSoup) -> Dict[str, FieldGetter]:
        def blurb() -> Optional[str]:
            return meta_content(soup, "description", "og:description") or select_text(soup, DETAIL_DESCRIPTION)

        def description() -> Optional[str]:
            return select_html(soup, DETAIL_DESCRIPTION) or select_text(soup, DETAIL_DESCRIPTION)

        return {
            "blurb": deferred(blurb),
            "description": deferred(description),
            "requirements": deferred(select_text, soup, DETAIL_REQUIREMENTS),
            "judges": deferred(select_text, soup, DETAIL_JUDGES),
            "judging_criteria": deferred(select_text, soup, DETAIL_CRITERIA),
        }
