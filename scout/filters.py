"""
Keyword / location filtering, stable identifiers and per-crawl dedup.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Optional, Set

from .models import CrawlRequest, EventDraft

logger = logging.getLogger(__name__)

REMOTE_SYNONYMS = ("remote", "online", "worldwide", "everywhere")

_INT32_MASK = 0x7FFFFFFF


def stable_id(title: str, url: str) -> int:
    """Deterministic non-negative 32-bit id for a ``(title, url)`` pair.

    Uses the 31-multiplier string hash over UTF-16 code units, so the value
    is the same in every process (unlike :func:`hash`).
    """
    h = 0
    data = (title or "") + (url or "")
    encoded = data.encode("utf-16-be")
    for i in range(0, len(encoded), 2):
        unit = (encoded[i] << 8) | encoded[i + 1]
        h = (31 * h + unit) & 0xFFFFFFFF
    return h & _INT32_MASK


def matches_keyword(title: str, keyword: Optional[str]) -> bool:
    if not keyword:
        return True
    return keyword.lower() in (title or "").lower()


def _mentions_remote(text: str) -> bool:
    return any(token in text for token in REMOTE_SYNONYMS)


def matches_location(event_location: str, wanted: Optional[str]) -> bool:
    """Case-insensitive containment with remote/online/worldwide/everywhere folded."""
    if not wanted:
        return True
    wanted_lc = wanted.strip().lower()
    location_lc = (event_location or "").lower()
    if _mentions_remote(wanted_lc) and _mentions_remote(location_lc):
        return True
    return wanted_lc in location_lc


class Deduper:
    """Remembers identifiers seen during one crawl."""

    def __init__(self, seen: Optional[Iterable[int]] = None) -> None:
        self._seen: Set[int] = set(seen or ())

    def is_new(self, identifier: int) -> bool:
        if identifier in self._seen:
            return False
        self._seen.add(identifier)
        return True

    def __len__(self) -> int:
        return len(self._seen)


class EventFilter:
    """Accept/reject phase-1 drafts for one crawl request."""

    def __init__(
        self,
        request: CrawlRequest,
        *,
        keyword_delegated: bool = False,
        deduper: Optional[Deduper] = None,
    ) -> None:
        self._request = request
        self._keyword_delegated = keyword_delegated
        self._deduper = deduper or Deduper()
        self.rejected: Counter = Counter()

    def accepts(self, draft: EventDraft) -> bool:
        if not self._keyword_delegated and not matches_keyword(draft.title, self._request.domain):
            return self._reject(draft, "keyword")
        if not matches_location(draft.location, self._request.location):
            return self._reject(draft, "location")
        if not self._deduper.is_new(draft.id):
            return self._reject(draft, "duplicate")
        return True

    def _reject(self, draft: EventDraft, reason: str) -> bool:
        self.rejected[reason] += 1
        logger.debug("Rejected %r (%s)", draft.title, reason)
        return False
