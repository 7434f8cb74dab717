"""
Two-phase extraction.

Phase 1 copies everything needed out of the listing document into plain
:class:`~scout.models.EventDraft` records without navigating. Phase 2 then
visits each surviving record's own page. Navigating invalidates every
handle into the listing document, so phase 1 of a page must be complete
before phase 2 starts.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence

from .filters import stable_id
from .interfaces import SourceAdapter, SourceSession
from .models import Event, EventDraft

logger = logging.getLogger(__name__)


class TwoPhaseExtractor:
    """Stateless helper shared by every crawl."""

    async def phase_one(self, adapter: SourceAdapter, nodes: Sequence[Any]) -> List[EventDraft]:
        drafts: List[EventDraft] = []
        for position, node in enumerate(nodes, start=1):
            try:
                drafts.append(await self.extract_basic(adapter, node))
            except Exception as e:  # noqa: BLE001
                logger.warning("[%s] Skipping item %d: %s", adapter.name, position, e)
        return drafts

    async def extract_basic(self, adapter: SourceAdapter, node: Any) -> EventDraft:
        fields = await adapter.extract_basic_fields(node)
        draft = EventDraft(provider=adapter.provider, type=adapter.event_type)
        draft.fill_empty(fields)
        if not draft.title:
            draft.title = adapter.fallback_title
        draft.id = stable_id(draft.title, draft.url)
        return draft

    async def phase_two(self, adapter: SourceAdapter, session: SourceSession, draft: EventDraft) -> Event:
        """Enrich *draft* from its detail page and freeze it.

        Failures are logged; the record is delivered with whatever it has.
        """
        if not adapter.needs_detail(draft):
            return draft.freeze()

        try:
            document = await session.open_detail(draft.url)
            details = await adapter.extract_detail_fields(document)
        except Exception as e:  # noqa: BLE001
            logger.warning("[%s] Detail fetch failed for %s: %s", adapter.name, draft.url, e)
            return draft.freeze()

        filled = draft.fill_empty(details)
        logger.debug("[%s] Enriched %r with %s", adapter.name, draft.title, ", ".join(filled) or "nothing")
        return draft.freeze()
