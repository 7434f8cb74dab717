"""
Crawl controller: the page-by-page loop over one source adapter.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from .errors import FetchError
from .extraction import TwoPhaseExtractor
from .filters import EventFilter
from .interfaces import SourceAdapter
from .models import CrawlRequest, Event

logger = logging.getLogger(__name__)


class CrawlState(enum.Enum):
    START = "start"
    FETCH_PAGE = "fetch_page"
    EXTRACT = "extract"
    FILTER = "filter"
    DEEP_FETCH = "deep_fetch"
    COLLECT = "collect"
    DONE = "done"


class CrawlOutcome(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"  # target count reached
    EXHAUSTED = "exhausted"  # source ran out of pages
    ABORTED = "aborted"  # unrecoverable error, partial results
    STOPPED = "stopped"  # consumer closed the generator early

    @property
    def failed(self) -> bool:
        return self is CrawlOutcome.ABORTED


class CrawlController:
    """Drives one crawl of *adapter* for *request*.

    Iterate :meth:`run` to receive events as soon as each one is enriched.
    Errors never escape :meth:`run`; inspect :attr:`outcome` and
    :attr:`reason` afterwards.
    """

    def __init__(
        self,
        adapter: SourceAdapter,
        request: CrawlRequest,
        *,
        extractor: Optional[TwoPhaseExtractor] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.adapter = adapter
        self.request = request
        self._extractor = extractor or TwoPhaseExtractor()
        self._sleep = sleep
        self._filter = EventFilter(request, keyword_delegated=adapter.filters_keyword_remotely)
        self.state = CrawlState.START
        self.outcome = CrawlOutcome.PENDING
        self.reason = ""
        self.collected = 0
        self.pages = 0

    def _enter(self, state: CrawlState) -> None:
        logger.debug("[%s] %s -> %s", self.adapter.name, self.state.value, state.value)
        self.state = state

    def _finish(self, outcome: CrawlOutcome, reason: str = "") -> None:
        self._enter(CrawlState.DONE)
        self.outcome = outcome
        self.reason = reason

    async def run(self) -> AsyncIterator[Event]:
        adapter, request = self.adapter, self.request
        logger.info(
            "[%s] Starting crawl: domain=%r location=%r count=%d",
            adapter.name,
            request.domain or "ALL",
            request.location or "ALL",
            request.count,
        )
        try:
            async with AsyncExitStack() as stack:
                session = await stack.enter_async_context(adapter.open_session())
                page = 0
                while True:
                    if self.collected >= request.count:
                        self._finish(CrawlOutcome.COMPLETED)
                        break

                    page += 1
                    self._enter(CrawlState.FETCH_PAGE)
                    url = adapter.build_listing_url(request.domain, page)
                    if url is None:
                        self._finish(CrawlOutcome.EXHAUSTED, f"no page {page}")
                        break
                    if page > 1 and adapter.page_delay > 0:
                        await self._sleep(adapter.page_delay)
                    logger.info("[%s] Fetching page %d: %s", adapter.name, page, url)
                    document = await session.open_listing(url)
                    self.pages = page

                    self._enter(CrawlState.EXTRACT)
                    nodes = await adapter.list_item_nodes(document)
                    if not nodes:
                        logger.info("[%s] No items on page %d, stopping pagination", adapter.name, page)
                        self._finish(CrawlOutcome.EXHAUSTED, f"page {page} empty")
                        break
                    drafts = await self._extractor.phase_one(adapter, nodes)
                    # Listing handles die on the next navigation.
                    del nodes, document

                    self._enter(CrawlState.FILTER)
                    survivors = [draft for draft in drafts if self._filter.accepts(draft)]
                    logger.info(
                        "[%s] Page %d: %d extracted, %d accepted",
                        adapter.name,
                        page,
                        len(drafts),
                        len(survivors),
                    )

                    for draft in survivors:
                        if self.collected >= request.count:
                            break
                        self._enter(CrawlState.DEEP_FETCH)
                        event = await self._extractor.phase_two(adapter, session, draft)
                        self._enter(CrawlState.COLLECT)
                        self.collected += 1
                        logger.info("[%s] Collected %d/%d: %s", adapter.name, self.collected, request.count, event.title)
                        yield event
        except FetchError as e:
            logger.error("[%s] Fetch failed on page %d, returning partial results: %s", adapter.name, self.pages + 1, e)
            self._finish(CrawlOutcome.ABORTED, str(e))
        except GeneratorExit:
            self._finish(CrawlOutcome.STOPPED, "consumer closed")
            raise
        except Exception as e:  # noqa: BLE001
            logger.error("[%s] Crawl aborted: %s", adapter.name, e, exc_info=True)
            self._finish(CrawlOutcome.ABORTED, f"{type(e).__name__}: {e}")
        finally:
            logger.info(
                "[%s] Crawl finished (%s): %d event(s) from %d page(s), rejected=%s",
                adapter.name,
                self.outcome.value,
                self.collected,
                self.pages,
                dict(self._filter.rejected),
            )
