"""
Shared fakes for the test-suite: an in-memory source, Playwright-like
elements and pages, and an aiohttp-like session.
"""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import pytest

from scout.fields import deferred
from scout.interfaces import SourceAdapter, SourceSession
from scout.models import EventDraft

BASIC_KEYS = ("title", "url", "location", "date", "image_url")
DETAIL_KEYS = ("blurb", "description", "requirements", "judges", "judging_criteria")


def hack(title: str, location: str = "Online", url: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    slug = title.lower().replace(" ", "-")
    return {"title": title, "location": location, "url": url if url is not None else f"https://example.test/{slug}", **extra}


# --------------------------------------------------------------------------- #
# In-memory source
class MemorySession(SourceSession):
    def __init__(self, adapter: "MemoryAdapter") -> None:
        self.adapter = adapter
        self.started = False
        self.closed = 0

    async def start(self) -> None:
        self.started = True

    async def open_listing(self, url: str) -> Any:
        self.adapter.listing_calls.append(url)
        page = int(url.rsplit("=", 1)[1])
        if page > len(self.adapter.pages):
            return []
        outcome = self.adapter.pages[page - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def open_detail(self, url: str) -> Any:
        self.adapter.detail_calls.append(url)
        if self.adapter.detail_delay is not None:
            await asyncio.sleep(self.adapter.detail_delay)
        outcome = self.adapter.details.get(url, {})
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed += 1


class MemoryAdapter(SourceAdapter):
    """Source backed by lists of dicts: one list per listing page."""

    name = "memory"
    provider = "MEMORY"

    def __init__(
        self,
        pages: Optional[Sequence[Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        *,
        settings: Any = None,
        single_page: bool = False,
        keyword_remote: bool = False,
        detail_delay: Optional[float] = None,
    ) -> None:
        self.pages = list(pages or [])
        self.details = details or {}
        self.settings = settings
        self.single_page = single_page
        self.filters_keyword_remotely = keyword_remote
        self.detail_delay = detail_delay
        self.sessions: List[MemorySession] = []
        self.listing_calls: List[str] = []
        self.detail_calls: List[str] = []

    def open_session(self) -> MemorySession:
        session = MemorySession(self)
        self.sessions.append(session)
        return session

    def build_listing_url(self, keyword: str, page: int) -> Optional[str]:
        if self.single_page and page > 1:
            return None
        return f"memory://listing?page={page}"

    async def list_item_nodes(self, document: Any) -> Sequence[Any]:
        return list(document)

    def basic_fields(self, node: Dict[str, Any]):
        return {key: deferred(node.get, key) for key in BASIC_KEYS}

    def detail_fields(self, document: Dict[str, Any]):
        return {key: deferred(document.get, key) for key in DETAIL_KEYS}


@pytest.fixture
def draft_factory():
    def make(**fields: Any) -> EventDraft:
        return EventDraft(provider="MEMORY", type="HACKATHON", **fields)

    return make


# --------------------------------------------------------------------------- #
# Playwright-like DOM
class FakeElement:
    """Answers ``query_selector`` by exact selector string."""

    def __init__(
        self,
        text: str = "",
        *,
        html: Optional[str] = None,
        attrs: Optional[Dict[str, str]] = None,
        children: Optional[Dict[str, "FakeElement"]] = None,
        lists: Optional[Dict[str, List["FakeElement"]]] = None,
        failures: Optional[List[BaseException]] = None,
    ) -> None:
        self.text = text
        self.html = html if html is not None else text
        self.attrs = attrs or {}
        self.children = children or {}
        self.lists = lists or {}
        self.failures = list(failures or [])
        self.lookups = 0

    async def query_selector(self, selector: str) -> Optional["FakeElement"]:
        self.lookups += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.children.get(selector)

    async def query_selector_all(self, selector: str) -> List["FakeElement"]:
        return self.lists.get(selector, [])

    async def inner_text(self) -> str:
        return self.text

    async def inner_html(self) -> str:
        return self.html

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)


class FakePage(FakeElement):
    def __init__(self, *, content: str = "<html><body></body></html>", goto_error: Optional[BaseException] = None, **kw: Any) -> None:
        super().__init__(**kw)
        self._content = content
        self.goto_error = goto_error
        self.visited: List[str] = []
        self.waited_for: List[str] = []

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> None:
        self.waited_for.append(selector)

    async def content(self) -> str:
        return self._content


class FakeBrowser:
    """Stands in for :class:`scout.infra.sel.PlaywrightClient`."""

    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.pages_opened = 0
        self.stopped = 0

    async def new_page(self) -> FakePage:
        self.pages_opened += 1
        return self.page

    async def stop(self) -> None:
        self.stopped += 1


# --------------------------------------------------------------------------- #
# aiohttp-like transport
class FakeResponse:
    def __init__(self, status: int = 200, *, body: Any = None, text: Any = "") -> None:
        self.status = status
        self._body = body
        self._text = text
        self.released = False

    def release(self) -> None:
        self.released = True

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self.release()

    async def json(self, content_type: Optional[str] = None) -> Any:
        if isinstance(self._body, BaseException):
            raise self._body
        return self._body

    async def text(self) -> str:
        if isinstance(self._text, BaseException):
            raise self._text
        return self._text


class FakeHttpSession:
    """Replays *outcomes* (responses or exceptions) one request at a time."""

    def __init__(self, outcomes: Sequence[Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: List[tuple] = []
        self.closed = False

    async def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()
