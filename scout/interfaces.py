"""
Core interfaces for the discovery pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any, Dict, Optional, Sequence, Type

from .fields import FieldGetter, extract_fields
from .models import EventDraft


class SourceSession(ABC):
    """Exclusive fetch/navigation resource owned by a single crawl.

    Listing and detail documents returned by a session are only valid until
    the next call to :meth:`open_listing` or :meth:`open_detail`.
    """

    async def __aenter__(self) -> "SourceSession":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def start(self) -> None:
        """Acquire the underlying resource. Optional."""

    @abstractmethod
    async def open_listing(self, url: str) -> Any:
        """Fetch a listing page and return a queryable document.

        Raises :class:`~scout.errors.FetchError` when the page cannot be had.
        """

    @abstractmethod
    async def open_detail(self, url: str) -> Any:
        """Fetch an item's own page and return a queryable document."""

    @abstractmethod
    async def close(self) -> None:
        """Release the resource. Must be safe to call more than once."""


class SourceAdapter(ABC):
    """Per-source knowledge the crawl controller relies on.

    Subclasses describe *where* the fields live via :meth:`basic_fields` and
    :meth:`detail_fields`; the base class turns those getters into the
    never-failing ``extract_*`` operations.
    """

    #: Registry key, e.g. ``"devpost"``.
    name: str = ""
    provider: str = ""
    event_type: str = "HACKATHON"
    fallback_title: str = "Unknown"
    #: True when the keyword travels in the listing URL instead of being
    #: checked against titles locally.
    filters_keyword_remotely: bool = False
    #: Seconds to wait before requesting each listing page after the first.
    page_delay: float = 0.0

    # ------------------------------------------------------------------- #
    # Contract
    @abstractmethod
    def open_session(self) -> SourceSession:
        """Return a fresh, unopened session for one crawl."""

    @abstractmethod
    def build_listing_url(self, keyword: str, page: int) -> Optional[str]:
        """URL of listing *page* (1-based), or ``None`` if there is no such page."""

    @abstractmethod
    async def list_item_nodes(self, document: Any) -> Sequence[Any]:
        """Item nodes on a listing document. Empty means no more pages."""

    @abstractmethod
    def basic_fields(self, node: Any) -> Dict[str, FieldGetter]:
        """Getters for the fields readable from a listing tile."""

    @abstractmethod
    def detail_fields(self, document: Any) -> Dict[str, FieldGetter]:
        """Getters for the fields readable from a detail page."""

    # ------------------------------------------------------------------- #
    # Hooks with defaults
    def is_transient(self, exc: BaseException) -> bool:
        """Whether a field error is a stale-reference error worth retrying."""
        return False

    def needs_detail(self, draft: EventDraft) -> bool:
        return bool(draft.url)

    # ------------------------------------------------------------------- #
    # Derived operations
    async def extract_basic_fields(self, node: Any) -> Dict[str, Any]:
        """Read every basic field from *node*; never raises for a field."""
        return await extract_fields(
            self.basic_fields(node),
            {"title": self.fallback_title},
            is_transient=self.is_transient,
        )

    async def extract_detail_fields(self, document: Any) -> Dict[str, Any]:
        """Read every detail field from *document*, each one best-effort."""
        return await extract_fields(self.detail_fields(document), {}, is_transient=self.is_transient)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
