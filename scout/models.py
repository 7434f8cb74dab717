"""
Core data models for the discovery pipeline.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class _EventFields(BaseModel):
    """Field set shared by the in-flight draft and the delivered event.

    Optional fields default to an empty value so consumers can rely on a
    complete schema.
    """

    id: int = 0
    title: str = ""
    blurb: str = ""
    description: str = ""
    url: str = ""
    location: str = ""
    date: str = ""
    image_url: str = ""
    provider: str = ""
    requirements: str = ""
    judges: str = ""
    judging_criteria: str = ""
    type: str = ""
    scraped_at: datetime = Field(default_factory=_utcnow)

    # Typed attributes only structured sources provide
    organization: str = ""
    prize_amount: str = ""
    registrations_count: int = 0
    featured: bool = False
    open_state: str = ""


class EventDraft(_EventFields):
    """Mutable in-flight record owned by one crawl between phase 1 and delivery."""

    model_config = ConfigDict(validate_assignment=True)

    def fill_empty(self, values: dict) -> list[str]:
        """Copy non-empty *values* into fields that are still empty.

        A value the field type rejects leaves that field empty. Returns the
        names of the fields that were filled.
        """
        filled = []
        for key, value in values.items():
            if key not in type(self).model_fields or key in ("id", "provider", "type"):
                continue
            if value in (None, "", 0) or getattr(self, key) not in (None, "", 0):
                continue
            try:
                setattr(self, key, value)
            except ValidationError:
                continue
            filled.append(key)
        return filled

    def freeze(self) -> "Event":
        return Event(**self.model_dump())


class Event(_EventFields):
    """A discovered hackathon. Immutable once handed to the delivery layer."""

    model_config = ConfigDict(frozen=True)


class CrawlRequest(BaseModel):
    """Filters and target count for one crawl invocation."""

    model_config = ConfigDict(frozen=True)

    domain: str = ""
    location: str = ""
    count: int

    @classmethod
    def bounded(
        cls,
        domain: Optional[str],
        location: Optional[str],
        count: Optional[int],
        *,
        default_count: int = 10,
        max_count: int = 50,
    ) -> "CrawlRequest":
        """Build a request the way the caller-facing boundary sees it."""
        effective = count if count and count > 0 else default_count
        effective = min(effective, max_count)
        return cls(domain=(domain or "").strip(), location=(location or "").strip(), count=effective)


class StreamMessage(BaseModel):
    """One message on a streaming channel: an item or the terminal signal."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["item", "done", "error"]
    event: Optional[Event] = None
    reason: str = ""

    @classmethod
    def item(cls, event: Event) -> "StreamMessage":
        return cls(kind="item", event=event)

    @classmethod
    def done(cls) -> "StreamMessage":
        return cls(kind="done")

    @classmethod
    def error(cls, reason: str) -> "StreamMessage":
        return cls(kind="error", reason=reason)

    @property
    def terminal(self) -> bool:
        return self.kind != "item"
