"""Hackathon discovery: crawl listing sources into normalized events.

The delivery functions are re-exported here so callers can write::

    from scout import scrape
    events = await scrape("devpost_api", "ai", "remote", 10)
"""

from .delivery import EventStream, open_stream, scrape, stream  # noqa: F401
from .errors import FetchError, RetryExhaustedError, ScoutError, UnknownSourceError  # noqa: F401
from .models import CrawlRequest, Event, StreamMessage  # noqa: F401
