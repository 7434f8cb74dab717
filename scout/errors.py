"""
Error types shared by the discovery pipeline.
"""

from __future__ import annotations

from typing import Optional


class ScoutError(Exception):
    """Base class for known pipeline errors."""


class FetchError(ScoutError):
    """A page-level fetch failed and the crawl cannot continue on this page."""

    def __init__(self, message: str, *, url: Optional[str] = None, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class RetryExhaustedError(FetchError):
    """Transient failures persisted past the retry budget."""


class UnknownSourceError(ScoutError, KeyError):
    """No adapter is registered under the requested source name."""

    def __str__(self) -> str:  # KeyError quotes its argument otherwise
        return str(self.args[0]) if self.args else ""
