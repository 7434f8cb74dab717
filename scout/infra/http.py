"""
http.py - Async HTTP client built on *aiohttp* with bounded retries,
          exponential back-off for 429 / 5xx / connection errors and
          per-instance default headers.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import aiohttp

from ..errors import FetchError, RetryExhaustedError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (HackHub Scraper)"

Reader = Callable[[aiohttp.ClientResponse], Awaitable[Any]]


def is_retryable_status(status: int) -> bool:
    return status == 429 or status >= 500


class HttpClient:
    """
    Fetcher for listing APIs and detail pages, over *aiohttp.ClientSession*:

    * one User-Agent for every request, overridable per call
    * exponential back-off for 429 / 5xx / network errors: ``base_delay``
      doubling per retry, capped at ``max_delay``
    * immediate failure for any other non-2xx status
    * an injectable session and sleep, so tests never touch the network
    """

    def __init__(
        self,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        connect_timeout: float = 15.0,
        read_timeout: float = 15.0,
        max_retries: int = 3,
        base_delay: float = 2.0,
        max_delay: float = 30.0,
        jitter: float = 0.0,
        default_headers: Optional[Mapping[str, str]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._external_session = session
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._jitter = jitter
        self._sleep = sleep
        self._own_session: Optional[aiohttp.ClientSession] = None
        self._default_headers: Dict[str, str] = {
            "User-Agent": DEFAULT_USER_AGENT,
            **dict(default_headers or {}),
        }

    # ---------------------------------------------- #
    # Async context-manager
    async def __aenter__(self) -> "HttpClient":  # noqa: D401
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        await self.close()

    # ---------------------------------------------- #
    # Session management
    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._external_session:
            return self._external_session
        if self._own_session is None or self._own_session.closed:
            timeout = aiohttp.ClientTimeout(
                connect=self._connect_timeout,
                sock_read=self._read_timeout,
            )
            self._own_session = aiohttp.ClientSession(timeout=timeout)
        return self._own_session

    async def close(self) -> None:
        if self._own_session and not self._own_session.closed:
            await self._own_session.close()
        self._own_session = None

    # ---------------------------------------------- #
    # Internal helpers
    def _merge_headers(self, extra: Mapping[str, str] | None) -> Dict[str, str]:
        merged: Dict[str, str] = {**self._default_headers}
        if extra:
            merged.update(extra)
        return merged

    def backoff_delay(self, retry: int) -> float:
        """Seconds to wait before retry number *retry* (1-based)."""
        exponential = min(self._base_delay * 2 ** (retry - 1), self._max_delay)
        if self._jitter:
            exponential += random.uniform(0, self._jitter)
        return exponential

    async def _request(self, method: str, url: str, read: Reader, **kwargs) -> Any:
        """Perform a request with retries and return ``await read(resp)``.

        The body is read inside the retry loop, so a connection dropped
        mid-body costs an attempt like any other network error.
        ``max_retries`` counts retries, so up to ``max_retries + 1`` attempts
        are made.
        """
        session = await self._ensure_session()

        headers = self._merge_headers(kwargs.pop("headers", None))
        kwargs["headers"] = headers

        attempts = self._max_retries + 1
        last_problem = ""
        for attempt in range(1, attempts + 1):
            try:
                resp = await session.request(method, url, **kwargs)
            except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
                last_problem = f"connection error: {e}"
            else:
                try:
                    if 200 <= resp.status < 300:
                        return await read(resp)
                    if not is_retryable_status(resp.status):
                        raise FetchError(
                            f"HTTP {method} {url} returned {resp.status}",
                            url=url,
                            status=resp.status,
                        )
                    last_problem = f"retryable status {resp.status}"
                except (aiohttp.ClientPayloadError, aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
                    last_problem = f"body read failed: {e}"
                finally:
                    resp.release()

            if attempt == attempts:
                break

            sleep_seconds = self.backoff_delay(attempt)
            logger.warning(
                "HTTP %s %s failed (attempt %d/%d, will retry in %.1fs): %s",
                method,
                url,
                attempt,
                attempts,
                sleep_seconds,
                last_problem,
            )
            await self._sleep(sleep_seconds)

        logger.error("HTTP %s %s failed after %d attempts: %s", method, url, attempts, last_problem)
        raise RetryExhaustedError(
            f"HTTP {method} {url} failed after {attempts} attempts: {last_problem}",
            url=url,
        )

    # ---------------------------------------------- #
    # Public helpers
    async def get_text(self, url: str, **kwargs) -> str:
        async def read(resp: aiohttp.ClientResponse) -> str:
            return await resp.text()

        return await self._request("GET", url, read, **kwargs)

    async def get_json(self, url: str, **kwargs) -> Any:
        kwargs.setdefault("headers", {"Accept": "application/json"})

        async def read(resp: aiohttp.ClientResponse) -> Any:
            try:
                return await resp.json(content_type=None)
            except ValueError as exc:
                raise FetchError(f"Invalid JSON from {url}", url=url) from exc

        return await self._request("GET", url, read, **kwargs)
