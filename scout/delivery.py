"""
Delivery layer: batch and streaming access to a crawl.

This is the integration surface offered upward (HTTP handlers, the CLI):

* :func:`scrape` - run a crawl to completion and return the events in
  discovery order.
* :func:`open_stream` - start a crawl on a worker and return an
  :class:`EventStream` handle immediately.
* :func:`stream` - callback flavour of :func:`open_stream`.

None of them lets a crawl error escape; a failed crawl returns fewer events
(batch) or ends with an ``error`` message (streaming).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import weakref
from contextlib import aclosing
from typing import Any, Callable, List, Mapping, Optional, Type, Union

from .controller import CrawlController
from .config import Settings
from .errors import UnknownSourceError
from .infra.scheduler import TaskScheduler, WorkerScheduler
from .interfaces import SourceAdapter
from .models import CrawlRequest, Event, StreamMessage
from . import plugin_loader

logger = logging.getLogger(__name__)

Source = Union[str, SourceAdapter]
Registry = Mapping[str, Type[SourceAdapter]]

# event loop -> scheduler
_default_schedulers: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()


def default_scheduler() -> TaskScheduler:
    """The scheduler streams use when none is passed; one per event loop.

    Call ``await default_scheduler().stop()`` on shutdown to cancel crawls
    that are still running.
    """
    loop = asyncio.get_running_loop()
    scheduler = _default_schedulers.get(loop)
    if scheduler is None:
        scheduler = _default_schedulers[loop] = TaskScheduler()
    return scheduler


def resolve_adapter(source: Source, settings: Settings, registry: Optional[Registry] = None) -> SourceAdapter:
    """Return *source* itself, or a new instance of the adapter registered under it.

    Names are looked up in *registry* when given, else in the discovered plugins.
    """
    if isinstance(source, SourceAdapter):
        return source
    if registry is None:
        adapter_cls = plugin_loader.get(source)
    else:
        key = (source or "").strip().lower()
        if key not in registry:
            raise UnknownSourceError(f"Source '{source}' not found. Available: {sorted(registry)}")
        adapter_cls = registry[key]
    return adapter_cls(settings=settings)


def build_request(
    domain_filter: Optional[str],
    location_filter: Optional[str],
    target_count: Optional[int],
    settings: Settings,
) -> CrawlRequest:
    return CrawlRequest.bounded(
        domain_filter,
        location_filter,
        target_count,
        default_count=settings.crawl.default_count,
        max_count=settings.crawl.max_count,
    )


# --------------------------------------------------------------------------- #
# Batch
# --------------------------------------------------------------------------- #
async def scrape(
    source: Source,
    domain_filter: Optional[str] = "",
    location_filter: Optional[str] = "",
    target_count: Optional[int] = None,
    *,
    settings: Optional[Settings] = None,
    registry: Optional[Registry] = None,
) -> List[Event]:
    """Run one crawl on the caller's event loop and return every event found.

    Raises :class:`~scout.errors.UnknownSourceError` for an unknown source
    name; crawl failures only shorten the result.
    """
    settings = settings or Settings()
    adapter = resolve_adapter(source, settings, registry)
    request = build_request(domain_filter, location_filter, target_count, settings)

    controller = CrawlController(adapter, request)
    events: List[Event] = []
    async with aclosing(controller.run()) as crawl:
        async for event in crawl:
            events.append(event)

    if controller.outcome.failed:
        logger.warning(
            "[%s] Returning %d partial result(s) after abort: %s",
            adapter.name,
            len(events),
            controller.reason,
        )
    return events


# --------------------------------------------------------------------------- #
# Streaming
# --------------------------------------------------------------------------- #
class EventStream:
    """Single-producer / single-consumer channel for one streaming crawl.

    The producer calls :meth:`send` per event and then exactly one of
    :meth:`complete` / :meth:`fail`. Every send checks-and-sets the
    ``ended`` flag first, so nothing is enqueued after a terminal message.
    The consumer iterates the handle and receives the items followed by a
    single terminal :class:`~scout.models.StreamMessage`.
    """

    def __init__(self, *, timeout: Optional[float] = None) -> None:
        self._queue: "asyncio.Queue[StreamMessage]" = asyncio.Queue()
        self._ended = False
        self._drained = False
        self._delivered = 0
        self._timeout = timeout
        self._deadline = asyncio.get_running_loop().time() + timeout if timeout else None
        self.terminal: Optional[StreamMessage] = None

    # --------------------------- producer side ---------------------------- #
    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def delivered(self) -> int:
        return self._delivered

    def _offer(self, message: StreamMessage) -> bool:
        if self._ended:
            return False
        if message.terminal:
            self._ended = True
            self.terminal = message
        else:
            self._delivered += 1
        self._queue.put_nowait(message)
        return True

    def send(self, event: Event) -> bool:
        """Queue *event*. Returns False once the stream has ended."""
        return self._offer(StreamMessage.item(event))

    def complete(self) -> bool:
        return self._offer(StreamMessage.done())

    def fail(self, reason: str) -> bool:
        return self._offer(StreamMessage.error(reason))

    # --------------------------- consumer side ---------------------------- #
    def close(self, reason: str = "consumer disconnected") -> None:
        """End the stream from the receiving side; the producer stops at its next send."""
        if self.fail(reason):
            logger.info("Stream closed by consumer: %s", reason)

    async def receive(self) -> StreamMessage:
        if self._deadline is None:
            message = await self._queue.get()
        else:
            remaining = max(0.0, self._deadline - asyncio.get_running_loop().time())
            try:
                message = await asyncio.wait_for(self._queue.get(), timeout=remaining)
            except asyncio.TimeoutError:
                if self.fail(f"timeout after {self._timeout:.0f}s"):
                    logger.warning("Stream timed out after %.0fs", self._timeout)
                message = self._queue.get_nowait()
        if message.terminal:
            self._drained = True
        return message

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> StreamMessage:
        if self._drained:
            raise StopAsyncIteration
        return await self.receive()


async def _produce(controller: CrawlController, channel: EventStream) -> None:
    name = controller.adapter.name
    try:
        async with aclosing(controller.run()) as crawl:
            async for event in crawl:
                if not channel.send(event):
                    logger.info("[%s] Stream already ended, stopping crawl", name)
                    break
    except asyncio.CancelledError:
        channel.fail("cancelled")
        raise

    if controller.outcome.failed:
        channel.fail(controller.reason or "crawl aborted")
    elif channel.complete():
        logger.info("[%s] Stream completed - total events sent: %d", name, channel.delivered)


async def open_stream(
    source: Source,
    domain_filter: Optional[str] = "",
    location_filter: Optional[str] = "",
    target_count: Optional[int] = None,
    *,
    settings: Optional[Settings] = None,
    scheduler: Optional[WorkerScheduler] = None,
    registry: Optional[Registry] = None,
) -> EventStream:
    """Dispatch a crawl onto *scheduler* and return its channel."""
    settings = settings or Settings()
    scheduler = scheduler or default_scheduler()
    adapter = resolve_adapter(source, settings, registry)
    request = build_request(domain_filter, location_filter, target_count, settings)

    channel = EventStream(timeout=settings.stream.timeout_s)
    controller = CrawlController(adapter, request)
    logger.info(
        "[%s] Stream opened - domain: %s, location: %s, count: %d",
        adapter.name,
        request.domain or "ALL",
        request.location or "ALL",
        request.count,
    )
    await scheduler.dispatch(lambda: _produce(controller, channel), name=f"stream-{adapter.name}")
    return channel


async def _call(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


async def stream(
    source: Source,
    domain_filter: Optional[str],
    location_filter: Optional[str],
    target_count: Optional[int],
    on_event: Callable[[Event], Any],
    on_complete: Callable[[Optional[str]], Any],
    *,
    settings: Optional[Settings] = None,
    scheduler: Optional[WorkerScheduler] = None,
    registry: Optional[Registry] = None,
) -> None:
    """Stream a crawl through callbacks.

    ``on_event(event)`` runs once per delivered event; ``on_complete(error)``
    runs exactly once at the end with ``None`` on success or the failure
    reason. Either callback may be a coroutine function. An exception from
    ``on_event`` counts as a failed send: the stream ends with an error and
    the crawl stops.
    """
    try:
        channel = await open_stream(
            source,
            domain_filter,
            location_filter,
            target_count,
            settings=settings,
            scheduler=scheduler,
            registry=registry,
        )
    except UnknownSourceError as e:
        logger.error("Stream rejected: %s", e)
        await _call(on_complete, str(e))
        return

    error: Optional[str] = None
    async for message in channel:
        if message.kind == "item":
            try:
                await _call(on_event, message.event)
            except Exception as e:  # noqa: BLE001
                logger.error("Send failed after %d event(s): %s", channel.delivered, e)
                error = f"send failed: {e}"
                channel.close(error)
                break
        elif message.kind == "error":
            error = message.reason
    await _call(on_complete, error)
