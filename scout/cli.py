"""
Command-line entry point: run one crawl and print or save the events as JSON.

Usage: python -m scout.cli <source> [--domain D] [--location L] [--count N]
                                    [--stream] [--output FILE] [--timestamp]
                                    [--config PATH] [--debug]
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from .config import Settings, load_settings
from .delivery import resolve_adapter, scrape, stream
from .errors import UnknownSourceError
from .models import Event

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scout",
        description="Discover hackathons from a listing source.",
    )
    parser.add_argument("source", help="Source adapter name (e.g. devpost, devpost_api, mlh)")
    parser.add_argument("--domain", default="", help="Keyword the title must contain")
    parser.add_argument("--location", default="", help="Location filter; 'remote' also matches online/worldwide")
    parser.add_argument("--count", type=int, default=None, help="Number of events to collect")
    parser.add_argument("--stream", action="store_true", help="Print each event as soon as it is found")
    parser.add_argument("--output", "-o", default=None, help="Write the events to this JSON file")
    parser.add_argument("--timestamp", action="store_true", help="Append the current time to the output file name")
    parser.add_argument("--config", default=None, help="YAML settings file (default: $SCOUT_CONFIG or scout.yml)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def output_path(name: str, timestamp: bool, now: Optional[datetime] = None) -> Path:
    """``events.json`` -> ``events_2025-01-31_12-00-00.json`` when *timestamp* is set."""
    path = Path(name)
    if not timestamp:
        return path
    stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
    suffix = path.suffix or ".json"
    return path.with_name(f"{path.stem}_{stamp}{suffix}")


def dump_events(events: Sequence[Event]) -> str:
    return json.dumps([event.model_dump(mode="json") for event in events], indent=2, ensure_ascii=False)


async def collect(args: argparse.Namespace, settings: Settings) -> List[Event]:
    if not args.stream:
        return await scrape(args.source, args.domain, args.location, args.count, settings=settings)

    # Unknown names raise here rather than arriving through on_complete
    adapter = resolve_adapter(args.source, settings)
    events: List[Event] = []
    errors: List[Optional[str]] = []

    def on_event(event: Event) -> None:
        events.append(event)
        print(json.dumps(event.model_dump(mode="json"), ensure_ascii=False), flush=True)

    await stream(
        adapter,
        args.domain,
        args.location,
        args.count,
        on_event,
        errors.append,
        settings=settings,
    )
    if errors and errors[0]:
        logger.warning("Stream ended with error: %s", errors[0])
    return events


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )

    settings = load_settings(args.config)
    try:
        events = await collect(args, settings)
    except UnknownSourceError as e:
        logger.error("%s", e)
        return 2

    if args.output:
        path = output_path(args.output, args.timestamp)
        path.write_text(dump_events(events), encoding="utf-8")
        logger.info("Saved %d event(s) to %s", len(events), path)
    elif not args.stream:
        print(dump_events(events))

    logger.info(
        "Summary: %d event(s) from %s (domain=%s, location=%s)",
        len(events),
        args.source,
        args.domain or "ALL",
        args.location or "ALL",
    )
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
