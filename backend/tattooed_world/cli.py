"""
Tattooed World Backend — Command Line
=======================================

What:  Operator commands that run outside the API server.
How:   argparse subcommands, each an async function driven by asyncio.run().
Who:   `tattooed-world` console script (cron jobs, one-off backfills).

Usage:
    tattooed-world geocode-studios [--limit N] [--delay SECONDS]
    tattooed-world cache-clear

Exit codes: 0 success, 1 the command failed (for geocode-studios: at least
one studio failed, or geocoding is not configured).
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from tattooed_world.database import async_session_factory, dispose_engine
from tattooed_world.exceptions import GeocodingUnavailableError
from tattooed_world.main import setup_logging
from tattooed_world.services.geocode_cache import geocode_cache
from tattooed_world.services.geocoder import geocoder
from tattooed_world.services.geocoding_batch import GeocodingBatchProcessor

logger = logging.getLogger(__name__)


async def geocode_studios(args: argparse.Namespace) -> int:
    processor = GeocodingBatchProcessor(
        geocoder,
        geocode_cache,
        async_session_factory,
        delay_seconds=args.delay,
    )
    try:
        report = await processor.run(limit=args.limit)
    except GeocodingUnavailableError as exc:
        logger.error("%s", exc.message)
        return 1
    finally:
        await dispose_engine()

    print(json.dumps(report.to_dict(), indent=2, default=str))
    return 1 if report.failed else 0


async def cache_clear(args: argparse.Namespace) -> int:
    try:
        async with async_session_factory() as db:
            memory_cleared, database_cleared = await geocode_cache.clear(db)
            await db.commit()
    finally:
        await dispose_engine()

    print(f"Cleared {memory_cleared} in-memory and {database_cleared} stored geocode entries")
    return 0


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tattooed-world",
        description="Tattooed World backend maintenance commands",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    geocode = commands.add_parser(
        "geocode-studios", help="Geocode every active studio that lacks coordinates"
    )
    geocode.add_argument(
        "--limit", type=positive_int, default=None, help="Process at most N studios (oldest first)"
    )
    geocode.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds between provider calls (default: GEOCODE_DELAY_SECONDS)",
    )
    geocode.set_defaults(handler=geocode_studios)

    clear = commands.add_parser("cache-clear", help="Empty both geocode cache levels")
    clear.set_defaults(handler=cache_clear)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(args.handler(args))


if __name__ == "__main__":
    sys.exit(main())
