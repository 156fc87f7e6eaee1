"""Command-line entry point.

    vancal scrape [--venue ID] [--save] [--json]
    vancal venues
    vancal seed
    vancal verify
    vancal serve [--host HOST] [--port PORT]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import timezone

from sqlalchemy import select

from vancal.config import settings
from vancal.log import setup_logging
from vancal.schemas import ScrapeReport
from vancal.services.date_parser import format_for_display
from vancal.venues.registry import get_enabled_venues, get_venue, list_venues

logger = logging.getLogger(__name__)

STATUS_LABELS = {"success": "OK  ", "error": "FAIL", "skipped": "SKIP"}


def print_summary(report: ScrapeReport, inserted: dict[str, int] | None = None) -> None:
    print("=" * 40)
    print("SUMMARY".center(40))
    print("=" * 40)
    print(f"  Total events: {report.total_events}")
    print(f"  Duration: {report.duration_s:.1f}s")
    print()
    for result in report.results:
        line = (
            f"  [{STATUS_LABELS[result.status]}] {result.venue_id}: "
            f"{len(result.events)} events ({result.duration_ms}ms)"
        )
        if inserted is not None:
            line += f", {inserted.get(result.venue_id, 0)} new"
        print(line)
        if result.error_message:
            print(f"         {result.error_message}")
    print("=" * 40)


async def _scrape(args) -> int:
    from vancal.services.pipeline import run_pipeline

    if args.venue:
        venue = get_venue(args.venue)
        if venue is None:
            print(f"Error: no venue registered as '{args.venue}'.", file=sys.stderr)
            print(f"Available venues: {', '.join(v.id for v in list_venues())}", file=sys.stderr)
            return 1
        venues = [venue]
    else:
        venues = get_enabled_venues()

    if not venues:
        print("No enabled venues.")
        return 0

    print(f"Scraping {len(venues)} venue(s): {', '.join(v.name for v in venues)}")
    report = await run_pipeline(venues, deadline_s=args.deadline)

    inserted = None
    if args.save:
        from vancal.database import init_db
        from vancal.services.store import persist_report

        await init_db()
        inserted = await persist_report(report, venues)

    print_summary(report, inserted)
    if args.json:
        print(json.dumps([e.model_dump(mode="json") for e in report.events], indent=2))

    return 1 if any(r.status == "error" for r in report.results) else 0


async def _seed(args) -> int:
    from vancal.database import async_session, init_db
    from vancal.services.store import upsert_venues

    await init_db()
    async with async_session() as session:
        added = await upsert_venues(session, list_venues())
    print(f"Seeded {added} new venue(s), {len(list_venues())} registered.")
    return 0


async def _verify(args) -> int:
    from vancal.database import async_session, init_db
    from vancal.models import Event, ScrapeLog

    await init_db()
    async with async_session() as session:
        events = (
            await session.execute(select(Event).order_by(Event.date).limit(args.limit))
        ).scalars().all()
        logs = (
            await session.execute(
                select(ScrapeLog).order_by(ScrapeLog.timestamp.desc()).limit(args.limit)
            )
        ).scalars().all()

    print(f"Found {len(events)} events (sample):")
    for e in events:
        print(f"  - {e.title} ({format_for_display(e.date.replace(tzinfo=timezone.utc))})")
    print(f"\nFound {len(logs)} scrape logs:")
    for log in logs:
        print(f"  - {log.venue_id}: {log.status} ({log.items_found} items)")
    return 0


def _venues(args) -> int:
    for v in list_venues():
        state = "enabled" if v.enabled else "disabled"
        mode = "browser" if v.render else "http"
        print(f"{v.id:<20} {v.name:<20} {state:<9} {mode:<8} {v.url}")
    return 0


def _serve(args) -> int:
    import uvicorn

    uvicorn.run("vancal.main:app", host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="vancal",
        description="Scrape Vancouver venue calendars into normalized events",
    )
    parser.add_argument(
        "--log-level", default=settings.log_level, metavar="LEVEL",
        help=f"Logging level (default: {settings.log_level})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sp_scrape = subparsers.add_parser("scrape", help="Run venue scrapers")
    sp_scrape.add_argument("--venue", metavar="ID", help="Only scrape this venue")
    sp_scrape.add_argument("--save", action="store_true", help="Store new events in the database")
    sp_scrape.add_argument("--json", action="store_true", help="Print normalized events as JSON")
    sp_scrape.add_argument(
        "--deadline", type=float, default=None, metavar="SECONDS",
        help="Abort the whole run after this many seconds",
    )

    subparsers.add_parser("venues", help="List registered venues")
    subparsers.add_parser("seed", help="Create the database and venue rows")

    sp_verify = subparsers.add_parser("verify", help="Show a sample of stored events and logs")
    sp_verify.add_argument("--limit", type=int, default=5)

    sp_serve = subparsers.add_parser("serve", help="Run the HTTP API")
    sp_serve.add_argument("--host", default="127.0.0.1")
    sp_serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "venues":
        return _venues(args)
    if args.command == "serve":
        return _serve(args)

    handlers = {"scrape": _scrape, "seed": _seed, "verify": _verify}
    return asyncio.run(handlers[args.command](args))


if __name__ == "__main__":
    sys.exit(main())
