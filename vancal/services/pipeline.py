"""Raw events -> normalized events, and the end-to-end scrape run.

``normalize_events`` is the only place raw events become ``NormalizedEvent``;
the CLI, the API and the scheduler all go through ``run_pipeline``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Sequence

from vancal import metrics
from vancal.errors import DateParseError
from vancal.schemas import NormalizedEvent, RawEvent, ScrapeReport, ScrapeResult
from vancal.services.classifier import classify_event_type, parse_price
from vancal.services.date_parser import parse_date, try_parse_date
from vancal.services.fetcher import FetchSession, ScraperConfig
from vancal.services.fingerprint import generate_event_hash
from vancal.services.orchestrator import ScrapeOrchestrator
from vancal.venues.base import VenuePlugin

logger = logging.getLogger(__name__)

# Held for the whole of a scheduled or API-triggered run (scrape and persist).
# Only one run per process may own a browser session and rate limiter.
RUN_LOCK = asyncio.Lock()


def normalize_event(
    venue_id: str, raw: RawEvent, reference: datetime | None = None
) -> NormalizedEvent | None:
    """Normalize one raw event; None if its date cannot be parsed."""
    try:
        date = parse_date(raw.date_raw, reference)
    except DateParseError:
        logger.warning(
            "Skipping event %r at %s - could not parse date %r", raw.title, venue_id, raw.date_raw
        )
        metrics.DATE_PARSE_FAILURES.labels(venue_id).inc()
        return None

    price = parse_price(raw.price_raw)
    return NormalizedEvent(
        id=str(uuid.uuid4()),
        venue_id=venue_id,
        title=raw.title,
        date=date,
        # Doors text is usually time-only; anchor it to the show's day
        doors_time=try_parse_date(raw.doors_raw, date),
        url=raw.url or None,
        price=price.price,
        is_free=price.is_free,
        event_type=classify_event_type(raw.title),
        hash=generate_event_hash(venue_id, date, raw.title),
    )


def normalize_events(
    venue_id: str, raws: Iterable[RawEvent], reference: datetime | None = None
) -> list[NormalizedEvent]:
    """Normalize a venue's raw events, dropping bad dates and in-batch duplicates."""
    normalized: list[NormalizedEvent] = []
    seen: set[str] = set()
    for raw in raws:
        event = normalize_event(venue_id, raw, reference)
        if event is None:
            continue
        if event.hash in seen:
            logger.debug("Dropping duplicate listing %r at %s", raw.title, venue_id)
            continue
        seen.add(event.hash)
        normalized.append(event)
    return normalized


def normalize_results(
    results: Iterable[ScrapeResult], reference: datetime | None = None
) -> list[NormalizedEvent]:
    events: list[NormalizedEvent] = []
    for result in results:
        if result.status == "success":
            venue_events = normalize_events(result.venue_id, result.events, reference)
            logger.info("%s: normalized %d of %d events",
                        result.venue_id, len(venue_events), len(result.events))
            events.extend(venue_events)
    return events


async def run_pipeline(
    venues: Sequence[VenuePlugin],
    config: ScraperConfig | None = None,
    reference: datetime | None = None,
    deadline_s: float | None = None,
    session: FetchSession | None = None,
) -> ScrapeReport:
    """Scrape *venues* on one fetch session and normalize what they return.

    The session is always closed before returning, including when the
    optional overall deadline expires (``asyncio.TimeoutError`` propagates).
    """
    started_at = datetime.now(timezone.utc)
    session = session or FetchSession(config)
    logger.info("Scrape run starting for %d venue(s)", len(venues))

    async with session:
        orchestrator = ScrapeOrchestrator(session, config)
        results = await asyncio.wait_for(orchestrator.run_all(venues), timeout=deadline_s)

    events = normalize_results(results, reference)
    report = ScrapeReport(
        started_at=started_at,
        finished_at=datetime.now(timezone.utc),
        results=results,
        events=events,
    )
    logger.info(
        "Scrape run finished: %d events from %d venue(s) in %.1fs",
        report.total_events, len(results), report.duration_s,
    )
    return report
