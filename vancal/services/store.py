"""Persistence for scrape output: insert-if-hash-absent plus an audit log."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vancal import metrics
from vancal.database import async_session
from vancal.models import Event, ScrapeLog, Venue
from vancal.schemas import NormalizedEvent, ScrapeReport, ScrapeResult
from vancal.venues.base import VenuePlugin

logger = logging.getLogger(__name__)


def _to_utc_naive(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


async def upsert_venues(session: AsyncSession, venues: Iterable[VenuePlugin]) -> int:
    """Make sure every plugin has a venues row; returns how many were added."""
    added = 0
    for plugin in venues:
        venue = await session.get(Venue, plugin.id)
        if venue:
            venue.name = plugin.name
            venue.url = plugin.url
            venue.enabled = plugin.enabled
        else:
            session.add(Venue(
                id=plugin.id, name=plugin.name, url=plugin.url, enabled=plugin.enabled,
            ))
            added += 1
    await session.commit()
    if added:
        logger.info("Seeded %d venue(s)", added)
    return added


async def existing_hashes(session: AsyncSession, venue_id: str) -> set[str]:
    result = await session.execute(select(Event.hash).where(Event.venue_id == venue_id))
    return set(result.scalars().all())


async def save_new_events(
    session: AsyncSession, venue_id: str, events: Sequence[NormalizedEvent]
) -> int:
    """Insert events whose hash is not stored yet for *venue_id*."""
    if not events:
        return 0

    known = await existing_hashes(session, venue_id)
    new_events = [e for e in events if e.hash not in known]
    for e in new_events:
        session.add(Event(
            id=e.id,
            venue_id=venue_id,
            title=e.title,
            date=_to_utc_naive(e.date),
            doors_time=_to_utc_naive(e.doors_time),
            url=e.url,
            price=e.price,
            is_free=e.is_free,
            event_type=e.event_type.value,
            hash=e.hash,
        ))
    await session.commit()

    if new_events:
        logger.info("%s: inserted %d new events", venue_id, len(new_events))
        metrics.EVENTS_INSERTED.labels(venue_id).inc(len(new_events))
    else:
        logger.info("%s: no new events (all %d duplicates)", venue_id, len(events))
    return len(new_events)


async def log_scrape(
    session: AsyncSession, result: ScrapeResult, timestamp: datetime | None = None
) -> ScrapeLog:
    entry = ScrapeLog(
        venue_id=result.venue_id,
        timestamp=_to_utc_naive(timestamp) or datetime.utcnow(),
        status=result.status,
        items_found=len(result.events),
        error_message=result.error_message,
        duration_ms=result.duration_ms,
    )
    session.add(entry)
    await session.commit()
    return entry


async def persist_report(
    report: ScrapeReport,
    venues: Iterable[VenuePlugin],
    session: AsyncSession | None = None,
) -> dict[str, int]:
    """Write a run's audit rows and new events. Returns inserted counts per venue."""
    if session is None:
        async with async_session() as own_session:
            return await persist_report(report, venues, own_session)

    await upsert_venues(session, venues)

    by_venue: dict[str, list[NormalizedEvent]] = {}
    for event in report.events:
        by_venue.setdefault(event.venue_id, []).append(event)

    inserted: dict[str, int] = {}
    for result in report.results:
        await log_scrape(session, result, report.finished_at)
        inserted[result.venue_id] = await save_new_events(
            session, result.venue_id, by_venue.get(result.venue_id, [])
        )
    return inserted
