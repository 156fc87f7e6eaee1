from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Query, Security
from fastapi.security import APIKeyHeader
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vancal.config import settings
from vancal.database import get_session
from vancal.models import ScrapeLog
from vancal.schemas import ScrapeLogOut, ScrapeRunOut, VenueRunOut
from vancal.services.pipeline import RUN_LOCK, run_pipeline
from vancal.services.store import persist_report
from vancal.venues.registry import get_enabled_venues, get_venue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scrape"])

_trigger_key = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_trigger_key(key: str | None = Security(_trigger_key)) -> None:
    """Guard for starting scrapes. An empty API_KEY leaves triggering open."""
    if not settings.api_key:
        return
    if not key or not secrets.compare_digest(key, settings.api_key):
        raise HTTPException(401, "A valid X-API-Key header is required to trigger a scrape")


@router.post("/scrape", response_model=ScrapeRunOut, dependencies=[Depends(require_trigger_key)])
async def trigger_scrape(
    venue_id: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
):
    """Scrape enabled venues (or one venue), store new events and return a summary."""
    if venue_id:
        venue = get_venue(venue_id)
        if not venue:
            raise HTTPException(404, f"Unknown venue '{venue_id}'")
        venues = [venue]
    else:
        venues = get_enabled_venues()

    if RUN_LOCK.locked():
        raise HTTPException(409, "A scrape is already running")

    async with RUN_LOCK:
        report = await run_pipeline(venues)
        inserted = await persist_report(report, venues, session)

    results = [
        VenueRunOut(
            venue_id=r.venue_id,
            status=r.status,
            found=len(r.events),
            inserted=inserted.get(r.venue_id, 0),
            duration_ms=r.duration_ms,
            error_message=r.error_message,
        )
        for r in report.results
    ]
    return ScrapeRunOut(
        started_at=report.started_at,
        finished_at=report.finished_at,
        total_events=report.total_events,
        inserted_events=sum(inserted.values()),
        results=results,
        errors=[f"{r.venue_id}: {r.error_message}" for r in report.results if r.status == "error"],
    )


@router.get("/scrape-logs", response_model=list[ScrapeLogOut])
async def list_scrape_logs(
    venue_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=1000),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(ScrapeLog).order_by(ScrapeLog.timestamp.desc()).limit(limit)
    if venue_id:
        stmt = stmt.where(ScrapeLog.venue_id == venue_id)
    result = await session.execute(stmt)
    return result.scalars().all()
