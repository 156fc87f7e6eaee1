from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vancal.database import get_session
from vancal.models import Event
from vancal.schemas import EventOut
from vancal.services.date_parser import VANCOUVER_TZ

router = APIRouter(prefix="/api/events", tags=["events"])


def _day_start_utc(day: date) -> datetime:
    """Midnight Vancouver time on *day*, as naive UTC like the stored values."""
    local = datetime.combine(day, time.min, tzinfo=VANCOUVER_TZ)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


@router.get("", response_model=list[EventOut])
async def list_events(
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    venue_id: str | None = Query(None),
    event_type: str | None = Query(None),
    limit: int = Query(500, ge=1, le=5000),
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Event).order_by(Event.date).limit(limit)
    if date_from:
        stmt = stmt.where(Event.date >= _day_start_utc(date_from))
    if date_to:
        stmt = stmt.where(Event.date < _day_start_utc(date_to + timedelta(days=1)))
    if venue_id:
        stmt = stmt.where(Event.venue_id == venue_id)
    if event_type:
        stmt = stmt.where(Event.event_type == event_type.strip().lower())

    result = await session.execute(stmt)
    return result.scalars().all()
