from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from vancal.database import get_session
from vancal.models import Venue
from vancal.schemas import VenueOut

router = APIRouter(prefix="/api/venues", tags=["venues"])


@router.get("", response_model=list[VenueOut])
async def list_venues(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(Venue).order_by(Venue.name))
    return result.scalars().all()
