from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vancal.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Venue(Base):
    __tablename__ = "venues"

    id: Mapped[str] = mapped_column(Text, primary_key=True)  # slug: "rickshaw-theatre"
    name: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    events: Mapped[List["Event"]] = relationship(back_populates="venue")


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (Index("idx_event_venue_date", "venue_id", "date"),)

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_uuid)
    venue_id: Mapped[str] = mapped_column(Text, ForeignKey("venues.id"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    # Datetimes are stored as naive UTC
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    doors_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # cents, None = unknown
    is_free: Mapped[bool] = mapped_column(Boolean, default=False)
    event_type: Mapped[str] = mapped_column(Text, default="other")
    hash: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    venue: Mapped["Venue"] = relationship(back_populates="events")


class ScrapeLog(Base):
    """Append-only audit trail, one row per venue per run."""

    __tablename__ = "scrape_logs"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_uuid)
    venue_id: Mapped[str] = mapped_column(Text, ForeignKey("venues.id"), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    status: Mapped[str] = mapped_column(Text, nullable=False)  # success, error, skipped
    items_found: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
