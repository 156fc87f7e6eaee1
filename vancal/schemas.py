from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class EventType(str, Enum):
    MUSIC = "music"
    COMEDY = "comedy"
    THEATRE = "theatre"
    SCREENING = "screening"
    OTHER = "other"


ScrapeStatus = Literal["success", "error", "skipped"]


# --- Venues ---
class VenueDescriptor(BaseModel):
    id: str
    name: str
    url: str
    enabled: bool = True

    model_config = {"frozen": True}


class VenueOut(BaseModel):
    id: str
    name: str
    url: str
    enabled: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# --- Scraping ---
class RawEvent(BaseModel):
    """An event exactly as a venue plugin found it.

    Nothing here is validated beyond a non-empty title; dates and prices
    are free text until the pipeline normalizes them.
    """
    title: str
    date_raw: str
    url: str | None = None
    price_raw: str | None = None
    doors_raw: str | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v


class NormalizedEvent(BaseModel):
    id: str
    venue_id: str
    title: str
    date: datetime
    doors_time: datetime | None = None
    url: str | None = None
    price: int | None = None  # cents
    is_free: bool = False
    event_type: EventType = EventType.OTHER
    hash: str

    model_config = {"frozen": True}


class ScrapeResult(BaseModel):
    venue_id: str
    status: ScrapeStatus
    events: list[RawEvent] = Field(default_factory=list)
    error_message: str | None = None
    duration_ms: int = 0
    attempts: int = 0

    model_config = {"frozen": True}


class ScrapeReport(BaseModel):
    started_at: datetime
    finished_at: datetime
    results: list[ScrapeResult] = Field(default_factory=list)
    events: list[NormalizedEvent] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def total_events(self) -> int:
        return len(self.events)

    @property
    def duration_s(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


# --- API ---
class EventOut(BaseModel):
    id: str
    venue_id: str
    title: str
    date: datetime
    doors_time: datetime | None
    url: str | None
    price: int | None
    is_free: bool
    event_type: str
    hash: str

    model_config = {"from_attributes": True}


class ScrapeLogOut(BaseModel):
    id: str
    venue_id: str
    timestamp: datetime
    status: str
    items_found: int
    error_message: str | None
    duration_ms: int | None

    model_config = {"from_attributes": True}


class VenueRunOut(BaseModel):
    venue_id: str
    status: str
    found: int
    inserted: int = 0
    duration_ms: int
    error_message: str | None = None


class ScrapeRunOut(BaseModel):
    started_at: datetime
    finished_at: datetime
    total_events: int
    inserted_events: int
    results: list[VenueRunOut]
    errors: list[str] = []
