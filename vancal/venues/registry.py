from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vancal.venues.base import VenuePlugin

VENUE_REGISTRY: dict[str, type[VenuePlugin]] = {}


def register_venue(cls):
    """Class decorator: register a venue plugin under its ``id``."""
    if not cls.id:
        raise ValueError(f"{cls.__name__} has no id")
    if cls.id in VENUE_REGISTRY:
        raise ValueError(f"Duplicate venue id {cls.id!r}")
    VENUE_REGISTRY[cls.id] = cls
    return cls


def get_venue(venue_id: str) -> VenuePlugin | None:
    """Return a plugin instance for *venue_id*, or None if unknown."""
    cls = VENUE_REGISTRY.get(venue_id)
    return cls() if cls else None


def list_venues() -> list[VenuePlugin]:
    """All registered plugins, in registration order."""
    return [cls() for cls in VENUE_REGISTRY.values()]


def get_enabled_venues() -> list[VenuePlugin]:
    return [v for v in list_venues() if v.enabled]
