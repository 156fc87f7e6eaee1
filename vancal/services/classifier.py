"""Event type classification and price parsing - keyword heuristics only."""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple, Optional

from vancal.schemas import EventType

# Declaration order is the tie-break order.
KEYWORDS: dict[EventType, list[str]] = {
    EventType.MUSIC: [
        "concert", "live music", "band", "dj", "album", "tour", "singer",
        "jazz", "rock", "punk", "metal", "hip hop", "rap", "electronic",
        "folk", "country", "indie", "funk", "soul", "r&b", "reggae",
        "orchestra", "symphony", "acoustic", "vinyl", "record",
    ],
    EventType.COMEDY: [
        "comedy", "stand-up", "standup", "comedian", "improv", "sketch",
        "laugh", "funny", "comic", "open mic comedy", "roast",
    ],
    EventType.THEATRE: [
        "theatre", "theater", "play", "musical", "drama", "stage",
        "performance", "act", "production", "playwright", "ballet",
        "dance", "opera", "burlesque", "cabaret", "drag",
    ],
    EventType.SCREENING: [
        "film", "movie", "screening", "cinema", "documentary", "short",
        "premiere", "watch party", "matinee",
    ],
}

FREE_EXACT = {"pwyc", "pay what you can", "$0", "0"}

_PRICE_RE = re.compile(r"\$?(\d+(?:\.\d{2})?)")


class PriceInfo(NamedTuple):
    price: Optional[int]  # cents
    is_free: bool


def score_event_type(title: str) -> dict[EventType, int]:
    """Number of keywords from each category found in *title*."""
    normalized = title.lower()
    return {
        event_type: sum(1 for keyword in keywords if keyword in normalized)
        for event_type, keywords in KEYWORDS.items()
    }


def classify_event_type(title: str) -> EventType:
    """Return the category with the most keyword hits.

    Substring matching is deliberately naive ("dance" counts as theatre,
    "act" matches "acts"); ties go to the category declared first and no
    hits at all means ``other``.
    """
    best_type = EventType.OTHER
    best_score = 0
    for event_type, score in score_event_type(title).items():
        if score > best_score:
            best_type, best_score = event_type, score
    return best_type


def parse_price(raw: str | None) -> PriceInfo:
    """Parse a price string into integer cents.

    Handles "$15", "$15.00", "15", "$15-$25" (first number wins) and the
    usual free markers.
    """
    if not raw:
        return PriceInfo(None, False)

    normalized = raw.lower().strip()
    if "free" in normalized or normalized in FREE_EXACT:
        return PriceInfo(0, True)

    match = _PRICE_RE.search(normalized)
    if match:
        cents = (Decimal(match.group(1)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return PriceInfo(int(cents), False)

    return PriceInfo(None, False)
