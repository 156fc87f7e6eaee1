"""Deduplication hash for normalized events."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime

_WHITESPACE_RE = re.compile(r"\s+")

HASH_DELIMITER = "|"


def normalize_title(title: str) -> str:
    return _WHITESPACE_RE.sub(" ", title.lower().strip())


def generate_event_hash(venue_id: str, date: datetime, title: str) -> str:
    """SHA-256 hex digest of venue, civil day and normalized title.

    The day is taken in the datetime's own zone, so two listings on the same
    Vancouver evening collapse to one event whatever their start times.
    """
    day = date.date().isoformat()
    payload = HASH_DELIMITER.join((venue_id, day, normalize_title(title)))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
