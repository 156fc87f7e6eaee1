"""Free-text date parsing for Vancouver venue listings.

Venue sites print dates in a dozen shapes ("Friday, January 12, 2024 7:30 PM",
"Sunday January 4 12:30 pm", "Doors @ 7pm", "2024-01-12 19:30" ...).
``parse_date`` normalises the text, tries a fixed list of formats from most
to least specific, fills in a missing year and anchors the result to
America/Vancouver wall-clock time.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import NamedTuple
from zoneinfo import ZoneInfo

from vancal.errors import DateParseError

logger = logging.getLogger(__name__)

VANCOUVER_TZ = ZoneInfo("America/Vancouver")

# Days before the reference after which a year-less date rolls into next year
YEAR_ROLLOVER_DAYS = 14

# (strptime format, has_year, has_date) ordered most to least specific.
# Order matters: a shorter format must never get the chance to claim a
# string that a fuller one would have parsed.
DATE_FORMATS: list[tuple[str, bool, bool]] = [
    # Full formats with year
    ("%A, %B %d, %Y %I:%M %p", True, True),  # "Friday, January 12, 2024 7:30 PM"
    ("%B %d, %Y %I:%M %p", True, True),      # "January 12, 2024 7:30 PM"
    ("%b %d, %Y %I:%M %p", True, True),      # "Jan 12, 2024 7:30 PM"
    ("%B %d, %Y", True, True),               # "January 12, 2024"
    ("%b %d, %Y", True, True),               # "Jan 12, 2024"
    ("%Y-%m-%d %H:%M", True, True),          # "2024-01-12 19:30"
    ("%Y-%m-%d", True, True),                # "2024-01-12"
    # Without year
    ("%A, %B %d %I:%M %p", False, True),     # "Friday, January 12 7:30 PM"
    ("%A %B %d %I:%M %p", False, True),      # "Sunday January 4 12:30 pm"
    ("%B %d %I:%M %p", False, True),         # "January 12 7:30 PM"
    ("%b %d %I:%M %p", False, True),         # "Jan 12 7:30 PM"
    ("%A, %B %d", False, True),              # "Friday, January 12"
    ("%B %d", False, True),                  # "January 12"
    ("%b %d", False, True),                  # "Jan 12"
    # Time only
    ("%I:%M %p", False, False),              # "7:30 PM"
    ("%I %p", False, False),                 # "7 pm", also "7PM" after meridiem spacing
]

_WHITESPACE_RE = re.compile(r"\s+")
_COMMA_RE = re.compile(r",\s*")
_ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)
_MERIDIEM_RE = re.compile(r"(\d)(am|pm)\b", re.IGNORECASE)
_PREFIX_RE = re.compile(r"\b(?:doors?|show)\b\s*(?:@|at\b|:)?\s*", re.IGNORECASE)

_DOORS_RE = re.compile(
    r"doors?\s*(?:@|at|:)?\s*(\d{1,2}(?::\d{2})?\s*(?:am|pm)?)", re.IGNORECASE
)
_SHOW_RE = re.compile(
    r"(?:show|music|start)\s*(?:@|at|:)?\s*(\d{1,2}(?::\d{2})?\s*(?:am|pm)?)",
    re.IGNORECASE,
)


class DoorsAndShow(NamedTuple):
    doors: datetime | None
    show: datetime | None


def normalize_date_text(raw: str) -> str:
    """Apply the fixed clean-up steps that run before any format is tried."""
    text = _WHITESPACE_RE.sub(" ", raw.strip())
    text = _COMMA_RE.sub(", ", text)
    text = _ORDINAL_RE.sub(r"\1", text)
    text = text.replace(".", "")
    text = _MERIDIEM_RE.sub(r"\1 \2", text)
    text = _PREFIX_RE.sub("", text)
    return text.strip()


def _reference_local(reference: datetime | None) -> datetime:
    """Reference instant as naive Vancouver wall-clock time.

    Naive references are taken to already be Vancouver time.
    """
    if reference is None:
        return datetime.now(VANCOUVER_TZ).replace(tzinfo=None)
    if reference.tzinfo is None:
        return reference
    return reference.astimezone(VANCOUVER_TZ).replace(tzinfo=None)


def _add_years(value: datetime, years: int) -> datetime:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # Feb 29 into a non-leap year
        return value.replace(year=value.year + years, day=28)


def _set_year(value: datetime, year: int) -> datetime:
    try:
        return value.replace(year=year)
    except ValueError:
        return value.replace(year=year, day=28)


def infer_year(parsed: datetime, reference: datetime) -> datetime:
    """Give a year-less civil date the reference year, or the next one.

    Dates more than two weeks behind the reference are assumed to belong to
    next year (a January show listed in late December).
    """
    result = _set_year(parsed, reference.year)
    if result < reference - timedelta(days=YEAR_ROLLOVER_DAYS):
        result = _add_years(result, 1)
    return result


def _strptime(text: str, fmt: str, has_year: bool, ref_year: int) -> datetime:
    # Parsing a day-of-month without a year defaults to 1900, which rejects
    # Feb 29 and is deprecated; parse against the reference year instead.
    if has_year:
        return datetime.strptime(text, fmt)
    return datetime.strptime(f"{text} {ref_year}", f"{fmt} %Y")


def parse_date(raw: str, reference: datetime | None = None) -> datetime:
    """Parse a venue date string into an aware America/Vancouver datetime.

    Args:
        raw: Date/time text as scraped.
        reference: "Now" for year inference and time-only strings.
            Defaults to the current time.

    Raises:
        DateParseError: if no known format matches.
    """
    if not raw or not isinstance(raw, str):
        raise DateParseError(str(raw))

    normalized = normalize_date_text(raw)
    ref = _reference_local(reference)

    for fmt, has_year, has_date in DATE_FORMATS:
        try:
            parsed = _strptime(normalized, fmt, has_year, ref.year)
        except ValueError:
            continue

        if not has_date:
            parsed = parsed.replace(year=ref.year, month=ref.month, day=ref.day)
        elif not has_year:
            parsed = infer_year(parsed, ref)
        return parsed.replace(tzinfo=VANCOUVER_TZ)

    logger.debug("No date format matched %r (normalized %r)", raw, normalized)
    raise DateParseError(raw, normalized)


def try_parse_date(raw: str | None, reference: datetime | None = None) -> datetime | None:
    """Like ``parse_date`` but returns None for missing or unparseable input."""
    if not raw:
        return None
    try:
        return parse_date(raw, reference)
    except DateParseError:
        return None


def extract_doors_and_show(text: str, reference: datetime | None = None) -> DoorsAndShow:
    """Pull doors and show times out of text like "Doors 7pm, Show 8pm"."""
    doors_match = _DOORS_RE.search(text or "")
    show_match = _SHOW_RE.search(text or "")
    return DoorsAndShow(
        doors=try_parse_date(doors_match.group(1), reference) if doors_match else None,
        show=try_parse_date(show_match.group(1), reference) if show_match else None,
    )


def to_vancouver_iso(value: datetime) -> str:
    """ISO 8601 with the Vancouver offset, e.g. ``2024-01-12T19:30:00-08:00``."""
    return value.astimezone(VANCOUVER_TZ).isoformat(timespec="seconds")


def format_for_display(value: datetime) -> str:
    """Human-readable Vancouver time, e.g. ``Fri, Jan 12 @ 7:30 PM``."""
    local = value.astimezone(VANCOUVER_TZ)
    hour = local.hour % 12 or 12
    return f"{local:%a, %b} {local.day} @ {hour}:{local:%M %p}"
