"""Fox Cabaret.

Target: https://www.foxcabaret.com/monthly-calendar (Squarespace YUI3
calendar block). Calendar cells are ``td.yui3-calendar-day`` with the day
number in ``data-pnum``; each ``li.item`` links to a detail page under
/monthly-calendar-list/. Squarespace renders every event twice (list item and
flyout), so entries are collapsed by href.

Detail pages carry the real date (``time.event-date``), start time
(``time.event-time-12hr``) and, in the body text, doors time and price.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from playwright.async_api import Page

from vancal.schemas import RawEvent
from vancal.venues.base import VenuePlugin
from vancal.venues.registry import register_venue

logger = logging.getLogger(__name__)

BASE_URL = "https://www.foxcabaret.com"
MAX_DETAIL_PAGES = 50

DOORS_RE = re.compile(r"Doors[:\s]+(\d{1,2}[:.]\d{2}\s*(?:AM|PM)?)", re.IGNORECASE)
PRICE_RE = re.compile(r"\$(\d+(?:\.\d{2})?)")


@dataclass
class CalendarEntry:
    title: str
    time: str
    day: str
    href: str


@dataclass
class EventDetails:
    date_raw: str
    price_raw: str | None = None
    doors_raw: str | None = None


def parse_month_year(html: str) -> str:
    """Calendar header label, e.g. "January 2026"."""
    soup = BeautifulSoup(html, "html.parser")
    table = soup.select_one("table.yui3-calendar-grid")
    return (table.get("aria-label") or "").strip() if table else ""


def parse_calendar(html: str) -> list[CalendarEntry]:
    """Calendar entries in grid order, duplicates (same href) removed."""
    soup = BeautifulSoup(html, "html.parser")
    entries: list[CalendarEntry] = []
    seen: set[str] = set()

    for cell in soup.select("td.yui3-calendar-day"):
        day = cell.get("data-pnum") or ""
        for item in cell.select("li.item"):
            link = item.select_one("a.item-link")
            if not link:
                continue
            title_el = link.select_one(".item-title")
            time_el = link.select_one(".item-time--12hr")
            title = title_el.get_text(strip=True) if title_el else ""
            href = link.get("href") or ""
            if not title or href in seen:
                continue
            seen.add(href)
            entries.append(CalendarEntry(
                title=title,
                time=time_el.get_text(strip=True) if time_el else "",
                day=day,
                href=href,
            ))

    return entries


def parse_details(html: str) -> EventDetails:
    """Date, doors and price from an event detail page."""
    soup = BeautifulSoup(html, "html.parser")
    article = soup.select_one("article.eventitem")
    if not article:
        return EventDetails(date_raw="")

    date_el = article.select_one("time.event-date")
    time_el = article.select_one("time.event-time-12hr")
    date_raw = " ".join(
        el.get_text(strip=True) for el in (date_el, time_el) if el and el.get_text(strip=True)
    )

    body = article.get_text(" ", strip=True)
    doors = DOORS_RE.search(body)
    price = PRICE_RE.search(body)
    return EventDetails(
        date_raw=date_raw,
        price_raw=price.group(0) if price else None,
        doors_raw=doors.group(1).replace(".", ":") if doors else None,
    )


def calendar_date_raw(month_year: str, entry: CalendarEntry) -> str:
    """Rebuild a parseable date ("January 10, 2026 8:00 PM") from grid data."""
    parts = month_year.split()
    if len(parts) == 2 and entry.day:
        month, year = parts
        return f"{month} {entry.day}, {year} {entry.time}".strip()
    return f"{month_year} {entry.day} {entry.time}".strip()


@register_venue
class FoxCabaret(VenuePlugin):
    id = "fox-cabaret"
    name = "Fox Cabaret"
    url = "https://www.foxcabaret.com/monthly-calendar"

    async def extract(self, page: Page | None, html: str) -> list[RawEvent]:
        page = self._require_page(page)
        await page.wait_for_selector(".sqs-block-calendar", timeout=15000)
        await page.wait_for_timeout(1500)  # YUI hydration

        calendar_html = await page.content()
        month_year = parse_month_year(calendar_html)
        entries = parse_calendar(calendar_html)
        logger.info(
            "%s: %d calendar entries for %s, fetching details",
            self.name, len(entries), month_year or "unknown month",
        )

        if len(entries) > MAX_DETAIL_PAGES:
            logger.warning(
                "%s: %d calendar entries, only the first %d will be scraped",
                self.name, len(entries), MAX_DETAIL_PAGES,
            )

        events: list[RawEvent] = []
        try:
            for entry in entries[:MAX_DETAIL_PAGES]:
                events.append(await self._enrich(page, month_year, entry))
        finally:
            # Leave the page on the calendar for whoever uses it next
            await page.goto(self.url, wait_until="domcontentloaded")

        logger.info("%s: extracted %d events", self.name, len(events))
        return events

    async def _enrich(self, page: Page, month_year: str, entry: CalendarEntry) -> RawEvent:
        event_url = urljoin(BASE_URL, entry.href)
        fallback_date = calendar_date_raw(month_year, entry)
        try:
            await page.goto(event_url, wait_until="domcontentloaded", timeout=15000)
            await page.wait_for_timeout(500)
            details = parse_details(await page.content())
        except Exception as e:
            logger.warning("%s: failed to fetch details for %r: %s", self.name, entry.title, e)
            return RawEvent(title=entry.title, date_raw=fallback_date, url=event_url)

        return RawEvent(
            title=entry.title,
            date_raw=details.date_raw or fallback_date,
            url=event_url,
            price_raw=details.price_raw,
            doors_raw=details.doors_raw,
        )
