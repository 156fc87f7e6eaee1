"""Rio Theatre.

Target: https://riotheatre.ca/calendar/ - a month grid of ``.day`` blocks,
each labelled with a full date ("Thursday January 8") and holding
``.an-event`` entries (title + showtime). Entries are clickable divs without
usable hrefs, so the detail page (for URL and price) is reached by clicking
through and navigating back.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup
from playwright.async_api import Page

from vancal.schemas import RawEvent
from vancal.venues.base import VenuePlugin
from vancal.venues.registry import register_venue

logger = logging.getLogger(__name__)

SCHEDULE_SELECTOR = ".schedule"
EVENT_SELECTOR = ".an-event"
MAX_DETAIL_PAGES = 50

PRICE_RE = re.compile(r"\$(\d+(\.\d{2})?)")


@dataclass
class GridEntry:
    index: int  # position among all .an-event nodes, for locator.nth()
    title: str
    date_label: str
    time: str

    @property
    def date_raw(self) -> str:
        return f"{self.date_label} {self.time}".strip()


def parse_grid(html: str) -> list[GridEntry]:
    """Grid entries in DOM order; untitled entries are skipped but keep their index."""
    soup = BeautifulSoup(html, "html.parser")
    entries: list[GridEntry] = []

    for index, event in enumerate(soup.select(EVENT_SELECTOR)):
        title_el = event.select_one(".an-event__title")
        title = title_el.get_text(strip=True) if title_el else ""
        if not title:
            continue
        day = event.find_parent(class_="day")
        label_el = day.select_one(".day__label--full-date") if day else None
        time_el = event.select_one(".an-event__time")
        entries.append(GridEntry(
            index=index,
            title=title,
            date_label=label_el.get_text(strip=True) if label_el else "",
            time=time_el.get_text(strip=True) if time_el else "",
        ))

    return entries


def find_price(text: str) -> str | None:
    match = PRICE_RE.search(text)
    return match.group(0) if match else None


@register_venue
class RioTheatre(VenuePlugin):
    id = "rio-theatre"
    name = "Rio Theatre"
    url = "https://riotheatre.ca/calendar/"

    async def extract(self, page: Page | None, html: str) -> list[RawEvent]:
        page = self._require_page(page)
        await page.wait_for_selector(SCHEDULE_SELECTOR, timeout=15000)
        await page.wait_for_timeout(2000)  # calendar hydration

        entries = parse_grid(await page.content())
        logger.info("%s: %d events on calendar, visiting details", self.name, len(entries))

        if len(entries) > MAX_DETAIL_PAGES:
            logger.warning(
                "%s: %d calendar entries, only the first %d will be scraped",
                self.name, len(entries), MAX_DETAIL_PAGES,
            )

        events = []
        for entry in entries[:MAX_DETAIL_PAGES]:
            events.append(await self._enrich(page, entry))

        logger.info("%s: extracted %d events", self.name, len(events))
        return events

    async def _enrich(self, page: Page, entry: GridEntry) -> RawEvent:
        try:
            await page.locator(EVENT_SELECTOR).nth(entry.index).click()
            await page.wait_for_timeout(1000)
            detail_url = page.url
            price_raw = find_price(await page.inner_text("body"))

            await page.go_back(wait_until="domcontentloaded")
            await page.wait_for_selector(SCHEDULE_SELECTOR)
            await page.wait_for_timeout(500)
        except Exception as e:
            logger.warning("%s: failed to scrape detail for %r: %s", self.name, entry.title, e)
            await self._restore_calendar(page)
            return RawEvent(title=entry.title, date_raw=entry.date_raw)

        return RawEvent(
            title=entry.title,
            date_raw=entry.date_raw,
            url=detail_url,
            price_raw=price_raw,
        )

    async def _restore_calendar(self, page: Page) -> None:
        if "calendar" not in page.url:
            await page.goto(self.url)
            await page.wait_for_selector(SCHEDULE_SELECTOR)
