"""Rickshaw Theatre.

Events are listed on the home page (not /events/) by a WordPress Divi theme:
each ``article.listing_block`` holds the title link, a date span and a
time/year span, plus an optional "presented with" line for support acts.
The list lazy-loads while scrolling.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from playwright.async_api import Page

from vancal.schemas import RawEvent
from vancal.venues.base import VenuePlugin
from vancal.venues.registry import register_venue

logger = logging.getLogger(__name__)

LISTING_SELECTOR = "article.listing_block"

_AUTO_SCROLL_JS = """
async () => {
    await new Promise((resolve) => {
        let totalHeight = 0;
        const distance = 400;
        const timer = setInterval(() => {
            const scrollHeight = document.body.scrollHeight;
            window.scrollBy(0, distance);
            totalHeight += distance;
            if (totalHeight >= scrollHeight) {
                clearInterval(timer);
                resolve();
            }
        }, 100);
    });
}
"""


def parse_listing(html: str) -> list[RawEvent]:
    """Extract raw events from the rendered home page markup."""
    soup = BeautifulSoup(html, "html.parser")
    events: list[RawEvent] = []

    for article in soup.select(LISTING_SELECTOR):
        title_el = article.select_one("h2.listing_title a")
        title = title_el.get_text(strip=True) if title_el else ""
        if not title:
            continue

        support_el = article.select_one("p.listing_presented")
        support = support_el.get_text(strip=True) if support_el else ""
        if support:
            title = f"{title} (w/ {support})"

        date_el = article.select_one("span.listing_list_date")
        time_el = article.select_one("span.listing_list_time")
        date_raw = " ".join(
            part for part in (
                date_el.get_text(strip=True) if date_el else "",
                time_el.get_text(strip=True) if time_el else "",
            ) if part
        )

        events.append(RawEvent(
            title=title,
            date_raw=date_raw,
            url=title_el.get("href") or None,
        ))

    return events


async def auto_scroll(page: Page) -> None:
    """Scroll to the bottom to trigger lazy loading."""
    await page.evaluate(_AUTO_SCROLL_JS)
    await page.wait_for_timeout(500)


@register_venue
class RickshawTheatre(VenuePlugin):
    id = "rickshaw-theatre"
    name = "Rickshaw Theatre"
    url = "https://rickshawtheatre.com/"

    async def extract(self, page: Page | None, html: str) -> list[RawEvent]:
        page = self._require_page(page)
        await page.wait_for_selector(LISTING_SELECTOR, timeout=15000)
        await auto_scroll(page)

        events = parse_listing(await page.content())
        logger.info("%s: extracted %d events", self.name, len(events))
        return events
