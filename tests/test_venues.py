"""Tests for the venue registry and the per-venue extractors.

Extractors are fed inline HTML fixtures mirroring each site's markup;
Playwright pages are mocked.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vancal.errors import ExtractionError
from vancal.venues.base import VenuePlugin
from vancal.venues.fox import (
    FoxCabaret,
    calendar_date_raw,
    parse_calendar,
    parse_details,
    parse_month_year,
)
from vancal.venues.registry import (
    VENUE_REGISTRY,
    get_enabled_venues,
    get_venue,
    list_venues,
    register_venue,
)
from vancal.venues.rickshaw import RickshawTheatre, parse_listing
from vancal.venues.rio import RioTheatre, find_price, parse_grid

RICKSHAW_HTML = """
<div class="listings">
  <article class="listing_block">
    <h2 class="listing_title"><a href="https://rickshawtheatre.com/event/the-dreadnoughts/">The Dreadnoughts</a></h2>
    <p class="listing_presented">Mad Caddies</p>
    <span class="listing_list_date">Friday, January 12,</span>
    <span class="listing_list_time">2024 7:30 PM</span>
  </article>
  <article class="listing_block">
    <h2 class="listing_title"><a href="https://rickshawtheatre.com/event/metal-night/">Metal Night</a></h2>
    <span class="listing_list_date">Saturday, January 13</span>
  </article>
  <article class="listing_block">
    <h2 class="listing_title"><a href="/nowhere"></a></h2>
  </article>
</div>
"""

FOX_CALENDAR_HTML = """
<div class="sqs-block-calendar">
  <table class="yui3-calendar-grid" aria-label="January 2026">
    <tr>
      <td class="yui3-calendar-day" data-pnum="10">
        <ul>
          <li class="item"><a class="item-link" href="/monthly-calendar-list/drag-brunch">
            <span class="item-title">Drag Brunch</span><span class="item-time--12hr">11:00 AM</span></a></li>
          <li class="item flyout"><a class="item-link" href="/monthly-calendar-list/drag-brunch">
            <span class="item-title">Drag Brunch</span><span class="item-time--12hr">11:00 AM</span></a></li>
        </ul>
      </td>
      <td class="yui3-calendar-day" data-pnum="11">
        <ul>
          <li class="item"><a class="item-link" href="/monthly-calendar-list/indie-night">
            <span class="item-title">Indie Night</span><span class="item-time--12hr">8:00 PM</span></a></li>
        </ul>
      </td>
    </tr>
  </table>
</div>
"""

FOX_DETAIL_HTML = """
<article class="eventitem">
  <h1>Drag Brunch</h1>
  <time class="event-date">Saturday, January 10, 2026</time>
  <time class="event-time-12hr">11:00 AM</time>
  <p>Doors: 10.30 AM. Tickets $25 advance, $30 at the door.</p>
</article>
"""

RIO_HTML = """
<div class="schedule">
  <div class="day">
    <div class="day__label--full-date">Thursday January 8</div>
    <div class="an-event"><div class="an-event__title">Rocky Horror</div><div class="an-event__time">11:30 pm</div></div>
    <div class="an-event"><div class="an-event__title"></div></div>
  </div>
  <div class="day">
    <div class="day__label--full-date">Friday January 9</div>
    <div class="an-event"><div class="an-event__title">Comedy Night</div><div class="an-event__time">7:00 pm</div></div>
  </div>
</div>
"""


class TestRegistry:
    def test_all_venues_registered_in_scrape_order(self):
        assert [v.id for v in list_venues()] == ["rickshaw-theatre", "rio-theatre", "fox-cabaret"]

    def test_get_venue(self):
        assert isinstance(get_venue("rio-theatre"), RioTheatre)
        assert get_venue("nope") is None

    def test_enabled_venues(self):
        assert all(v.enabled for v in get_enabled_venues())

    def test_duplicate_id_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            @register_venue
            class Again(VenuePlugin):
                id = "rio-theatre"

                async def extract(self, page, html):
                    return []

        assert VENUE_REGISTRY["rio-theatre"] is RioTheatre

    def test_missing_id_rejected(self):
        with pytest.raises(ValueError):
            @register_venue
            class Nameless(VenuePlugin):
                async def extract(self, page, html):
                    return []

    def test_descriptor(self):
        d = RickshawTheatre().descriptor
        assert (d.id, d.name, d.url, d.enabled) == (
            "rickshaw-theatre", "Rickshaw Theatre", "https://rickshawtheatre.com/", True
        )

    @pytest.mark.asyncio
    async def test_browser_venue_requires_page(self):
        with pytest.raises(ExtractionError):
            await RickshawTheatre().extract(None, "<html></html>")


class TestRickshaw:
    def test_parse_listing(self):
        events = parse_listing(RICKSHAW_HTML)

        assert len(events) == 2
        assert events[0].title == "The Dreadnoughts (w/ Mad Caddies)"
        assert events[0].date_raw == "Friday, January 12, 2024 7:30 PM"
        assert events[0].url == "https://rickshawtheatre.com/event/the-dreadnoughts/"
        assert events[1].title == "Metal Night"
        assert events[1].date_raw == "Saturday, January 13"

    @pytest.mark.asyncio
    async def test_extract_scrolls_then_reads_page(self):
        page = MagicMock()
        page.wait_for_selector = AsyncMock()
        page.evaluate = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(return_value=RICKSHAW_HTML)

        events = await RickshawTheatre().extract(page, "")

        assert len(events) == 2
        page.evaluate.assert_awaited_once()


class TestFox:
    def test_parse_month_year(self):
        assert parse_month_year(FOX_CALENDAR_HTML) == "January 2026"

    def test_parse_calendar_collapses_flyout_duplicates(self):
        entries = parse_calendar(FOX_CALENDAR_HTML)
        assert [(e.title, e.day, e.time) for e in entries] == [
            ("Drag Brunch", "10", "11:00 AM"),
            ("Indie Night", "11", "8:00 PM"),
        ]

    def test_parse_details(self):
        details = parse_details(FOX_DETAIL_HTML)
        assert details.date_raw == "Saturday, January 10, 2026 11:00 AM"
        assert details.doors_raw == "10:30 AM"
        assert details.price_raw == "$25"

    def test_parse_details_without_article(self):
        assert parse_details("<html></html>").date_raw == ""

    def test_calendar_date_raw_is_parseable_shape(self):
        entries = parse_calendar(FOX_CALENDAR_HTML)
        assert calendar_date_raw("January 2026", entries[1]) == "January 11, 2026 8:00 PM"

    @pytest.mark.asyncio
    async def test_extract_enriches_and_falls_back(self):
        page = MagicMock()
        page.wait_for_selector = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(side_effect=[FOX_CALENDAR_HTML, FOX_DETAIL_HTML])

        async def goto(url, **kwargs):
            if url.endswith("indie-night"):
                raise TimeoutError("Timeout 15000ms exceeded")

        page.goto = AsyncMock(side_effect=goto)

        events = await FoxCabaret().extract(page, "")

        assert [e.title for e in events] == ["Drag Brunch", "Indie Night"]
        brunch, indie = events
        assert brunch.url == "https://www.foxcabaret.com/monthly-calendar-list/drag-brunch"
        assert brunch.date_raw == "Saturday, January 10, 2026 11:00 AM"
        assert brunch.price_raw == "$25"
        assert brunch.doors_raw == "10:30 AM"
        assert indie.date_raw == "January 11, 2026 8:00 PM"
        assert indie.price_raw is None
        # returns to the calendar when done
        assert page.goto.await_args_list[-1].args == (FoxCabaret.url,)

    @pytest.mark.asyncio
    async def test_extract_warns_when_detail_cap_drops_entries(self, caplog):
        page = MagicMock()
        page.wait_for_selector = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(side_effect=[FOX_CALENDAR_HTML, FOX_DETAIL_HTML])
        page.goto = AsyncMock()

        with patch("vancal.venues.fox.MAX_DETAIL_PAGES", 1), caplog.at_level("WARNING"):
            events = await FoxCabaret().extract(page, "")

        assert [e.title for e in events] == ["Drag Brunch"]
        assert "2 calendar entries, only the first 1 will be scraped" in caplog.text


class TestRio:
    def test_parse_grid(self):
        entries = parse_grid(RIO_HTML)
        assert [(e.index, e.title, e.date_raw) for e in entries] == [
            (0, "Rocky Horror", "Thursday January 8 11:30 pm"),
            (2, "Comedy Night", "Friday January 9 7:00 pm"),
        ]

    def test_find_price(self):
        assert find_price("Tickets: $12.50 / $10 members") == "$12.50"
        assert find_price("Sold out") is None

    @pytest.mark.asyncio
    async def test_extract_clicks_through_details(self):
        page = MagicMock()
        page.url = "https://riotheatre.ca/calendar/"
        page.wait_for_selector = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(return_value=RIO_HTML)
        page.inner_text = AsyncMock(side_effect=["Admission $15", "Tickets $20"])
        page.go_back = AsyncMock()
        page.goto = AsyncMock()
        locator = MagicMock()
        page.locator = MagicMock(return_value=locator)
        clicked = MagicMock()
        clicked.click = AsyncMock()
        locator.nth = MagicMock(return_value=clicked)

        events = await RioTheatre().extract(page, "")

        assert [e.title for e in events] == ["Rocky Horror", "Comedy Night"]
        assert [e.price_raw for e in events] == ["$15", "$20"]
        assert [c.args for c in locator.nth.call_args_list] == [(0,), (2,)]
        assert page.go_back.await_count == 2

    @pytest.mark.asyncio
    async def test_detail_failure_keeps_event(self):
        page = MagicMock()
        page.url = "https://riotheatre.ca/calendar/"
        page.wait_for_selector = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(return_value=RIO_HTML)
        page.goto = AsyncMock()
        clicked = MagicMock()
        clicked.click = AsyncMock(side_effect=RuntimeError("element detached"))
        page.locator = MagicMock(return_value=MagicMock(nth=MagicMock(return_value=clicked)))

        events = await RioTheatre().extract(page, "")

        assert len(events) == 2
        assert events[0].date_raw == "Thursday January 8 11:30 pm"
        assert events[0].url is None
        assert events[0].price_raw is None

    @pytest.mark.asyncio
    async def test_extract_warns_when_detail_cap_drops_entries(self, caplog):
        page = MagicMock()
        page.url = "https://riotheatre.ca/calendar/"
        page.wait_for_selector = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(return_value=RIO_HTML)
        page.inner_text = AsyncMock(return_value="Admission $15")
        page.go_back = AsyncMock()
        clicked = MagicMock()
        clicked.click = AsyncMock()
        page.locator = MagicMock(return_value=MagicMock(nth=MagicMock(return_value=clicked)))

        with patch("vancal.venues.rio.MAX_DETAIL_PAGES", 1), caplog.at_level("WARNING"):
            events = await RioTheatre().extract(page, "")

        assert [e.title for e in events] == ["Rocky Horror"]
        assert "2 calendar entries, only the first 1 will be scraped" in caplog.text

    @pytest.mark.asyncio
    async def test_extract_does_not_warn_under_detail_cap(self, caplog):
        page = MagicMock()
        page.url = "https://riotheatre.ca/calendar/"
        page.wait_for_selector = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        page.content = AsyncMock(return_value=RIO_HTML)
        page.inner_text = AsyncMock(return_value="Admission $15")
        page.go_back = AsyncMock()
        clicked = MagicMock()
        clicked.click = AsyncMock()
        page.locator = MagicMock(return_value=MagicMock(nth=MagicMock(return_value=clicked)))

        with caplog.at_level("WARNING"):
            await RioTheatre().extract(page, "")

        assert "will be scraped" not in caplog.text
