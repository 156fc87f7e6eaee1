from __future__ import annotations

from abc import ABC, abstractmethod

from playwright.async_api import Page

from vancal.errors import ExtractionError
from vancal.schemas import RawEvent, VenueDescriptor


class VenuePlugin(ABC):
    """Base class for all venue scrapers.

    Plugins are purely extractive: they turn one fetched listing page into
    raw events and leave date parsing, classification and hashing to the
    pipeline. A plugin that navigates to detail pages must bring the page
    back to a usable state before returning.
    """

    id: str = ""
    name: str = ""
    url: str = ""
    enabled: bool = True
    # True: fetched with the headless browser; False: plain HTTP, page is None
    render: bool = True

    @property
    def descriptor(self) -> VenueDescriptor:
        return VenueDescriptor(id=self.id, name=self.name, url=self.url, enabled=self.enabled)

    @abstractmethod
    async def extract(self, page: Page | None, html: str) -> list[RawEvent]:
        """Return the raw events found on the fetched listing page."""
        ...

    def _require_page(self, page: Page | None) -> Page:
        if page is None:
            raise ExtractionError(f"{self.name} requires a rendered page")
        return page
