"""Drive venue plugins through the fetch session with retries.

Each venue ends in exactly one terminal state - success, error or skipped -
and a failing venue never stops the others. Only ``ConfigurationError``
escapes, because it means the run itself is miswired.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Sequence

from vancal import metrics
from vancal.errors import ConfigurationError
from vancal.schemas import RawEvent, ScrapeResult
from vancal.services.fetcher import FetchSession, ScraperConfig
from vancal.venues.base import VenuePlugin

logger = logging.getLogger(__name__)


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class ScrapeOrchestrator:
    def __init__(
        self,
        session: FetchSession,
        config: ScraperConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session = session
        self.config = config or session.config
        self._sleep = sleep

    def backoff_ms(self, attempt: int) -> int:
        """Delay after failed attempt *attempt* (1-based): base x 2^(attempt-1)."""
        return self.config.delay_ms * 2 ** (attempt - 1)

    async def _attempt(self, venue: VenuePlugin) -> list[RawEvent]:
        if not venue.render:
            html = await self.session.fetch_static(venue.url)
            return await venue.extract(None, html)

        page, html = await self.session.fetch_rendered(venue.url)
        try:
            return await venue.extract(page, html)
        finally:
            await page.close()

    async def run_scraper(self, venue: VenuePlugin) -> ScrapeResult:
        """Scrape one venue with bounded retries and exponential backoff."""
        if not venue.enabled:
            logger.info("[%s] Skipped (disabled)", venue.name)
            metrics.SCRAPE_TOTAL.labels(venue.id, "skipped").inc()
            return ScrapeResult(venue_id=venue.id, status="skipped", duration_ms=0)

        started = time.monotonic()
        max_attempts = self.config.max_retries
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            logger.info("[%s] Scraping attempt %d/%d", venue.name, attempt, max_attempts)
            try:
                events = await self._attempt(venue)
            except ConfigurationError:
                raise
            except Exception as e:
                last_error = e
                metrics.SCRAPE_ATTEMPT_FAILURES.labels(venue.id, type(e).__name__).inc()
                logger.warning(
                    "[%s] Attempt %d failed: %s", venue.name, attempt, _error_message(e)
                )
                if attempt < max_attempts:
                    backoff = self.backoff_ms(attempt)
                    logger.info("[%s] Retrying in %dms", venue.name, backoff)
                    await self._sleep(backoff / 1000)
                continue

            duration_ms = int((time.monotonic() - started) * 1000)
            logger.info("[%s] Found %d events", venue.name, len(events))
            metrics.SCRAPE_TOTAL.labels(venue.id, "success").inc()
            metrics.SCRAPE_DURATION_SECONDS.labels(venue.id).observe(duration_ms / 1000)
            metrics.EVENTS_FOUND.labels(venue.id).inc(len(events))
            return ScrapeResult(
                venue_id=venue.id,
                status="success",
                events=events,
                duration_ms=duration_ms,
                attempts=attempt,
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        message = _error_message(last_error) if last_error else "Unknown error"
        logger.error("[%s] Giving up after %d attempts: %s", venue.name, max_attempts, message)
        metrics.SCRAPE_TOTAL.labels(venue.id, "error").inc()
        metrics.SCRAPE_DURATION_SECONDS.labels(venue.id).observe(duration_ms / 1000)
        return ScrapeResult(
            venue_id=venue.id,
            status="error",
            error_message=message,
            duration_ms=duration_ms,
            attempts=max_attempts,
        )

    async def run_all(self, venues: Sequence[VenuePlugin]) -> list[ScrapeResult]:
        """Scrape venues one after another on the shared session."""
        results: list[ScrapeResult] = []
        for venue in venues:
            results.append(await self.run_scraper(venue))
        return results
