"""Shared fetch session: one browser context, one HTTP client, one rate limit.

All requests in a scrape run go through a single ``FetchSession`` so the
minimum spacing between requests holds across every venue, and the headless
browser is launched once rather than per page.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, NamedTuple

import httpx
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from vancal.config import Settings, settings
from vancal.errors import SessionNotInitializedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScraperConfig:
    user_agent: str
    delay_ms: int = 1500
    max_retries: int = 3
    timeout_ms: int = 30000

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> ScraperConfig:
        s = s or settings
        return cls(
            user_agent=s.scraper_user_agent,
            delay_ms=s.scraper_delay_ms,
            max_retries=s.scraper_max_retries,
            timeout_ms=s.scraper_timeout_ms,
        )


class RenderedPage(NamedTuple):
    page: Page
    html: str


class RateLimiter:
    """Minimum spacing between outbound requests.

    Holds the single "last request issued" watermark. The lock makes
    concurrent callers queue up instead of racing past the same watermark.
    """

    def __init__(self, delay_ms: int):
        self.delay_s = delay_ms / 1000
        self._last_request: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            if self._last_request is not None:
                remaining = self.delay_s - (time.monotonic() - self._last_request)
                if remaining > 0:
                    logger.debug("Rate limit: sleeping %.3fs", remaining)
                    await asyncio.sleep(remaining)
            self._last_request = time.monotonic()


class FetchSession:
    """Browser + HTTP fetch session for one scrape run.

    Call ``init()`` before fetching and ``close()`` afterwards, or use it as
    an async context manager. Pages returned by ``fetch_rendered`` belong to
    the caller and must be closed by it; the shared context must not be.
    """

    def __init__(self, config: ScraperConfig | None = None):
        self.config = config or ScraperConfig.from_settings()
        self.rate_limiter = RateLimiter(self.config.delay_ms)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._client: httpx.AsyncClient | None = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def init(self) -> None:
        if self.is_open:
            return
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.config.timeout_ms / 1000,
            headers={"User-Agent": self.config.user_agent},
        )
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True)
            self._context = await self._browser.new_context(user_agent=self.config.user_agent)
        except Exception:
            await self.close()
            raise
        logger.info("Fetch session started (delay %dms)", self.config.delay_ms)

    async def close(self) -> None:
        """Release the browser and HTTP client. Safe to call more than once."""
        context, browser, pw, client = self._context, self._browser, self._playwright, self._client
        self._context = self._browser = self._playwright = self._client = None

        for name, closer in (
            ("context", context.close if context else None),
            ("browser", browser.close if browser else None),
            ("playwright", pw.stop if pw else None),
            ("http client", client.aclose if client else None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as e:
                logger.warning("Failed to close %s: %s", name, e)
        if client is not None:
            logger.info("Fetch session closed")

    async def __aenter__(self) -> FetchSession:
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def fetch_rendered(self, url: str) -> RenderedPage:
        """Load *url* in a new browser page and return it with its markup."""
        if self._context is None:
            raise SessionNotInitializedError("FetchSession not initialized. Call init() first.")

        await self.rate_limiter.wait()
        page = await self._context.new_page()
        try:
            await page.goto(url, wait_until="networkidle", timeout=self.config.timeout_ms)
            html = await page.content()
        except BaseException:
            await page.close()
            raise
        logger.info("Fetched %s with Playwright (%d chars)", url, len(html))
        return RenderedPage(page, html)

    async def fetch_static(self, url: str) -> str:
        """GET *url* over plain HTTP and return the body text."""
        if self._client is None:
            raise SessionNotInitializedError("FetchSession not initialized. Call init() first.")

        await self.rate_limiter.wait()
        resp = await self._client.get(url)
        resp.raise_for_status()
        logger.info("Fetched %s with httpx (%d chars)", url, len(resp.text))
        return resp.text
