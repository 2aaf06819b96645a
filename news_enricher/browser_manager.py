"""Playwright lifecycle and per-attempt browser sessions."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from news_enricher.proxy_pool import proxy_server_url

logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

# Navigation headers sent with every request of a session
DEFAULT_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
    "Referer": "https://www.google.com/",
}

# Masks the most common automation fingerprints
_STEALTH_JS = """
() => {
    Object.defineProperty(navigator, 'webdriver', { get: () => false });
    Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
    Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
    window.chrome = { runtime: {} };
}
"""

_LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-blink-features=AutomationControlled',
    '--disable-infobars',
]


@dataclass
class BrowserSession:
    """A browser bound to one proxy, alive for a single fetch attempt."""

    proxy: Optional[str]
    browser: Browser
    context: BrowserContext
    page: Page

    async def close(self) -> None:
        try:
            await self.context.close()
        finally:
            await self.browser.close()


class BrowserManager:
    """Owns the Playwright driver for one enrichment run.

    Each call to :meth:`session` launches a fresh Chromium routed through
    the given proxy and closes it when the ``async with`` block exits.
    """

    def __init__(
        self,
        headless: bool = True,
        viewport_width: int = 1366,
        viewport_height: int = 768,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self._headless = headless
        self._viewport_width = viewport_width
        self._viewport_height = viewport_height
        self._user_agent = user_agent
        self._playwright: Optional[Playwright] = None

    async def start(self) -> "BrowserManager":
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return self

    async def stop(self) -> None:
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    def is_running(self) -> bool:
        return self._playwright is not None

    async def __aenter__(self) -> "BrowserManager":
        return await self.start()

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def launch_session(self, proxy: Optional[str]) -> BrowserSession:
        """Launch a browser for ``proxy`` (``None`` connects directly)."""
        if self._playwright is None:
            raise RuntimeError("Browser manager not started. Call start() first.")

        launch_options = {"headless": self._headless, "args": _LAUNCH_ARGS}
        if proxy:
            launch_options["proxy"] = {"server": proxy_server_url(proxy)}

        browser = await self._playwright.chromium.launch(**launch_options)
        try:
            context = await browser.new_context(
                viewport={'width': self._viewport_width, 'height': self._viewport_height},
                user_agent=self._user_agent,
                locale='en-US',
                extra_http_headers=DEFAULT_HEADERS,
            )
            await context.add_init_script(_STEALTH_JS)
            page = await context.new_page()
        except BaseException:
            await browser.close()
            raise

        return BrowserSession(proxy=proxy, browser=browser, context=context, page=page)

    @asynccontextmanager
    async def session(self, proxy: Optional[str]) -> AsyncIterator[BrowserSession]:
        browser_session = await self.launch_session(proxy)
        try:
            yield browser_session
        finally:
            try:
                await browser_session.close()
            except Exception as e:
                logger.warning("failed to close browser for proxy %s: %s", proxy, e)
