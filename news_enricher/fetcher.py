"""Page fetching on top of a browser session.

Navigation errors never escape :func:`fetch_page`; they come back as a
``TransientFailure`` or ``FatalFailure`` outcome, classified the same way
the retry loop classifies exceptions.
"""

from __future__ import annotations

import logging
from typing import Iterable
from urllib.parse import urlparse, urlunparse

from playwright.async_api import Page

from news_enricher.config import DEFAULT_BLOCK_URL_PATTERNS
from news_enricher.errors import is_retryable
from news_enricher.models import Blocked, FatalFailure, FetchOutcome, Success, TransientFailure

logger = logging.getLogger(__name__)

_FAVICON_JS = """
() => {
    const links = document.querySelectorAll('link[rel="icon"], link[rel="shortcut icon"]');
    return links.length > 0 ? links[0].href : null;
}
"""


def normalize_url(url: str, strip_query: bool = True) -> str:
    """Drop query parameters (and the fragment) from ``url``."""
    if not strip_query:
        return url
    parsed = urlparse(url)
    return urlunparse(parsed._replace(query="", fragment=""))


def default_favicon(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/favicon.ico"


def is_block_url(url: str, patterns: Iterable[str] = DEFAULT_BLOCK_URL_PATTERNS) -> bool:
    lower = url.lower()
    return any(pattern.lower() in lower for pattern in patterns)


async def _find_favicon(page: Page, resolved_url: str) -> str:
    try:
        href = await page.evaluate(_FAVICON_JS)
    except Exception as e:
        logger.debug("favicon lookup failed on %s: %s", resolved_url, e)
        href = None
    return href or default_favicon(resolved_url)


async def fetch_page(
    session,
    url: str,
    *,
    wait_for_network_idle: bool = True,
    extract_content: bool = True,
    block_patterns: Iterable[str] = DEFAULT_BLOCK_URL_PATTERNS,
    timeout_ms: int = 30_000,
) -> FetchOutcome:
    """Navigate ``session.page`` to ``url`` and report what happened.

    Args:
        session: a :class:`~news_enricher.browser_manager.BrowserSession`
        url: page to open
        wait_for_network_idle: wait for ``networkidle`` instead of
            ``domcontentloaded``
        extract_content: also read the page markup and favicon
        block_patterns: substrings of a resolved URL that mean a bot wall
        timeout_ms: navigation timeout
    """
    page = session.page
    wait_until = "networkidle" if wait_for_network_idle else "domcontentloaded"

    try:
        await page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        resolved_url = page.url
        if is_block_url(resolved_url, block_patterns):
            logger.error("bot verification wall at %s", resolved_url)
            return Blocked(resolved_url)
        if not extract_content:
            return Success(html="", resolved_url=resolved_url)
        html = await page.content()
    except Exception as e:
        reason = f"{url}: {e}"
        if is_retryable(e):
            logger.warning("transient failure fetching %s via %s: %s", url, session.proxy, e)
            return TransientFailure(reason)
        logger.error("failed to fetch %s: %s", url, e)
        return FatalFailure(reason)

    favicon = await _find_favicon(page, resolved_url)
    return Success(html=html, resolved_url=resolved_url, favicon=favicon)
