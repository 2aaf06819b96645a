"""Validated proxy pool with round-robin rotation.

The pool is built once per enrichment run from a list of raw ``host:port``
candidates. Candidates are probed concurrently through a bounded worker
pool; only the ones that answer are kept. During the run the pool only
shrinks: a proxy that fails a fetch is removed and never handed out again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator

import httpx

from news_enricher.errors import ExhaustedProxies, ProxyPoolEmpty

logger = logging.getLogger(__name__)

DEFAULT_PROBE_CONCURRENCY = 100

ProbeFn = Callable[[str], Awaitable[bool]]


def proxy_server_url(proxy: str) -> str:
    """Return the proxy as a server URL (``http://`` unless a scheme is given)."""
    return proxy if "://" in proxy else f"http://{proxy}"


class ProxyPool:
    """Ordered set of working proxies plus a wrapping rotation cursor."""

    def __init__(self, proxies: Iterable[str] = ()):
        self._proxies: list[str] = list(proxies)
        self._cursor = 0

    def next(self) -> str:
        """Return the proxy under the cursor and advance it."""
        if not self._proxies:
            raise ProxyPoolEmpty("No proxies left in the pool")
        proxy = self._proxies[self._cursor]
        self._cursor = (self._cursor + 1) % len(self._proxies)
        return proxy

    def remove(self, proxy: str) -> None:
        """Drop the first matching proxy; a missing proxy is ignored."""
        try:
            index = self._proxies.index(proxy)
        except ValueError:
            return
        del self._proxies[index]
        # Keep pointing at the same successor after the list shifts left.
        if index < self._cursor:
            self._cursor -= 1
        if self._cursor >= len(self._proxies):
            self._cursor = 0

    def is_empty(self) -> bool:
        return not self._proxies

    def __len__(self) -> int:
        return len(self._proxies)

    def __contains__(self, proxy: object) -> bool:
        return proxy in self._proxies

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._proxies))

    def __repr__(self) -> str:
        return f"ProxyPool(size={len(self._proxies)}, cursor={self._cursor})"


async def probe_proxy(proxy: str, probe_url: str, timeout: float = 5.0) -> bool:
    """Check that a request to ``probe_url`` gets through ``proxy``."""
    try:
        async with httpx.AsyncClient(proxy=proxy_server_url(proxy), timeout=timeout) as client:
            response = await client.get(probe_url)
    except httpx.HTTPError as e:
        logger.debug("proxy %s failed probe: %s", proxy, e)
        return False

    if response.status_code >= 400:
        logger.debug("proxy %s failed probe: HTTP %d", proxy, response.status_code)
        return False
    return True


async def validate_proxies(
    candidates: Iterable[str],
    probe: ProbeFn,
    concurrency: int = DEFAULT_PROBE_CONCURRENCY,
) -> list[str]:
    """Probe candidates with at most ``concurrency`` probes in flight.

    Returns the working proxies in the order their probes completed.
    """
    unique = list(dict.fromkeys(c.strip() for c in candidates if c and c.strip()))
    if not unique:
        return []

    queue: asyncio.Queue[str] = asyncio.Queue()
    for candidate in unique:
        queue.put_nowait(candidate)

    working: list[str] = []

    async def worker() -> None:
        while True:
            try:
                candidate = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                ok = await probe(candidate)
            except Exception as e:
                logger.debug("proxy %s probe raised: %s", candidate, e)
                ok = False
            if ok:
                working.append(candidate)
            else:
                logger.info("dropping proxy %s (failed validation)", candidate)

    workers = [asyncio.create_task(worker()) for _ in range(min(concurrency, len(unique)))]
    await asyncio.gather(*workers)

    logger.info("validated %d of %d proxies", len(working), len(unique))
    return working


async def build_proxy_pool(
    candidates: Iterable[str],
    probe_url: str,
    probe_timeout: float = 5.0,
    concurrency: int = DEFAULT_PROBE_CONCURRENCY,
    probe: ProbeFn | None = None,
) -> ProxyPool:
    """Validate ``candidates`` and build a pool from the survivors."""
    if probe is None:
        async def probe(proxy: str) -> bool:
            return await probe_proxy(proxy, probe_url, probe_timeout)

    working = await validate_proxies(candidates, probe, concurrency=concurrency)
    if not working:
        raise ExhaustedProxies("No proxy passed validation")
    return ProxyPool(working)
