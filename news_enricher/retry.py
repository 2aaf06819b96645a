from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from typing import AsyncContextManager, Awaitable, Callable, Generic, Optional, TypeVar

from news_enricher.errors import AllProxiesFailed, SessionLaunchFailed, format_error, is_retryable
from news_enricher.proxy_pool import ProxyPool

logger = logging.getLogger(__name__)

S = TypeVar("S")
T = TypeVar("T")

SessionFactory = Callable[[Optional[str]], AsyncContextManager[S]]


class RetryExecutor(Generic[S]):
    """Run an operation through the pool, rotating proxies on network failure.

    Every attempt gets its own session from ``open_session``; the session is
    closed before the next proxy is tried. A retryable failure removes the
    proxy from the pool for the rest of the run, anything else is raised
    immediately. Failing to open the session raises ``SessionLaunchFailed``
    and leaves the proxy in the pool. With ``pool=None`` a single direct
    attempt is made.
    """

    def __init__(self, pool: Optional[ProxyPool], open_session: SessionFactory):
        self._pool = pool
        self._open_session = open_session

    @property
    def pool(self) -> Optional[ProxyPool]:
        return self._pool

    async def _attempt(self, proxy: Optional[str], operation: Callable[[S], Awaitable[T]]) -> T:
        async with AsyncExitStack() as stack:
            try:
                session = await stack.enter_async_context(self._open_session(proxy))
            except Exception as e:
                raise SessionLaunchFailed(f"could not open session for proxy {proxy}: {e}") from e
            return await operation(session)

    async def run(self, operation: Callable[[S], Awaitable[T]], label: str = "operation") -> T:
        if self._pool is None:
            try:
                return await self._attempt(None, operation)
            except Exception as e:
                if not is_retryable(e):
                    raise
                logger.warning(format_error(f"{label} (direct)", e))
                raise AllProxiesFailed(f"{label}: direct connection failed") from e

        last_error: Optional[BaseException] = None
        while not self._pool.is_empty():
            proxy = self._pool.next()
            try:
                return await self._attempt(proxy, operation)
            except Exception as e:
                if not is_retryable(e):
                    raise
                last_error = e
                self._pool.remove(proxy)
                logger.warning(
                    "%s; removed proxy %s (%d left)",
                    format_error(label, e), proxy, len(self._pool),
                )

        raise AllProxiesFailed(f"{label}: every proxy in the pool failed") from last_error
