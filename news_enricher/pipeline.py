"""Article enrichment pipeline.

Articles are processed one at a time. For each one the article page is
fetched through the proxy pool, the thumbnail URL is resolved the same way,
and the page text is run through the extraction policy. A failure on one
article keeps that article as it came in; a bot-verification redirect
stops the whole batch and returns the input untouched.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from news_enricher.browser_manager import BrowserManager
from news_enricher.config import EnricherConfig
from news_enricher.errors import BotBlocked, format_error
from news_enricher.extractor import ContentExtractor
from news_enricher.fetcher import fetch_page, normalize_url
from news_enricher.models import Blocked, ExtractionStatus, FetchOutcome, Success
from news_enricher.proxy_pool import ProbeFn, ProxyPool, build_proxy_pool
from news_enricher.retry import RetryExecutor, SessionFactory
from news_enricher.schemas import ArticleStub, EnrichedArticle

logger = logging.getLogger(__name__)

ArticleReadyCallback = Callable[[EnrichedArticle], Awaitable[Any]]
FetchFn = Callable[..., Awaitable[FetchOutcome]]
ArticleInput = Union[ArticleStub, Mapping[str, Any]]


def _describe(item: object) -> str:
    if isinstance(item, ArticleStub):
        return item.link
    if isinstance(item, Mapping):
        return repr(item.get("link"))
    return repr(item)


def _unchanged(items: Iterable[object]) -> list[EnrichedArticle]:
    """Inputs as output records with nothing added.

    Records that are not valid stubs are passed through as given; entries
    that are not mappings at all cannot be represented and are dropped.
    """
    records = []
    for item in items:
        if isinstance(item, ArticleStub):
            records.append(EnrichedArticle.from_stub(item))
        elif isinstance(item, Mapping):
            try:
                records.append(EnrichedArticle.model_validate(item))
            except ValidationError:
                records.append(EnrichedArticle.passthrough(item))
        else:
            logger.error("Dropping input entry that is not an article: %r", item)
    return records


class ArticleEnricher:
    """Enriches article stubs with resolved links, favicons and content.

    Args:
        config: run configuration; defaults to ``EnricherConfig()``
        article_ready_callback: coroutine function called with each
            processed article. Scheduled as a task; its result and
            errors never affect the returned list.
        session_factory: ``proxy -> async context manager`` yielding a
            session for :func:`fetch_page`. Defaults to a Playwright
            :class:`BrowserManager` started for the duration of the run.
        fetch: page fetch function, :func:`fetch_page` by default
        extractor: content extractor; built from ``config`` by default
        probe: proxy health check used when building the pool
    """

    def __init__(
        self,
        config: Optional[EnricherConfig] = None,
        *,
        article_ready_callback: Optional[ArticleReadyCallback] = None,
        session_factory: Optional[SessionFactory] = None,
        fetch: FetchFn = fetch_page,
        extractor: Optional[ContentExtractor] = None,
        probe: Optional[ProbeFn] = None,
    ):
        self.config = config or EnricherConfig()
        self.extractor = extractor or ContentExtractor(
            filter_words=self.config.filter_words,
            min_words=self.config.min_words,
        )
        self._article_ready_callback = article_ready_callback
        self._session_factory = session_factory
        self._fetch_page = fetch
        self._probe = probe
        self._callback_tasks: set[asyncio.Task] = set()
        self.aborted = False

    async def _build_pool(self) -> Optional[ProxyPool]:
        if not self.config.proxies:
            logger.info("No proxies configured, fetching directly")
            return None
        pool = await build_proxy_pool(
            self.config.proxies,
            probe_url=self.config.probe_url,
            probe_timeout=self.config.probe_timeout,
            concurrency=self.config.probe_concurrency,
            probe=self._probe,
        )
        logger.info("Proxy pool ready with %d proxies", len(pool))
        return pool

    async def get_content(self, articles: Iterable[ArticleInput]) -> list[EnrichedArticle]:
        """Enrich ``articles`` in order.

        Raises:
            ExhaustedProxies: proxies were configured but none passed validation
        """
        articles = list(articles)
        self.aborted = False
        pool = await self._build_pool()

        async with AsyncExitStack() as stack:
            open_session = self._session_factory
            if open_session is None:
                manager = await stack.enter_async_context(BrowserManager(headless=self.config.headless))
                open_session = manager.session
            executor = RetryExecutor(pool, open_session)

            results: list[EnrichedArticle] = []
            for item in articles:
                try:
                    stub = item if isinstance(item, ArticleStub) else ArticleStub.model_validate(item)
                    logger.info("Processing %s", stub.title)
                    article = await self._enrich(executor, stub)
                except BotBlocked as e:
                    logger.error("%s. Stop processing articles...", e)
                    self.aborted = True
                    results = _unchanged(articles)
                    break
                except Exception as e:
                    logger.error(format_error(f"Failed to process {_describe(item)}", e))
                    results.extend(_unchanged([item]))
                    continue

                results.append(article)
                self._notify(article)
                logger.info("Processed: %s", article.title)

        await self._drain_callbacks()
        return results

    async def _fetch(self, session, url: str, extract_content: bool) -> Union[Success, Blocked]:
        outcome = await self._fetch_page(
            session,
            url,
            wait_for_network_idle=self.config.wait_for_network_idle,
            extract_content=extract_content,
            block_patterns=self.config.block_url_patterns,
            timeout_ms=self.config.navigation_timeout_ms,
        )
        return outcome.raise_for_failure()

    async def _enrich(self, executor: RetryExecutor, stub: ArticleStub) -> EnrichedArticle:
        url = normalize_url(stub.link, self.config.strip_query)
        page = await executor.run(
            lambda session: self._fetch(session, url, extract_content=True),
            label=f"fetch {url}",
        )
        if isinstance(page, Blocked):
            raise BotBlocked(page.resolved_url)

        update: dict[str, Any] = {
            "link": page.resolved_url,
            "favicon": page.favicon,
        }
        if stub.image:
            update["image"] = await self._resolve_image(executor, stub.image)

        if self.config.extract_content:
            status, excerpt, content = self.extractor.process(page.html, page.resolved_url)
            if status is ExtractionStatus.EXTRACTED:
                update["content"] = content
                if excerpt:
                    update["excerpt"] = excerpt

        return EnrichedArticle.from_stub(stub).model_copy(update=update)

    async def _resolve_image(self, executor: RetryExecutor, image: str) -> str:
        """Follow redirects on the thumbnail URL, keeping the original on failure."""
        try:
            page = await executor.run(
                lambda session: self._fetch(session, image, extract_content=False),
                label=f"resolve image {image}",
            )
        except Exception as e:
            logger.warning(format_error(f"Could not resolve image {image}", e))
            return image

        if isinstance(page, Blocked):
            logger.warning("Image %s redirected to a verification wall, keeping original", image)
            return image
        return page.resolved_url

    def _notify(self, article: EnrichedArticle) -> None:
        if self._article_ready_callback is None:
            return
        try:
            task = asyncio.ensure_future(self._article_ready_callback(article.model_copy()))
        except Exception as e:
            logger.error("article_ready_callback failed: %s", e)
            return
        self._callback_tasks.add(task)
        task.add_done_callback(self._on_callback_done)

    def _on_callback_done(self, task: asyncio.Future) -> None:
        self._callback_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("article_ready_callback failed: %s", task.exception())

    async def _drain_callbacks(self) -> None:
        if self._callback_tasks:
            await asyncio.gather(*list(self._callback_tasks), return_exceptions=True)


async def get_content(
    articles: Iterable[ArticleInput],
    config: Optional[EnricherConfig] = None,
    **kwargs,
) -> list[EnrichedArticle]:
    """Shortcut for ``ArticleEnricher(config, **kwargs).get_content(articles)``."""
    return await ArticleEnricher(config, **kwargs).get_content(articles)
