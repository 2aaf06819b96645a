from contextlib import asynccontextmanager

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from news_enricher.errors import (
    AllProxiesFailed,
    BotBlocked,
    FetchFailed,
    ProxyTransientFailure,
    SessionLaunchFailed,
    format_error,
    is_retryable,
)
from news_enricher.proxy_pool import ProxyPool
from news_enricher.retry import RetryExecutor


@pytest.mark.parametrize(
    "error",
    [
        PlaywrightError("net::ERR_TUNNEL_CONNECTION_FAILED at https://example.com/"),
        PlaywrightError("net::ERR_PROXY_CONNECTION_FAILED at https://example.com/"),
        PlaywrightError("net::ERR_CONNECTION_RESET at https://example.com/"),
        PlaywrightError("net::ERR_EMPTY_RESPONSE at https://example.com/"),
        PlaywrightError("net::ERR_CERT_AUTHORITY_INVALID at https://example.com/"),
        PlaywrightTimeoutError("Timeout 30000ms exceeded."),
        TimeoutError(),
        ProxyTransientFailure("tunnel closed"),
    ],
)
def test_network_errors_are_retryable(error):
    assert is_retryable(error)


@pytest.mark.parametrize(
    "error",
    [
        PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://nope.invalid/"),
        ValueError("bad markup"),
        FetchFailed("net::ERR_ABORTED"),
        BotBlocked("https://www.google.com/sorry/index"),
    ],
)
def test_other_errors_are_not_retryable(error):
    assert not is_retryable(error)


def test_format_error_names_kind():
    line = format_error("fetch https://x/1", ProxyTransientFailure("tunnel closed"))
    assert line == "fetch https://x/1: ProxyTransientFailure (retryable): tunnel closed"


class TestRetryExecutor:
    @pytest.mark.asyncio
    async def test_success_on_first_proxy(self, sessions):
        pool = ProxyPool(["a:1", "b:2"])
        executor = RetryExecutor(pool, sessions)

        async def operation(session):
            return f"ok via {session.proxy}"

        assert await executor.run(operation) == "ok via a:1"
        assert sessions.proxies == ["a:1"]
        assert all(s.closed for s in sessions.sessions)
        assert len(pool) == 2

    @pytest.mark.asyncio
    async def test_exhausts_whole_pool_before_giving_up(self, sessions):
        pool = ProxyPool(["a:1", "b:2", "c:3"])
        executor = RetryExecutor(pool, sessions)

        async def operation(session):
            raise PlaywrightError("net::ERR_TUNNEL_CONNECTION_FAILED")

        with pytest.raises(AllProxiesFailed) as excinfo:
            await executor.run(operation)

        assert sessions.proxies == ["a:1", "b:2", "c:3"]
        assert pool.is_empty()
        assert isinstance(excinfo.value.__cause__, PlaywrightError)
        assert all(s.closed for s in sessions.sessions)

    @pytest.mark.asyncio
    async def test_rotates_to_next_proxy_after_failure(self, sessions):
        pool = ProxyPool(["a:1", "b:2", "c:3"])
        executor = RetryExecutor(pool, sessions)

        async def operation(session):
            if session.proxy == "a:1":
                raise ProxyTransientFailure("connection reset")
            return session.proxy

        assert await executor.run(operation) == "b:2"
        assert list(pool) == ["b:2", "c:3"]
        # The next run continues the rotation rather than restarting it
        assert await executor.run(operation) == "c:3"

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_without_consuming_proxies(self, sessions):
        pool = ProxyPool(["a:1", "b:2", "c:3"])
        executor = RetryExecutor(pool, sessions)

        async def operation(session):
            raise ValueError("parser exploded")

        with pytest.raises(ValueError):
            await executor.run(operation)

        assert sessions.proxies == ["a:1"]
        assert len(pool) == 3
        assert sessions.sessions[0].closed

    @pytest.mark.asyncio
    async def test_empty_pool_fails_immediately(self, sessions):
        executor = RetryExecutor(ProxyPool(), sessions)

        async def operation(session):
            raise AssertionError("should not run")

        with pytest.raises(AllProxiesFailed):
            await executor.run(operation)
        assert sessions.sessions == []

    @pytest.mark.asyncio
    async def test_direct_mode_single_attempt(self, sessions):
        executor = RetryExecutor(None, sessions)

        async def operation(session):
            return session.proxy

        assert await executor.run(operation) is None
        assert sessions.proxies == [None]

    @pytest.mark.asyncio
    async def test_direct_mode_network_failure_is_all_proxies_failed(self, sessions):
        executor = RetryExecutor(None, sessions)

        async def operation(session):
            raise PlaywrightTimeoutError("Timeout 30000ms exceeded.")

        with pytest.raises(AllProxiesFailed):
            await executor.run(operation)
        assert sessions.proxies == [None]
        assert sessions.sessions[0].closed

    @pytest.mark.asyncio
    async def test_session_launch_failure_keeps_proxy(self):
        pool = ProxyPool(["a:1", "b:2"])

        @asynccontextmanager
        async def open_session(proxy):
            raise PlaywrightTimeoutError("browserType.launch: Timeout 180000ms exceeded.")
            yield

        async def operation(session):
            raise AssertionError("should not run")

        with pytest.raises(SessionLaunchFailed) as excinfo:
            await RetryExecutor(pool, open_session).run(operation)

        assert isinstance(excinfo.value.__cause__, PlaywrightTimeoutError)
        assert list(pool) == ["a:1", "b:2"]
        assert not is_retryable(excinfo.value)
