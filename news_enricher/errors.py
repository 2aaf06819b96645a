"""Error taxonomy and network-failure classification."""

from __future__ import annotations

import httpx
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class EnrichmentError(Exception):
    """Base class for all enrichment errors."""


class ExhaustedProxies(EnrichmentError):
    """No candidate proxy passed validation."""


class ProxyPoolEmpty(EnrichmentError):
    """A proxy was requested from an empty pool."""


class ProxyTransientFailure(EnrichmentError):
    """Network failure tied to the proxy used for an attempt."""


class AllProxiesFailed(EnrichmentError):
    """Every proxy in the pool failed for a single operation."""


class FetchFailed(EnrichmentError):
    """Navigation failed in a way a different proxy will not fix."""


class SessionLaunchFailed(EnrichmentError):
    """The browser session for an attempt could not be opened."""


class BotBlocked(EnrichmentError):
    """The target site redirected to a bot-verification wall."""

    def __init__(self, url: str):
        super().__init__(f"Bot verification wall at {url}")
        self.url = url


# Chromium net error codes (and generic phrases) that point at the
# connection or proxy rather than the target page.
_RETRYABLE_MARKERS = (
    "err_tunnel_connection_failed",
    "err_proxy_connection_failed",
    "err_proxy_certificate_invalid",
    "err_socks_connection_failed",
    "err_connection_refused",
    "err_connection_reset",
    "err_connection_closed",
    "err_connection_aborted",
    "err_connection_failed",
    "err_connection_timed_out",
    "err_timed_out",
    "err_empty_response",
    "err_cert_",
    "err_ssl_",
    "timeout",
    "timed out",
    "connection reset",
    "connection refused",
)


def is_retryable(error: BaseException) -> bool:
    """Return True when another proxy may succeed where this one failed."""
    if isinstance(error, ProxyTransientFailure):
        return True
    if isinstance(error, (PlaywrightTimeoutError, TimeoutError, httpx.TransportError)):
        return True
    if isinstance(error, EnrichmentError):
        return False

    error_str = str(error).lower()
    return any(marker in error_str for marker in _RETRYABLE_MARKERS)


def format_error(context: str, error: BaseException) -> str:
    """Format an error for a single log line."""
    kind = "retryable" if is_retryable(error) else "fatal"
    message = str(error).strip().splitlines()[0] if str(error).strip() else type(error).__name__
    return f"{context}: {type(error).__name__} ({kind}): {message}"
