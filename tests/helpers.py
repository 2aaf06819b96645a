"""Fakes standing in for Playwright sessions and pages."""

from __future__ import annotations

from contextlib import asynccontextmanager


class FakeSession:
    def __init__(self, proxy):
        self.proxy = proxy
        self.closed = False


class SessionRecorder:
    """Session factory that records every session it hands out."""

    def __init__(self):
        self.sessions: list[FakeSession] = []

    @property
    def proxies(self) -> list:
        return [s.proxy for s in self.sessions]

    @asynccontextmanager
    async def __call__(self, proxy):
        session = FakeSession(proxy)
        self.sessions.append(session)
        try:
            yield session
        finally:
            session.closed = True


class FakePage:
    def __init__(self, final_url=None, html="<html></html>", favicon=None,
                 goto_error=None, evaluate_error=None, content_error=None):
        self.url = "about:blank"
        self._final_url = final_url
        self._html = html
        self._favicon = favicon
        self._goto_error = goto_error
        self._evaluate_error = evaluate_error
        self._content_error = content_error
        self.goto_calls: list[tuple] = []

    async def goto(self, url, wait_until="load", timeout=None):
        self.goto_calls.append((url, wait_until, timeout))
        if self._goto_error is not None:
            raise self._goto_error
        self.url = self._final_url or url

    async def content(self):
        if self._content_error is not None:
            raise self._content_error
        return self._html

    async def evaluate(self, script):
        if self._evaluate_error is not None:
            raise self._evaluate_error
        return self._favicon


def article_text(lines: int, words_per_line: int = 10) -> str:
    """Article-like text with ``lines * words_per_line`` words."""
    line = " ".join(["council"] + ["budget"] * (words_per_line - 1))
    return "\n".join(line for _ in range(lines))
