"""Shared fixtures and fakes for the crawler test suite."""

from __future__ import annotations

import pytest

from priocrawl.crawler import CrawlConfig, FetchResult, ListSink


class FakeTransport:
    """Serve canned bodies by URL; unknown URLs fail like a 404."""

    def __init__(self, pages=None, *, default=None, redirects=None):
        self.pages = dict(pages or {})
        self.default = default
        self.redirects = dict(redirects or {})
        self.calls = []
        self.timeouts = []
        self.closed = False

    def fetch(self, url, *, timeout_seconds=None):
        self.calls.append(url)
        self.timeouts.append(timeout_seconds)

        final_url = self.redirects.get(url, url)
        body = self.pages.get(final_url, self.default)
        if callable(body):
            body = body(url)
        if body is None:
            return FetchResult(
                requested_url=url,
                final_url=final_url,
                status_code=404,
                content_type="text/html",
                body=b"",
            )
        if isinstance(body, str):
            body = body.encode("utf-8")
        return FetchResult(
            requested_url=url,
            final_url=final_url,
            status_code=200,
            content_type="text/html",
            body=body,
            elapsed_ms=1,
        )

    def close(self):
        self.closed = True


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def config():
    """Config with a generous fetch timeout and no crawl bounds."""
    return CrawlConfig(seed_url="http://example.com/", max_link_fetch_time=5)
