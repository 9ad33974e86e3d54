"""Crawl control loop: dequeue, fetch, classify, extract, enqueue, repeat."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from .config import CrawlConfig
from .constants import PROGRESS_LOG_EVERY
from .dedup import DedupIndex
from .extractors import ExtractionPipeline
from .fetcher import Fetcher, Transport
from .frontier import Frontier
from .sinks import Emitter, RecordSink
from .stats import StatsCollector
from .storage import Storage
from .types import CrawlLink, CrawlSession, DriverState, FetchResult, StopReason
from .url import normalize_url


LOGGER = logging.getLogger(__name__)


class InvalidStateError(RuntimeError):
    """Raised when a driver operation is called in the wrong lifecycle state."""


class CrawlDriver:
    """Single-session crawler: `IDLE` -> `RUNNING` -> `STOPPED`.

    The driver waits on exactly one fetch at a time; it blocks on it and
    only touches the frontier, dedup indexes, and priority state between
    fetches. A failed fetch is skipped without retry. The only ways to stop
    are an exhausted frontier or a link-count/time bound.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        fetcher: Transport | None = None,
        sink: RecordSink | Emitter | None = None,
        stats: StatsCollector | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CrawlConfig()
        self.sink = sink
        self.stats = stats or StatsCollector()
        self._clock = clock

        self.fetcher = fetcher or Fetcher(
            user_agent=self.config.user_agent,
            headers=self.config.default_headers,
            timeout_seconds=self.config.max_link_fetch_time,
        )
        self._owns_fetcher = fetcher is None

        self.classifier = self.config.build_classifier()
        self.priority_engine = self.config.build_priority_engine()
        self.link_index = DedupIndex()
        self.record_index = DedupIndex()

        self.frontier = Frontier(
            max_crawl_depth=self.config.max_crawl_depth,
            max_crawled_links=self.config.max_crawled_links,
            max_crawl_time=self.config.max_crawl_time,
            priority_engine=self.priority_engine,
            link_index=self.link_index,
            clock=clock,
        )
        self.pipeline = ExtractionPipeline(
            link_extractors=self.config.build_link_extractors(),
            data_extractors=self.config.build_data_extractors(),
            record_index=self.record_index,
            sink=sink,
        )

        self.state = DriverState.IDLE
        self.session: CrawlSession | None = None
        self.stop_reason: StopReason | None = None

    def start(self, seed_url: str | None = None) -> None:
        """Begin a crawl session from `seed_url` (or the configured seed) at depth 0.

        The driver only becomes `RUNNING` once the seed is queued; if anything
        before that raises, it stays `IDLE` and `start()` may be retried.
        """

        if self.state != DriverState.IDLE:
            raise InvalidStateError(f"Cannot start a crawl while {self.state.value}")

        seed = (seed_url or self.config.seed_url or "").strip()
        if normalize_url(seed) is None:
            raise ValueError(f"Seed URL must be absolute: {seed!r}")

        if isinstance(self.sink, Storage):
            self.sink.save_crawl_config(self.config)

        session = CrawlSession(start_time=self._clock())
        self.stats.record_enqueue(self.frontier.enqueue(seed, 0))

        self.session = session
        self.state = DriverState.RUNNING
        LOGGER.info("Started crawling %s at %s", seed, session.started_at)

    def step(self) -> bool:
        """Run one loop iteration; return False once the driver has stopped."""

        if self.state == DriverState.IDLE or self.session is None:
            raise InvalidStateError("Crawl has not been started")
        if self.state == DriverState.STOPPED:
            return False

        reason = self.frontier.stop_reason(self.session)
        if reason is not None:
            self._stop(reason)
            return False

        link = self.frontier.dequeue_next()
        if link is None:
            self._stop(StopReason.FRONTIER_EXHAUSTED)
            return False

        self.session.links_crawled += 1
        if self.session.links_crawled % PROGRESS_LOG_EVERY == 0:
            LOGGER.info(
                "%d / %d    %s",
                self.session.links_crawled,
                self.frontier.qsize(),
                link.url,
            )

        result = self.fetcher.fetch(link.url, timeout_seconds=self.config.max_link_fetch_time)
        self.stats.record_fetch(result)

        if not result.ok:
            LOGGER.debug(
                "Skipping %s: %s",
                link.url,
                result.error or f"HTTP status {result.status_code}",
            )
            return True

        self._process_document(link, result)
        return True

    def run(self) -> dict[str, Any]:
        """Step until stopped and return a crawl summary."""

        if self.state == DriverState.IDLE:
            raise InvalidStateError("Crawl has not been started")

        try:
            while self.step():
                pass
        finally:
            self._release_fetcher()

        return self._finish()

    def crawl(self, seed_url: str | None = None) -> dict[str, Any]:
        """Start from `seed_url` and run to completion."""

        self.start(seed_url)
        return self.run()

    @property
    def links_crawled(self) -> int:
        return 0 if self.session is None else self.session.links_crawled

    def _process_document(self, link: CrawlLink, result: FetchResult) -> None:
        body = result.body or b""
        document_url = result.effective_url

        try:
            mime_type = self.classifier.sniff(body)
            content = body.decode("utf-8-sig", errors="replace")
            extraction = self.pipeline.extract(mime_type, content, document_url, link.depth)
        except Exception:
            LOGGER.warning("Extraction failed for %s", document_url, exc_info=True)
            self.stats.record_extraction_error()
            return

        self.stats.record_extraction(extraction)
        self.stats.record_enqueue_many(self.frontier.enqueue_many(extraction.links))

    def _release_fetcher(self) -> None:
        # An injected transport belongs to the caller.
        if self._owns_fetcher:
            self.fetcher.close()

    def _stop(self, reason: StopReason) -> None:
        self.state = DriverState.STOPPED
        self._release_fetcher()
        self.stop_reason = reason
        self.stats.record_stop(reason.value)
        LOGGER.info(
            "Stopped crawling (%s) after %d links, %d queued",
            reason.value,
            self.links_crawled,
            self.frontier.qsize(),
        )

    def _finish(self) -> dict[str, Any]:
        self.stats.record_frontier_snapshot(self.frontier.snapshot())
        self.stats.finish()
        summary = self.stats.to_json()

        if isinstance(self.sink, Storage):
            self.sink.save_crawl_stats(summary)

        return {
            "state": self.state.value,
            "stop_reason": None if self.stop_reason is None else self.stop_reason.value,
            "links_crawled": self.links_crawled,
            "priority": self.priority_engine.watermarks(),
            "stats": summary,
        }


__all__ = ["CrawlDriver", "InvalidStateError"]
