"""Priority-ordered frontier with depth, dedup, and crawl-bound enforcement."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .dedup import DedupIndex, content_digest
from .priority import PriorityRuleEngine
from .types import CrawlLink, CrawlSession, StopReason
from .url import normalize_url


class EnqueueStatus(str, Enum):
    """Result status for frontier enqueue attempts."""

    ENQUEUED = "enqueued"
    SKIPPED_INVALID_URL = "skipped_invalid_url"
    SKIPPED_DEPTH = "skipped_depth"
    SKIPPED_SEEN = "skipped_seen"
    SKIPPED_DROPPED = "skipped_dropped"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one enqueue attempt."""

    status: EnqueueStatus
    normalized_url: str | None = None
    link: CrawlLink | None = None
    priority: int | None = None

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ENQUEUED


class Frontier:
    """Pending links ordered by priority.

    - Higher priority is dequeued first; equal priorities leave in insertion order.
    - Links are stored in their serialized `depth>url` form.
    - A link's identity is marked seen when it is first evaluated, including
      when a priority rule drops it, so rediscovery never re-runs the rules.
    - Bounds of 0 mean unlimited.
    """

    def __init__(
        self,
        *,
        max_crawl_depth: int = 0,
        max_crawled_links: int = 0,
        max_crawl_time: float = 0.0,
        priority_engine: PriorityRuleEngine | None = None,
        link_index: DedupIndex | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_crawl_depth < 0:
            raise ValueError("max_crawl_depth must be >= 0")
        if max_crawled_links < 0:
            raise ValueError("max_crawled_links must be >= 0")
        if max_crawl_time < 0:
            raise ValueError("max_crawl_time must be >= 0")

        self.max_crawl_depth = max_crawl_depth
        self.max_crawled_links = max_crawled_links
        self.max_crawl_time = max_crawl_time

        self.priority_engine = priority_engine or PriorityRuleEngine()
        self.link_index = link_index if link_index is not None else DedupIndex()
        self._clock = clock

        self._heap: list[tuple[int, int, str]] = []
        self._counter = itertools.count()
        self._lock = threading.Lock()

        self._enqueued_count = 0
        self._dequeued_count = 0
        self._skipped_seen_count = 0
        self._skipped_depth_count = 0
        self._skipped_dropped_count = 0
        self._skipped_invalid_count = 0

    def enqueue(self, url: str, depth: int) -> EnqueueResult:
        """Attempt to enqueue one URL at `depth`."""

        if self.max_crawl_depth != 0 and depth > self.max_crawl_depth:
            with self._lock:
                self._skipped_depth_count += 1
            return EnqueueResult(EnqueueStatus.SKIPPED_DEPTH)

        normalized = normalize_url(url)
        if normalized is None:
            with self._lock:
                self._skipped_invalid_count += 1
            return EnqueueResult(EnqueueStatus.SKIPPED_INVALID_URL)

        digest = content_digest(normalized)
        link = CrawlLink(url=url, depth=depth)

        with self._lock:
            if self.link_index.seen(digest):
                self._skipped_seen_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_SEEN, normalized_url=normalized)

            serialized = link.serialize()
            priority = self.priority_engine.compute(serialized)
            self.link_index.mark_seen(digest)

            if priority is None:
                self._skipped_dropped_count += 1
                return EnqueueResult(
                    EnqueueStatus.SKIPPED_DROPPED,
                    normalized_url=normalized,
                    link=link,
                )

            # heapq is a min-heap: negate priority, counter keeps FIFO on ties.
            heapq.heappush(self._heap, (-priority, next(self._counter), serialized))
            self._enqueued_count += 1

        return EnqueueResult(
            EnqueueStatus.ENQUEUED,
            normalized_url=normalized,
            link=link,
            priority=priority,
        )

    def enqueue_many(self, links: list[CrawlLink]) -> list[EnqueueResult]:
        """Attempt to enqueue multiple links, preserving input order."""

        return [self.enqueue(link.url, link.depth) for link in links]

    def dequeue_next(self) -> CrawlLink | None:
        """Pop the highest-priority link, or `None` when empty."""

        with self._lock:
            if not self._heap:
                return None
            _, _, serialized = heapq.heappop(self._heap)
            self._dequeued_count += 1
        return CrawlLink.parse(serialized)

    def stop_reason(self, session: CrawlSession) -> StopReason | None:
        """Return why crawling must stop now, or `None` to keep going."""

        if self.empty():
            return StopReason.FRONTIER_EXHAUSTED
        if self.max_crawled_links != 0 and session.links_crawled >= self.max_crawled_links:
            return StopReason.MAX_CRAWLED_LINKS
        if self.max_crawl_time != 0:
            elapsed = self._clock() - session.start_time
            if elapsed >= self.max_crawl_time:
                return StopReason.MAX_CRAWL_TIME
        return None

    def should_continue(self, session: CrawlSession) -> bool:
        """True iff links remain and no link-count or time bound is reached."""

        return self.stop_reason(session) is None

    def peek_all(self) -> list[CrawlLink]:
        """Return pending links in dequeue order without removing them."""

        with self._lock:
            ordered = sorted(self._heap)
        return [CrawlLink.parse(serialized) for _, _, serialized in ordered]

    def qsize(self) -> int:
        with self._lock:
            return len(self._heap)

    def empty(self) -> bool:
        return self.qsize() == 0

    def __len__(self) -> int:
        return self.qsize()

    def snapshot(self) -> dict[str, int]:
        """Return frontier counters for logs/stats reporting."""

        with self._lock:
            return {
                "queue_size": len(self._heap),
                "seen_links": len(self.link_index),
                "enqueued": self._enqueued_count,
                "dequeued": self._dequeued_count,
                "skipped_seen": self._skipped_seen_count,
                "skipped_depth": self._skipped_depth_count,
                "skipped_dropped": self._skipped_dropped_count,
                "skipped_invalid": self._skipped_invalid_count,
            }


__all__ = [
    "EnqueueResult",
    "EnqueueStatus",
    "Frontier",
]
