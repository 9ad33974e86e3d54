"""Crawl statistics: lock-protected counters plus a JSON summary."""

from __future__ import annotations

from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
import threading
from typing import Any, Iterable, Mapping

from .frontier import EnqueueResult, EnqueueStatus
from .types import CrawlStats, ExtractionResult, FetchResult


# Enqueue outcomes with a dedicated `CrawlStats` field; others are "extra".
_ENQUEUE_FIELDS: dict[EnqueueStatus, str] = {
    EnqueueStatus.ENQUEUED: "frontier_enqueued",
    EnqueueStatus.SKIPPED_SEEN: "frontier_skipped_seen",
    EnqueueStatus.SKIPPED_DEPTH: "frontier_skipped_depth",
    EnqueueStatus.SKIPPED_DROPPED: "frontier_skipped_dropped",
}


def _error_type(error: str) -> str:
    # Fetch errors are formatted as "<ExceptionClass>: <message>".
    return error.split(":", maxsplit=1)[0].strip() or "Unknown"


def _seconds_between(started_at: str, finished_at: str | None) -> float:
    start = datetime.fromisoformat(started_at)
    end = datetime.fromisoformat(finished_at) if finished_at else datetime.now(timezone.utc)
    return max(0.0, (end - start).total_seconds())


class StatsCollector:
    """Aggregate what one crawl session did.

    `CrawlStats` holds the headline counters; everything else (per-status
    breakdowns, timings, mime mix) lives here and only shows up in `to_json()`.
    """

    def __init__(self, base: CrawlStats | None = None) -> None:
        self._lock = threading.Lock()
        self._core = base or CrawlStats()

        self._enqueue_extra: Counter[str] = Counter()
        self._frontier_snapshot: dict[str, int] = {}

        self._status_codes: Counter[str] = Counter()
        self._error_types: Counter[str] = Counter()
        self._fetch_ms: list[int] = []
        self._bytes_fetched = 0

        self._documents_by_mime: Counter[str] = Counter()
        self._links_rejected = 0

        self._stop_reason: str | None = None

    def record_enqueue(self, result_or_status: EnqueueResult | EnqueueStatus) -> None:
        status = getattr(result_or_status, "status", result_or_status)
        field_name = _ENQUEUE_FIELDS.get(status)

        with self._lock:
            if field_name is None:
                self._enqueue_extra[status.value] += 1
            else:
                setattr(self._core, field_name, getattr(self._core, field_name) + 1)

    def record_enqueue_many(self, results: Iterable[EnqueueResult]) -> None:
        for result in results:
            self.record_enqueue(result)

    def record_frontier_snapshot(self, snapshot: Mapping[str, int]) -> None:
        with self._lock:
            self._frontier_snapshot = dict(snapshot)

    def record_fetch(self, result: FetchResult) -> None:
        """Count one fetch attempt, successful or not."""

        with self._lock:
            if result.ok:
                self._core.fetched_ok += 1
            else:
                self._core.fetched_error += 1

            if result.status_code is not None:
                self._status_codes[str(result.status_code)] += 1
            if result.error:
                self._error_types[_error_type(result.error)] += 1
            if result.elapsed_ms is not None:
                self._fetch_ms.append(int(result.elapsed_ms))
            self._bytes_fetched += result.content_length or 0

    def record_extraction(self, result: ExtractionResult) -> None:
        """Count what one document's extraction produced."""

        with self._lock:
            self._documents_by_mime[result.mime_type or "unknown"] += 1
            self._core.records_emitted += len(result.records)
            self._core.records_duplicate += result.duplicate_records
            self._core.links_extracted += len(result.links)
            self._links_rejected += result.rejected_links
            self._core.extraction_errors += result.failed_extractors

    def record_extraction_error(self) -> None:
        with self._lock:
            self._core.extraction_errors += 1

    def record_stop(self, reason: str) -> None:
        with self._lock:
            self._stop_reason = reason

    def finish(self) -> None:
        with self._lock:
            self._core.finish()

    def core(self) -> CrawlStats:
        """Snapshot of the headline counters."""

        with self._lock:
            return replace(self._core)

    def to_json(self) -> dict[str, Any]:
        """Summary payload for the stats manifest and CLI output."""

        with self._lock:
            duration = _seconds_between(self._core.started_at, self._core.finished_at)
            fetches = self._core.fetched_ok + self._core.fetched_error
            fetch_ms_total = sum(self._fetch_ms)

            payload: dict[str, Any] = self._core.to_json()
            payload.update(
                duration_seconds=duration,
                stop_reason=self._stop_reason,
                throughput={"fetched_per_second": fetches / duration if duration > 0 else 0.0},
                frontier={
                    "extra_status_counts": dict(self._enqueue_extra),
                    "snapshot": dict(self._frontier_snapshot),
                },
                fetch={
                    "status_code_counts": dict(self._status_codes),
                    "error_type_counts": dict(self._error_types),
                    "elapsed_ms_total": fetch_ms_total,
                    "elapsed_ms_samples": len(self._fetch_ms),
                    "elapsed_ms_avg": fetch_ms_total / len(self._fetch_ms) if self._fetch_ms else 0.0,
                    "bytes_total": self._bytes_fetched,
                },
                extraction={
                    "by_mime_type": dict(self._documents_by_mime),
                    "links_rejected": self._links_rejected,
                },
            )
            return payload


__all__ = ["StatsCollector"]
