"""Core type definitions for the crawl scheduler and extraction pipeline.

Only the standard library and `constants` are imported here, so any crawler
module can depend on these records.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .constants import (
    LINK_SEPARATOR,
    PRIORITY_DECREMENT,
    PRIORITY_DROP,
    PRIORITY_INCREMENT,
)


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for manifests/JSONL."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def compile_pattern(pattern: str | re.Pattern[str], *, flags: int = 0) -> re.Pattern[str]:
    """Compile `pattern` unless it already is a compiled regex."""

    if isinstance(pattern, re.Pattern):
        return pattern
    if isinstance(pattern, str):
        return re.compile(pattern, flags)
    raise TypeError(f"Expected regex pattern or string, got {type(pattern)!r}")


class DriverState(str, Enum):
    """Lifecycle states of a crawl driver."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class StopReason(str, Enum):
    """Why a crawl driver transitioned to `STOPPED`."""

    FRONTIER_EXHAUSTED = "frontier_exhausted"
    MAX_CRAWLED_LINKS = "max_crawled_links"
    MAX_CRAWL_TIME = "max_crawl_time"


class DirectiveKind(str, Enum):
    """Kinds of priority directives a rule can carry."""

    FIXED = "fixed"
    INCREMENT_FROM_MAX = "increment_from_max"
    DECREMENT_FROM_MIN = "decrement_from_min"
    DROP = "drop"


@dataclass(frozen=True, slots=True)
class CrawlLink:
    """A link waiting in (or popped from) the frontier."""

    url: str
    depth: int

    def serialize(self) -> str:
        return f"{self.depth}{LINK_SEPARATOR}{self.url}"

    @classmethod
    def parse(cls, serialized: str) -> "CrawlLink":
        """Rebuild a link from its `depth>url` form."""

        depth_text, separator, url = serialized.partition(LINK_SEPARATOR)
        if not separator:
            raise ValueError(f"Serialized link is missing separator: {serialized!r}")
        try:
            depth = int(depth_text)
        except ValueError as exc:
            raise ValueError(f"Invalid depth in serialized link: {serialized!r}") from exc
        return cls(url=url, depth=depth)


@dataclass(frozen=True, slots=True)
class PriorityDirective:
    """What a matching priority rule assigns: a number, `++`, `--`, or drop."""

    kind: DirectiveKind
    value: int | None = None

    @classmethod
    def fixed(cls, value: int) -> "PriorityDirective":
        return cls(DirectiveKind.FIXED, int(value))

    @classmethod
    def increment_from_max(cls) -> "PriorityDirective":
        return cls(DirectiveKind.INCREMENT_FROM_MAX)

    @classmethod
    def decrement_from_min(cls) -> "PriorityDirective":
        return cls(DirectiveKind.DECREMENT_FROM_MIN)

    @classmethod
    def drop(cls) -> "PriorityDirective":
        return cls(DirectiveKind.DROP)

    @classmethod
    def from_value(cls, value: Any) -> "PriorityDirective":
        """Parse config values: an int, `"++"`, `"--"`, `"drop"`, or `None`."""

        if isinstance(value, PriorityDirective):
            return value
        if value is None:
            return cls.drop()
        if isinstance(value, bool):
            raise ValueError(f"Invalid priority directive: {value!r}")
        if isinstance(value, int):
            return cls.fixed(value)
        if isinstance(value, str):
            raw = value.strip().lower()
            if raw == PRIORITY_INCREMENT:
                return cls.increment_from_max()
            if raw == PRIORITY_DECREMENT:
                return cls.decrement_from_min()
            if raw in {PRIORITY_DROP, "null", "none"}:
                return cls.drop()
            try:
                return cls.fixed(int(raw))
            except ValueError as exc:
                raise ValueError(f"Invalid priority directive: {value!r}") from exc
        raise ValueError(f"Invalid priority directive: {value!r}")

    def to_json(self) -> JSONValue:
        if self.kind == DirectiveKind.FIXED:
            return self.value
        if self.kind == DirectiveKind.INCREMENT_FROM_MAX:
            return PRIORITY_INCREMENT
        if self.kind == DirectiveKind.DECREMENT_FROM_MIN:
            return PRIORITY_DECREMENT
        return None


@dataclass(frozen=True, slots=True)
class PriorityRule:
    """Ordered rule: if `pattern` matches a serialized link, apply `directive`."""

    pattern: re.Pattern[str]
    directive: PriorityDirective

    @classmethod
    def from_value(cls, pattern: str | re.Pattern[str], priority: Any) -> "PriorityRule":
        return cls(
            pattern=compile_pattern(pattern),
            directive=PriorityDirective.from_value(priority),
        )

    def matches(self, serialized_link: str) -> bool:
        return self.pattern.search(serialized_link) is not None

    def to_json(self) -> JSONDict:
        return {
            "pattern": self.pattern.pattern,
            "priority": self.directive.to_json(),
        }


@dataclass(frozen=True, slots=True)
class MimeSniffRule:
    """Ordered rule: if `pattern` matches a content prefix, it is `mime_type`."""

    pattern: re.Pattern[str]
    mime_type: str

    @classmethod
    def from_value(cls, pattern: str | re.Pattern[str], mime_type: str) -> "MimeSniffRule":
        mime = str(mime_type).strip().lower()
        if not mime:
            raise ValueError("Sniff rule requires a non-empty mime type")
        return cls(pattern=compile_pattern(pattern), mime_type=mime)

    def to_json(self) -> JSONDict:
        return {"pattern": self.pattern.pattern, "mime_type": self.mime_type}


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    error: str | None = None

    @classmethod
    def failure(cls, url: str, error: str, *, elapsed_ms: int | None = None) -> "FetchResult":
        """A fetch that produced no response at all."""

        return cls(
            requested_url=url,
            final_url=None,
            status_code=None,
            content_type=None,
            body=None,
            elapsed_ms=elapsed_ms,
            error=error,
        )

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
            and self.body is not None
        )

    @property
    def effective_url(self) -> str:
        return self.final_url or self.requested_url

    @property
    def content_length(self) -> int | None:
        return None if self.body is None else len(self.body)


@dataclass(slots=True)
class CrawlSession:
    """Per-crawl counters read by the frontier stop check."""

    start_time: float
    links_crawled: int = 0
    started_at: str = field(default_factory=utc_now_iso)


@dataclass(slots=True)
class ExtractionResult:
    """Records emitted and candidate links found in one document."""

    mime_type: str | None
    records: list[str] = field(default_factory=list)
    links: list[CrawlLink] = field(default_factory=list)
    duplicate_records: int = 0
    rejected_links: int = 0
    failed_extractors: int = 0


@dataclass(slots=True)
class CrawlStats:
    """Simple mutable counters used for crawl summary reporting."""

    frontier_enqueued: int = 0
    frontier_skipped_seen: int = 0
    frontier_skipped_depth: int = 0
    frontier_skipped_dropped: int = 0

    fetched_ok: int = 0
    fetched_error: int = 0
    records_emitted: int = 0
    records_duplicate: int = 0
    links_extracted: int = 0
    extraction_errors: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "frontier_enqueued": self.frontier_enqueued,
            "frontier_skipped_seen": self.frontier_skipped_seen,
            "frontier_skipped_depth": self.frontier_skipped_depth,
            "frontier_skipped_dropped": self.frontier_skipped_dropped,
            "fetched_ok": self.fetched_ok,
            "fetched_error": self.fetched_error,
            "records_emitted": self.records_emitted,
            "records_duplicate": self.records_duplicate,
            "links_extracted": self.links_extracted,
            "extraction_errors": self.extraction_errors,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


__all__ = [
    "CrawlLink",
    "CrawlSession",
    "CrawlStats",
    "DirectiveKind",
    "DriverState",
    "ExtractionResult",
    "FetchResult",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "MimeSniffRule",
    "PriorityDirective",
    "PriorityRule",
    "StopReason",
    "compile_pattern",
    "utc_now_iso",
]
