"""Crawler package: config, shared types, and scheduling/extraction components."""

from .config import CrawlConfig, load_config, save_config
from .dedup import DedupIndex, content_digest
from .driver import CrawlDriver, InvalidStateError
from .extractors import (
    ExtractionPipeline,
    PatternDataExtractor,
    PatternLinkExtractor,
)
from .fetcher import Fetcher, Transport
from .frontier import EnqueueResult, EnqueueStatus, Frontier
from .priority import PriorityRuleEngine
from .sinks import ListSink, LoggingSink, RecordSink
from .sniff import MimeClassifier
from .stats import StatsCollector
from .storage import Storage
from .types import (
    CrawlLink,
    CrawlSession,
    CrawlStats,
    DirectiveKind,
    DriverState,
    ExtractionResult,
    FetchResult,
    MimeSniffRule,
    PriorityDirective,
    PriorityRule,
    StopReason,
    utc_now_iso,
)
from .url import find_base_url, normalize_url, resolve_loadable

__all__ = [
    "CrawlConfig",
    "CrawlDriver",
    "CrawlLink",
    "CrawlSession",
    "CrawlStats",
    "DedupIndex",
    "DirectiveKind",
    "DriverState",
    "EnqueueResult",
    "EnqueueStatus",
    "ExtractionPipeline",
    "ExtractionResult",
    "FetchResult",
    "Fetcher",
    "Frontier",
    "InvalidStateError",
    "ListSink",
    "LoggingSink",
    "MimeClassifier",
    "MimeSniffRule",
    "PatternDataExtractor",
    "PatternLinkExtractor",
    "PriorityDirective",
    "PriorityRule",
    "PriorityRuleEngine",
    "RecordSink",
    "StatsCollector",
    "StopReason",
    "Storage",
    "Transport",
    "content_digest",
    "find_base_url",
    "load_config",
    "normalize_url",
    "resolve_loadable",
    "save_config",
    "utc_now_iso",
]
