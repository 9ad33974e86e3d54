"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_DATA_EXTRACTORS,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_LINK_EXTRACTORS,
    DEFAULT_MAX_CRAWL_DEPTH,
    DEFAULT_MAX_CRAWL_TIME,
    DEFAULT_MAX_CRAWLED_LINKS,
    DEFAULT_MAX_LINK_FETCH_TIME,
    DEFAULT_SNIFF_RULES,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .extractors import (
    DataExtractor,
    LinkExtractor,
    coerce_data_extractors,
    coerce_link_extractors,
)
from .priority import PriorityRuleEngine, coerce_priority_rules
from .sniff import MimeClassifier, coerce_sniff_rules
from .types import JSONDict, JSONValue, MimeSniffRule, PriorityRule


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid int for '{key}': {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_mapping(value: Any, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return {str(k): v for k, v in value.items()}


def _as_list(value: Any, key: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{key}' must be a list, got {type(value).__name__}")
    return list(value)


def _pattern_text(value: Any) -> Any:
    # Unwraps both compiled regexes and pattern extractors.
    while not isinstance(value, str) and hasattr(value, "pattern"):
        value = value.pattern
    return value


@dataclass(slots=True)
class CrawlConfig:
    """Everything the hosting environment may set before a crawl starts.

    Times are in seconds. A bound of 0 means unlimited.
    """

    seed_url: str | None = None

    max_crawl_time: float = DEFAULT_MAX_CRAWL_TIME
    max_crawl_depth: int = DEFAULT_MAX_CRAWL_DEPTH
    max_crawled_links: int = DEFAULT_MAX_CRAWLED_LINKS
    max_link_fetch_time: float = DEFAULT_MAX_LINK_FETCH_TIME

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))

    sniff_rules: list[MimeSniffRule] = field(
        default_factory=lambda: coerce_sniff_rules(DEFAULT_SNIFF_RULES)
    )
    link_extractors: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_LINK_EXTRACTORS))
    data_extractors: dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_DATA_EXTRACTORS))
    priority_rules: list[PriorityRule] = field(default_factory=list)

    metadata: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.seed_url is not None:
            self.seed_url = self.seed_url.strip() or None

        if self.max_crawl_time < 0:
            raise ValueError("max_crawl_time must be >= 0")
        if self.max_crawl_depth < 0:
            raise ValueError("max_crawl_depth must be >= 0")
        if self.max_crawled_links < 0:
            raise ValueError("max_crawled_links must be >= 0")
        if self.max_link_fetch_time < 0:
            raise ValueError("max_link_fetch_time must be >= 0")

        self.sniff_rules = coerce_sniff_rules(self.sniff_rules)
        self.priority_rules = coerce_priority_rules(self.priority_rules)
        self.link_extractors = {
            str(mime).strip().lower(): value for mime, value in self.link_extractors.items()
        }
        self.data_extractors = {
            str(mime).strip().lower(): value for mime, value in self.data_extractors.items()
        }
        # Validate patterns eagerly so bad config fails at load time.
        coerce_link_extractors(self.link_extractors)
        coerce_data_extractors(self.data_extractors)

    def add_priority_rule(self, pattern: Any, priority: Any) -> "CrawlConfig":
        """Append a priority rule (`priority`: int, `"++"`, `"--"`, or `None`)."""

        self.priority_rules.append(PriorityRule.from_value(pattern, priority))
        return self

    def build_classifier(self) -> MimeClassifier:
        return MimeClassifier(self.sniff_rules)

    def build_priority_engine(self) -> PriorityRuleEngine:
        """Return a fresh engine; its watermarks belong to one crawl session."""

        return PriorityRuleEngine(self.priority_rules)

    def build_link_extractors(self) -> dict[str, LinkExtractor]:
        return coerce_link_extractors(self.link_extractors)

    def build_data_extractors(self) -> dict[str, DataExtractor]:
        return coerce_data_extractors(self.data_extractors)

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility.

        Extractors registered as callables are recorded by name only.
        """

        return {
            "seed_url": self.seed_url,
            "max_crawl_time": self.max_crawl_time,
            "max_crawl_depth": self.max_crawl_depth,
            "max_crawled_links": self.max_crawled_links,
            "max_link_fetch_time": self.max_link_fetch_time,
            "user_agent": self.user_agent,
            "default_headers": self.default_headers,
            "sniff_rules": [rule.to_json() for rule in self.sniff_rules],
            "link_extractors": {
                mime: _describe_extractor(value) for mime, value in self.link_extractors.items()
            },
            "data_extractors": {
                mime: _describe_extractor(value) for mime, value in self.data_extractors.items()
            },
            "priority_rules": [rule.to_json() for rule in self.priority_rules],
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary; missing keys keep defaults."""

        kwargs: dict[str, Any] = {}

        if payload.get("seed_url") is not None:
            kwargs["seed_url"] = str(payload["seed_url"])

        if "max_crawl_time" in payload:
            kwargs["max_crawl_time"] = _as_float(payload["max_crawl_time"], "max_crawl_time")
        if "max_crawl_depth" in payload:
            kwargs["max_crawl_depth"] = _as_int(payload["max_crawl_depth"], "max_crawl_depth")
        if "max_crawled_links" in payload:
            kwargs["max_crawled_links"] = _as_int(
                payload["max_crawled_links"],
                "max_crawled_links",
            )
        if "max_link_fetch_time" in payload:
            kwargs["max_link_fetch_time"] = _as_float(
                payload["max_link_fetch_time"],
                "max_link_fetch_time",
            )

        if "user_agent" in payload:
            kwargs["user_agent"] = str(payload["user_agent"])
        if "default_headers" in payload:
            kwargs["default_headers"] = {
                str(k): str(v)
                for k, v in _as_mapping(payload["default_headers"], "default_headers").items()
            }

        if "sniff_rules" in payload:
            kwargs["sniff_rules"] = _as_list(payload["sniff_rules"], "sniff_rules")
        if "link_extractors" in payload:
            kwargs["link_extractors"] = _as_mapping(payload["link_extractors"], "link_extractors")
        if "data_extractors" in payload:
            kwargs["data_extractors"] = _as_mapping(payload["data_extractors"], "data_extractors")
        if "priority_rules" in payload:
            kwargs["priority_rules"] = _as_list(payload["priority_rules"], "priority_rules")

        if "metadata" in payload:
            kwargs["metadata"] = _as_mapping(payload["metadata"], "metadata")

        return cls(**kwargs)


def _describe_extractor(value: Any) -> JSONValue:
    text = _pattern_text(value)
    if isinstance(text, str):
        return text
    return getattr(value, "__qualname__", None) or type(value).__name__


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "load_config",
    "save_config",
]
