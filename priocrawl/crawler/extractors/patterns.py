"""Regex-driven extractors for links and data records.

Extraction is pattern based: every non-overlapping match in the whole
document is visited, and for patterns with several alternative capture
groups (e.g. anchor hrefs vs. feed-link hrefs) the first non-empty group is
the value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Mapping

from ..constants import WILDCARD_MIME
from ..types import compile_pattern


LinkExtractor = Callable[[str], Iterable[str]]
DataExtractor = Callable[[str], Iterable[str]]


def first_group(match: re.Match[str]) -> str | None:
    """Return the first non-empty capture group, or the whole match if none."""

    if match.re.groups == 0:
        return match.group(0) or None
    for value in match.groups():
        if value:
            return value
    return None


@dataclass(frozen=True, slots=True)
class PatternLinkExtractor:
    """Yield candidate URL strings for each match of `pattern`."""

    pattern: re.Pattern[str]

    @classmethod
    def from_pattern(cls, pattern: str | re.Pattern[str]) -> "PatternLinkExtractor":
        return cls(compile_pattern(pattern, flags=re.IGNORECASE))

    def __call__(self, content: str) -> Iterator[str]:
        for match in self.pattern.finditer(content):
            value = first_group(match)
            if value:
                yield value


@dataclass(frozen=True, slots=True)
class PatternDataExtractor:
    """Yield one record per match of `pattern`."""

    pattern: re.Pattern[str]
    strip: bool = True

    @classmethod
    def from_pattern(cls, pattern: str | re.Pattern[str]) -> "PatternDataExtractor":
        return cls(compile_pattern(pattern, flags=re.IGNORECASE))

    def __call__(self, content: str) -> Iterator[str]:
        for match in self.pattern.finditer(content):
            value = first_group(match)
            if value and self.strip:
                value = value.strip()
            if value:
                yield value


def _coerce(
    values: Mapping[str, object],
    factory: Callable[[str | re.Pattern[str]], Callable[[str], Iterable[str]]],
) -> dict[str, Callable[[str], Iterable[str]]]:
    extractors: dict[str, Callable[[str], Iterable[str]]] = {}
    for mime, value in values.items():
        key = str(mime).strip().lower() or WILDCARD_MIME
        if isinstance(value, (str, re.Pattern)):
            try:
                extractors[key] = factory(value)
            except re.error as exc:
                raise ValueError(f"Invalid extractor pattern for {key!r}: {exc}") from exc
        elif callable(value):
            extractors[key] = value
        else:
            raise TypeError(f"Unsupported extractor for {key!r}: {type(value)!r}")
    return extractors


def coerce_link_extractors(values: Mapping[str, object]) -> dict[str, LinkExtractor]:
    """Map mime → link extractor; strings and compiled regexes become pattern extractors."""

    return _coerce(values, PatternLinkExtractor.from_pattern)


def coerce_data_extractors(values: Mapping[str, object]) -> dict[str, DataExtractor]:
    """Map mime → data extractor; strings and compiled regexes become pattern extractors."""

    return _coerce(values, PatternDataExtractor.from_pattern)


__all__ = [
    "DataExtractor",
    "LinkExtractor",
    "PatternDataExtractor",
    "PatternLinkExtractor",
    "coerce_data_extractors",
    "coerce_link_extractors",
    "first_group",
]
