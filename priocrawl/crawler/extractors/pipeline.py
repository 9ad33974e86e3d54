"""Per-mime extraction of records and candidate links from fetched content."""

from __future__ import annotations

import logging
from typing import Mapping
from urllib.parse import urlsplit

from ..constants import HTML_MIME, WILDCARD_MIME
from ..dedup import DedupIndex
from ..sinks import Emitter, RecordSink, as_emitter
from ..types import CrawlLink, ExtractionResult
from ..url import find_base_url, resolve_loadable
from .patterns import DataExtractor, LinkExtractor


LOGGER = logging.getLogger(__name__)


def select_extractor(extractors: Mapping[str, object], mime_type: str | None):
    """Return the extractor registered for `mime_type`, else the wildcard one."""

    if mime_type:
        extractor = extractors.get(mime_type.lower())
        if extractor is not None:
            return extractor
    return extractors.get(WILDCARD_MIME)


class ExtractionPipeline:
    """Run data and link extractors over one document.

    - Data extraction is independent of link extraction; either may be absent
      or fail without affecting the other.
    - Records pass through the record dedup index before reaching the sink, so
      identical text is emitted at most once per crawl.
    - Candidate links are resolved against the document's base URL and filtered
      through the scope policy; bad candidates are skipped, never fatal.
    """

    def __init__(
        self,
        *,
        link_extractors: Mapping[str, LinkExtractor] | None = None,
        data_extractors: Mapping[str, DataExtractor] | None = None,
        record_index: DedupIndex | None = None,
        sink: RecordSink | Emitter | None = None,
    ) -> None:
        self.link_extractors: dict[str, LinkExtractor] = dict(link_extractors or {})
        self.data_extractors: dict[str, DataExtractor] = dict(data_extractors or {})
        self.record_index = record_index if record_index is not None else DedupIndex()
        self._emit = as_emitter(sink)

    def extract(
        self,
        mime_type: str | None,
        content: str,
        document_url: str,
        document_depth: int,
    ) -> ExtractionResult:
        """Extract records and next-depth candidate links from `content`.

        A raising extractor is logged and counted in `failed_extractors`; it
        never stops the other one. Whatever it produced before raising is kept.
        """

        result = ExtractionResult(mime_type=mime_type)

        try:
            self._extract_records(mime_type, content, result)
        except Exception:
            LOGGER.warning("Data extraction failed for %s", document_url, exc_info=True)
            result.failed_extractors += 1

        try:
            self._extract_links(mime_type, content, document_url, document_depth, result)
        except Exception:
            LOGGER.warning("Link extraction failed for %s", document_url, exc_info=True)
            result.failed_extractors += 1

        return result

    def _extract_records(
        self,
        mime_type: str | None,
        content: str,
        result: ExtractionResult,
    ) -> None:
        extractor = select_extractor(self.data_extractors, mime_type)
        if extractor is None:
            return

        for record in extractor(content):
            if not record:
                continue
            if not self.record_index.add_text(record):
                result.duplicate_records += 1
                continue
            if self._emit is not None:
                self._emit(record)
            result.records.append(record)

    def _extract_links(
        self,
        mime_type: str | None,
        content: str,
        document_url: str,
        document_depth: int,
        result: ExtractionResult,
    ) -> None:
        extractor = select_extractor(self.link_extractors, mime_type)
        if extractor is None:
            return

        base_url = document_url
        if mime_type == HTML_MIME:
            base_url = find_base_url(content, document_url)

        for candidate in extractor(content):
            try:
                urlsplit(candidate)
            except ValueError:
                LOGGER.debug("Skipping unparseable link %r on %s", candidate, document_url)
                result.rejected_links += 1
                continue

            loadable = resolve_loadable(candidate, base_url, document_url)
            if loadable is None:
                result.rejected_links += 1
                continue

            result.links.append(CrawlLink(url=loadable, depth=document_depth + 1))


__all__ = ["ExtractionPipeline", "select_extractor"]
