"""Extractor package exports."""

from .patterns import (
    DataExtractor,
    LinkExtractor,
    PatternDataExtractor,
    PatternLinkExtractor,
    coerce_data_extractors,
    coerce_link_extractors,
)
from .pipeline import ExtractionPipeline, select_extractor

__all__ = [
    "DataExtractor",
    "ExtractionPipeline",
    "LinkExtractor",
    "PatternDataExtractor",
    "PatternLinkExtractor",
    "coerce_data_extractors",
    "coerce_link_extractors",
    "select_extractor",
]
