"""
MimeClassifier tests.
Covers: default rules, rule ordering, the 512-character prefix window, bytes input.
"""

import pytest

from priocrawl.crawler import MimeClassifier, MimeSniffRule
from priocrawl.crawler.sniff import coerce_sniff_rules


@pytest.fixture
def classifier():
    return MimeClassifier()


class TestDefaultRules:
    """Default sniff rules cover the common crawl formats."""

    @pytest.mark.parametrize(
        "content, expected",
        [
            ("<!DOCTYPE html><html><body>hi</body></html>", "text/html"),
            ('<a href="/p1">x</a>', "text/html"),
            ("%PDF-1.7\n...", "application/pdf"),
            ('<?xml version="1.0"?>\n<rss version="2.0">', "application/rss+xml"),
            ('<feed xmlns="http://www.w3.org/2005/Atom">', "application/atom+xml"),
            ('<?xml version="1.0"?><catalog/>', "text/xml"),
            ('{"key": "value"}', "application/json"),
        ],
    )
    def test_known_prefixes(self, classifier, content, expected):
        assert classifier.sniff(content) == expected

    def test_unknown_content_returns_none(self, classifier):
        assert classifier.sniff("just some plain words") is None

    def test_bytes_input_is_decoded(self, classifier):
        assert classifier.sniff(b"<html><body></body></html>") == "text/html"

    @pytest.mark.parametrize(
        "body, expected",
        [
            (b'\xef\xbb\xbf<?xml version="1.0"?>\n<rss version="2.0">', "application/rss+xml"),
            (b"\xef\xbb\xbf%PDF-1.4", "application/pdf"),
            ("\ufeff" '<feed xmlns="http://www.w3.org/2005/Atom">', "application/atom+xml"),
        ],
    )
    def test_leading_byte_order_mark_is_ignored(self, classifier, body, expected):
        assert classifier.sniff(body) == expected

    def test_invalid_utf8_bytes_do_not_raise(self, classifier):
        assert classifier.sniff(b"\xff\xfe<html>") == "text/html"


class TestRuleOrdering:
    """The first matching rule decides."""

    def test_first_matching_rule_wins(self):
        classifier = MimeClassifier(
            [
                MimeSniffRule.from_value(r"hello", "m1/first"),
                MimeSniffRule.from_value(r"hello world", "m2/second"),
            ]
        )
        assert classifier.sniff("hello world") == "m1/first"

    def test_only_prefix_is_examined(self):
        classifier = MimeClassifier([MimeSniffRule.from_value(r"MARKER", "x/marker")])
        assert classifier.sniff("a" * 511 + "MARKER") is None
        assert classifier.sniff("a" * 506 + "MARKER") == "x/marker"


class TestCoerceSniffRules:
    """Config mappings become compiled rules."""

    def test_mappings_are_compiled(self):
        rules = coerce_sniff_rules([{"pattern": "^<svg", "mime_type": "Image/SVG+XML"}])
        assert rules[0].pattern.pattern == "^<svg"
        assert rules[0].mime_type == "image/svg+xml"

    def test_missing_keys_raise(self):
        with pytest.raises(ValueError):
            coerce_sniff_rules([{"pattern": "^x"}])

    def test_bad_regex_raises_value_error(self):
        with pytest.raises(ValueError):
            coerce_sniff_rules([{"pattern": "(", "mime_type": "x/y"}])

    def test_non_mapping_raises_type_error(self):
        with pytest.raises(TypeError):
            coerce_sniff_rules(["^x"])
