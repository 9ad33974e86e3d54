"""Content-prefix mime sniffing."""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from .constants import DEFAULT_SNIFF_RULES, SNIFF_PREFIX_LENGTH
from .types import MimeSniffRule


def coerce_sniff_rules(values: Iterable[MimeSniffRule | Mapping[str, str]]) -> list[MimeSniffRule]:
    """Build sniff rules from config mappings (`pattern`, `mime_type`)."""

    rules: list[MimeSniffRule] = []
    for value in values:
        if isinstance(value, MimeSniffRule):
            rules.append(value)
            continue
        if not isinstance(value, Mapping):
            raise TypeError(f"Unsupported sniff rule value: {type(value)!r}")
        if "pattern" not in value or "mime_type" not in value:
            raise ValueError(f"Sniff rule needs 'pattern' and 'mime_type': {value!r}")
        try:
            rules.append(MimeSniffRule.from_value(value["pattern"], value["mime_type"]))
        except re.error as exc:
            raise ValueError(f"Invalid sniff pattern {value['pattern']!r}: {exc}") from exc
    return rules


class MimeClassifier:
    """Map raw content to a mime type with ordered first-match rules."""

    def __init__(self, rules: Iterable[MimeSniffRule] | None = None) -> None:
        if rules is None:
            rules = coerce_sniff_rules(DEFAULT_SNIFF_RULES)
        self.rules: list[MimeSniffRule] = list(rules)

    def sniff(self, content: str | bytes) -> str | None:
        """Return the mime type of the first rule matching the content prefix."""

        if isinstance(content, (bytes, bytearray)):
            prefix = bytes(content[:SNIFF_PREFIX_LENGTH]).decode("utf-8", errors="replace")
        else:
            prefix = content[:SNIFF_PREFIX_LENGTH]
        # A UTF-8 byte order mark would defeat the anchored rules.
        prefix = prefix.lstrip("\ufeff")

        for rule in self.rules:
            if rule.pattern.search(prefix) is not None:
                return rule.mime_type
        return None


__all__ = ["MimeClassifier", "coerce_sniff_rules"]
