"""Ordered first-match priority rules with high/low watermark directives."""

from __future__ import annotations

import logging
import re
import threading
from typing import Any, Iterable, Mapping

from .types import CrawlLink, DirectiveKind, PriorityRule


LOGGER = logging.getLogger(__name__)

DEFAULT_PRIORITY = 0


def coerce_priority_rules(values: Iterable[PriorityRule | Mapping[str, Any]]) -> list[PriorityRule]:
    """Build priority rules from config mappings (`pattern`, `priority`)."""

    rules: list[PriorityRule] = []
    for value in values:
        if isinstance(value, PriorityRule):
            rules.append(value)
            continue
        if not isinstance(value, Mapping):
            raise TypeError(f"Unsupported priority rule value: {type(value)!r}")
        if "pattern" not in value or "priority" not in value:
            raise ValueError(f"Priority rule needs 'pattern' and 'priority': {value!r}")
        try:
            rules.append(PriorityRule.from_value(value["pattern"], value["priority"]))
        except re.error as exc:
            raise ValueError(f"Invalid priority pattern {value['pattern']!r}: {exc}") from exc
    return rules


class PriorityRuleEngine:
    """Assign crawl priorities to serialized links.

    Rules are scanned in order and the first match decides. Fixed priorities
    widen the `[lowest_seen, highest_seen]` watermarks; `++` and `--` step just
    past them so a link class can be pinned to the front or back of the
    frontier without knowing numeric bounds in advance. Each crawl session owns
    its own engine, so the watermarks start at 0/0 and are never reset.
    """

    def __init__(self, rules: Iterable[PriorityRule] | None = None) -> None:
        self.rules: list[PriorityRule] = list(rules or [])
        self.highest_seen = 0
        self.lowest_seen = 0
        self._lock = threading.Lock()

    def add_rule(self, pattern: str | re.Pattern[str], priority: Any) -> "PriorityRuleEngine":
        """Append a rule; `priority` is an int, `"++"`, `"--"`, or `None` to drop."""

        self.rules.append(PriorityRule.from_value(pattern, priority))
        return self

    def compute(self, link: CrawlLink | str) -> int | None:
        """Return the priority for `link`, or `None` if it must be dropped."""

        serialized = link.serialize() if isinstance(link, CrawlLink) else link

        with self._lock:
            for rule in self.rules:
                if not rule.matches(serialized):
                    continue

                directive = rule.directive
                if directive.kind == DirectiveKind.DROP:
                    LOGGER.debug("Priority rule %r dropped %s", rule.pattern.pattern, serialized)
                    return None

                if directive.kind == DirectiveKind.INCREMENT_FROM_MAX:
                    self.highest_seen += 1
                    return self.highest_seen

                if directive.kind == DirectiveKind.DECREMENT_FROM_MIN:
                    self.lowest_seen -= 1
                    return self.lowest_seen

                priority = int(directive.value or 0)
                self.highest_seen = max(self.highest_seen, priority)
                self.lowest_seen = min(self.lowest_seen, priority)
                return priority

        return DEFAULT_PRIORITY

    def watermarks(self) -> dict[str, int]:
        with self._lock:
            return {"highest_seen": self.highest_seen, "lowest_seen": self.lowest_seen}


__all__ = [
    "DEFAULT_PRIORITY",
    "PriorityRuleEngine",
    "coerce_priority_rules",
]
