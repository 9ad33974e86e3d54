"""Default values shared by crawler config, extraction, and scheduling."""

from __future__ import annotations


# Bounds (0 means unlimited for every bound except the per-fetch timeout default).
DEFAULT_MAX_CRAWL_TIME = 0.0
DEFAULT_MAX_CRAWL_DEPTH = 0
DEFAULT_MAX_CRAWLED_LINKS = 0
DEFAULT_MAX_LINK_FETCH_TIME = 60.0

DEFAULT_USER_AGENT = "priocrawl/0.1 (+https://github.com/priocrawl/priocrawl)"
DEFAULT_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
}

# Streamed body chunk size; the fetch deadline is checked between chunks.
FETCH_CHUNK_SIZE = 64 * 1024

# Serialized link form is `<depth><separator><url>`.
LINK_SEPARATOR = ">"

SNIFF_PREFIX_LENGTH = 512
WILDCARD_MIME = "*/*"
HTML_MIME = "text/html"

PROGRESS_LOG_EVERY = 10

# <a>/<area> href, <frame>/<iframe> src, and <link> href when it points to an
# RSS or Atom feed (type attribute before or after href).
HTML_LINK_PATTERN = (
    r"<(?:(?:a(?:rea)?\s+(?:[^<>\s]+\s+)*?href|i?frame\s+(?:[^<>\s]+\s+)*?src)"
    r"\s*=\s*['\"]?([^'\"<>\s]+)"
    r"|link\s+(?:(?:[^<>\s]+\s+)*?type\s*=\s*['\"]?application/(?:rss|atom)\+xml['\"]?\s+"
    r"(?:[^<>\s]+\s+)*?href\s*=\s*['\"]?([^'\"<>\s]+)"
    r"|(?:[^<>\s]+\s+)*?href\s*=\s*['\"]?([^'\"<>\s]+)['\"]?\s+"
    r"(?:[^<>\s]+\s+)*?type\s*=\s*['\"]?application/(?:rss|atom)\+xml['\"<>\s]))"
)

BASE_HREF_PATTERN = r"<base\s+(?:[^<>\s]+\s+)*?href\s*=\s*['\"]?([^'\"<>\s]+)"

EMAIL_PATTERN = r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,6}"

# RSS `<link>url</link>` elements and Atom `<link href="url">` elements.
FEED_LINK_PATTERN = r"<link>\s*([^<\s]+)\s*</link>|<link\s+(?:[^<>\s]+\s+)*?href\s*=\s*['\"]?([^'\"<>\s]+)"

DEFAULT_LINK_EXTRACTORS: dict[str, str] = {
    HTML_MIME: HTML_LINK_PATTERN,
    "application/rss+xml": FEED_LINK_PATTERN,
    "application/atom+xml": FEED_LINK_PATTERN,
}

DEFAULT_DATA_EXTRACTORS: dict[str, str] = {
    HTML_MIME: EMAIL_PATTERN,
}

# Ordered: the first matching rule wins, so XHTML (which may start with an XML
# declaration) must be tested before the generic XML rule.
DEFAULT_SNIFF_RULES: list[dict[str, str]] = [
    {"pattern": r"^\s*%PDF-", "mime_type": "application/pdf"},
    {"pattern": r"(?i)^\s*(?:<\?xml[^>]*>\s*)?<rss[\s>]", "mime_type": "application/rss+xml"},
    {"pattern": r"(?i)^\s*(?:<\?xml[^>]*>\s*)?<feed[\s>]", "mime_type": "application/atom+xml"},
    {
        "pattern": r"(?i)<!doctype\s+html|<html[\s>]|<head[\s>]|<body[\s>]|<a\s",
        "mime_type": HTML_MIME,
    },
    {"pattern": r"(?i)^\s*<\?xml", "mime_type": "text/xml"},
    {"pattern": r"^\s*[\[{]", "mime_type": "application/json"},
]

SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
JSON_INDENT = 2

PRIORITY_INCREMENT = "++"
PRIORITY_DECREMENT = "--"
PRIORITY_DROP = "drop"
