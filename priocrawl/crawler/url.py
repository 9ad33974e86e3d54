"""URL scope policy: loadability checks, link identity, and base-URL discovery."""

from __future__ import annotations

import re
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from .constants import BASE_HREF_PATTERN


WWW_PREFIX = "www."

_BASE_HREF_RX = re.compile(BASE_HREF_PATTERN, re.IGNORECASE)


def _userinfo(parsed: SplitResult) -> str:
    netloc = parsed.netloc
    if "@" not in netloc:
        return ""
    return netloc.rpartition("@")[0]


def _replace_host(parsed: SplitResult, host: str) -> str:
    """Rebuild netloc with `host`, keeping userinfo and explicit port."""

    userinfo = _userinfo(parsed)
    netloc = host
    if ":" in host and not host.startswith("["):
        netloc = f"[{host}]"
    if parsed.port is not None:
        netloc = f"{netloc}:{parsed.port}"
    if userinfo:
        netloc = f"{userinfo}@{netloc}"
    return netloc


def _is_www_variant(host: str, reference_host: str) -> bool:
    return (
        WWW_PREFIX + host == reference_host
        or host == WWW_PREFIX + reference_host
    )


def resolve_loadable(
    candidate: str,
    base_url: str,
    document_url: str,
) -> str | None:
    """Resolve `candidate` and return it if it is loadable from `document_url`.

    A URL is loadable when it is absolute and shares scheme, user-info, port,
    and host with the referencing document. A host that differs only by a
    leading `www.` is accepted and rewritten to the document's host. The
    fragment is always removed. Returns `None` for anything else, including
    URLs that fail to parse.
    """

    try:
        parsed = urlsplit(candidate.strip())
        if not parsed.scheme:
            parsed = urlsplit(urljoin(base_url, candidate.strip()))

        reference = urlsplit(document_url)

        if parsed.scheme.lower() != reference.scheme.lower():
            return None
        if _userinfo(parsed) != _userinfo(reference):
            return None
        if parsed.port != reference.port:
            return None

        host = parsed.hostname or ""
        reference_host = reference.hostname or ""
        if not host or not reference_host:
            return None

        netloc = parsed.netloc
        if host != reference_host:
            if not _is_www_variant(host, reference_host):
                return None
            netloc = _replace_host(parsed, reference_host)

        return urlunsplit((parsed.scheme, netloc, parsed.path, parsed.query, ""))
    except ValueError:
        return None


def normalize_url(url: str) -> str | None:
    """Canonicalize an absolute URL into its link identity.

    Lowercases scheme and host, fills an empty path with `/`, and drops the
    fragment. Returns `None` for relative or unparseable URLs.
    """

    if not url:
        return None

    raw = url.strip()
    if not raw:
        return None

    try:
        parsed = urlsplit(raw)
        if not parsed.scheme or not parsed.netloc:
            return None

        host = (parsed.hostname or "").lower()
        netloc = _replace_host(parsed, host) if host else parsed.netloc.lower()
    except ValueError:
        return None

    path = parsed.path or "/"
    return urlunsplit((parsed.scheme.lower(), netloc, path, parsed.query, ""))


def find_base_url(content: str, document_url: str) -> str:
    """Return the document's `<base href>` target, or `document_url`.

    A relative base href is resolved against the document URL; a base href
    that cannot be parsed falls back to the document URL.
    """

    match = _BASE_HREF_RX.search(content)
    if match is None:
        return document_url

    try:
        base = urljoin(document_url, match.group(1))
        parsed = urlsplit(base)
        # Accessing the port validates it.
        parsed.port
    except ValueError:
        return document_url

    if not parsed.scheme or not parsed.netloc:
        return document_url
    return base


__all__ = [
    "WWW_PREFIX",
    "find_base_url",
    "normalize_url",
    "resolve_loadable",
]
