"""Content-hash "seen" sets for link identities and extracted records."""

from __future__ import annotations

import hashlib
import threading


def content_digest(text: str | bytes) -> str:
    """SHA-256 hex digest of a canonical string (UTF-8 encoded) or raw bytes."""

    data = text.encode("utf-8") if isinstance(text, str) else bytes(text)
    return hashlib.sha256(data).hexdigest()


class DedupIndex:
    """Grow-only set of digests.

    Entries are never evicted; a crawl's size is bounded by its link and time
    limits instead.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def seen(self, digest: str) -> bool:
        with self._lock:
            return digest in self._seen

    def mark_seen(self, digest: str) -> None:
        with self._lock:
            self._seen.add(digest)

    def add_text(self, text: str | bytes) -> bool:
        """Mark `text` seen; return True only when it had not been seen before."""

        digest = content_digest(text)
        with self._lock:
            if digest in self._seen:
                return False
            self._seen.add(digest)
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


__all__ = ["DedupIndex", "content_digest"]
