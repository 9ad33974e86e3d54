"""HTTP fetch transport backed by `requests`."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Mapping, Protocol

import requests

from .constants import DEFAULT_HTTP_HEADERS, DEFAULT_USER_AGENT, FETCH_CHUNK_SIZE
from .types import FetchResult


LOGGER = logging.getLogger(__name__)


class Transport(Protocol):
    """One GET with a timeout; failures are reported in the result, not raised."""

    def fetch(self, url: str, *, timeout_seconds: float | None = None) -> FetchResult: ...


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class Fetcher:
    """GET documents through one shared `requests.Session`.

    Redirects are resolved by `requests`, so `FetchResult.final_url` is the
    URL the body actually came from. A failed GET is returned once; nothing is
    retried.

    `timeout_seconds` bounds the whole fetch (connect, redirects, and body),
    not just each socket read: the GET runs on a daemon worker thread and is
    abandoned once the deadline passes. The abandoned worker stops reading at
    its next body chunk and closes its response.
    """

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: Mapping[str, str] | None = None,
        timeout_seconds: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.headers = dict(DEFAULT_HTTP_HEADERS if headers is None else headers)
        self.headers.setdefault("User-Agent", user_agent)
        self.timeout_seconds = timeout_seconds

        # Created on first use unless injected; only an owned session is closed.
        self._session = session
        self._owns_session = session is None
        self._closed = False

    def fetch(self, url: str, *, timeout_seconds: float | None = None) -> FetchResult:
        """GET `url`. A timeout of `None` or 0 waits indefinitely."""

        if self._closed:
            return FetchResult.failure(url, "Fetcher is closed")

        if timeout_seconds is None:
            timeout_seconds = self.timeout_seconds

        started = time.perf_counter()
        try:
            if timeout_seconds:
                result = self._download_within(url, timeout_seconds, started)
            else:
                result = self._download(url, None, None, threading.Event())
        except requests.RequestException as exc:
            LOGGER.debug("GET %s failed: %s", url, exc)
            return FetchResult.failure(
                url,
                f"{type(exc).__name__}: {exc}",
                elapsed_ms=_elapsed_ms(started),
            )

        if result is None:
            LOGGER.debug("GET %s exceeded %ss", url, timeout_seconds)
            return FetchResult.failure(
                url,
                f"Timeout: no complete response within {timeout_seconds}s",
                elapsed_ms=_elapsed_ms(started),
            )

        result.elapsed_ms = _elapsed_ms(started)
        return result

    def close(self) -> None:
        self._closed = True
        if self._owns_session and self._session is not None:
            self._session.close()
        self._session = None

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _download_within(
        self,
        url: str,
        timeout_seconds: float,
        started: float,
    ) -> FetchResult | None:
        """Run `_download` on a worker thread; None when the deadline passes first."""

        deadline = started + timeout_seconds
        abandoned = threading.Event()
        outcome: dict[str, Any] = {}

        def work() -> None:
            try:
                outcome["result"] = self._download(url, timeout_seconds, deadline, abandoned)
            except Exception as exc:
                outcome["error"] = exc

        worker = threading.Thread(target=work, name="priocrawl-fetch", daemon=True)
        worker.start()
        worker.join(max(0.0, deadline - time.perf_counter()))

        if worker.is_alive():
            abandoned.set()
            return None
        if "error" in outcome:
            raise outcome["error"]
        return outcome.get("result")

    def _download(
        self,
        url: str,
        timeout_seconds: float | None,
        deadline: float | None,
        abandoned: threading.Event,
    ) -> FetchResult | None:
        response = self._get_session().get(
            url,
            headers=self.headers,
            timeout=timeout_seconds or None,
            allow_redirects=True,
            stream=True,
        )
        try:
            chunks: list[bytes] = []
            for chunk in response.iter_content(chunk_size=FETCH_CHUNK_SIZE):
                if abandoned.is_set():
                    return None
                if deadline is not None and time.perf_counter() > deadline:
                    return None
                chunks.append(chunk)
        finally:
            response.close()

        return FetchResult(
            requested_url=url,
            final_url=response.url or url,
            status_code=response.status_code,
            content_type=response.headers.get("Content-Type"),
            body=b"".join(chunks),
        )


__all__ = ["Fetcher", "Transport"]
