"""
Fetcher tests.
Covers: request parameters, redirect target, non-2xx handling, transport errors,
timeout handling, the whole-fetch deadline, and session ownership.
"""

import threading
import time
from unittest.mock import Mock, patch

import pytest
import requests

from priocrawl.crawler import Fetcher


# ============================================================================
# Fixtures
# ============================================================================

def create_mock_response(status_code=200, content=b"<html>ok</html>", url="http://example.com/",
                         headers=None):
    response = Mock()
    response.status_code = status_code
    response.iter_content.return_value = [content] if content else []
    response.url = url
    response.headers = headers or {"Content-Type": "text/html"}
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def fetcher(session):
    return Fetcher(user_agent="TestBot/1.0", timeout_seconds=7, session=session)


# ============================================================================
# Tests
# ============================================================================

class TestFetch:

    def test_successful_get(self, fetcher, session):
        session.get.return_value = create_mock_response()

        result = fetcher.fetch("http://example.com/")

        assert result.ok
        assert result.body == b"<html>ok</html>"
        assert result.status_code == 200
        assert result.content_type == "text/html"
        assert result.content_length == len(b"<html>ok</html>")
        assert result.error is None

        _, kwargs = session.get.call_args
        assert kwargs["timeout"] == 7
        assert kwargs["allow_redirects"] is True
        assert kwargs["stream"] is True
        assert kwargs["headers"]["User-Agent"] == "TestBot/1.0"

    def test_redirect_sets_effective_url(self, fetcher, session):
        session.get.return_value = create_mock_response(url="http://example.com/final")

        result = fetcher.fetch("http://example.com/start")

        assert result.requested_url == "http://example.com/start"
        assert result.effective_url == "http://example.com/final"

    @pytest.mark.parametrize("status_code", [301, 404, 500])
    def test_non_success_status_is_not_ok(self, fetcher, session, status_code):
        session.get.return_value = create_mock_response(status_code=status_code)

        result = fetcher.fetch("http://example.com/")

        assert not result.ok
        assert result.status_code == status_code

    @pytest.mark.parametrize(
        "exc",
        [
            requests.ConnectionError("refused"),
            requests.Timeout("slow"),
            requests.TooManyRedirects("loop"),
        ],
    )
    def test_transport_errors_become_results(self, fetcher, session, exc):
        session.get.side_effect = exc

        result = fetcher.fetch("http://example.com/")

        assert not result.ok
        assert result.body is None
        assert result.error.startswith(type(exc).__name__ + ":")

    def test_no_retry_on_failure(self, fetcher, session):
        session.get.side_effect = requests.ConnectionError("refused")

        fetcher.fetch("http://example.com/")

        assert session.get.call_count == 1

    def test_per_call_timeout_overrides_default(self, fetcher, session):
        session.get.return_value = create_mock_response()

        fetcher.fetch("http://example.com/", timeout_seconds=2.5)

        assert session.get.call_args.kwargs["timeout"] == 2.5

    def test_zero_timeout_means_no_timeout(self, fetcher, session):
        session.get.return_value = create_mock_response()

        fetcher.fetch("http://example.com/", timeout_seconds=0)

        assert session.get.call_args.kwargs["timeout"] is None

    def test_custom_headers_keep_user_agent(self, session):
        fetcher = Fetcher(user_agent="UA/2", headers={"Accept": "text/html"}, session=session)
        session.get.return_value = create_mock_response()

        fetcher.fetch("http://example.com/")

        assert session.get.call_args.kwargs["headers"] == {"Accept": "text/html", "User-Agent": "UA/2"}


class TestDeadline:
    """The timeout bounds the whole fetch, not each socket read."""

    def test_slow_body_is_cut_off(self, session):
        release = threading.Event()
        closed = threading.Event()

        def trickle(chunk_size):
            yield b"<"
            release.wait(5)
            yield b"html>"

        response = create_mock_response()
        response.iter_content.side_effect = trickle
        response.close.side_effect = lambda: closed.set()
        session.get.return_value = response

        fetcher = Fetcher(timeout_seconds=0.2, session=session)
        started = time.perf_counter()
        result = fetcher.fetch("http://example.com/slow")
        elapsed = time.perf_counter() - started
        release.set()

        assert not result.ok
        assert result.body is None
        assert result.error.startswith("Timeout:")
        assert elapsed < 2
        assert closed.wait(2)

    def test_hanging_connect_is_cut_off(self, session):
        release = threading.Event()

        def hang(url, **kwargs):
            release.wait(5)
            return create_mock_response()

        session.get.side_effect = hang

        fetcher = Fetcher(timeout_seconds=0.2, session=session)
        started = time.perf_counter()
        result = fetcher.fetch("http://example.com/hang")
        elapsed = time.perf_counter() - started
        release.set()

        assert result.error.startswith("Timeout:")
        assert elapsed < 2

    def test_body_is_joined_from_chunks(self, fetcher, session):
        response = create_mock_response()
        response.iter_content.return_value = [b"<html>", b"ok", b"</html>"]
        session.get.return_value = response

        result = fetcher.fetch("http://example.com/")

        assert result.body == b"<html>ok</html>"
        response.close.assert_called_once()


class TestLifecycle:

    def test_injected_session_is_not_closed(self, fetcher, session):
        fetcher.close()
        session.close.assert_not_called()

    def test_closed_fetcher_returns_error(self, fetcher, session):
        fetcher.close()

        result = fetcher.fetch("http://example.com/")

        assert not result.ok
        assert result.error == "Fetcher is closed"
        session.get.assert_not_called()

    def test_owned_session_is_created_lazily_and_closed(self):
        with patch("priocrawl.crawler.fetcher.requests.Session") as session_cls:
            owned = session_cls.return_value
            owned.get.return_value = create_mock_response()

            with Fetcher() as fetcher:
                session_cls.assert_not_called()
                fetcher.fetch("http://example.com/")

            session_cls.assert_called_once()
            owned.close.assert_called_once()
