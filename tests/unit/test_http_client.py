"""
HTTP Client Unit Tests
Tests for policy_engine/http/client.py

Covers:
1. Success and 404 pass-through
2. 5xx and network errors retried with backoff
3. 429 retried, honouring Retry-After
4. Other 4xx failing immediately
5. Exhaustion diagnostics
"""
import random

import pytest
import requests

from fixtures.chain_fixtures import make_http_response, make_session
from policy_engine.http.client import HttpClient, HttpError, HttpResponse
from policy_engine.http.retry import RetryPolicy
from policy_engine.schemas.errors import (
    ChainFetchException,
    ErrorCodes,
    NonRetryableHttpException,
    RateLimitedException,
    TransientNetworkException,
)


URL = "http://node.test/mainnet/block/height/latest"


def _client(session, clock, max_retries=3):
    return HttpClient(
        session=session,
        clock=clock,
        rng=random.Random(0),
        retry_policy=RetryPolicy(max_retries=max_retries, base_delay=1.0),
    )


class TestHttpResponse:
    """Tests for the response wrapper."""

    def test_text_and_json(self):
        response = HttpResponse(status_code=200, content=b'{"a": 1}')
        assert response.ok
        assert response.text == '{"a": 1}'
        assert response.json() == {"a": 1}

    def test_header_case_insensitive(self):
        response = HttpResponse(status_code=429, content=b"", headers={"Retry-After": "3"})
        assert response.header("retry-after") == "3"
        assert response.header("X-Missing") is None

    def test_raise_for_status(self):
        with pytest.raises(HttpError) as exc_info:
            HttpResponse(status_code=503, content=b"").raise_for_status()
        assert exc_info.value.status_code == 503


class TestRequest:
    """Tests for single requests."""

    def test_wraps_response(self, clock):
        session = make_session(make_http_response(200, "42", headers={"Content-Type": "text/plain"}))
        client = _client(session, clock)

        response = client.get(URL)

        assert response.status_code == 200
        assert response.text == "42"
        assert response.headers == {"Content-Type": "text/plain"}
        assert response.elapsed_ms == pytest.approx(5.0)

    def test_default_headers_merged(self, clock):
        session = make_session(make_http_response(200))
        client = HttpClient(session=session, clock=clock, default_headers={"Accept": "application/json"})

        client.get(URL, headers={"X-Trace": "1"})

        headers = session.request.call_args.kwargs["headers"]
        assert headers == {"Accept": "application/json", "X-Trace": "1"}

    def test_network_error_wrapped(self, clock):
        session = make_session(requests.exceptions.ConnectionError("refused"))
        with pytest.raises(HttpError, match="refused"):
            _client(session, clock).get(URL)

    def test_close(self, clock):
        session = make_session()
        client = _client(session, clock)
        with client:
            pass
        session.close.assert_called_once()


class TestGetWithRetries:
    """Tests for retry classification."""

    def test_success_first_try(self, clock):
        session = make_session(make_http_response(200, "7"))
        response = _client(session, clock).get_with_retries(URL)

        assert response.text == "7"
        assert clock.sleeps == []

    def test_uses_policy_timeout(self, clock):
        session = make_session(make_http_response(200))
        policy = RetryPolicy(max_retries=1, request_timeout=12.0)

        _client(session, clock).get_with_retries(URL, policy)

        assert session.request.call_args.kwargs["timeout"] == 12.0

    def test_404_returned_without_retry(self, clock):
        session = make_session(make_http_response(404, "Not Found"))
        response = _client(session, clock).get_with_retries(URL)

        assert response.status_code == 404
        assert session.request.call_count == 1

    def test_5xx_then_success(self, clock):
        session = make_session(make_http_response(503), make_http_response(200, "ok"))

        response = _client(session, clock).get_with_retries(URL)

        assert response.text == "ok"
        assert session.request.call_count == 2
        assert len(clock.sleeps) == 1
        assert 1.0 <= clock.sleeps[0] <= 1.25

    def test_backoff_grows(self, clock):
        session = make_session(
            make_http_response(500),
            make_http_response(500),
            make_http_response(200),
        )

        _client(session, clock).get_with_retries(URL)

        assert 1.0 <= clock.sleeps[0] <= 1.25
        assert 2.0 <= clock.sleeps[1] <= 2.5

    def test_429_honours_retry_after(self, clock):
        session = make_session(
            make_http_response(429, headers={"Retry-After": "5"}),
            make_http_response(200),
        )

        response = _client(session, clock).get_with_retries(URL)

        assert response.ok
        assert clock.sleeps == [5.0]

    def test_429_without_retry_after_uses_backoff(self, clock):
        session = make_session(make_http_response(429), make_http_response(200))

        _client(session, clock).get_with_retries(URL)

        assert 1.0 <= clock.sleeps[0] <= 1.25

    def test_persistent_429(self, clock):
        session = make_session(*[make_http_response(429, headers={"retry-after": "1"})] * 3)

        with pytest.raises(RateLimitedException) as exc_info:
            _client(session, clock).get_with_retries(URL)

        assert exc_info.value.status_code == 429
        assert exc_info.value.retryable is True
        assert exc_info.value.details["attempts"] == 3
        assert clock.sleeps == [1.0, 1.0]

    @pytest.mark.parametrize("status", [400, 401, 403, 422])
    def test_other_4xx_not_retried(self, clock, status):
        session = make_session(make_http_response(status, "bad request"))

        with pytest.raises(NonRetryableHttpException) as exc_info:
            _client(session, clock).get_with_retries(URL)

        assert exc_info.value.status_code == status
        assert exc_info.value.code == ErrorCodes.NON_RETRYABLE_HTTP_ERROR
        assert session.request.call_count == 1
        assert clock.sleeps == []

    def test_timeouts_exhausted(self, clock):
        session = make_session(*[requests.exceptions.Timeout("timed out")] * 3)

        with pytest.raises(TransientNetworkException) as exc_info:
            _client(session, clock).get_with_retries(URL)

        error = exc_info.value
        assert "after 3 attempts" in str(error)
        assert error.details["attempts"] == 3
        assert error.details["last_error"] == "timed out"
        assert error.details["url"] == URL
        assert error.details["elapsed_s"] == round(sum(clock.sleeps), 3)
        assert len(clock.sleeps) == 2

    def test_5xx_exhausted(self, clock):
        session = make_session(*[make_http_response(502)] * 3)

        with pytest.raises(ChainFetchException) as exc_info:
            _client(session, clock).get_with_retries(URL)

        assert isinstance(exc_info.value, TransientNetworkException)
        assert exc_info.value.status_code == 502
        assert exc_info.value.details["last_error"] == "HTTP 502"

    def test_network_error_then_success(self, clock):
        session = make_session(
            requests.exceptions.ConnectionError("reset"),
            make_http_response(200, "1"),
        )

        response = _client(session, clock).get_with_retries(URL)

        assert response.text == "1"
        assert len(clock.sleeps) == 1
