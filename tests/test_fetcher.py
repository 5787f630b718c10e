"""Tests for the retrying fetch executor.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
- The backoff wait is injected as a recording coroutine, so retries are
  observable without sleeping.
- Async code is driven with ``asyncio.run``.
"""

from __future__ import annotations

import asyncio
import json
import random

import httpx
import pytest
import respx

from urlextractor.errors import NetworkError
from urlextractor.scraper import fetcher
from urlextractor.scraper.fetcher import _classify_failure, execute_with_retry
from urlextractor.scraper.models import FetchRequest

_HTML = "<html><head><title>Hello</title></head><body><p>Hi</p></body></html>"


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records the requested waits."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def _default_backoff(monkeypatch):
    monkeypatch.setattr("urlextractor.config.settings.max_retries", 3)
    monkeypatch.setattr("urlextractor.config.settings.backoff_base_ms", 1000.0)
    monkeypatch.setattr("urlextractor.config.settings.backoff_max_ms", 10000.0)
    monkeypatch.setattr("urlextractor.config.settings.backoff_jitter_ms", 1000.0)


def _run(request: FetchRequest, sleep: RecordingSleep, **kwargs):
    return asyncio.run(
        execute_with_retry(request, sleep=sleep, rng=random.Random(0), deadline=0, **kwargs)
    )


# ---------------------------------------------------------------------------
# Successful transport outcomes
# ---------------------------------------------------------------------------

class TestSuccess:
    def test_first_attempt_success(self, sleep) -> None:
        with respx.mock:
            route = respx.get("https://example.com/article").mock(
                return_value=httpx.Response(200, html=_HTML)
            )
            result = _run(FetchRequest(url="https://example.com/article"), sleep)

        assert result.status == 200
        assert result.status_text == "OK"
        assert result.attempt == 1
        assert result.is_html is True
        assert "<title>Hello</title>" in result.body
        assert route.call_count == 1
        assert sleep.calls == []

    @pytest.mark.parametrize("status", [301, 404, 500, 503])
    def test_any_status_is_success_and_not_retried(self, sleep, status: int) -> None:
        with respx.mock:
            route = respx.get("https://example.com/page").mock(
                return_value=httpx.Response(status, text="upstream says no")
            )
            result = _run(FetchRequest(url="https://example.com/page"), sleep)

        assert result.status == status
        assert result.attempt == 1
        assert route.call_count == 1
        assert sleep.calls == []

    def test_non_text_body_kept_as_bytes(self, sleep) -> None:
        with respx.mock:
            respx.get("https://example.com/logo.png").mock(
                return_value=httpx.Response(
                    200, content=b"\x89PNG\r\n", headers={"content-type": "image/png"}
                )
            )
            result = _run(FetchRequest(url="https://example.com/logo.png"), sleep)

        assert result.body == b"\x89PNG\r\n"
        assert result.is_html is False

    def test_head_has_empty_body(self, sleep) -> None:
        with respx.mock:
            respx.head("https://example.com/").mock(
                return_value=httpx.Response(200, headers={"content-type": "text/html"})
            )
            result = _run(FetchRequest(url="https://example.com/", method="HEAD"), sleep)

        assert result.status == 200
        assert result.body == ""


# ---------------------------------------------------------------------------
# Headers and body
# ---------------------------------------------------------------------------

class TestRequestShape:
    def test_caller_headers_override_identity(self, sleep) -> None:
        request = FetchRequest(
            url="https://example.com/api",
            headers={"user-agent": "custom-agent/1.0", "X-Token": "abc"},
        )
        with respx.mock:
            route = respx.get("https://example.com/api").mock(
                return_value=httpx.Response(200, json={"ok": True})
            )
            _run(request, sleep)

        sent = route.calls.last.request.headers
        assert sent.get_list("user-agent") == ["custom-agent/1.0"]
        assert sent["x-token"] == "abc"
        assert sent["sec-fetch-mode"] == "navigate"
        assert sent["referer"] == "https://example.com"

    def test_json_body_sent_for_post(self, sleep) -> None:
        request = FetchRequest(url="https://example.com/api", method="POST", body={"key": "value"})
        with respx.mock:
            route = respx.post("https://example.com/api").mock(
                return_value=httpx.Response(201, json={"created": True})
            )
            result = _run(request, sleep)

        assert result.status == 201
        assert json.loads(route.calls.last.request.content) == {"key": "value"}

    def test_raw_body_sent_for_put(self, sleep) -> None:
        request = FetchRequest(url="https://example.com/doc", method="PUT", body="plain text")
        with respx.mock:
            route = respx.put("https://example.com/doc").mock(return_value=httpx.Response(204))
            _run(request, sleep)

        assert route.calls.last.request.content == b"plain text"

    @pytest.mark.parametrize("method", ["GET", "DELETE"])
    def test_body_dropped_for_non_body_methods(self, sleep, method: str) -> None:
        request = FetchRequest(url="https://example.com/api", method=method, body={"key": "value"})
        with respx.mock:
            route = respx.route(method=method, url="https://example.com/api").mock(
                return_value=httpx.Response(200)
            )
            _run(request, sleep)

        assert route.calls.last.request.content == b""


# ---------------------------------------------------------------------------
# Retry behaviour
# ---------------------------------------------------------------------------

class TestRetry:
    def test_recovers_after_transport_error(self, sleep) -> None:
        with respx.mock:
            route = respx.get("https://example.com/flaky").mock(
                side_effect=[
                    httpx.ConnectError("Connection refused"),
                    httpx.Response(200, html=_HTML),
                ]
            )
            result = _run(FetchRequest(url="https://example.com/flaky"), sleep)

        assert result.status == 200
        assert result.attempt == 2
        assert route.call_count == 2
        assert len(sleep.calls) == 1
        assert 1.0 <= sleep.calls[0] <= 2.0

    def test_always_timing_out_exhausts_retries(self, sleep) -> None:
        with respx.mock:
            route = respx.get("https://example.com/slow").mock(
                side_effect=httpx.ConnectTimeout("timed out")
            )
            with pytest.raises(NetworkError) as exc_info:
                _run(FetchRequest(url="https://example.com/slow"), sleep, max_retries=3)

        err = exc_info.value
        assert err.kind == "timeout"
        assert err.attempts == 3
        assert "timeout" in str(err)
        assert route.call_count == 3
        # A strictly positive wait precedes every attempt but the first.
        assert len(sleep.calls) == 2
        assert all(delay > 0 for delay in sleep.calls)
        assert 1.0 <= sleep.calls[0] <= 2.0
        assert 2.0 <= sleep.calls[1] <= 3.0

    def test_single_attempt_budget_never_sleeps(self, sleep) -> None:
        with respx.mock:
            respx.get("https://example.com/down").mock(
                side_effect=httpx.ConnectError("Name or service not known")
            )
            with pytest.raises(NetworkError) as exc_info:
                _run(FetchRequest(url="https://example.com/down"), sleep, max_retries=1)

        assert exc_info.value.kind == "connect_error"
        assert exc_info.value.attempts == 1
        assert sleep.calls == []

    def test_fresh_identity_per_attempt(self, sleep, monkeypatch) -> None:
        calls: list[str] = []
        original = fetcher.next_identity

        def counting(url, rng=None):
            calls.append(url)
            return original(url, rng)

        monkeypatch.setattr(fetcher, "next_identity", counting)
        with respx.mock:
            respx.get("https://example.com/x").mock(
                side_effect=[
                    httpx.ReadTimeout("read timed out"),
                    httpx.RemoteProtocolError("peer closed connection"),
                    httpx.Response(200),
                ]
            )
            result = _run(FetchRequest(url="https://example.com/x"), sleep)

        assert result.attempt == 3
        assert calls == ["https://example.com/x"] * 3

    def test_slow_attempt_times_out_and_is_retried(self, sleep) -> None:
        calls: list[httpx.Request] = []

        async def slow_then_fast(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                await asyncio.sleep(5)
            return httpx.Response(200, html=_HTML)

        with respx.mock:
            respx.get("https://example.com/sluggish").mock(side_effect=slow_then_fast)
            result = _run(FetchRequest(url="https://example.com/sluggish"), sleep, timeout=0.05)

        assert result.status == 200
        assert result.attempt == 2
        assert len(calls) == 2
        assert len(sleep.calls) == 1

    def test_every_attempt_too_slow(self, sleep) -> None:
        async def never_answers(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200)

        with respx.mock:
            respx.get("https://example.com/stuck").mock(side_effect=never_answers)
            with pytest.raises(NetworkError) as exc_info:
                _run(FetchRequest(url="https://example.com/stuck"), sleep, max_retries=2, timeout=0.05)

        assert exc_info.value.kind == "timeout"
        assert exc_info.value.attempts == 2
        assert "0.05s timeout" in exc_info.value.message
        assert len(sleep.calls) == 1

    def test_overall_deadline_abandons_retries(self) -> None:
        with respx.mock:
            route = respx.get("https://example.com/slow").mock(
                side_effect=httpx.ConnectTimeout("timed out")
            )
            with pytest.raises(NetworkError) as exc_info:
                # Real asyncio.sleep: the first backoff (>= 1s) outlives the deadline.
                asyncio.run(
                    execute_with_retry(
                        FetchRequest(url="https://example.com/slow"),
                        rng=random.Random(0),
                        max_retries=3,
                        deadline=0.05,
                    )
                )

        assert exc_info.value.kind == "timeout"
        assert "deadline" in exc_info.value.message
        assert exc_info.value.attempts == 1
        assert route.call_count == 1


class TestClassifyFailure:
    def test_wall_clock_expiry_is_timeout(self) -> None:
        kind, message = _classify_failure(asyncio.TimeoutError(), 15.0)
        assert kind == "timeout"
        assert "15s" in message

    @pytest.mark.parametrize(
        ("exc", "kind"),
        [
            (httpx.ReadTimeout("slow"), "timeout"),
            (httpx.PoolTimeout("pool"), "timeout"),
            (httpx.ConnectError("refused"), "connect_error"),
            (httpx.RemoteProtocolError("bad"), "protocol_error"),
            (httpx.ProxyError("proxy"), "network_error"),
        ],
    )
    def test_transport_errors(self, exc, kind: str) -> None:
        assert _classify_failure(exc, 15.0)[0] == kind

    def test_empty_message_falls_back_to_class_name(self) -> None:
        assert _classify_failure(httpx.ConnectError(""), 15.0) == ("connect_error", "ConnectError")
