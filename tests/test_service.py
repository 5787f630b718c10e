"""Tests for the request facade (validation, enrichment and envelopes).

``respx`` is active in every network test; any request that reaches an
unmocked route fails the test, which is how "no network call" is asserted.
"""

from __future__ import annotations

import asyncio
import json
import random

import httpx
import pytest
import respx

from urlextractor.errors import ValidationError
from urlextractor.scraper.models import ALLOWED_METHODS
from urlextractor.service import (
    INVALID_METHOD,
    MISSING_URL,
    REQUEST_FAILED,
    execute_request,
    validate_params,
)

_PAGE = """\
<html>
<head>
  <title>Widget Pro</title>
  <meta name="description" content="The best widget">
  <meta property="og:image" content="/og.png">
</head>
<body><p>Hello</p></body>
</html>
"""


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture(autouse=True)
def _defaults(monkeypatch):
    monkeypatch.setattr("urlextractor.config.settings.max_retries", 3)
    monkeypatch.setattr("urlextractor.config.settings.backoff_base_ms", 1000.0)
    monkeypatch.setattr("urlextractor.config.settings.backoff_jitter_ms", 1000.0)


def _execute(params, sleep=None):
    return asyncio.run(
        execute_request(params, rng=random.Random(0), sleep=sleep or RecordingSleep())
    )


# ---------------------------------------------------------------------------
# validate_params
# ---------------------------------------------------------------------------

class TestValidateParams:
    def test_defaults(self) -> None:
        request = validate_params({"url": "https://example.com"})
        assert request.method == "GET"
        assert request.headers == {}
        assert request.body is None

    @pytest.mark.parametrize("method", ALLOWED_METHODS)
    def test_allowed_methods_case_insensitive(self, method: str) -> None:
        assert validate_params({"url": "https://example.com", "method": method.lower()}).method == method

    @pytest.mark.parametrize("method", ["TRACE", "OPTIONS", "CONNECT", "FETCH", 42])
    def test_rejects_unknown_methods(self, method) -> None:
        with pytest.raises(ValidationError, match=INVALID_METHOD):
            validate_params({"url": "https://example.com", "method": method})

    @pytest.mark.parametrize("params", [{}, {"url": ""}, {"url": "   "}, {"url": None}, {"url": 5}])
    def test_requires_url(self, params) -> None:
        with pytest.raises(ValidationError, match=MISSING_URL):
            validate_params(params)

    @pytest.mark.parametrize("url", ["example.com", "ftp://example.com/a", "https://", "http://[::1"])
    def test_rejects_non_http_urls(self, url: str) -> None:
        with pytest.raises(ValidationError):
            validate_params({"url": url})

    def test_headers_from_json_string(self) -> None:
        request = validate_params({"url": "https://example.com", "headers": '{"X-Api-Key": "k"}'})
        assert request.headers == {"X-Api-Key": "k"}

    def test_header_values_coerced_to_str(self) -> None:
        request = validate_params({"url": "https://example.com", "headers": {"X-Count": 3}})
        assert request.headers == {"X-Count": "3"}

    @pytest.mark.parametrize("headers", ["not json", "[1, 2]", ["a"], 7])
    def test_rejects_bad_headers(self, headers) -> None:
        with pytest.raises(ValidationError):
            validate_params({"url": "https://example.com", "headers": headers})

    def test_url_is_trimmed(self) -> None:
        assert validate_params({"url": "  https://example.com/a "}).url == "https://example.com/a"


# ---------------------------------------------------------------------------
# execute_request
# ---------------------------------------------------------------------------

class TestExecuteRequest:
    @pytest.mark.parametrize("method", ["TRACE", "OPTIONS", "CONNECT"])
    def test_invalid_method_makes_no_network_call(self, method: str) -> None:
        with respx.mock(assert_all_called=False) as respx_mock:
            route = respx_mock.route().mock(return_value=httpx.Response(200))
            status_code, envelope = _execute({"url": "https://example.com", "method": method})

        assert status_code == 400
        assert envelope.success is False
        assert envelope.attempt == 0
        assert envelope.data == {"error": INVALID_METHOD}
        assert route.call_count == 0

    def test_missing_url(self) -> None:
        status_code, envelope = _execute({"method": "GET"})
        assert status_code == 400
        assert envelope.data == {"error": MISSING_URL}

    def test_html_page_enriched(self) -> None:
        with respx.mock:
            respx.get("https://example.com/products/widget").mock(
                return_value=httpx.Response(200, html=_PAGE)
            )
            status_code, envelope = _execute({"url": "https://example.com/products/widget"})

        assert status_code == 200
        assert envelope.success is True
        assert envelope.attempt == 1
        data = envelope.data
        assert data["url"] == "https://example.com/products/widget"
        assert data["method"] == "GET"
        assert data["status"] == 200
        assert data["statusText"] == "OK"
        assert data["linkType"] == "product"
        assert data["title"] == "Widget Pro"
        assert data["description"] == "The best widget"
        assert data["images"]["ogImage"] == "https://example.com/og.png"
        assert data["images"]["logo"] == "https://example.com/og.png"
        assert envelope.timestamp.endswith("Z")

    def test_upstream_404_is_transport_success(self) -> None:
        page = "<html><head><title>Not Found</title></head><body>Missing</body></html>"
        with respx.mock:
            respx.get("https://example.com/missing").mock(
                return_value=httpx.Response(404, html=page)
            )
            status_code, envelope = _execute({"url": "https://example.com/missing"})

        assert status_code == 200
        assert envelope.success is True
        assert envelope.attempt == 1
        assert envelope.data["status"] == 404
        assert envelope.data["statusText"] == "Not Found"
        assert envelope.data["title"] == "Not Found"
        assert envelope.data["linkType"] == "other"

    def test_non_html_skips_extraction_but_classifies(self) -> None:
        with respx.mock:
            respx.get("https://example.com/blog/feed.json").mock(
                return_value=httpx.Response(200, json={"items": []})
            )
            status_code, envelope = _execute({"url": "https://example.com/blog/feed.json"})

        assert status_code == 200
        assert envelope.data["linkType"] == "blog"
        assert "title" not in envelope.data
        assert "images" not in envelope.data

    def test_post_forwards_body_and_method(self) -> None:
        with respx.mock:
            route = respx.post("https://example.com/api").mock(
                return_value=httpx.Response(201, json={"id": 1})
            )
            status_code, envelope = _execute(
                {"url": "https://example.com/api", "method": "post", "data": {"name": "x"}}
            )

        assert status_code == 200
        assert envelope.data["method"] == "POST"
        assert envelope.data["status"] == 201
        assert json.loads(route.calls.last.request.content) == {"name": "x"}

    def test_always_timing_out(self) -> None:
        sleep = RecordingSleep()
        with respx.mock:
            route = respx.get("https://example.com/slow").mock(
                side_effect=httpx.ReadTimeout("timed out")
            )
            status_code, envelope = _execute({"url": "https://example.com/slow"}, sleep=sleep)

        assert status_code == 500
        assert envelope.success is False
        assert envelope.attempt == 3
        assert route.call_count == 3
        assert len(sleep.calls) == 2
        assert all(delay > 0 for delay in sleep.calls)
        assert envelope.data["error"] == REQUEST_FAILED
        assert envelope.data["code"] == "timeout"
        assert "timeout" in envelope.data["details"]
        assert envelope.data["url"] == "https://example.com/slow"

    def test_attempt_count_matches_transport_calls(self) -> None:
        with respx.mock:
            route = respx.get("https://example.com/flaky").mock(
                side_effect=[httpx.ConnectError("refused"), httpx.Response(200, text="ok")]
            )
            _, envelope = _execute({"url": "https://example.com/flaky"})

        assert envelope.attempt == route.call_count == 2
