"""Request facade: validate, fetch, enrich and wrap the result in an envelope.

Usage::

    from urlextractor.service import execute_request

    status_code, envelope = await execute_request({"url": "https://example.com"})
"""

from __future__ import annotations

import json
import random
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel

from urlextractor.errors import NetworkError, ValidationError
from urlextractor.observability import get_logger
from urlextractor.scraper.classifier import classify_link_type
from urlextractor.scraper.extractor import extract_metadata
from urlextractor.scraper.fetcher import SleepFn, execute_with_retry
from urlextractor.scraper.models import ALLOWED_METHODS, FetchRequest

logger = get_logger(__name__)

MISSING_URL = "URL parameter is required"
INVALID_URL = "URL must be an absolute http(s) URL"
INVALID_METHOD = "Invalid HTTP method"
INVALID_HEADERS = "headers must be a JSON object of strings"
REQUEST_FAILED = "Failed to fetch data after retries"


class ResponseEnvelope(BaseModel):
    """The ``{success, data, attempt, timestamp}`` wrapper of every response."""

    success: bool
    data: dict[str, Any]
    attempt: int
    timestamp: str


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def make_envelope(success: bool, data: dict[str, Any], attempt: int = 0) -> ResponseEnvelope:
    return ResponseEnvelope(
        success=success, data=data, attempt=attempt, timestamp=utc_timestamp()
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _parse_headers(raw: Any) -> dict[str, str]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        # Query strings can only carry headers as serialised JSON.
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ValidationError(INVALID_HEADERS) from exc
    if not isinstance(raw, Mapping):
        raise ValidationError(INVALID_HEADERS)
    return {str(key): str(value) for key, value in raw.items()}


def validate_params(params: Mapping[str, Any]) -> FetchRequest:
    """Turn raw ``{url, method, headers, data}`` parameters into a :class:`FetchRequest`.

    Raises:
        ValidationError: Missing or non-http(s) url, unsupported method or
            malformed headers.
    """
    url = params.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ValidationError(MISSING_URL)
    url = url.strip()
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise ValidationError(INVALID_URL) from exc
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        raise ValidationError(INVALID_URL)

    method = params.get("method") or "GET"
    if not isinstance(method, str) or method.upper() not in ALLOWED_METHODS:
        raise ValidationError(INVALID_METHOD)

    return FetchRequest(
        url=url,
        method=method.upper(),
        headers=_parse_headers(params.get("headers")),
        body=params.get("data"),
    )


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

async def execute_request(
    params: Mapping[str, Any],
    *,
    client: Optional[httpx.AsyncClient] = None,
    rng: Optional[random.Random] = None,
    sleep: Optional[SleepFn] = None,
) -> tuple[int, ResponseEnvelope]:
    """Run the full fetch / extract / classify pipeline for *params*.

    Returns:
        ``(http_status, envelope)``.  200 whenever the upstream answered,
        whatever its own status; 400 for invalid input (no network call is
        made); 500 when every attempt failed at the transport level.
    """
    try:
        request = validate_params(params)
    except ValidationError as exc:
        logger.info("execute_rejected", reason=exc.message)
        return 400, make_envelope(False, {"error": exc.message}, attempt=0)

    logger.info("execute_started", url=request.url, method=request.method)

    try:
        result = await execute_with_retry(request, client=client, rng=rng, sleep=sleep)
    except NetworkError as exc:
        logger.error(
            "execute_failed",
            url=request.url,
            error_kind=exc.kind,
            error=exc.message,
            attempts=exc.attempts,
        )
        return 500, make_envelope(
            False,
            {
                "error": REQUEST_FAILED,
                "details": str(exc),
                "code": exc.kind,
                "url": request.url,
            },
            attempt=exc.attempts,
        )

    metadata = None
    if result.is_html:
        metadata = extract_metadata(result.body, request.url)
        logger.info(
            "metadata_extracted",
            url=request.url,
            title=bool(metadata.title),
            description=bool(metadata.description),
            images=[name for name, value in metadata.images.to_dict().items() if value],
        )

    link_type = classify_link_type(
        request.url,
        metadata.title if metadata else "",
        metadata.description if metadata else "",
        result.body if result.is_html else "",
    )
    logger.info("link_classified", url=request.url, link_type=link_type.value)

    data: dict[str, Any] = {
        "url": request.url,
        "method": request.method,
        "status": result.status,
        "statusText": result.status_text,
        "linkType": link_type.value,
    }
    if metadata is not None:
        data.update(metadata.to_dict())

    return 200, make_envelope(True, data, attempt=result.attempt)
