"""Retrying HTTP executor with per-attempt identity rotation.

Attempts are strictly sequential.  Any HTTP status counts as a successful
transport outcome: upstream error pages are returned to the caller instead of
being retried.  Only transport failures (timeouts, DNS / connect errors, TLS
and protocol errors) trigger a retry, each one preceded by an exponential
backoff sleep and a freshly drawn identity.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional

import httpx

from urlextractor.config import settings
from urlextractor.errors import NetworkError
from urlextractor.observability import get_logger
from urlextractor.scraper.backoff import delay_for
from urlextractor.scraper.identity import next_identity
from urlextractor.scraper.models import FetchAttempt, FetchRequest, FetchResult

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]

_TEXT_CONTENT_MARKERS = ("text/", "json", "xml", "javascript", "x-www-form-urlencoded")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _classify_failure(exc: BaseException, timeout: float) -> tuple[str, str]:
    """Map a transport exception to ``(kind, message)``."""
    if isinstance(exc, asyncio.TimeoutError):
        return "timeout", f"Attempt exceeded the {timeout:g}s timeout"
    message = str(exc) or type(exc).__name__
    if isinstance(exc, httpx.TimeoutException):
        return "timeout", message
    if isinstance(exc, httpx.ConnectError):
        return "connect_error", message
    if isinstance(exc, httpx.ProtocolError):
        return "protocol_error", message
    return "network_error", message


def _body_kwargs(request: FetchRequest) -> dict[str, Any]:
    if not request.sends_body:
        return {}
    if isinstance(request.body, (dict, list)):
        return {"json": request.body}
    if isinstance(request.body, (str, bytes)):
        return {"content": request.body}
    return {"content": str(request.body)}


def _merge_headers(identity_headers: dict[str, str], overrides: dict[str, str]) -> httpx.Headers:
    """Identity headers with caller overrides on top, matched case-insensitively."""
    headers = httpx.Headers(identity_headers)
    headers.update(overrides)
    return headers


def _read_body(response: httpx.Response, method: str) -> str | bytes:
    if method == "HEAD":
        return ""
    content_type = response.headers.get("content-type", "").lower()
    if not content_type or any(marker in content_type for marker in _TEXT_CONTENT_MARKERS):
        return response.text
    return response.content


async def _attempt_loop(
    client: httpx.AsyncClient,
    request: FetchRequest,
    attempts: list[FetchAttempt],
    rng: Optional[random.Random],
    sleep: SleepFn,
    max_retries: int,
    timeout: float,
) -> FetchResult:
    for attempt_index in range(max_retries):
        identity = next_identity(request.url, rng)
        attempt = FetchAttempt(attempt_number=attempt_index + 1, identity=identity)
        attempts.append(attempt)

        logger.info(
            "fetch_attempt",
            url=request.url,
            method=request.method,
            attempt=attempt.attempt_number,
            max_attempts=max_retries,
            user_agent=identity.user_agent[:50],
        )

        try:
            response = await asyncio.wait_for(
                client.request(
                    request.method,
                    request.url,
                    headers=_merge_headers(identity.headers, request.headers),
                    **_body_kwargs(request),
                ),
                timeout,
            )
        except (httpx.TransportError, asyncio.TimeoutError) as exc:
            attempt.error_kind, attempt.message = _classify_failure(exc, timeout)
            logger.warning(
                "fetch_attempt_failed",
                url=request.url,
                attempt=attempt.attempt_number,
                error_kind=attempt.error_kind,
                error=attempt.message,
            )
            if attempt_index >= max_retries - 1:
                raise NetworkError(
                    attempt.error_kind, attempt.message, attempts=len(attempts)
                ) from exc

            delay_ms = delay_for(
                attempt_index,
                rng,
                base_ms=settings.backoff_base_ms,
                max_ms=settings.backoff_max_ms,
                jitter_ms=settings.backoff_jitter_ms,
            )
            logger.info("fetch_retry_scheduled", url=request.url, delay_ms=round(delay_ms))
            await sleep(delay_ms / 1000.0)
            continue

        attempt.status = response.status_code
        attempt.status_text = response.reason_phrase
        logger.info(
            "fetch_succeeded",
            url=request.url,
            attempt=attempt.attempt_number,
            status_code=response.status_code,
        )
        return FetchResult(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            body=_read_body(response, request.method),
            attempt=attempt.attempt_number,
        )

    # Unreachable: the final failed attempt raises above.
    raise NetworkError("network_error", "No attempt was made", attempts=len(attempts))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def execute_with_retry(
    request: FetchRequest,
    *,
    client: Optional[httpx.AsyncClient] = None,
    rng: Optional[random.Random] = None,
    sleep: Optional[SleepFn] = None,
    max_retries: Optional[int] = None,
    timeout: Optional[float] = None,
    deadline: Optional[float] = None,
) -> FetchResult:
    """Perform *request*, retrying transport failures with backoff.

    Args:
        request: A validated :class:`FetchRequest`.
        client: Shared ``httpx.AsyncClient``.  A private client is opened and
            closed around the call when omitted.
        rng: Random source for identities and jitter.  Seed it in tests.
        sleep: Coroutine used for the backoff wait (default ``asyncio.sleep``).
        max_retries: Total attempts allowed.  Defaults to ``settings.max_retries``.
        timeout: Per-attempt wall-clock budget in seconds.  Defaults to
            ``settings.request_timeout``.
        deadline: Overall budget in seconds covering every attempt and sleep.
            Defaults to ``settings.request_deadline``; ``0`` disables it.

    Returns:
        The upstream response, whatever its status code.

    Raises:
        NetworkError: When every attempt failed at the transport level or the
            overall deadline expired.
    """
    max_retries = max(1, max_retries if max_retries is not None else settings.max_retries)
    timeout = timeout if timeout is not None else settings.request_timeout
    deadline = deadline if deadline is not None else settings.request_deadline
    sleep = sleep or asyncio.sleep

    attempts: list[FetchAttempt] = []
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), follow_redirects=True)

    try:
        loop = _attempt_loop(client, request, attempts, rng, sleep, max_retries, timeout)
        if deadline and deadline > 0:
            try:
                return await asyncio.wait_for(loop, deadline)
            except asyncio.TimeoutError:
                logger.warning(
                    "fetch_deadline_exceeded",
                    url=request.url,
                    deadline_s=deadline,
                    attempts=len(attempts),
                )
                raise NetworkError(
                    "timeout",
                    f"Request deadline of {deadline:g}s exceeded",
                    attempts=len(attempts),
                ) from None
        return await loop
    finally:
        if owns_client:
            await client.aclose()
