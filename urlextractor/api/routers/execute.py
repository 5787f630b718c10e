"""Proxy-fetch endpoint.

Routes
------
GET  /execute    Query: ?url=...&method=GET&headers={json}    → execute_request
POST /execute    Body:  {"url", "method", "headers", "data"}   → execute_request

Query parameters and body fields are merged, body fields winning.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from urlextractor.errors import ValidationError
from urlextractor.service import ResponseEnvelope, execute_request

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _collect_params(request: Request) -> dict[str, Any]:
    params: dict[str, Any] = dict(request.query_params)
    if request.method != "POST":
        return params

    raw = await request.body()
    if not raw.strip():
        return params
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    params.update(body)
    return params


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.api_route(
    "",
    methods=["GET", "POST"],
    response_model=ResponseEnvelope,
    responses={400: {"model": ResponseEnvelope}, 500: {"model": ResponseEnvelope}},
)
async def execute_endpoint(request: Request) -> JSONResponse:
    """Fetch a URL with retries, extract its metadata and classify it.

    The upstream status is reported in ``data.status``; a 4xx/5xx from the
    target is still a successful fetch.
    """
    params = await _collect_params(request)
    status_code, envelope = await execute_request(
        params, client=getattr(request.app.state, "http_client", None)
    )
    return JSONResponse(status_code=status_code, content=envelope.model_dump())
