"""Service discovery and health endpoints.

Routes
------
GET /          API information document
GET /health    Liveness probe with uptime
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from urlextractor.config import settings
from urlextractor.service import utc_timestamp

router = APIRouter()

FEATURES = [
    "Bot detection avoidance",
    "Rotating user agents",
    "Retry mechanism with exponential backoff",
    "HTML metadata extraction",
    "Link type classification",
    "CORS support",
]


class HealthResponse(BaseModel):
    message: str
    timestamp: str
    uptime: float
    version: str


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> dict[str, Any]:
    started_at = getattr(request.app.state, "started_at", None)
    uptime = time.monotonic() - started_at if started_at is not None else 0.0
    return {
        "message": "Server is healthy and ready to handle requests",
        "timestamp": utc_timestamp(),
        "uptime": round(uptime, 3),
        "version": settings.app_version,
    }


@router.get("/")
def api_info(request: Request) -> dict[str, Any]:
    """Describe the API and show example calls against this host."""
    base_url = str(request.base_url).rstrip("/")
    return {
        "message": "URL Extractor API",
        "version": settings.app_version,
        "features": FEATURES,
        "endpoints": {
            "health": f"{base_url}/health",
            "execute": f"{base_url}/execute",
            "documentation": f"{base_url}/docs",
        },
        "usage": {
            "get": f"{base_url}/execute?url=https://example.com&method=GET",
            "post": {
                "url": f"{base_url}/execute",
                "method": "POST",
                "body": {
                    "url": "https://example.com",
                    "method": "POST",
                    "data": {"key": "value"},
                    "headers": {"Custom-Header": "value"},
                },
            },
        },
    }
