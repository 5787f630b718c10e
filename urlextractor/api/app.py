"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging, records its start time (reported by
``/health``) and opens one ``httpx.AsyncClient`` whose connection pool is
reused by every ``/execute`` call.  On shutdown the client is closed.

Routers
-------
    /           API information document
    /health     liveness probe
    /execute    retrying proxy fetch with metadata extraction
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from urlextractor.api.errors import register_exception_handlers
from urlextractor.api.middleware import request_logger
from urlextractor.api.routers import execute as execute_router
from urlextractor.api.routers import system as system_router
from urlextractor.config import settings
from urlextractor.observability import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the shared HTTP client on startup and close it on shutdown."""
    configure_logging(settings.log_level, json_format=settings.log_json)
    app.state.started_at = time.monotonic()
    client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout),
        follow_redirects=True,
    )
    app.state.http_client = client
    try:
        yield
    finally:
        await client.aclose()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="URL Extractor API",
        description=(
            "Proxy-fetch service: performs outbound HTTP requests with retries "
            "and rotating browser identities, extracts page metadata "
            "(title, description, images) and classifies the link."
        ),
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS", "PUT", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Response-Time"],
        max_age=86400,
    )
    app.middleware("http")(request_logger)
    register_exception_handlers(app)

    app.include_router(system_router.router, tags=["system"])
    app.include_router(execute_router.router, prefix="/execute", tags=["execute"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn urlextractor.api.app:app --reload
app = create_app()
