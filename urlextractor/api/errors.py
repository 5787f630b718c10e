"""Exception handlers that keep every error response in envelope form."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from urlextractor.errors import ValidationError
from urlextractor.observability import get_logger
from urlextractor.service import make_envelope

logger = get_logger(__name__)


def _envelope_response(status_code: int, data: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=make_envelope(False, data, attempt=0).model_dump(),
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _envelope_response(400, {"error": exc.message})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return _envelope_response(
            404,
            {"error": "Endpoint not found", "path": request.url.path, "method": request.method},
        )
    return _envelope_response(exc.status_code, {"error": str(exc.detail)})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return _envelope_response(
        500, {"error": "Internal Server Error", "code": type(exc).__name__}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
