"""FastAPI error handler registration.

Backend faults are answered with HTTP 200 and ``ok: false``; the envelope is
the contract the UI reads.  Only malformed requests get a 4xx status.
"""
from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..engine.result_query import InvalidRequestError
from ..search.errors import (
    PaginationError,
    SearchBackendError,
    error_message,
    prettify_error_message,
)
from .schemas.envelope import ApiResponse

logger = logging.getLogger(__name__)


# ── Error → HTTP mapping ────────────────────────────────────────────

_EXCEPTION_STATUS = {
    InvalidRequestError: 400,
    RequestValidationError: 400,
    SearchBackendError: 200,
    PaginationError: 200,
}


def _make_handler(status_code: int):
    """Create a handler that wraps an exception in ApiResponse."""

    async def _handler(request: Request, exc: Exception) -> JSONResponse:
        message = prettify_error_message(error_message(exc))
        if status_code == 200:
            logger.warning(
                "Backend fault on %s %s: %s", request.method, request.url.path, message
            )
        resp = ApiResponse.fail(message)
        return JSONResponse(status_code=status_code, content=resp.model_dump())

    return _handler


def register_error_handlers(app: FastAPI) -> None:
    """Register custom exception handlers on the FastAPI app."""
    for exc_cls, status in _EXCEPTION_STATUS.items():
        app.add_exception_handler(exc_cls, _make_handler(status))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
        resp = ApiResponse.fail("Internal server error")
        return JSONResponse(status_code=500, content=resp.model_dump())
