"""
Global middleware and exception handlers.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from connectors.errors import ConnectorError, UpstreamFailure

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s — %.3fs", request.method, request.url.path, elapsed)
        return response


def register_exception_handlers(app: FastAPI) -> None:
    """Map connector errors to HTTP answers.

    5xx answers carry the generic message only; the upstream body and the
    underlying cause stay in the server log.
    """

    @app.exception_handler(ConnectorError)
    async def connector_error(request: Request, exc: ConnectorError) -> JSONResponse:
        if exc.status_code >= 500:
            if isinstance(exc, UpstreamFailure) and exc.body:
                logger.error(
                    "%s %s failed upstream (%s): %s",
                    request.method, request.url.path, exc.status, exc.body,
                )
            else:
                logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
            detail = exc.public_message
        else:
            logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
            detail = exc.message
        return JSONResponse(status_code=exc.status_code, content={"detail": detail})
