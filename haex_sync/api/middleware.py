"""Sync API middleware — bearer-token gate, correlation IDs, access log."""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from haex_sync.auth.verifier import extract_bearer_token
from haex_sync.sync.errors import InternalError, UnauthorizedError

logger = logging.getLogger(__name__)

PROTECTED_PREFIX = "/sync"


def _is_protected(path: str) -> bool:
    return path == PROTECTED_PREFIX or path.startswith(PROTECTED_PREFIX + "/")


class AuthMiddleware(BaseHTTPMiddleware):
    """Verify the bearer token for every ``/sync`` request.

    Sets request.state.user on success. Missing, malformed and rejected tokens
    all get the same 401 body, before any route logic runs.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not _is_protected(request.url.path):
            return await call_next(request)

        verifier = getattr(request.app.state, "verifier", None)
        if verifier is None:
            logger.error("No token verifier configured; rejecting %s", request.url.path)
            err = InternalError()
            return JSONResponse(status_code=err.status_code, content={"error": err.message})

        try:
            token = extract_bearer_token(request.headers.get("authorization"))
            request.state.user = await verifier.verify(token)
        except UnauthorizedError as e:
            return JSONResponse(status_code=e.status_code, content={"error": e.message})
        except Exception:
            logger.exception("Token verification raised unexpectedly")
            err = UnauthorizedError()
            return JSONResponse(status_code=err.status_code, content={"error": err.message})

        return await call_next(request)


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Attach a unique X-Correlation-Id to every request/response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get("x-correlation-id") or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers["X-Correlation-Id"] = correlation_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One log line per request: method, path, status, elapsed time."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        correlation_id = getattr(request.state, "correlation_id", "-")
        try:
            response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            logger.error(
                "%s %s -> unhandled error (%.1fms) [%s]",
                request.method, request.url.path, elapsed, correlation_id,
            )
            raise
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %d (%.1fms) [%s]",
            request.method, request.url.path, response.status_code, elapsed, correlation_id,
        )
        return response


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turn unexpected exceptions into the 500 JSON body.

    Runs inside CORSMiddleware so browser clients can read the response.
    The exception text is only shown outside production.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error("Server error on %s %s", request.method, request.url.path, exc_info=exc)
            cfg = request.app.state.config
            message = "An unexpected error occurred" if cfg.is_production else str(exc)
            return JSONResponse(
                status_code=500, content={"error": "Internal Server Error", "message": message}
            )
