"""API middleware for the catalog API.

Provides:
- Request ID correlation
- Caching disabled on every response
- Access token verification
- Error handling
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.api.auth import ACCESS_TOKEN_COOKIE, decode_token
from app.infrastructure.config import settings

logger = structlog.get_logger()


# ============================================================================
# Request ID Middleware
# ============================================================================


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add request ID for correlation.

    Generates or extracts a request ID and adds it to:
    - Request state for access in handlers
    - Response headers for client correlation
    - Log context for tracing
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid4())
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(request_id=request_id)
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
            )
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers[self.HEADER_NAME] = request_id
        return response


# ============================================================================
# No-Cache Middleware
# ============================================================================


NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Disable client and proxy caching for every response."""

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        response = await call_next(request)
        response.headers.update(NO_CACHE_HEADERS)
        return response


# ============================================================================
# Access Token Middleware
# ============================================================================


# Paths that don't require authentication
PUBLIC_PATHS = {
    "/health",
    "/ready",
    "/api",
    "/api/auth/token",
    "/docs",
    "/redoc",
    "/openapi.json",
}


def _is_public(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/redoc")


class AccessTokenMiddleware(BaseHTTPMiddleware):
    """Verify the access token cookie and attach its claims to the request.

    Enforcement is controlled by ``settings.auth_enabled``. When disabled,
    or on a public path, a valid cookie is still decoded onto
    ``request.state.user`` but a missing or bad one is not rejected.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        token = request.cookies.get(ACCESS_TOKEN_COOKIE)
        request.state.user = None

        path = request.url.path.rstrip("/") or "/"
        enforce = (
            settings.auth_enabled
            and request.method != "OPTIONS"
            and not _is_public(path)
        )

        if not enforce:
            if token:
                request.state.user = decode_token(token)
            return await call_next(request)

        if not token:
            logger.warning("Missing access token", path=path, method=request.method)
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"message": "Access token missing", "status": "error"},
            )

        claims = decode_token(token)
        if claims is None:
            logger.warning("Invalid access token", path=path, method=request.method)
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"message": "Invalid or expired token", "status": "error"},
            )

        request.state.user = claims
        return await call_next(request)


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling.

    Catches unhandled exceptions and returns the standard error envelope.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"message": "An internal error occurred", "status": "error"},
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    The last middleware added runs first.

    Args:
        app: FastAPI application instance.
    """
    # Innermost: turns handler crashes into 500 envelopes
    app.add_middleware(ErrorHandlerMiddleware)

    app.add_middleware(AccessTokenMiddleware)

    # Applies to auth rejections too
    app.add_middleware(NoCacheMiddleware)

    # Outermost: every log line of the request carries its ID
    app.add_middleware(RequestIdMiddleware)
