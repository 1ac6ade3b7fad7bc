"""Product Catalog API main application module.

This module initializes the FastAPI application and configures
core middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.api.auth import router as auth_router
from app.api.categories import router as categories_router
from app.api.health import router as health_router
from app.api.middleware import setup_middleware
from app.api.products import router as products_router
from app.domain.exceptions import CatalogError
from app.infrastructure.config import settings
from app.infrastructure.database import dispose_engine
from app.infrastructure.logging import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    configure_logging()
    logger.info(
        "Starting Product Catalog API",
        version=settings.api_version,
        debug=settings.debug,
        auth_enabled=settings.auth_enabled,
    )

    yield

    logger.info("Shutting down Product Catalog API")
    await dispose_engine()


app = FastAPI(
    title="Product Catalog API",
    description="Products and categories with many-to-many category filtering",
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request ID, no-cache, access token, error handling
setup_middleware(app)

# Added last so it runs first and answers preflight requests before auth
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(auth_router)
app.include_router(products_router)
app.include_router(categories_router)


@app.get("/api", include_in_schema=False)
async def hello() -> dict[str, str]:
    """Greeting used by the frontend to check connectivity."""
    return {"message": "Hello from backend!"}


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the standard error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "status": "error"},
    )


@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Render catalog rule violations with their own status and message."""
    logger.info(
        "Catalog request rejected",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error=exc.message,
        details=exc.details,
    )
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed input as 400 with the first problem found."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))

    logger.info(
        "Request validation failed",
        path=request.url.path,
        method=request.method,
        error_count=len(errors),
    )
    return error_response(400, message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("message", str(detail))
    else:
        message = str(detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message, "status": "error"},
        headers=getattr(exc, "headers", None),
    )
