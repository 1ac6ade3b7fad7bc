"""Health check endpoints.

Provides endpoints for monitoring service health and database readiness.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.api.dependencies import get_catalog_repository
from app.catalog.repository import CatalogRepository
from app.infrastructure.config import settings

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report that the process is up."""
    return HealthResponse(
        status="healthy",
        service="product-catalog-api",
        version=settings.api_version,
    )


@router.get("/ready")
async def readiness_check(
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
) -> JSONResponse:
    """Check that the database answers queries.

    Returns:
        200 when ready, 503 when the database is unreachable.
    """
    try:
        await repository.ping()
    except Exception as e:
        logger.warning("Database not reachable", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )
    return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready"})
