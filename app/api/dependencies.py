"""FastAPI dependencies shared by the routers."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.catalog_service import CatalogService
from app.catalog.repository import CatalogRepository, SqlCatalogRepository
from app.infrastructure.database import get_session


def get_catalog_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> CatalogRepository:
    """Get the SQL catalog repository for the request session."""
    return SqlCatalogRepository(session)


def get_catalog_service(
    request: Request,
    repository: Annotated[CatalogRepository, Depends(get_catalog_repository)],
) -> CatalogService:
    """Get catalog service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return CatalogService(repository, request_id=request_id)


CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
