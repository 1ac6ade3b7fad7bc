"""Category API endpoints."""

from fastapi import APIRouter, status

from app.api.dependencies import CatalogServiceDep
from app.api.schemas import (
    CategoryCreateRequest,
    CategoryListResponse,
    CategorySchema,
    ErrorResponse,
)

router = APIRouter(prefix="/api", tags=["Categories"])


@router.get(
    "/categories",
    response_model=CategoryListResponse,
    summary="List categories",
)
async def list_categories(service: CatalogServiceDep) -> CategoryListResponse:
    """List all categories with display names."""
    categories = await service.list_categories()

    return CategoryListResponse(
        message="Categories fetched successfully",
        data=[CategorySchema.from_view(c) for c in categories],
    )


@router.post(
    "/category/add",
    response_model=CategoryListResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}},
    summary="Create category",
    description="Create a category. The name is stored lowercase with underscores.",
)
async def add_category(
    request: CategoryCreateRequest,
    service: CatalogServiceDep,
) -> CategoryListResponse:
    """Create a category.

    Raises:
        CategoryNameRequiredError: If the name is missing.
        CategoryAlreadyExistsError: If the name is taken.
    """
    category = await service.add_category(request.name)

    return CategoryListResponse(
        message="Category added successfully",
        data=[CategorySchema.from_view(category)],
    )
