"""Product API endpoints.

Provides the product lookup (filtered by categories and name) and the
create, update and delete operations.
"""

from typing import Annotated

from fastapi import APIRouter, Query, Response, status
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.api.auth import issue_auth_cookies
from app.api.dependencies import CatalogServiceDep
from app.api.schemas import (
    DeletedProductResponse,
    ErrorResponse,
    ProductCreateRequest,
    ProductDetailSchema,
    ProductListResponse,
    ProductResponse,
    ProductRowSchema,
    ProductSchema,
    ProductUpdateRequest,
)
from app.application.catalog_service import ProductFilter
from app.domain.exceptions import InvalidCategoryFilterError

router = APIRouter(prefix="/api", tags=["Products"])

_category_ids_adapter = TypeAdapter(list[int])


def parse_category_ids(raw: str | None) -> list[int]:
    """Parse the ``categoryIds`` query parameter.

    Args:
        raw: JSON array string such as ``"[1, 4]"``.

    Returns:
        Category IDs; empty when the parameter is absent.

    Raises:
        InvalidCategoryFilterError: If the value is not a JSON array of integers.
    """
    if not raw:
        return []
    try:
        return _category_ids_adapter.validate_json(raw)
    except PydanticValidationError as exc:
        raise InvalidCategoryFilterError(raw) from exc


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "/products",
    response_model=ProductListResponse,
    responses={400: {"model": ErrorResponse}},
    summary="List products",
    description=(
        "List products newest first, each with all of its categories. "
        "categoryIds keeps only products that belong to every listed category."
    ),
)
async def list_products(
    service: CatalogServiceDep,
    category_ids: Annotated[
        str | None,
        Query(alias="categoryIds", description="JSON array of category IDs, e.g. [1,4]"),
    ] = None,
    name: Annotated[
        str | None,
        Query(description="Case-insensitive substring of the product name"),
    ] = None,
) -> ProductListResponse:
    """List products filtered by categories (AND) and name."""
    result = await service.list_products(
        ProductFilter(category_ids=parse_category_ids(category_ids), name=name)
    )

    if result.short_circuited:
        return ProductListResponse(message="No products found", data=[])

    return ProductListResponse(
        message="Products fetched successfully",
        data=[ProductSchema.from_view(p) for p in result.products],
    )


@router.post(
    "/product/add",
    response_model=ProductResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}},
    summary="Create product",
    description="Create a product and link it to the existing categories among categoryIds.",
)
async def add_product(
    request: ProductCreateRequest,
    response: Response,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Create a product.

    Also issues auth cookies carrying the new product's ID.

    Raises:
        ProductAlreadyExistsError: If the name is taken.
        CategoryNotFoundError: If none of the categories exist.
    """
    product = await service.add_product(
        name=request.name,
        price=request.price,
        category_ids=request.category_ids,
    )

    issue_auth_cookies(response, {"id": product.id})

    return ProductResponse(
        message="Product added successfully",
        data=ProductDetailSchema.from_view(product),
    )


@router.put(
    "/product",
    response_model=ProductResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
    summary="Update product",
    description="Update name/price and replace the category set when categoryIds is non-empty.",
)
async def edit_product(
    request: ProductUpdateRequest,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Update a product.

    Raises:
        ProductNotFoundError: If the product does not exist.
    """
    product = await service.edit_product(
        request.id,
        name=request.name,
        price=request.price,
        category_ids=request.category_ids,
    )

    return ProductResponse(
        message="Product updated successfully",
        data=ProductDetailSchema.from_view(product),
    )


@router.delete(
    "/product",
    response_model=DeletedProductResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Delete product",
    description="Delete a product; its category links are removed with it.",
)
async def delete_product(
    service: CatalogServiceDep,
    product_id: Annotated[int, Query(alias="id", description="Product to delete")],
) -> DeletedProductResponse:
    """Delete a product.

    Raises:
        ProductNotFoundError: If the product does not exist.
    """
    deleted = await service.delete_product(product_id)

    return DeletedProductResponse(
        message="Product deleted successfully",
        data=[ProductRowSchema.from_record(deleted)],
    )
