"""API schemas for the catalog API.

Pydantic models for request/response validation and serialization. Field
names follow the camelCase the frontend sends (``categoryIds``,
``createdAt``) through aliases.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.catalog.models import INT4_MAX, INT4_MIN
from app.domain.entities import CategoryView, ProductRecord, ProductView

# Values stored in an INTEGER column
Int32 = Annotated[int, Field(ge=INT4_MIN, le=INT4_MAX)]


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    message: str = Field(..., description="Human-readable error message")
    status: Literal["error"] = "error"


class SuccessResponse(BaseModel):
    """Envelope shared by all successful responses."""

    message: str = Field(..., description="Human-readable outcome")
    status: Literal["success"] = "success"


# ============================================================================
# Category Schemas
# ============================================================================


class CategorySchema(BaseModel):
    """Category with its display name."""

    id: int = Field(..., description="Category identifier")
    name: str | None = Field(..., description="Display name (spaces, lowercase)")

    @classmethod
    def from_view(cls, view: CategoryView) -> "CategorySchema":
        return cls(id=view.id, name=view.name)


class CategoryCreateRequest(BaseModel):
    """Request to add a category.

    ``name`` is optional at the schema level so that a missing name is
    reported as "Name is required" rather than a generic validation error.
    """

    name: str | None = Field(default=None, description="Category name, e.g. 'Female Clothing'")


class CategoryListResponse(SuccessResponse):
    """List of categories."""

    data: list[CategorySchema] = Field(default_factory=list)


# ============================================================================
# Product Schemas
# ============================================================================


class ProductSchema(BaseModel):
    """Product with its complete category list."""

    id: int = Field(..., description="Product identifier")
    name: str = Field(..., description="Product name")
    price: int = Field(..., description="Product price")
    categories: list[CategorySchema] = Field(
        default_factory=list, description="Every category the product belongs to"
    )

    @classmethod
    def from_view(cls, view: ProductView) -> "ProductSchema":
        return cls(
            id=view.id,
            name=view.name,
            price=view.price,
            categories=[CategorySchema.from_view(c) for c in view.categories],
        )


class ProductRowSchema(BaseModel):
    """Plain products row, as returned after deletion."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    price: int
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_record(cls, record: ProductRecord) -> "ProductRowSchema":
        return cls(
            id=record.id,
            name=record.name,
            price=record.price,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class ProductDetailSchema(ProductRowSchema):
    """Products row with its categories, returned by create and edit."""

    categories: list[CategorySchema] = Field(default_factory=list)

    @classmethod
    def from_view(cls, view: ProductView) -> "ProductDetailSchema":
        return cls(
            id=view.id,
            name=view.name,
            price=view.price,
            created_at=view.created_at,
            updated_at=view.updated_at,
            categories=[CategorySchema.from_view(c) for c in view.categories],
        )


class ProductCreateRequest(BaseModel):
    """Request to create a product."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, description="Unique product name")
    price: Int32 = Field(..., description="Product price")
    category_ids: list[int] = Field(
        default_factory=list,
        alias="categoryIds",
        description="Categories to link; unknown IDs are ignored",
    )


class ProductUpdateRequest(BaseModel):
    """Request to update a product.

    Omitted or empty fields are left unchanged.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., description="Product to update")
    name: str | None = Field(default=None, description="New name")
    price: Int32 | None = Field(default=None, description="New price")
    category_ids: list[int] | None = Field(
        default=None,
        alias="categoryIds",
        description="Replacement category set",
    )


class ProductListResponse(SuccessResponse):
    """Products matching a lookup."""

    data: list[ProductSchema] = Field(default_factory=list)


class ProductResponse(SuccessResponse):
    """A single created or updated product."""

    data: ProductDetailSchema


class DeletedProductResponse(SuccessResponse):
    """The deleted products row."""

    data: list[ProductRowSchema] = Field(default_factory=list)


class TokenResponse(SuccessResponse):
    """Identity carried by freshly issued auth cookies."""

    data: dict[str, str | int]
