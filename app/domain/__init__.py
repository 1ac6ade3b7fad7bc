"""Domain layer - catalog records, tagged write results and exceptions."""

from app.domain.entities import (
    CategoryRecord,
    CategoryView,
    ProductCategoryRow,
    ProductRecord,
    ProductView,
    WriteResult,
    WriteStatus,
)
from app.domain.exceptions import (
    CatalogError,
    CategoryAlreadyExistsError,
    CategoryNameRequiredError,
    CategoryNotFoundError,
    ConflictError,
    InvalidCategoryFilterError,
    NotFoundError,
    ProductAlreadyExistsError,
    ProductNotFoundError,
    ValidationError,
)

__all__ = [
    # Entities
    "CategoryRecord",
    "CategoryView",
    "ProductCategoryRow",
    "ProductRecord",
    "ProductView",
    "WriteResult",
    "WriteStatus",
    # Exceptions
    "CatalogError",
    "CategoryAlreadyExistsError",
    "CategoryNameRequiredError",
    "CategoryNotFoundError",
    "ConflictError",
    "InvalidCategoryFilterError",
    "NotFoundError",
    "ProductAlreadyExistsError",
    "ProductNotFoundError",
    "ValidationError",
]
