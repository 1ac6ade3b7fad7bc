"""Domain exceptions.

All catalog-level errors that represent business rule violations. Each error
carries the HTTP status it maps to and a human-readable message that is
returned to the client unchanged.
"""

from typing import Any


class CatalogError(Exception):
    """Base class for all catalog exceptions.

    All catalog errors should inherit from this class so the API layer can
    render them with a single exception handler.
    """

    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize catalog error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Error Categories
# ============================================================================


class ValidationError(CatalogError):
    """Raised when required input is missing or malformed."""

    status_code = 400


class ConflictError(CatalogError):
    """Raised when a unique name is already taken."""

    status_code = 400


class NotFoundError(CatalogError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


# ============================================================================
# Product Errors
# ============================================================================


class ProductAlreadyExistsError(ConflictError):
    """Raised when a product name is already in use."""

    def __init__(self, name: str) -> None:
        super().__init__("Product already exists", details={"name": name})


class ProductNotFoundError(NotFoundError):
    """Raised when no product has the given ID."""

    def __init__(self, product_id: int) -> None:
        super().__init__("Product not found", details={"product_id": product_id})


class InvalidCategoryFilterError(ValidationError):
    """Raised when the categoryIds filter is not a JSON array of integers."""

    def __init__(self, raw_value: str) -> None:
        super().__init__(
            "categoryIds must be a JSON array of integers",
            details={"category_ids": raw_value},
        )


# ============================================================================
# Category Errors
# ============================================================================


class CategoryNameRequiredError(ValidationError):
    """Raised when a category is added without a name."""

    def __init__(self) -> None:
        super().__init__("Name is required")


class CategoryAlreadyExistsError(ConflictError):
    """Raised when a category name is already in use."""

    def __init__(self, name: str) -> None:
        super().__init__("Category already exists", details={"name": name})


class CategoryNotFoundError(ValidationError):
    """Raised when none of the supplied category IDs exist.

    Maps to 400 rather than 404 because the category IDs come from the
    request body.
    """

    def __init__(self, category_ids: list[int]) -> None:
        super().__init__(
            "Category not found",
            details={"category_ids": category_ids},
        )
