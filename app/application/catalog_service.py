"""Catalog application service.

Handles product lookup with category filtering and the product/category
mutations, each write running as one transaction on the repository.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import structlog

from app.catalog.assembly import group_product_rows, match_products, normalize_category_ids
from app.catalog.formatting import to_display_form, to_storage_form
from app.catalog.repository import CatalogRepository
from app.domain.entities import CategoryView, ProductRecord, ProductView
from app.domain.exceptions import (
    CategoryAlreadyExistsError,
    CategoryNameRequiredError,
    CategoryNotFoundError,
    ProductAlreadyExistsError,
    ProductNotFoundError,
)

logger = structlog.get_logger()


# ============================================================================
# Service Input/Result Types
# ============================================================================


@dataclass
class ProductFilter:
    """Filter parameters for the product lookup.

    Attributes:
        category_ids: Categories a product must all belong to.
        name: Case-insensitive substring of the product name.
    """

    category_ids: list[int] = field(default_factory=list)
    name: str | None = None


@dataclass
class ProductLookupResult:
    """Result of a product lookup.

    ``short_circuited`` is set when the category filter matched no product
    and the product query was skipped.
    """

    products: list[ProductView]
    short_circuited: bool = False


# ============================================================================
# Catalog Service
# ============================================================================


class CatalogService:
    """Application service for products and categories.

    Example usage:
        async with async_session_factory() as session:
            service = CatalogService(SqlCatalogRepository(session))
            result = await service.list_products(ProductFilter(category_ids=[1, 4]))
    """

    def __init__(
        self,
        repository: CatalogRepository,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            repository: Data-access dependency.
            request_id: Request ID for correlation.
        """
        self.repository = repository
        self.request_id = request_id

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def list_products(self, filters: ProductFilter) -> ProductLookupResult:
        """Find products, each with its complete category list.

        Args:
            filters: Category (AND) and name filters.

        Returns:
            Matching products, newest first.
        """
        required = normalize_category_ids(filters.category_ids)
        product_ids: set[int] | None = None

        if required:
            links = await self.repository.find_category_links(required)
            product_ids = match_products(links, required)

            if not product_ids:
                logger.info(
                    "No products match all categories",
                    category_ids=required,
                    request_id=self.request_id,
                )
                return ProductLookupResult(products=[], short_circuited=True)

        rows = await self.repository.fetch_product_rows(
            product_ids=product_ids,
            name_search=filters.name or None,
        )
        products = group_product_rows(rows)

        logger.info(
            "Products fetched",
            count=len(products),
            category_ids=required,
            name=filters.name,
            request_id=self.request_id,
        )
        return ProductLookupResult(products=products)

    async def get_product(self, product_id: int) -> ProductView | None:
        """Get one product with its full category list.

        Args:
            product_id: Product ID.

        Returns:
            The product, or None if it does not exist.
        """
        rows = await self.repository.fetch_product_rows(product_ids=[product_id])
        products = group_product_rows(rows)
        return products[0] if products else None

    async def add_product(
        self,
        name: str,
        price: int,
        category_ids: Iterable[int],
    ) -> ProductView:
        """Create a product linked to the existing categories among those given.

        Args:
            name: Unique product name.
            price: Product price.
            category_ids: Categories to link.

        Returns:
            The created product with its categories.

        Raises:
            ProductAlreadyExistsError: If the name is taken.
            CategoryNotFoundError: If none of the categories exist.
        """
        requested = normalize_category_ids(category_ids)

        try:
            inserted = await self.repository.insert_product(name=name, price=price)
            if inserted.is_conflict:
                raise ProductAlreadyExistsError(name)

            valid_ids = await self.repository.existing_category_ids(requested)
            if not valid_ids:
                raise CategoryNotFoundError(requested)

            product = inserted.row
            await self.repository.add_product_categories(product.id, valid_ids)
        except Exception:
            await self.repository.rollback()
            raise

        await self.repository.commit()

        logger.info(
            "Product created",
            product_id=product.id,
            category_ids=valid_ids,
            ignored_category_ids=[i for i in requested if i not in valid_ids],
            request_id=self.request_id,
        )
        return await self._with_categories(product)

    async def edit_product(
        self,
        product_id: int,
        name: str | None = None,
        price: int | None = None,
        category_ids: Sequence[int] | None = None,
    ) -> ProductView:
        """Update a product and optionally replace its categories.

        Name and price change only when truthy. A non-empty category list
        replaces every existing link with links to the categories that
        exist; no list leaves the links untouched.

        Args:
            product_id: Product to update.
            name: New name.
            price: New price.
            category_ids: New category set.

        Returns:
            The updated product with its categories.

        Raises:
            ProductNotFoundError: If the product does not exist.
            ProductAlreadyExistsError: If the new name is taken.
        """
        existing = await self.repository.get_product(product_id)
        if existing is None:
            raise ProductNotFoundError(product_id)

        try:
            updated = await self.repository.update_product(
                product_id,
                name=name or None,
                price=price or None,
            )
            if updated is None:
                raise ProductNotFoundError(product_id)
            if updated.is_conflict:
                raise ProductAlreadyExistsError(name or existing.name)

            requested = normalize_category_ids(category_ids)
            if requested:
                valid_ids = await self.repository.existing_category_ids(requested)
                await self.repository.remove_product_categories(product_id)
                await self.repository.add_product_categories(product_id, valid_ids)
                logger.info(
                    "Product categories replaced",
                    product_id=product_id,
                    category_ids=valid_ids,
                    request_id=self.request_id,
                )
        except Exception:
            await self.repository.rollback()
            raise

        await self.repository.commit()

        logger.info("Product updated", product_id=product_id, request_id=self.request_id)
        return await self._with_categories(updated.row)

    async def delete_product(self, product_id: int) -> ProductRecord:
        """Delete a product; its category links go with it.

        Args:
            product_id: Product to delete.

        Returns:
            The product as it was before deletion.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        deleted = await self.repository.delete_product(product_id)
        if deleted is None:
            raise ProductNotFoundError(product_id)

        await self.repository.commit()

        logger.info("Product deleted", product_id=product_id, request_id=self.request_id)
        return deleted

    async def _with_categories(self, product: ProductRecord) -> ProductView:
        view = await self.get_product(product.id)
        if view is None:
            return ProductView(
                id=product.id,
                name=product.name,
                price=product.price,
                created_at=product.created_at,
                updated_at=product.updated_at,
            )
        return view

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self) -> list[CategoryView]:
        """Get all categories with display-formatted names."""
        categories = await self.repository.list_categories()
        return [
            CategoryView(id=category.id, name=to_display_form(category.name))
            for category in categories
        ]

    async def add_category(self, name: str | None) -> CategoryView:
        """Create a category.

        Args:
            name: Category name in any case, words separated by spaces.

        Returns:
            The created category with its display name.

        Raises:
            CategoryNameRequiredError: If the name is missing or blank.
            CategoryAlreadyExistsError: If the name is taken.
        """
        storage_name = to_storage_form(name)
        if not storage_name:
            raise CategoryNameRequiredError()

        try:
            inserted = await self.repository.insert_category(storage_name)
            if inserted.is_conflict:
                raise CategoryAlreadyExistsError(storage_name)
        except Exception:
            await self.repository.rollback()
            raise

        await self.repository.commit()

        category = inserted.row
        logger.info(
            "Category created",
            category_id=category.id,
            name=category.name,
            request_id=self.request_id,
        )
        return CategoryView(id=category.id, name=to_display_form(category.name))
