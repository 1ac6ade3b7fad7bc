"""Catalog repository for database operations.

``CatalogRepository`` is the data-access interface the catalog service
depends on. ``SqlCatalogRepository`` implements it on an async SQLAlchemy
session; tests supply an in-memory implementation instead.
"""

from abc import ABC, abstractmethod
from collections.abc import Collection, Sequence
from typing import Any

import structlog
from sqlalchemy import Select, and_, delete, func, insert, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.catalog.models import INT4_MAX, INT4_MIN, Category, Product, product_categories
from app.domain.entities import (
    CategoryRecord,
    ProductCategoryRow,
    ProductRecord,
    WriteResult,
)

logger = structlog.get_logger()

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"

PRODUCT_COLUMNS = (
    Product.id,
    Product.name,
    Product.price,
    Product.created_at,
    Product.updated_at,
)

CATEGORY_COLUMNS = (
    Category.id,
    Category.name,
    Category.created_at,
)


class CatalogRepository(ABC):
    """Data-access interface for products, categories and their links.

    Writes are not committed until ``commit`` is called, so a service can
    group several of them into one transaction.
    """

    # Products

    @abstractmethod
    async def get_product(self, product_id: int) -> ProductRecord | None:
        """Get a product row by ID."""

    @abstractmethod
    async def fetch_product_rows(
        self,
        product_ids: Collection[int] | None = None,
        name_search: str | None = None,
    ) -> list[ProductCategoryRow]:
        """Join products with all of their categories.

        Args:
            product_ids: Restrict to these products when given.
            name_search: Case-insensitive substring of the product name.

        Returns:
            Flat rows, newest product first. Products without categories
            appear once with ``category=None``.
        """

    @abstractmethod
    async def insert_product(self, name: str, price: int) -> WriteResult[ProductRecord]:
        """Insert a product, reporting a duplicate name as a conflict."""

    @abstractmethod
    async def update_product(
        self,
        product_id: int,
        name: str | None = None,
        price: int | None = None,
    ) -> WriteResult[ProductRecord] | None:
        """Update name/price and refresh updated_at.

        Returns:
            The tagged result, or None if the product does not exist.
        """

    @abstractmethod
    async def delete_product(self, product_id: int) -> ProductRecord | None:
        """Delete a product and return its last state, None if absent."""

    # Associations

    @abstractmethod
    async def find_category_links(
        self,
        category_ids: Collection[int],
    ) -> list[tuple[int, int]]:
        """Get ``(product_id, category_id)`` pairs for the given categories."""

    @abstractmethod
    async def add_product_categories(
        self,
        product_id: int,
        category_ids: Sequence[int],
    ) -> None:
        """Link a product to categories."""

    @abstractmethod
    async def remove_product_categories(self, product_id: int) -> None:
        """Unlink a product from all of its categories."""

    # Categories

    @abstractmethod
    async def existing_category_ids(self, category_ids: Collection[int]) -> list[int]:
        """Return the subset of IDs that belong to existing categories."""

    @abstractmethod
    async def list_categories(self) -> list[CategoryRecord]:
        """Get all categories ordered by ID."""

    @abstractmethod
    async def insert_category(self, name: str) -> WriteResult[CategoryRecord]:
        """Insert a category, reporting a duplicate name as a conflict."""

    # Transaction control

    @abstractmethod
    async def commit(self) -> None:
        """Commit pending writes."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard pending writes."""

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the store is reachable."""


def is_unique_violation(exc: IntegrityError) -> bool:
    """Tell whether an IntegrityError comes from a unique constraint.

    Args:
        exc: Error raised by the driver.

    Returns:
        True for SQLSTATE 23505.
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is None and orig is not None:
        sqlstate = getattr(orig.__cause__, "sqlstate", None)
    return sqlstate == UNIQUE_VIOLATION


def fits_int4(value: int) -> bool:
    """Check whether an ID can be bound to an INTEGER column.

    IDs outside this range cannot match any row, and asyncpg refuses to
    bind them.
    """
    return INT4_MIN <= value <= INT4_MAX


def storable_ids(ids: Collection[int]) -> list[int]:
    """Drop IDs that cannot exist in an INTEGER column."""
    return [i for i in ids if fits_int4(i)]


def build_product_rows_query(
    product_ids: Collection[int] | None = None,
    name_search: str | None = None,
) -> Select:
    """Build the products x associations x categories query.

    Args:
        product_ids: Restrict to these products when given.
        name_search: Case-insensitive substring of the product name.

    Returns:
        Select statement yielding product and category columns.
    """
    query = (
        select(*PRODUCT_COLUMNS, *(c.label(f"category_{c.key}") for c in CATEGORY_COLUMNS))
        .select_from(Product)
        .outerjoin(product_categories, product_categories.c.product_id == Product.id)
        .outerjoin(Category, Category.id == product_categories.c.category_id)
    )

    conditions = []

    if product_ids is not None:
        conditions.append(Product.id.in_(storable_ids(product_ids)))

    if name_search:
        conditions.append(Product.name.icontains(name_search, autoescape=True))

    if conditions:
        query = query.where(and_(*conditions))

    return query.order_by(
        Product.created_at.desc(),
        Product.id.desc(),
        Category.id.asc(),
    )


def _product_record(row: Any) -> ProductRecord:
    return ProductRecord(
        id=row.id,
        name=row.name,
        price=row.price,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _category_record(row: Any) -> CategoryRecord:
    return CategoryRecord(id=row.id, name=row.name, created_at=row.created_at)


class SqlCatalogRepository(CatalogRepository):
    """Catalog repository backed by an async SQLAlchemy session.

    Example usage:
        async with async_session_factory() as session:
            repo = SqlCatalogRepository(session)
            rows = await repo.fetch_product_rows(name_search="phone")
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def get_product(self, product_id: int) -> ProductRecord | None:
        if not fits_int4(product_id):
            return None

        result = await self.session.execute(
            select(*PRODUCT_COLUMNS).where(Product.id == product_id)
        )
        row = result.one_or_none()
        return _product_record(row) if row is not None else None

    async def fetch_product_rows(
        self,
        product_ids: Collection[int] | None = None,
        name_search: str | None = None,
    ) -> list[ProductCategoryRow]:
        result = await self.session.execute(
            build_product_rows_query(product_ids=product_ids, name_search=name_search)
        )

        rows = []
        for row in result.all():
            category = None
            if row.category_id is not None:
                category = CategoryRecord(
                    id=row.category_id,
                    name=row.category_name,
                    created_at=row.category_created_at,
                )
            rows.append(ProductCategoryRow(product=_product_record(row), category=category))
        return rows

    async def insert_product(self, name: str, price: int) -> WriteResult[ProductRecord]:
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(
                    insert(Product)
                    .values(name=name, price=price)
                    .returning(*PRODUCT_COLUMNS)
                )
                row = result.one()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.info("Product name already taken", name=name)
            return WriteResult.conflict()

        return WriteResult.created(_product_record(row))

    async def update_product(
        self,
        product_id: int,
        name: str | None = None,
        price: int | None = None,
    ) -> WriteResult[ProductRecord] | None:
        if not fits_int4(product_id):
            return None

        values: dict[str, Any] = {"updated_at": func.now()}
        if name is not None:
            values["name"] = name
        if price is not None:
            values["price"] = price

        try:
            async with self.session.begin_nested():
                result = await self.session.execute(
                    update(Product)
                    .where(Product.id == product_id)
                    .values(**values)
                    .returning(*PRODUCT_COLUMNS)
                )
                row = result.one_or_none()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.info("Product name already taken", name=name, product_id=product_id)
            return WriteResult.conflict()

        if row is None:
            return None
        return WriteResult.updated(_product_record(row))

    async def delete_product(self, product_id: int) -> ProductRecord | None:
        if not fits_int4(product_id):
            return None

        result = await self.session.execute(
            delete(Product).where(Product.id == product_id).returning(*PRODUCT_COLUMNS)
        )
        row = result.one_or_none()
        return _product_record(row) if row is not None else None

    async def find_category_links(
        self,
        category_ids: Collection[int],
    ) -> list[tuple[int, int]]:
        category_ids = storable_ids(category_ids)
        if not category_ids:
            return []

        result = await self.session.execute(
            select(
                product_categories.c.product_id,
                product_categories.c.category_id,
            ).where(product_categories.c.category_id.in_(category_ids))
        )
        return [(row.product_id, row.category_id) for row in result.all()]

    async def add_product_categories(
        self,
        product_id: int,
        category_ids: Sequence[int],
    ) -> None:
        if not category_ids:
            return

        await self.session.execute(
            insert(product_categories),
            [
                {"product_id": product_id, "category_id": category_id}
                for category_id in category_ids
            ],
        )

    async def remove_product_categories(self, product_id: int) -> None:
        await self.session.execute(
            delete(product_categories).where(product_categories.c.product_id == product_id)
        )

    async def existing_category_ids(self, category_ids: Collection[int]) -> list[int]:
        category_ids = storable_ids(category_ids)
        if not category_ids:
            return []

        result = await self.session.execute(
            select(Category.id)
            .where(Category.id.in_(category_ids))
            .order_by(Category.id)
        )
        return list(result.scalars().all())

    async def list_categories(self) -> list[CategoryRecord]:
        result = await self.session.execute(
            select(*CATEGORY_COLUMNS).order_by(Category.id)
        )
        return [_category_record(row) for row in result.all()]

    async def insert_category(self, name: str) -> WriteResult[CategoryRecord]:
        try:
            async with self.session.begin_nested():
                result = await self.session.execute(
                    insert(Category).values(name=name).returning(*CATEGORY_COLUMNS)
                )
                row = result.one()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.info("Category name already taken", name=name)
            return WriteResult.conflict()

        return WriteResult.created(_category_record(row))

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def ping(self) -> bool:
        await self.session.execute(text("SELECT 1"))
        return True
