"""Shared fixtures for catalog tests.

Provides an in-memory ``CatalogRepository`` with commit/rollback
snapshots, so services and endpoints run without a database.
"""

from collections.abc import Collection, Generator, Sequence
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_catalog_repository
from app.application.catalog_service import CatalogService
from app.catalog.repository import CatalogRepository
from app.domain.entities import (
    CategoryRecord,
    ProductCategoryRow,
    ProductRecord,
    WriteResult,
)
from app.main import app

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)


class InMemoryCatalogRepository(CatalogRepository):
    """Dict-backed repository mirroring the SQL behaviour.

    Unique names, cascading deletes and newest-first ordering behave like
    the PostgreSQL schema. ``rollback`` restores the state of the last
    ``commit``; ID counters keep advancing like database sequences.
    """

    def __init__(self) -> None:
        self.categories: dict[int, CategoryRecord] = {}
        self.products: dict[int, ProductRecord] = {}
        self.links: list[tuple[int, int]] = []
        self._next_category_id = 1
        self._next_product_id = 1
        self._ticks = 0

        self.commits = 0
        self.rollbacks = 0
        self.fetch_calls = 0
        self.fail_on_link_insert = False
        self.reachable = True

        self._snapshot = self._take_snapshot()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        self._ticks += 1
        return BASE_TIME + timedelta(seconds=self._ticks)

    def _take_snapshot(self) -> tuple:
        return dict(self.categories), dict(self.products), list(self.links)

    def seed_category(self, name: str) -> CategoryRecord:
        """Store a category (name in storage form) and commit."""
        category = CategoryRecord(id=self._next_category_id, name=name, created_at=self._now())
        self._next_category_id += 1
        self.categories[category.id] = category
        self._snapshot = self._take_snapshot()
        return category

    def seed_product(
        self,
        name: str,
        price: int,
        category_ids: Sequence[int] = (),
    ) -> ProductRecord:
        """Store a product with links and commit."""
        now = self._now()
        product = ProductRecord(
            id=self._next_product_id,
            name=name,
            price=price,
            created_at=now,
            updated_at=now,
        )
        self._next_product_id += 1
        self.products[product.id] = product
        self.links.extend((product.id, category_id) for category_id in category_ids)
        self._snapshot = self._take_snapshot()
        return product

    def category_ids_of(self, product_id: int) -> list[int]:
        return sorted(c for p, c in self.links if p == product_id)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def get_product(self, product_id: int) -> ProductRecord | None:
        return self.products.get(product_id)

    async def fetch_product_rows(
        self,
        product_ids: Collection[int] | None = None,
        name_search: str | None = None,
    ) -> list[ProductCategoryRow]:
        self.fetch_calls += 1

        products = sorted(
            self.products.values(),
            key=lambda p: (p.created_at, p.id),
            reverse=True,
        )
        rows = []
        for product in products:
            if product_ids is not None and product.id not in product_ids:
                continue
            if name_search and name_search.lower() not in product.name.lower():
                continue

            category_ids = self.category_ids_of(product.id)
            if not category_ids:
                rows.append(ProductCategoryRow(product=product))
            for category_id in category_ids:
                rows.append(
                    ProductCategoryRow(product=product, category=self.categories[category_id])
                )
        return rows

    async def insert_product(self, name: str, price: int) -> WriteResult[ProductRecord]:
        if any(p.name == name for p in self.products.values()):
            return WriteResult.conflict()

        now = self._now()
        product = ProductRecord(
            id=self._next_product_id,
            name=name,
            price=price,
            created_at=now,
            updated_at=now,
        )
        self._next_product_id += 1
        self.products[product.id] = product
        return WriteResult.created(product)

    async def update_product(
        self,
        product_id: int,
        name: str | None = None,
        price: int | None = None,
    ) -> WriteResult[ProductRecord] | None:
        current = self.products.get(product_id)
        if current is None:
            return None
        if name is not None and any(
            p.name == name and p.id != product_id for p in self.products.values()
        ):
            return WriteResult.conflict()

        updated = ProductRecord(
            id=current.id,
            name=name if name is not None else current.name,
            price=price if price is not None else current.price,
            created_at=current.created_at,
            updated_at=self._now(),
        )
        self.products[product_id] = updated
        return WriteResult.updated(updated)

    async def delete_product(self, product_id: int) -> ProductRecord | None:
        product = self.products.pop(product_id, None)
        if product is not None:
            self.links = [(p, c) for p, c in self.links if p != product_id]
        return product

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------

    async def find_category_links(
        self,
        category_ids: Collection[int],
    ) -> list[tuple[int, int]]:
        return [(p, c) for p, c in self.links if c in category_ids]

    async def add_product_categories(
        self,
        product_id: int,
        category_ids: Sequence[int],
    ) -> None:
        if self.fail_on_link_insert:
            raise RuntimeError("link insert failed")
        for category_id in category_ids:
            if (product_id, category_id) in self.links:
                raise RuntimeError("duplicate key value violates product_categories_pkey")
            self.links.append((product_id, category_id))

    async def remove_product_categories(self, product_id: int) -> None:
        self.links = [(p, c) for p, c in self.links if p != product_id]

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def existing_category_ids(self, category_ids: Collection[int]) -> list[int]:
        return sorted(i for i in set(category_ids) if i in self.categories)

    async def list_categories(self) -> list[CategoryRecord]:
        return [self.categories[i] for i in sorted(self.categories)]

    async def insert_category(self, name: str) -> WriteResult[CategoryRecord]:
        if any(c.name == name for c in self.categories.values()):
            return WriteResult.conflict()

        category = CategoryRecord(id=self._next_category_id, name=name, created_at=self._now())
        self._next_category_id += 1
        self.categories[category.id] = category
        return WriteResult.created(category)

    # ------------------------------------------------------------------
    # Transaction control
    # ------------------------------------------------------------------

    async def commit(self) -> None:
        self.commits += 1
        self._snapshot = self._take_snapshot()

    async def rollback(self) -> None:
        self.rollbacks += 1
        categories, products, links = self._snapshot
        self.categories = dict(categories)
        self.products = dict(products)
        self.links = list(links)

    async def ping(self) -> bool:
        if not self.reachable:
            raise ConnectionError("database unreachable")
        return True


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def repository() -> InMemoryCatalogRepository:
    """Create an empty in-memory repository."""
    return InMemoryCatalogRepository()


@pytest.fixture
def service(repository: InMemoryCatalogRepository) -> CatalogService:
    """Create a catalog service over the in-memory repository."""
    return CatalogService(repository, request_id="test-request")


@pytest.fixture
def catalog(repository: InMemoryCatalogRepository) -> dict[str, int]:
    """Seed the categories and products used across the API tests.

    Returns:
        Name -> ID for every seeded category and product.
    """
    electronics = repository.seed_category("electronics")
    books = repository.seed_category("books")
    home = repository.seed_category("home_appliances")
    female = repository.seed_category("female_clothing")

    headphones = repository.seed_product("Headphones", 80, [electronics.id])
    kettle = repository.seed_product("Smart Kettle", 45, [electronics.id, home.id])
    novel = repository.seed_product("Novel", 12, [books.id])
    dress = repository.seed_product("4", 3, [electronics.id, female.id])

    return {
        "electronics": electronics.id,
        "books": books.id,
        "home_appliances": home.id,
        "female_clothing": female.id,
        "Headphones": headphones.id,
        "Smart Kettle": kettle.id,
        "Novel": novel.id,
        "4": dress.id,
    }


@pytest.fixture
def client(repository: InMemoryCatalogRepository) -> Generator[TestClient, None, None]:
    """Create test client wired to the in-memory repository."""
    app.dependency_overrides[get_catalog_repository] = lambda: repository
    yield TestClient(app)
    app.dependency_overrides.clear()
