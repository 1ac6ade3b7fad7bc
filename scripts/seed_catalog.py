#!/usr/bin/env python3
"""Seed the product catalog with demo categories and products.

Categories and products that already exist are skipped, so the script can
be run repeatedly.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --create-tables
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.application.catalog_service import CatalogService
from app.catalog.repository import SqlCatalogRepository
from app.domain.exceptions import ConflictError
from app.infrastructure.database import Base, async_session_factory, engine

DEMO_CATEGORIES = [
    "Electronics",
    "Home Appliances",
    "Books",
    "Female Clothing",
    "Male Clothing",
]

# name, price, category names
DEMO_PRODUCTS = [
    ("Wireless Headphones", 7999, ["Electronics"]),
    ("Smart Kettle", 4599, ["Electronics", "Home Appliances"]),
    ("Summer Dress", 3499, ["Female Clothing"]),
    ("Rain Jacket", 8999, ["Female Clothing", "Male Clothing"]),
    ("Python Cookbook", 3999, ["Books"]),
]


async def create_tables() -> None:
    """Create database tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed() -> dict[str, int]:
    """Insert demo categories and products.

    Returns:
        Counts of created and skipped rows.
    """
    counts = {"categories_created": 0, "products_created": 0, "skipped": 0}

    async with async_session_factory() as session:
        service = CatalogService(SqlCatalogRepository(session))

        for name in DEMO_CATEGORIES:
            try:
                await service.add_category(name)
                counts["categories_created"] += 1
            except ConflictError:
                counts["skipped"] += 1

        ids_by_name = {c.name: c.id for c in await service.list_categories()}

        for name, price, category_names in DEMO_PRODUCTS:
            category_ids = [ids_by_name[c.lower()] for c in category_names]
            try:
                await service.add_product(name=name, price=price, category_ids=category_ids)
                counts["products_created"] += 1
            except ConflictError:
                counts["skipped"] += 1

    return counts


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the product catalog with demo data",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from the ORM metadata instead of relying on migrations",
    )

    args = parser.parse_args()

    print("=" * 60)
    print("Product Catalog Seeder")
    print("=" * 60)

    if args.create_tables:
        print("Creating database tables...")
        await create_tables()
        print("Tables ready.")
        print()

    try:
        result = await seed()
    finally:
        await engine.dispose()

    print(f"  Categories created: {result['categories_created']}")
    print(f"  Products created: {result['products_created']}")
    print(f"  Skipped (already present): {result['skipped']}")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
