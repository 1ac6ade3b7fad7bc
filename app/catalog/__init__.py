"""Product catalog.

ORM tables, data access, category name formatting and the pure
association logic (AND matching and row grouping).
"""

from app.catalog.assembly import group_product_rows, match_products, normalize_category_ids
from app.catalog.formatting import to_display_form, to_storage_form
from app.catalog.models import Category, Product, product_categories
from app.catalog.repository import CatalogRepository, SqlCatalogRepository

__all__ = [
    # Models
    "Category",
    "Product",
    "product_categories",
    # Repository
    "CatalogRepository",
    "SqlCatalogRepository",
    # Formatting
    "to_display_form",
    "to_storage_form",
    # Assembly
    "group_product_rows",
    "match_products",
    "normalize_category_ids",
]
