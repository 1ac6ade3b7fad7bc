"""Application layer - services orchestrating the catalog use cases."""

from app.application.catalog_service import CatalogService, ProductFilter, ProductLookupResult

__all__ = [
    "CatalogService",
    "ProductFilter",
    "ProductLookupResult",
]
