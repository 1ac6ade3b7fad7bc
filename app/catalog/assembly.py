"""Product/category association logic.

Two pure steps used by the product lookup:

1. ``match_products`` keeps the products that carry *every* required
   category (AND semantics).
2. ``group_product_rows`` folds the flat products x categories join into
   one record per product with its full category list.

Neither function touches the database, so both can be tested directly.
"""

from collections.abc import Iterable

from app.catalog.formatting import to_display_form
from app.domain.entities import CategoryView, ProductCategoryRow, ProductView


def normalize_category_ids(category_ids: Iterable[int] | None) -> list[int]:
    """Deduplicate category IDs while keeping their first-seen order.

    Args:
        category_ids: Requested category IDs, possibly with duplicates.

    Returns:
        Unique category IDs.
    """
    if not category_ids:
        return []
    return list(dict.fromkeys(category_ids))


def match_products(
    links: Iterable[tuple[int, int]],
    required_category_ids: Iterable[int],
) -> set[int]:
    """Find products associated with all required categories.

    Args:
        links: ``(product_id, category_id)`` pairs, normally already
            restricted to the required categories.
        required_category_ids: Categories a product must all belong to.
            Duplicates are ignored.

    Returns:
        IDs of the qualifying products. Empty when nothing is required,
        since an empty filter bypasses matching altogether.
    """
    required = set(required_category_ids)
    if not required:
        return set()

    matched: dict[int, set[int]] = {}
    for product_id, category_id in links:
        if category_id in required:
            matched.setdefault(product_id, set()).add(category_id)

    return {
        product_id
        for product_id, category_ids in matched.items()
        if required <= category_ids
    }


def group_product_rows(rows: Iterable[ProductCategoryRow]) -> list[ProductView]:
    """Group flat join rows into products with nested categories.

    Products keep the order of their first row and categories keep the
    order in which their rows arrive. A row without a category only
    registers the product.

    Args:
        rows: Rows from the products x associations x categories join.

    Returns:
        One ProductView per distinct product ID.
    """
    products: dict[int, ProductView] = {}

    for row in rows:
        product = row.product
        view = products.get(product.id)
        if view is None:
            view = ProductView(
                id=product.id,
                name=product.name,
                price=product.price,
                created_at=product.created_at,
                updated_at=product.updated_at,
            )
            products[product.id] = view

        if row.category is not None:
            view.categories.append(
                CategoryView(
                    id=row.category.id,
                    name=to_display_form(row.category.name),
                )
            )

    return list(products.values())
