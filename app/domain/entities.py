"""Catalog records passed between the repository, the service and the API.

These are plain snapshots of database rows. They never hold a session, so
they stay valid after the transaction that produced them has ended.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CategoryRecord:
    """A row of the categories table.

    Attributes:
        id: Category identifier.
        name: Name in storage form.
        created_at: Creation timestamp.
    """

    id: int
    name: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class ProductRecord:
    """A row of the products table.

    Attributes:
        id: Product identifier.
        name: Product name.
        price: Price as an integer amount.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    id: int
    name: str
    price: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ProductCategoryRow:
    """One row of the products x associations x categories join.

    ``category`` is None for a product without categories (outer join).
    """

    product: ProductRecord
    category: CategoryRecord | None = None


@dataclass
class CategoryView:
    """Category as shown to clients (display-formatted name)."""

    id: int
    name: str | None


@dataclass
class ProductView:
    """Product with its complete category list."""

    id: int
    name: str
    price: int
    categories: list[CategoryView] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WriteStatus(str, Enum):
    """Outcome of a write guarded by a unique constraint."""

    CREATED = "created"
    UPDATED = "updated"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class WriteResult(Generic[T]):
    """Tagged result of an insert or update.

    ``row`` is set unless ``status`` is ``CONFLICT``.
    """

    status: WriteStatus
    row: T | None = None

    @classmethod
    def created(cls, row: T) -> "WriteResult[T]":
        return cls(status=WriteStatus.CREATED, row=row)

    @classmethod
    def updated(cls, row: T) -> "WriteResult[T]":
        return cls(status=WriteStatus.UPDATED, row=row)

    @classmethod
    def conflict(cls) -> "WriteResult[T]":
        return cls(status=WriteStatus.CONFLICT)

    @property
    def is_conflict(self) -> bool:
        return self.status is WriteStatus.CONFLICT
