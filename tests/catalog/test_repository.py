"""Tests for the SQL catalog repository.

Statements are compiled for PostgreSQL and the session is mocked, so no
database is needed.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from app.catalog.repository import (
    SqlCatalogRepository,
    build_product_rows_query,
    fits_int4,
    is_unique_violation,
    storable_ids,
)
from app.domain.entities import WriteStatus


class DriverError(Exception):
    """Stand-in for an asyncpg exception carrying a SQLSTATE."""

    sqlstate: str | None = None


def compile_sql(statement) -> str:
    """Render a statement as PostgreSQL SQL."""
    return str(statement.compile(dialect=postgresql.dialect()))


def integrity_error(sqlstate: str) -> IntegrityError:
    """Build an IntegrityError as raised through the asyncpg adapter."""
    return IntegrityError("INSERT ...", {}, SimpleNamespace(sqlstate=sqlstate))


def mock_session(execute: AsyncMock) -> MagicMock:
    """Create an AsyncSession stand-in supporting begin_nested()."""
    session = MagicMock()
    session.execute = execute
    savepoint = session.begin_nested.return_value
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    return session


class TestProductRowsQuery:
    """Tests for build_product_rows_query."""

    def test_outer_joins_products_with_categories(self) -> None:
        sql = compile_sql(build_product_rows_query())

        assert "LEFT OUTER JOIN product_categories" in sql
        assert "LEFT OUTER JOIN categories" in sql

    def test_newest_products_first(self) -> None:
        sql = compile_sql(build_product_rows_query())

        assert "ORDER BY products.created_at DESC, products.id DESC" in sql

    def test_no_filters_no_where(self) -> None:
        sql = compile_sql(build_product_rows_query())

        assert "WHERE" not in sql

    def test_product_id_restriction(self) -> None:
        sql = compile_sql(build_product_rows_query(product_ids={3, 7}))

        assert "products.id IN" in sql

    def test_name_search_is_case_insensitive(self) -> None:
        query = build_product_rows_query(name_search="phone")
        sql = compile_sql(query)

        assert "LIKE" in sql
        assert "phone" in query.compile(dialect=postgresql.dialect()).params.values()

    def test_name_search_wildcards_are_literal(self) -> None:
        """'%' and '_' in the search text match themselves only."""
        query = build_product_rows_query(name_search="50%_off")
        sql = compile_sql(query)

        assert "ESCAPE '/'" in sql
        assert "50/%/_off" in query.compile(dialect=postgresql.dialect()).params.values()

    def test_out_of_range_product_ids_not_bound(self) -> None:
        query = build_product_rows_query(product_ids=[1, 2**31])

        params = query.compile(dialect=postgresql.dialect()).params
        assert [1] in params.values()

    def test_filters_combined(self) -> None:
        sql = compile_sql(build_product_rows_query(product_ids=[1], name_search="x"))

        assert "products.id IN" in sql
        assert " AND " in sql
        assert "LIKE" in sql


class TestIsUniqueViolation:
    """Tests for is_unique_violation."""

    def test_unique_violation(self) -> None:
        assert is_unique_violation(integrity_error("23505")) is True

    def test_foreign_key_violation(self) -> None:
        assert is_unique_violation(integrity_error("23503")) is False

    def test_sqlstate_on_cause(self) -> None:
        """The asyncpg error may only be reachable through __cause__."""
        cause = DriverError("duplicate key value violates unique constraint")
        cause.sqlstate = "23505"
        orig = Exception("wrapped")
        orig.__cause__ = cause
        error = IntegrityError("INSERT ...", {}, orig)

        assert is_unique_violation(error) is True


class TestSqlCatalogRepositoryWrites:
    """Tests for unique-violation and RETURNING handling in writes."""

    @pytest.mark.asyncio
    async def test_insert_product_conflict(self) -> None:
        session = mock_session(AsyncMock(side_effect=integrity_error("23505")))
        repository = SqlCatalogRepository(session)

        result = await repository.insert_product("Headphones", 80)

        assert result.status is WriteStatus.CONFLICT
        assert result.row is None

    @pytest.mark.asyncio
    async def test_insert_product_other_integrity_error_propagates(self) -> None:
        session = mock_session(AsyncMock(side_effect=integrity_error("23502")))
        repository = SqlCatalogRepository(session)

        with pytest.raises(IntegrityError):
            await repository.insert_product("Headphones", 80)

    @pytest.mark.asyncio
    async def test_insert_category_conflict(self) -> None:
        session = mock_session(AsyncMock(side_effect=integrity_error("23505")))
        repository = SqlCatalogRepository(session)

        result = await repository.insert_category("electronics")

        assert result.is_conflict

    @pytest.mark.asyncio
    async def test_insert_product_created(self) -> None:
        row = SimpleNamespace(id=1, name="Headphones", price=80, created_at=None, updated_at=None)
        execute_result = MagicMock()
        execute_result.one.return_value = row
        session = mock_session(AsyncMock(return_value=execute_result))
        repository = SqlCatalogRepository(session)

        result = await repository.insert_product("Headphones", 80)

        assert result.status is WriteStatus.CREATED
        assert result.row.id == 1
        assert result.row.name == "Headphones"

    @pytest.mark.asyncio
    async def test_update_product_conflict(self) -> None:
        """Renaming onto a taken name is reported, not raised."""
        session = mock_session(AsyncMock(side_effect=integrity_error("23505")))
        repository = SqlCatalogRepository(session)

        result = await repository.update_product(2, name="Headphones")

        assert result.status is WriteStatus.CONFLICT
        assert result.row is None

    @pytest.mark.asyncio
    async def test_update_product_missing_row(self) -> None:
        execute_result = MagicMock()
        execute_result.one_or_none.return_value = None
        session = mock_session(AsyncMock(return_value=execute_result))
        repository = SqlCatalogRepository(session)

        assert await repository.update_product(404, price=10) is None

    @pytest.mark.asyncio
    async def test_update_product_updated(self) -> None:
        row = SimpleNamespace(id=2, name="Novella", price=15, created_at=None, updated_at=None)
        execute_result = MagicMock()
        execute_result.one_or_none.return_value = row
        session = mock_session(AsyncMock(return_value=execute_result))
        repository = SqlCatalogRepository(session)

        result = await repository.update_product(2, name="Novella", price=15)

        assert result.status is WriteStatus.UPDATED
        assert result.row.name == "Novella"
        assert result.row.price == 15

    @pytest.mark.asyncio
    async def test_delete_product_returns_snapshot(self) -> None:
        row = SimpleNamespace(id=3, name="Novel", price=12, created_at=None, updated_at=None)
        execute_result = MagicMock()
        execute_result.one_or_none.return_value = row
        session = mock_session(AsyncMock(return_value=execute_result))
        repository = SqlCatalogRepository(session)

        deleted = await repository.delete_product(3)

        assert deleted.id == 3
        assert deleted.name == "Novel"
        assert deleted.price == 12

    @pytest.mark.asyncio
    async def test_delete_product_missing_row(self) -> None:
        execute_result = MagicMock()
        execute_result.one_or_none.return_value = None
        session = mock_session(AsyncMock(return_value=execute_result))
        repository = SqlCatalogRepository(session)

        assert await repository.delete_product(404) is None

    @pytest.mark.asyncio
    async def test_link_helpers_skip_empty_input(self) -> None:
        session = mock_session(AsyncMock())
        repository = SqlCatalogRepository(session)

        assert await repository.find_category_links([]) == []
        assert await repository.existing_category_ids([]) == []
        await repository.add_product_categories(1, [])

        session.execute.assert_not_called()


class TestSqlCatalogRepositoryReads:
    """Tests for turning joined rows into records."""

    @pytest.mark.asyncio
    async def test_fetch_product_rows_outer_join(self) -> None:
        """A NULL category from the outer join yields a categoryless row."""
        base = {"id": 1, "name": "Loose", "price": 5, "created_at": None, "updated_at": None}
        rows = [
            SimpleNamespace(
                **base, category_id=None, category_name=None, category_created_at=None
            ),
            SimpleNamespace(
                **{**base, "id": 2, "name": "Kettle"},
                category_id=3,
                category_name="home_appliances",
                category_created_at=None,
            ),
        ]
        execute_result = MagicMock()
        execute_result.all.return_value = rows
        session = mock_session(AsyncMock(return_value=execute_result))
        repository = SqlCatalogRepository(session)

        loose, kettle = await repository.fetch_product_rows()

        assert loose.product.name == "Loose"
        assert loose.category is None
        assert kettle.category.id == 3
        assert kettle.category.name == "home_appliances"


class TestIntegerRange:
    """IDs outside the INTEGER column range never reach the database."""

    def test_fits_int4(self) -> None:
        assert fits_int4(2**31 - 1) is True
        assert fits_int4(-(2**31)) is True
        assert fits_int4(2**31) is False
        assert fits_int4(-(2**31) - 1) is False

    def test_storable_ids_keeps_order(self) -> None:
        assert storable_ids([4, 2**31, 1]) == [4, 1]

    @pytest.mark.asyncio
    async def test_product_lookups_short_circuit(self) -> None:
        session = mock_session(AsyncMock())
        repository = SqlCatalogRepository(session)

        assert await repository.get_product(2**31) is None
        assert await repository.update_product(2**31, name="Ghost") is None
        assert await repository.delete_product(2**31) is None

        session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_category_lookups_short_circuit(self) -> None:
        session = mock_session(AsyncMock())
        repository = SqlCatalogRepository(session)

        assert await repository.find_category_links([2**31]) == []
        assert await repository.existing_category_ids([2**31, -(2**31) - 1]) == []

        session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_mixed_ids_bind_only_storable_ones(self) -> None:
        execute_result = MagicMock()
        execute_result.scalars.return_value.all.return_value = [1]
        session = mock_session(AsyncMock(return_value=execute_result))
        repository = SqlCatalogRepository(session)

        assert await repository.existing_category_ids([1, 2**31]) == [1]

        [statement] = session.execute.call_args.args
        params = statement.compile(dialect=postgresql.dialect()).params
        assert [1] in params.values()
