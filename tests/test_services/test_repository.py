"""Tests for SqlProductRepository against a mocked AsyncSession."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from inventory.core.upsert_planner import UpsertInstruction, UpsertPlan
from inventory.errors import ProductConflictError
from inventory.models.product import Product
from inventory.services.repository import SqlProductRepository


def result_with(product: Product | None) -> MagicMock:
    result = MagicMock()
    result.scalar_one_or_none.return_value = product
    return result


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.get = AsyncMock()

    @asynccontextmanager
    async def begin_nested():
        yield

    session.begin_nested = MagicMock(side_effect=begin_nested)
    return session


def plan_of(*instructions: UpsertInstruction) -> UpsertPlan:
    return UpsertPlan(instructions=tuple(instructions))


class TestBulkUpsert:
    """Tests for SqlProductRepository.bulk_upsert."""

    @pytest.mark.asyncio
    async def test_existing_product_updated(self, session: MagicMock):
        existing = Product(id=7, code="A1", name="Old", brand="Acme")
        session.execute.return_value = result_with(existing)

        result = await SqlProductRepository(session).bulk_upsert(
            plan_of(
                UpsertInstruction(
                    code="A1",
                    set_fields={"code": "A1", "name": "New"},
                    set_on_insert={"stock_qty": 0},
                )
            )
        )

        assert result.matched == 1
        assert result.inserted == 0
        assert existing.name == "New"
        assert existing.brand == "Acme"
        session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_product_inserted(self, session: MagicMock):
        session.execute.return_value = result_with(None)

        result = await SqlProductRepository(session).bulk_upsert(
            plan_of(
                UpsertInstruction(
                    code="A1",
                    set_fields={"code": "A1", "name": "Soap", "unknown": "x"},
                    set_on_insert={"stock_qty": 0},
                )
            )
        )

        assert result.inserted == 1
        added = session.add.call_args.args[0]
        assert isinstance(added, Product)
        assert added.code == "A1"
        assert added.stock_qty == 0

    @pytest.mark.asyncio
    async def test_integrity_error_recorded_and_loop_continues(self, session: MagicMock):
        session.execute.return_value = result_with(None)
        session.flush.side_effect = [
            IntegrityError("INSERT INTO products", {}, Exception("duplicate barcode")),
            None,
        ]

        result = await SqlProductRepository(session).bulk_upsert(
            plan_of(
                UpsertInstruction(code="A1", set_fields={"code": "A1", "name": "Soap"}),
                UpsertInstruction(code="B2", set_fields={"code": "B2", "name": "Gel"}),
            )
        )

        assert result.inserted == 1
        assert result.failed == 1
        assert result.errors[0].code == "A1"
        assert "duplicate barcode" in result.errors[0].error
        assert session.begin_nested.call_count == 2


class TestCrud:
    """Tests for the single-product operations."""

    @pytest.mark.asyncio
    async def test_update_unknown_returns_none(self, session: MagicMock):
        session.get.return_value = None

        assert await SqlProductRepository(session).update(1, {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_update_ignores_unknown_fields(self, session: MagicMock):
        product = Product(id=1, code="A1", name="Soap")
        session.get.return_value = product

        await SqlProductRepository(session).update(1, {"name": "Gel", "id": 99})

        assert product.name == "Gel"
        assert product.id == 1

    @pytest.mark.asyncio
    async def test_delete_unknown_returns_false(self, session: MagicMock):
        session.get.return_value = None

        assert await SqlProductRepository(session).delete(1) is False
        session.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_find_by_codes_empty_skips_query(self, session: MagicMock):
        assert await SqlProductRepository(session).find_by_codes([]) == []
        session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_duplicate_barcode_raises_conflict(self, session: MagicMock):
        session.flush.side_effect = IntegrityError(
            "INSERT INTO products", {}, Exception("duplicate barcode")
        )

        with pytest.raises(ProductConflictError) as exc_info:
            await SqlProductRepository(session).create(
                {"code": "A1", "name": "Soap", "barcode": "111"}
            )

        assert exc_info.value.detail == "duplicate barcode"
        session.begin_nested.assert_called_once()
        session.refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_duplicate_barcode_raises_conflict(self, session: MagicMock):
        session.get.return_value = Product(id=1, code="A1", name="Soap")
        session.flush.side_effect = IntegrityError(
            "UPDATE products", {}, Exception("duplicate barcode")
        )

        with pytest.raises(ProductConflictError, match="duplicate barcode"):
            await SqlProductRepository(session).update(1, {"barcode": "111"})

        session.begin_nested.assert_called_once()
