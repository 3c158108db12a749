"""Shared fixtures: an in-memory product repository and an HTTP client."""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from inventory.core.header_aliases import HeaderAliasTable, default_alias_table
from inventory.core.upsert_planner import UpsertPlan
from inventory.errors import ProductConflictError
from inventory.models.product import WRITABLE_FIELDS, Product
from inventory.services.repository import BulkWriteResult, ProductRepository, UpsertFailure

_BARCODE_CONFLICT = 'duplicate key value violates unique constraint "products_barcode_key"'


class FakeProductRepository(ProductRepository):
    """ProductRepository kept in a dict.

    Mirrors the database behaviour the services rely on: ids are assigned
    in insertion order, column defaults are applied, and a duplicate
    non-null barcode fails the upsert that caused it.
    """

    def __init__(self) -> None:
        self.products: dict[int, Product] = {}
        self._next_id = 1
        self.bulk_calls = 0

    def _apply(self, product: Product, values: dict[str, Any]) -> None:
        for key, value in values.items():
            if key in WRITABLE_FIELDS:
                setattr(product, key, value)

    def _new(self, values: dict[str, Any]) -> Product:
        product = Product(tags=[], attributes={}, stock_qty=0, is_active=True)
        self._apply(product, values)
        product.id = self._next_id
        product.created_at = values.get("created_at") or datetime.now(timezone.utc)
        self._next_id += 1
        self.products[product.id] = product
        return product

    def _barcode_taken(self, barcode: str | None, exclude_id: int | None) -> bool:
        if barcode is None:
            return False
        return any(
            p.barcode == barcode and p.id != exclude_id for p in self.products.values()
        )

    def add(self, **values: Any) -> Product:
        """Seed a product directly."""
        return self._new(values)

    async def find_by_codes(self, codes: Sequence[str]) -> list[Product]:
        wanted = set(codes)
        return [p for p in self.products.values() if p.code in wanted]

    async def find_by_ids(self, ids: Sequence[int]) -> list[Product]:
        wanted = set(ids)
        return [p for p in self.products.values() if p.id in wanted]

    async def find_all(self) -> list[Product]:
        return list(self.products.values())

    async def bulk_upsert(self, plan: UpsertPlan) -> BulkWriteResult:
        self.bulk_calls += 1
        result = BulkWriteResult()
        for instruction in plan:
            existing = next(
                (p for p in self.products.values() if p.code == instruction.code), None
            )
            barcode = instruction.set_fields.get("barcode")
            if self._barcode_taken(barcode, existing.id if existing else None):
                result.errors.append(UpsertFailure(code=instruction.code, error=_BARCODE_CONFLICT))
                continue

            if existing is not None:
                self._apply(existing, instruction.set_fields)
                existing.updated_at = datetime.now(timezone.utc)
                result.matched += 1
            else:
                self._new(instruction.insert_values())
                result.inserted += 1
        return result

    async def list_page(
        self,
        offset: int = 0,
        limit: int = 50,
        search: str | None = None,
        active_only: bool = False,
    ) -> tuple[list[Product], int]:
        items = list(self.products.values())
        if search:
            needle = search.lower()
            items = [
                p
                for p in items
                if any(needle in (v or "").lower() for v in (p.name, p.code, p.brand, p.category))
            ]
        if active_only:
            items = [p for p in items if p.is_active]
        return items[offset : offset + limit], len(items)

    async def get(self, product_id: int) -> Product | None:
        return self.products.get(product_id)

    async def create(self, values: dict[str, Any]) -> Product:
        if self._barcode_taken(values.get("barcode"), None):
            raise ProductConflictError(_BARCODE_CONFLICT)
        return self._new(values)

    async def update(self, product_id: int, values: dict[str, Any]) -> Product | None:
        product = self.products.get(product_id)
        if product is None:
            return None
        if "barcode" in values and self._barcode_taken(values["barcode"], product_id):
            raise ProductConflictError(_BARCODE_CONFLICT)
        self._apply(product, values)
        product.updated_at = datetime.now(timezone.utc)
        return product

    async def delete(self, product_id: int) -> bool:
        return self.products.pop(product_id, None) is not None

    async def delete_all(self) -> int:
        deleted = len(self.products)
        self.products.clear()
        return deleted


@pytest.fixture
def repository() -> FakeProductRepository:
    return FakeProductRepository()


@pytest.fixture
def aliases() -> HeaderAliasTable:
    return default_alias_table()


@pytest_asyncio.fixture
async def client(repository: FakeProductRepository) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with storage replaced by the fake."""
    from inventory.api.deps import get_aliases, get_repository
    from inventory.main import app

    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_aliases] = default_alias_table
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
