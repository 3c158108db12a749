"""Product persistence.

`ProductRepository` is the collaborator interface the import/export and
CRUD services depend on. `SqlProductRepository` implements it on an async
SQLAlchemy session.

Bulk upserts are unordered and tolerate partial failure: each instruction
runs in its own SAVEPOINT, so a constraint violation on one code rolls back
only that upsert and is reported in the result.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inventory.core.upsert_planner import UpsertInstruction, UpsertPlan
from inventory.errors import ProductConflictError
from inventory.infra.logging import get_logger
from inventory.models.product import WRITABLE_FIELDS, Product

logger = get_logger(__name__)


@dataclass(frozen=True)
class UpsertFailure:
    """An upsert the database refused."""

    code: str
    error: str


@dataclass
class BulkWriteResult:
    """Outcome of applying an upsert plan."""

    matched: int = 0
    inserted: int = 0
    errors: list[UpsertFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)


class ProductRepository(ABC):
    """Storage operations required by the services."""

    @abstractmethod
    async def find_by_codes(self, codes: Sequence[str]) -> list[Product]:
        """All products whose code is in `codes`."""

    @abstractmethod
    async def find_by_ids(self, ids: Sequence[int]) -> list[Product]:
        """All products whose id is in `ids`; unknown ids are ignored."""

    @abstractmethod
    async def find_all(self) -> list[Product]:
        """Every stored product in storage order."""

    @abstractmethod
    async def bulk_upsert(self, plan: UpsertPlan) -> BulkWriteResult:
        """Apply an upsert plan, continuing past individual failures."""

    @abstractmethod
    async def list_page(
        self,
        offset: int = 0,
        limit: int = 50,
        search: str | None = None,
        active_only: bool = False,
    ) -> tuple[list[Product], int]:
        """One page of products and the total matching count."""

    @abstractmethod
    async def get(self, product_id: int) -> Product | None:
        """Product by id, or None."""

    @abstractmethod
    async def create(self, values: dict[str, Any]) -> Product:
        """Insert a product; ProductConflictError on a taken unique column."""

    @abstractmethod
    async def update(self, product_id: int, values: dict[str, Any]) -> Product | None:
        """Update a product; None when the id does not exist.

        Raises ProductConflictError on a taken unique column.
        """

    @abstractmethod
    async def delete(self, product_id: int) -> bool:
        """Delete a product; False when the id does not exist."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Delete every product and return how many were removed."""


def _writable(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if k in WRITABLE_FIELDS}


def _integrity_message(e: IntegrityError) -> str:
    return str(e.orig) if e.orig is not None else str(e)


class SqlProductRepository(ProductRepository):
    """ProductRepository backed by an AsyncSession.

    The session's transaction is owned by the caller (see `get_db_session`);
    this class only flushes.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_codes(self, codes: Sequence[str]) -> list[Product]:
        if not codes:
            return []
        result = await self.session.execute(
            select(Product)
            .where(Product.code.in_(list(codes)))
            .order_by(Product.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_by_ids(self, ids: Sequence[int]) -> list[Product]:
        if not ids:
            return []
        result = await self.session.execute(
            select(Product)
            .where(Product.id.in_(list(ids)))
            .order_by(Product.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_all(self) -> list[Product]:
        result = await self.session.execute(
            select(Product).order_by(Product.id).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def _upsert_one(self, instruction: UpsertInstruction) -> bool:
        """Apply one instruction. Returns True when an existing row matched."""
        existing = (
            await self.session.execute(
                select(Product)
                .where(Product.code == instruction.code)
                .order_by(Product.id)
                .limit(1)
            )
        ).scalar_one_or_none()

        if existing is not None:
            for key, value in _writable(instruction.set_fields).items():
                setattr(existing, key, value)
            await self.session.flush()
            return True

        values = instruction.insert_values()
        created_at = values.pop("created_at", None)
        product = Product(**_writable(values))
        if created_at is not None:
            product.created_at = created_at
        self.session.add(product)
        await self.session.flush()
        return False

    async def bulk_upsert(self, plan: UpsertPlan) -> BulkWriteResult:
        result = BulkWriteResult()

        for instruction in plan:
            try:
                async with self.session.begin_nested():
                    matched = await self._upsert_one(instruction)
            except IntegrityError as e:
                message = _integrity_message(e)
                result.errors.append(UpsertFailure(code=instruction.code, error=message))
                logger.warning("Upsert failed", code=instruction.code, error=message)
                continue

            if matched:
                result.matched += 1
            else:
                result.inserted += 1

        return result

    async def list_page(
        self,
        offset: int = 0,
        limit: int = 50,
        search: str | None = None,
        active_only: bool = False,
    ) -> tuple[list[Product], int]:
        query = select(Product)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.code.ilike(pattern),
                    Product.brand.ilike(pattern),
                    Product.category.ilike(pattern),
                )
            )
        if active_only:
            query = query.where(Product.is_active.is_(True))

        total = (
            await self.session.execute(select(func.count()).select_from(query.subquery()))
        ).scalar_one()
        rows = await self.session.execute(query.order_by(Product.id).offset(offset).limit(limit))
        return list(rows.scalars().all()), total

    async def get(self, product_id: int) -> Product | None:
        return await self.session.get(Product, product_id)

    async def create(self, values: dict[str, Any]) -> Product:
        """Raises ProductConflictError when a unique column is already taken."""
        product = Product(**_writable(values))
        try:
            async with self.session.begin_nested():
                self.session.add(product)
                await self.session.flush()
        except IntegrityError as e:
            raise ProductConflictError(_integrity_message(e)) from e
        await self.session.refresh(product)
        return product

    async def update(self, product_id: int, values: dict[str, Any]) -> Product | None:
        """Raises ProductConflictError when a unique column is already taken."""
        product = await self.get(product_id)
        if product is None:
            return None
        try:
            async with self.session.begin_nested():
                for key, value in _writable(values).items():
                    setattr(product, key, value)
                await self.session.flush()
        except IntegrityError as e:
            raise ProductConflictError(_integrity_message(e)) from e
        await self.session.refresh(product)
        return product

    async def delete(self, product_id: int) -> bool:
        product = await self.get(product_id)
        if product is None:
            return False
        await self.session.delete(product)
        await self.session.flush()
        return True

    async def delete_all(self) -> int:
        result = await self.session.execute(delete(Product))
        return result.rowcount or 0
