"""Product model - the catalog entry managed by CRUD and CSV import."""

from typing import Any

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from inventory.models.base import Base, TimestampMixin

# Columns a client (CRUD body or import row) may set directly.
WRITABLE_FIELDS: tuple[str, ...] = (
    "code",
    "barcode",
    "name",
    "short_description",
    "description",
    "brand",
    "category",
    "price",
    "volume",
    "image_url",
    "tags",
    "attributes",
    "ai_description",
    "stock_qty",
    "is_active",
)


class Product(Base, TimestampMixin):
    """Catalog product.

    `code` is the business key used to reconcile CSV imports. It is indexed
    but deliberately not unique: imports match on it, storage does not
    enforce it. `barcode` is unique when present.

    `price` is stored as ``{"amount": float, "currency": str}`` and `volume`
    as ``{"value": float, "unit": str}``.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    barcode: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short_description: Mapped[str | None] = mapped_column(String(160), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    category: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)

    price: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    volume: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    tags: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    attributes: Mapped[dict[str, str]] = mapped_column(JSONB, nullable=False, default=dict)
    ai_description: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    stock_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, code='{self.code}')>"
